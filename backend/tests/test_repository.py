from appstats import schemas
from appstats.infrastructure.database import models
from tests.fakes import APP_ID, DEVICE_ID, OWNER_ID


def make_device(version=1, **overrides):
    data = dict(
        platform="ios", device_id=DEVICE_ID, app_id=APP_ID, plugin_version="5.0.0",
        os_version="17.1", version=version,
    )
    data.update(overrides)
    return schemas.DeviceRecord(**data)


def test_lookups_on_seeded_data(seeded_db, datastore):
    assert datastore.get_app_owner(APP_ID).data == schemas.AppOwner(app_id=APP_ID, user_id=OWNER_ID)
    assert datastore.get_app_owner("com.unknown.app").data is None
    assert datastore.get_app_version(APP_ID, "1.1.0").data.id == 2
    assert datastore.get_app_version(APP_ID, "3.0.0").data is None
    assert datastore.get_device(APP_ID, DEVICE_ID).data is None


def test_upsert_device_is_keyed_by_app_and_device(db, datastore):
    assert datastore.upsert_device(make_device(version=1, custom_id="user-1")).error is None
    assert datastore.upsert_device(make_device(version=2)).error is None

    devices = db.query(models.Device).all()
    assert len(devices) == 1
    assert devices[0].version == 2
    # brak custom_id w raporcie nie kasuje zapisanego
    assert devices[0].custom_id == "user-1"
    assert datastore.get_device(APP_ID, DEVICE_ID).data.version == 2


def test_insert_stats_appends_rows(db, datastore):
    row = schemas.StatRecord(platform="ios", device_id=DEVICE_ID, action="set", app_id=APP_ID, version=2)

    datastore.insert_stats([row])
    datastore.insert_stats([row])

    assert db.query(models.Stat).count() == 2


def test_onprem_counter_created_then_incremented(db, datastore):
    datastore.register_onprem_app("com.selfhosted.app")
    datastore.increment_onprem_stats("com.selfhosted.app")
    datastore.increment_onprem_stats("com.selfhosted.app")

    store_app = db.get(models.StoreApp, "com.selfhosted.app")
    assert store_app.onprem is True
    assert store_app.capgo is True
    assert store_app.updates == 2


def test_onprem_counter_without_registration(db, datastore):
    datastore.increment_onprem_stats("com.other.app", updates=3)

    assert db.get(models.StoreApp, "com.other.app").updates == 3


def test_onprem_registration_keeps_catalog_data(db, datastore):
    entry = schemas.CatalogEntry(
        app_id="com.chart.app", title="Chart App", category="APPLICATION",
        collection="topselling_free", rank=3, installs=5000,
    )
    datastore.upsert_store_apps([entry])

    datastore.register_onprem_app("com.chart.app")

    store_app = db.get(models.StoreApp, "com.chart.app")
    assert store_app.title == "Chart App"
    assert store_app.rank == 3
    assert store_app.onprem is True


def test_upsert_store_apps_overwrites_rank(db, datastore):
    entry = schemas.CatalogEntry(app_id="com.chart.app", category="APPLICATION", collection="topselling_free", rank=3)

    datastore.upsert_store_apps([entry])
    result = datastore.upsert_store_apps([entry.model_copy(update={"rank": 1})])

    assert result.data == 1
    assert db.query(models.StoreApp).count() == 1
    assert db.get(models.StoreApp, "com.chart.app").rank == 1


def test_write_error_returned_as_value(db, datastore):
    # app_id jest wymagane w tabeli stats
    row = schemas.StatRecord(platform="ios", device_id=DEVICE_ID, app_id=APP_ID)
    bad_row = row.model_copy(update={"app_id": None})

    result = datastore.insert_stats([bad_row])

    assert result.error
    # sesja po rollbacku nadal działa
    assert datastore.insert_stats([row]).error is None
