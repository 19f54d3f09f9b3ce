"""
Wspólne fixture'y testów.

Środowisko ustawiamy przed importem aplikacji: baza SQLite w pamięci,
wyłączone webhooki i LogSnag.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)
os.environ.pop("LOGSNAG_TOKEN", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from appstats.infrastructure.database.database import Base, build_engine
from appstats.infrastructure.database import models
from appstats.infrastructure.database.repository import SqlDatastore
from tests.fakes import APP_ID, OWNER_ID, FakeCatalog, FakeNotifier, FakeTracker


@pytest.fixture
def session_factory():
    """Osobna baza w pamięci dla każdego testu."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def datastore(db):
    return SqlDatastore(db)


@pytest.fixture
def seeded_db(db):
    """Aplikacja com.example.app z wersjami 1.0.0 (id=1) i 1.1.0 (id=2)."""
    db.add(models.App(app_id=APP_ID, user_id=OWNER_ID, name="Example"))
    db.add_all([
        models.AppVersion(id=1, app_id=APP_ID, name="1.0.0", user_id=OWNER_ID),
        models.AppVersion(id=2, app_id=APP_ID, name="1.1.0", user_id=OWNER_ID),
    ])
    db.commit()
    return db


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def client(db, session_factory, notifier, tracker, catalog):
    from appstats import main

    main.app.dependency_overrides[main.get_db] = lambda: db
    main.app.dependency_overrides[main.get_notifier] = lambda: notifier
    main.app.dependency_overrides[main.get_tracker] = lambda: tracker
    main.app.dependency_overrides[main.get_catalog] = lambda: catalog
    main.app.dependency_overrides[main.get_session_factory] = lambda: session_factory
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
