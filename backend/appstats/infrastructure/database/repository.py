# appstats/infrastructure/database/repository.py
import logging
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from appstats import schemas
from appstats.infrastructure.database import models
from appstats.use_cases.ports import DbResult

logger = logging.getLogger(__name__)


class SqlDatastore:
    """
    Implementacja portu Datastore na sesji SQLAlchemy.
    Każda metoda łapie błędy bazy, robi rollback i zwraca je w DbResult.error.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, e: SQLAlchemyError) -> DbResult:
        self.db.rollback()
        logger.error(f"❌ DB error ({operation}): {e}")
        return DbResult(error=str(e))

    # --- ODCZYTY ---

    def get_app_owner(self, app_id: str) -> DbResult:
        try:
            app = self.db.query(models.App).filter(models.App.app_id == app_id).first()
            return DbResult(data=schemas.AppOwner.model_validate(app) if app else None)
        except SQLAlchemyError as e:
            return self._fail("get_app_owner", e)

    def get_app_version(self, app_id: str, version_name: str) -> DbResult:
        try:
            version = self.db.query(models.AppVersion).filter(
                models.AppVersion.app_id == app_id,
                models.AppVersion.name == version_name
            ).first()
            return DbResult(data=schemas.AppVersionRef.model_validate(version) if version else None)
        except SQLAlchemyError as e:
            return self._fail("get_app_version", e)

    def get_device(self, app_id: str, device_id: str) -> DbResult:
        try:
            device = self.db.get(models.Device, (app_id, device_id))
            return DbResult(data=schemas.StoredDevice.model_validate(device) if device else None)
        except SQLAlchemyError as e:
            return self._fail("get_device", e)

    # --- ZAPISY ---

    def register_onprem_app(self, app_id: str) -> DbResult:
        try:
            # merge nadpisuje tylko ustawione pola, dane z rankingu zostają
            self.db.merge(models.StoreApp(app_id=app_id, onprem=True, capacitor=True, capgo=True))
            self.db.commit()
            return DbResult()
        except SQLAlchemyError as e:
            return self._fail("register_onprem_app", e)

    def increment_onprem_stats(self, app_id: str, updates: int = 1) -> DbResult:
        try:
            result = self.db.execute(
                update(models.StoreApp)
                .where(models.StoreApp.app_id == app_id)
                .values(updates=func.coalesce(models.StoreApp.updates, 0) + updates)
            )
            if result.rowcount == 0:
                self.db.add(models.StoreApp(app_id=app_id, onprem=True, updates=updates))
            self.db.commit()
            return DbResult()
        except SQLAlchemyError as e:
            return self._fail("increment_onprem_stats", e)

    def upsert_device(self, device: schemas.DeviceRecord) -> DbResult:
        try:
            # custom_id trafia do bazy tylko, gdy urządzenie go wysłało
            self.db.merge(models.Device(**device.model_dump(exclude_none=True)))
            self.db.commit()
            return DbResult()
        except SQLAlchemyError as e:
            return self._fail("upsert_device", e)

    def insert_stats(self, rows: list[schemas.StatRecord]) -> DbResult:
        try:
            self.db.add_all([models.Stat(**row.model_dump()) for row in rows])
            self.db.commit()
            return DbResult()
        except SQLAlchemyError as e:
            return self._fail("insert_stats", e)

    def upsert_store_apps(self, rows: list[schemas.CatalogEntry]) -> DbResult:
        try:
            for row in rows:
                self.db.merge(models.StoreApp(**row.model_dump()))
            self.db.commit()
            return DbResult(data=len(rows))
        except SQLAlchemyError as e:
            return self._fail("upsert_store_apps", e)
