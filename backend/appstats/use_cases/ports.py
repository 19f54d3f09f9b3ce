# appstats/use_cases/ports.py
"""
Interfejsy usług zewnętrznych, z których korzystają przypadki użycia.
Implementacje produkcyjne są w appstats.infrastructure, w testach podmieniamy je na fake'i.
"""
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from appstats import schemas


@dataclass
class DbResult:
    """Wynik operacji na bazie. Błąd zwracany jako wartość, nigdy rzucany."""
    data: Any = None
    error: Optional[str] = None


class Datastore(Protocol):
    def get_app_owner(self, app_id: str) -> DbResult: ...

    def get_app_version(self, app_id: str, version_name: str) -> DbResult: ...

    def get_device(self, app_id: str, device_id: str) -> DbResult: ...

    def register_onprem_app(self, app_id: str) -> DbResult: ...

    def increment_onprem_stats(self, app_id: str, updates: int = 1) -> DbResult: ...

    def upsert_device(self, device: schemas.DeviceRecord) -> DbResult: ...

    def insert_stats(self, rows: list[schemas.StatRecord]) -> DbResult: ...

    def upsert_store_apps(self, rows: list[schemas.CatalogEntry]) -> DbResult: ...


class CatalogService(Protocol):
    async def list(self, category: str, collection: str, num: int) -> list[dict]: ...

    async def app_detail(self, app_id: str) -> dict: ...


class Notifier(Protocol):
    def send_notification(self, event: str, payload: dict, user_id: str, cron: str, color: str) -> bool: ...


class EventTracker(Protocol):
    def track(self, channel: str, event: str, icon: str, user_id: str, notify: bool = False) -> bool: ...
