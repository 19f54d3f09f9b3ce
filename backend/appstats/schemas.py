# appstats/schemas.py
import re
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, Union

from .config import (
    DEFAULT_CATEGORY,
    DEFAULT_COLLECTION,
    DEFAULT_IS_EMULATOR,
    DEFAULT_IS_PROD,
    DEFAULT_LIMIT,
    DEFAULT_SKIP,
)

REVERSE_DOMAIN_REGEX = re.compile(r"^[a-z0-9]+(\.[\w-]+)+$", re.IGNORECASE)
DEVICE_ID_REGEX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

# --- WEJŚCIE ---

class StatsReport(BaseModel):
    """
    Raport z pluginu na urządzeniu.
    iOS wysyła 13 pól, Android 11 - nadmiarowe pola przepuszczamy dalej.
    """
    model_config = ConfigDict(extra="allow")

    app_id: str
    device_id: str = Field(max_length=36)
    platform: str
    version_name: str
    version_os: str
    version_code: Optional[str] = None
    version_build: Optional[str] = None
    action: Optional[str] = None
    custom_id: Optional[str] = None
    channel: Optional[str] = None
    plugin_version: Optional[str] = None
    is_emulator: Optional[bool] = None
    is_prod: Optional[bool] = None

    @model_validator(mode="after")
    def check_identifiers(self):
        if not REVERSE_DOMAIN_REGEX.match(self.app_id):
            raise ValueError("App ID name must be a reverse domain string")
        if not DEVICE_ID_REGEX.match(self.device_id):
            raise ValueError("Device ID must be a valid UUID string")
        return self


class CatalogRefreshRequest(BaseModel):
    category: str = DEFAULT_CATEGORY
    collection: str = DEFAULT_COLLECTION
    limit: int = Field(DEFAULT_LIMIT, ge=1)
    skip: int = Field(DEFAULT_SKIP, ge=0)

# --- REKORDY ZAPISYWANE DO BAZY ---

class CatalogEntry(BaseModel):
    url: Optional[str] = None
    app_id: str
    title: Optional[str] = None
    summary: Optional[str] = None
    developer: Optional[str] = None
    developer_email: Optional[str] = None
    icon: Optional[str] = None
    score: Optional[float] = None
    free: Optional[bool] = None
    category: str
    collection: str
    rank: int
    installs: Optional[int] = None


class DeviceRecord(BaseModel):
    platform: str
    device_id: str
    app_id: str
    plugin_version: str
    os_version: str
    # nazwa wersji dopóki nie znamy id z app_versions
    version: Union[int, str]
    is_emulator: bool = DEFAULT_IS_EMULATOR
    is_prod: bool = DEFAULT_IS_PROD
    custom_id: Optional[str] = None


class StatRecord(BaseModel):
    platform: str
    device_id: str
    action: Optional[str] = None
    app_id: str
    version_build: Optional[str] = None
    version: Optional[int] = 0

# --- ODCZYTY (tylko do podglądu) ---

class AppOwner(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    app_id: str
    user_id: str


class AppVersionRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str


class StoredDevice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    app_id: str
    device_id: str
    version: Optional[int] = None

# --- WYJŚCIE ---

class ApiResult(BaseModel):
    """Gotowa odpowiedź HTTP: kod + treść JSON"""
    status_code: int = 200
    body: dict = {"status": "ok"}
