from sqlalchemy import Column, String, Integer, BigInteger, Boolean, DateTime, Float, Text, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from .database import Base

# --- MODELE ---

class App(Base):
    """Aplikacja zarejestrowana przez użytkownika (właściciel = user_id)"""
    __tablename__ = "apps"

    app_id = Column(String, primary_key=True, index=True)  # np. com.example.app
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AppVersion(Base):
    __tablename__ = "app_versions"
    __table_args__ = (UniqueConstraint("app_id", "name", name="uq_app_versions_app_id_name"),)

    id = Column(Integer, primary_key=True, index=True)
    app_id = Column(String, ForeignKey("apps.app_id"), nullable=False, index=True)
    name = Column(String, nullable=False)  # np. 1.2.3
    user_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Device(Base):
    """Ostatni znany stan urządzenia (klucz: app_id + device_id)"""
    __tablename__ = "devices"

    app_id = Column(String, primary_key=True)
    device_id = Column(String(36), primary_key=True)
    platform = Column(String, nullable=False)
    plugin_version = Column(String, nullable=True)
    os_version = Column(String, nullable=True)
    version = Column(Integer, nullable=True)  # app_versions.id
    custom_id = Column(String, nullable=True)
    is_emulator = Column(Boolean, default=False)
    is_prod = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Stat(Base):
    """Zdarzenie z urządzenia. Tylko dopisywane, nigdy aktualizowane."""
    __tablename__ = "stats"

    id = Column(Integer, primary_key=True, index=True)
    platform = Column(String, nullable=False)
    device_id = Column(String(36), nullable=False, index=True)
    action = Column(String, nullable=True)
    app_id = Column(String, nullable=False, index=True)
    version_build = Column(String, nullable=True)
    version = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class StoreApp(Base):
    """Wpis z rankingu sklepu albo aplikacja on-prem (self-hosted)"""
    __tablename__ = "store_apps"

    app_id = Column(String, primary_key=True, index=True)
    url = Column(String, nullable=True)
    title = Column(String, nullable=True)
    summary = Column(Text, nullable=True)
    developer = Column(String, nullable=True)
    developer_email = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    score = Column(Float, nullable=True)
    free = Column(Boolean, nullable=True)
    category = Column(String, nullable=True)
    collection = Column(String, nullable=True)
    rank = Column(Integer, nullable=True)
    installs = Column(BigInteger, nullable=True)

    onprem = Column(Boolean, default=False)
    capacitor = Column(Boolean, default=False)
    capgo = Column(Boolean, default=False)
    updates = Column(Integer, default=0)  # licznik użyć on-prem

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Notification(Base):
    """Stan deduplikacji powiadomień (id = '<event>__<user_id>')"""
    __tablename__ = "notifications"

    id = Column(String, primary_key=True)
    event = Column(String, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    last_send_at = Column(DateTime(timezone=True), nullable=False)
    total_send = Column(Integer, default=0)
