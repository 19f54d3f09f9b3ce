# appstats/use_cases/ingest_stats.py
import enum
import json
import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from appstats import schemas
from appstats.config import (
    DEFAULT_IS_EMULATOR,
    DEFAULT_IS_PROD,
    DEFAULT_PLUGIN_VERSION,
    FAIL_ACTIONS,
    FAIL_NOTIFICATION_COLOR,
    FAIL_NOTIFICATION_CRON,
    FAIL_NOTIFICATION_EVENT,
    UNKNOWN_VERSION,
)
from appstats.conversion import app_id_to_url, coerce_version
from appstats.use_cases.ports import Datastore, EventTracker, Notifier

logger = logging.getLogger(__name__)


def app_not_found() -> schemas.ApiResult:
    # 200, żeby nie blokować raportowania z urządzeń
    return schemas.ApiResult(status_code=200, body={"message": "App not found", "error": "app_not_found"})


class ActionDecision(str, enum.Enum):
    CHECK_DOWNGRADE = "check_downgrade"
    NOTIFY_FAILURE = "notify_failure"
    NOOP = "noop"


def classify_action(action: Optional[str], is_emulator: bool, is_prod: bool) -> ActionDecision:
    """
    Co zrobić z raportem po rozpoznaniu wersji.
    Sprawdzenie zmiany wersji i powiadomienie o błędzie wykluczają się nawzajem.
    """
    if action == "set" and not is_emulator and is_prod:
        return ActionDecision.CHECK_DOWNGRADE
    if action in FAIL_ACTIONS:
        return ActionDecision.NOTIFY_FAILURE
    return ActionDecision.NOOP


def serialize_error(e: Exception) -> str:
    return json.dumps({"type": type(e).__name__, "message": str(e)})


async def execute_ingest_stats(report: schemas.StatsReport, datastore: Datastore,
                               notifier: Notifier, tracker: EventTracker) -> schemas.ApiResult:
    try:
        return await _ingest(report, datastore, notifier, tracker)
    except Exception as e:
        logger.exception(f"❌ Stats ingestion failed for {report.app_id}: {e}")
        return schemas.ApiResult(
            status_code=500,
            body={"status": "Error unknown", "error": serialize_error(e)},
        )


async def _ingest(report: schemas.StatsReport, datastore: Datastore,
                  notifier: Notifier, tracker: EventTracker) -> schemas.ApiResult:
    app_id = report.app_id
    device_id = report.device_id
    action = report.action
    logger.debug(f"body {report.model_dump()}")

    # 1. WŁAŚCICIEL APLIKACJI
    app_owner = datastore.get_app_owner(app_id).data
    if not app_owner:
        if app_id:
            datastore.register_onprem_app(app_id)
        if action == "get":
            datastore.increment_onprem_stats(app_id, updates=1)
        logger.info(f"🆕 Unknown app {app_id}, counted as on-prem")
        return app_not_found()

    # 2. NORMALIZACJA WERSJI (nieparsowalny version_build zostawiamy bez zmian)
    version_build = report.version_build
    coerced = coerce_version(version_build)
    if coerced:
        version_build = coerced
    version_name = report.version_name or version_build

    # 3. REKORDY URZĄDZENIA I ZDARZENIA
    is_emulator = DEFAULT_IS_EMULATOR if report.is_emulator is None else report.is_emulator
    is_prod = DEFAULT_IS_PROD if report.is_prod is None else report.is_prod

    device = schemas.DeviceRecord(
        platform=report.platform,
        device_id=device_id,
        app_id=app_id,
        plugin_version=report.plugin_version or DEFAULT_PLUGIN_VERSION,
        os_version=report.version_os,
        version=version_name or UNKNOWN_VERSION,
        is_emulator=is_emulator,
        is_prod=is_prod,
        custom_id=report.custom_id,
    )
    stat = schemas.StatRecord(
        platform=report.platform,
        device_id=device_id,
        action=action,
        app_id=app_id,
        version_build=version_build,
        version=0,
    )
    rows: list[schemas.StatRecord] = []

    # 4. WERSJA APLIKACJI
    app_version = datastore.get_app_version(app_id, version_name).data
    if not app_version:
        logger.warning(f"⚠️ Version {version_name} of {app_id} not found, switch to onprem")
        return app_not_found()

    # 5. DECYZJA
    stat.version = app_version.id
    device.version = app_version.id
    decision = classify_action(action, device.is_emulator, device.is_prod)

    if decision == ActionDecision.CHECK_DOWNGRADE:
        previous = datastore.get_device(app_id, device_id).data
        if previous and previous.version != app_version.id:
            logger.info(f"🔄 {device_id} switched {previous.version} -> {app_version.id}")
            rows.append(stat.model_copy(update={"action": "uninstall", "version": previous.version}))

    elif decision == ActionDecision.NOTIFY_FAILURE:
        logger.info(f"⚠️ {action} reported by {device_id} ({app_id})")
        sent = await run_in_threadpool(
            notifier.send_notification,
            FAIL_NOTIFICATION_EVENT,
            {
                "current_app_id": app_id,
                "current_device_id": device_id,
                "current_version_id": app_version.id,
                "current_app_id_url": app_id_to_url(app_id),
            },
            app_version.user_id,
            FAIL_NOTIFICATION_CRON,
            FAIL_NOTIFICATION_COLOR,
        )
        if sent:
            try:
                await run_in_threadpool(
                    tracker.track,
                    channel="updates",
                    event="update fail",
                    icon="⚠️",
                    user_id=app_version.user_id,
                    notify=True,
                )
            except Exception as e:
                logger.warning(f"⚠️ Tracking of update fail ignored: {e}")

    # 6. ZAPIS: najpierw urządzenie, dopiero potem zdarzenia
    rows.append(stat)
    device_result = datastore.upsert_device(device)
    if device_result.error:
        logger.error(f"❌ Device upsert failed for {device_id}: {device_result.error}")
    stats_result = datastore.insert_stats(rows)
    if stats_result.error:
        logger.error(f"❌ Stats insert failed for {device_id}: {stats_result.error}")

    return schemas.ApiResult()
