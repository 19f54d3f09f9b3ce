import json
import logging
from fastapi import FastAPI, Depends, Request, BackgroundTasks
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .config import LOG_LEVEL, METHODS_JSON
from .infrastructure.database.database import engine, Base, get_db, SessionLocal
from .infrastructure.database.repository import SqlDatastore
from .infrastructure.external.logsnag import LogSnag
from .infrastructure.external.notifications import NotificationDispatcher
from .infrastructure.external.scraper import GooglePlayCatalog
from .schemas import StatsReport, CatalogRefreshRequest
from .use_cases.ingest_stats import execute_ingest_stats, serialize_error
from .use_cases.refresh_catalog import run_catalog_refresh

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Tworzenie tabel w bazie danych przy starcie
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="App Stats API",
    version="1.0.0",
    description="Statystyki urządzeń i ranking aplikacji ze sklepu Google Play"
)

# --- ZALEŻNOŚCI (podmieniane w testach przez dependency_overrides) ---

def get_datastore(db: Session = Depends(get_db)) -> SqlDatastore:
    return SqlDatastore(db)

def get_notifier(db: Session = Depends(get_db)) -> NotificationDispatcher:
    return NotificationDispatcher(db)

def get_tracker() -> LogSnag:
    return LogSnag()

def get_catalog() -> GooglePlayCatalog:
    return GooglePlayCatalog()

def get_session_factory():
    return SessionLocal


class PayloadError(Exception):
    pass


async def read_payload(request: Request) -> dict:
    """JSON dla POST/PUT/PATCH, w pozostałych przypadkach parametry z URL."""
    if request.method not in METHODS_JSON:
        return dict(request.query_params)
    raw = await request.body()
    try:
        return json.loads(raw or b"{}")
    except ValueError as e:
        raise PayloadError(str(e))


def bad_request(error) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": f"Cannot parse json: {error}"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"status": "Error unknown", "error": serialize_error(exc)})

# --- ENDPOINTY API ---

@app.api_route("/stats", methods=["GET", "POST", "PUT", "PATCH"])
async def stats(
    request: Request,
    datastore: SqlDatastore = Depends(get_datastore),
    notifier: NotificationDispatcher = Depends(get_notifier),
    tracker: LogSnag = Depends(get_tracker),
):
    """
    Raport z urządzenia (plugin aktualizacji).
    Nieznana aplikacja/wersja to nie błąd - zwracamy 200 z kodem app_not_found.
    """
    try:
        body = await read_payload(request)
        report = StatsReport.model_validate(body)
    except (PayloadError, ValidationError) as e:
        return bad_request(e)

    result = await execute_ingest_stats(report, datastore, notifier, tracker)
    return JSONResponse(status_code=result.status_code, content=result.body)


@app.api_route("/get_top_apk", methods=["GET", "POST", "PUT", "PATCH"], status_code=202)
async def get_top_apk(
    request: Request,
    background_tasks: BackgroundTasks,
    catalog: GooglePlayCatalog = Depends(get_catalog),
    session_factory=Depends(get_session_factory),
):
    """Odświeżenie rankingu działa w tle, od razu odpowiadamy 202."""
    try:
        body = await read_payload(request)
        refresh = CatalogRefreshRequest.model_validate(body)
    except (PayloadError, ValidationError) as e:
        return bad_request(e)

    logger.info(f"🚀 Catalog refresh scheduled: {refresh.model_dump()}")
    background_tasks.add_task(run_catalog_refresh, catalog, session_factory, refresh)
    return {"status": "accepted"}


@app.get("/")
def read_root():
    return {"status": "ok", "docs": "/docs"}
