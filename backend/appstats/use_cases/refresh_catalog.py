# appstats/use_cases/refresh_catalog.py
import asyncio
import logging

from appstats import schemas
from appstats.config import DEFAULT_CATEGORY, DEFAULT_COLLECTION, DEFAULT_LIMIT, DEFAULT_SKIP
from appstats.infrastructure.database.repository import SqlDatastore
from appstats.use_cases.ports import CatalogService, Datastore

logger = logging.getLogger(__name__)


async def execute_refresh_catalog(catalog: CatalogService, datastore: Datastore,
                                  category: str = DEFAULT_CATEGORY, collection: str = DEFAULT_COLLECTION,
                                  limit: int = DEFAULT_LIMIT, skip: int = DEFAULT_SKIP) -> list[schemas.CatalogEntry]:
    """
    Pobiera ranking (limit + skip pozycji), odrzuca pierwsze `skip`,
    dociąga szczegóły każdej aplikacji równolegle i zapisuje całość do store_apps.
    Błąd pojedynczego pobrania szczegółów przerywa całe odświeżanie.
    """
    listing = await catalog.list(category, collection, limit + skip)
    logger.info(f"📥 Fetched {len(listing)} entries from {category}/{collection}")
    listing = listing[skip:]

    tasks = [asyncio.create_task(catalog.app_detail(item["app_id"])) for item in listing]
    try:
        details = await asyncio.gather(*tasks)
    except Exception:
        # pozostałe zapytania nie mogą działać po przerwaniu odświeżania
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    rows = [
        schemas.CatalogEntry(
            url=item.get("url"),
            app_id=item["app_id"],
            title=item.get("title"),
            summary=item.get("summary"),
            developer=item.get("developer"),
            icon=item.get("icon"),
            score=item.get("score"),
            free=item.get("free"),
            category=category,
            collection=collection,
            rank=i + 1,
            developer_email=detail.get("developer_email"),
            installs=detail.get("max_installs"),
        )
        for i, (item, detail) in enumerate(zip(listing, details))
    ]

    result = datastore.upsert_store_apps(rows)
    if result.error:
        logger.error(f"❌ store_apps upsert failed: {result.error}")
    else:
        logger.info(f"✅ Saved {len(rows)} store apps")
    return rows


async def run_catalog_refresh(catalog: CatalogService, session_factory, request: schemas.CatalogRefreshRequest):
    """Zadanie w tle: własna sesja, błędy tylko do logów."""
    db = session_factory()
    try:
        await execute_refresh_catalog(catalog, SqlDatastore(db), **request.model_dump())
    except Exception as e:
        logger.error(f"❌ Catalog refresh failed ({request.category}/{request.collection}): {e}")
    finally:
        db.close()
