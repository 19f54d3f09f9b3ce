# appstats/infrastructure/external/scraper.py
import json
import logging
from typing import Any, Optional
from urllib.parse import urljoin

import httpx
from google_play_scraper import app, exceptions
from starlette.concurrency import run_in_threadpool

from appstats.config import HTTP_TIMEOUT, STORE_COUNTRY, STORE_LANG

logger = logging.getLogger(__name__)

PLAY_STORE_URL = "https://play.google.com"
BATCHEXECUTE_URL = f"{PLAY_STORE_URL}/_/PlayStoreUi/data/batchexecute"

# Aliasy kolekcji (jak w google-play-scraper) -> nazwy używane przez sklep
COLLECTIONS = {
    "TOP_FREE": "topselling_free",
    "TOP_PAID": "topselling_paid",
    "GROSSING": "topgrossing",
}

# Ścieżki pól w odpowiedzi RPC rankingu (względem pojedynczego elementu listy)
LIST_MAPPINGS = {
    "app_id": [0, 0],
    "title": [3],
    "url": [10, 4, 2],
    "icon": [1, 3, 2],
    "developer": [14],
    "summary": [13, 1],
    "score": [4, 1],
    "price": [8, 1, 0, 0],
}
LIST_APPS_PATH = [0, 1, 0, 28, 0]


class AppNotFoundError(Exception):
    pass


def nested_get(data: Any, path: list) -> Optional[Any]:
    """Bezpieczne zejście po zagnieżdżonych listach. Brak elementu -> None."""
    for key in path:
        try:
            data = data[key]
        except (IndexError, KeyError, TypeError):
            return None
    return data


def build_list_request(category: str, collection: str, num: int) -> str:
    """Ciało zapytania RPC 'vyAe2' (ranking kategorii) w formacie f.req"""
    inner = [
        [None, [[8, [20, num]], True, None, [96, 108, 72, 100, 27, 183, 222, 8, 57, 169, 110, 11, 184, 16, 1, 139, 152, 194, 165, 68]],
         None, None, None, None, None, None, [2], None, None, None, None, None, None, None, [1]],
        [[None, [[[None, []]]]], [None, [[[None, []]]], None, [True]]],
        None,
        [2, collection, category],
    ]
    return json.dumps([[["vyAe2", json.dumps(inner), None, "generic"]]])


def parse_list_response(text: str) -> list[dict]:
    """
    Odpowiedź batchexecute zaczyna się od ")]}'", dalej linie JSON.
    Interesuje nas linia z ["wrb.fr","vyAe2", "<json jako string>", ...].
    """
    for line in text.splitlines():
        if '"wrb.fr"' not in line or "vyAe2" not in line:
            continue
        envelope = json.loads(line)
        payload = json.loads(envelope[0][2])
        items = nested_get(payload, LIST_APPS_PATH) or []
        return [parse_list_item(item) for item in items if nested_get(item, [0, 0, 0])]
    raise ValueError("Unexpected Play Store response: missing vyAe2 payload")


def parse_list_item(item: list) -> dict:
    entry = item[0]
    data = {field: nested_get(entry, path) for field, path in LIST_MAPPINGS.items()}
    if isinstance(data["app_id"], list):
        data["app_id"] = data["app_id"][0]
    price = data.pop("price")
    data["free"] = price == 0 if price is not None else None
    if data["url"]:
        data["url"] = urljoin(PLAY_STORE_URL, data["url"])
    return data


class GooglePlayCatalog:
    """
    Ranking Google Play pobierany przez RPC vyAe2 (httpx),
    szczegóły aplikacji z google_play_scraper (biblioteka nie ma rankingów).
    """

    DEFAULT_HEADERS = {
        "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Accept-Language": "en-US,en;q=0.5",
    }

    def __init__(self, lang: str = STORE_LANG, country: str = STORE_COUNTRY, timeout: float = HTTP_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.lang = lang
        self.country = country
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self.DEFAULT_HEADERS, follow_redirects=True, timeout=self.timeout, transport=self.transport
        )

    async def list(self, category: str, collection: str, num: int) -> list[dict]:
        collection = COLLECTIONS.get(collection, collection)
        logger.info(f"🔍 Scraping Google Play chart: {category}/{collection} ({num})")

        async with self._client() as client:
            response = await client.post(
                BATCHEXECUTE_URL,
                params={"rpcids": "vyAe2", "hl": self.lang, "gl": self.country},
                data={"f.req": build_list_request(category, collection, num)},
            )
            response.raise_for_status()

        return parse_list_response(response.text)[:num]

    async def app_detail(self, app_id: str) -> dict:
        try:
            # google_play_scraper jest synchroniczny
            store_data = await run_in_threadpool(app, app_id, lang=self.lang, country=self.country)
        except exceptions.NotFoundError:
            logger.warning(f"⚠️ App {app_id} not found in Store.")
            raise AppNotFoundError(app_id)

        max_installs = store_data.get("maxInstalls")
        if max_installs is None:
            max_installs = store_data.get("realInstalls")
        return {
            "developer_email": store_data.get("developerEmail"),
            "max_installs": max_installs,
        }
