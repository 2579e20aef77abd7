"""Geographic reference stores (PSGC provinces, cities/municipalities, barangays).

All stores share one contract: case-insensitive substring match on ``name``,
results ordered by name ascending and capped at ``limit``. Barangays can only
be searched inside a city.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel, ValidationError

from idintake.core.config import ReferenceSettings
from idintake.core.constants import REFERENCE_CACHE_TTL_SECONDS, REFERENCE_RESULT_LIMIT
from idintake.core.exceptions import ReferenceLookupError
from idintake.domain.models import Barangay, City, GeoLevel, GeoReferenceEntry, Province
from idintake.domain.ports import ReferenceStore

logger = logging.getLogger(__name__)

ENTRY_MODELS: dict[GeoLevel, type[BaseModel]] = {
    GeoLevel.PROVINCE: Province,
    GeoLevel.CITY: City,
    GeoLevel.BARANGAY: Barangay,
}


def _require_parent(level: GeoLevel, parent_code: Optional[str]) -> None:
    if level is GeoLevel.BARANGAY and not parent_code:
        raise ReferenceLookupError(level.value, "city_code is required for barangay search")


class ReferenceDataset(BaseModel):
    provinces: list[Province] = []
    cities: list[City] = []
    barangays: list[Barangay] = []


class InMemoryReferenceStore:
    """Reference hierarchy held in memory, loaded once from a JSON export."""

    def __init__(self, dataset: ReferenceDataset, limit: int = REFERENCE_RESULT_LIMIT):
        self.limit = limit
        self._entries: dict[GeoLevel, list[GeoReferenceEntry]] = {
            GeoLevel.PROVINCE: sorted(dataset.provinces, key=lambda e: e.name.casefold()),
            GeoLevel.CITY: sorted(dataset.cities, key=lambda e: e.name.casefold()),
            GeoLevel.BARANGAY: sorted(dataset.barangays, key=lambda e: e.name.casefold()),
        }

    @classmethod
    def from_json(cls, path: Path, limit: int = REFERENCE_RESULT_LIMIT) -> "InMemoryReferenceStore":
        try:
            with open(path, "r", encoding="utf-8") as f:
                dataset = ReferenceDataset.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            raise ReferenceLookupError("dataset", f"Cannot load {path}: {e}") from e
        logger.info(
            "Reference dataset loaded: %d provinces, %d cities, %d barangays",
            len(dataset.provinces),
            len(dataset.cities),
            len(dataset.barangays),
        )
        return cls(dataset, limit=limit)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None

    async def search(
        self, level: GeoLevel, text: str, parent_code: Optional[str] = None
    ) -> list[GeoReferenceEntry]:
        _require_parent(level, parent_code)
        needle = text.strip().casefold()
        results: list[GeoReferenceEntry] = []
        for entry in self._entries[level]:
            if parent_code and _parent_of(entry) not in (None, parent_code):
                continue
            if needle and needle not in entry.name.casefold():
                continue
            results.append(entry)
            if len(results) >= self.limit:
                break
        return results


def _parent_of(entry: GeoReferenceEntry) -> Optional[str]:
    if isinstance(entry, City):
        return entry.province_code
    if isinstance(entry, Barangay):
        return entry.city_code
    return None


class PostgrestReferenceStore:
    """Reference hierarchy served by a PostgREST API (e.g. Supabase).

    Tables: ``address_provinces``, ``address_cities`` (scoped by
    ``province_code``) and ``address_barangays`` (scoped by ``city_code``).
    """

    TABLES = {
        GeoLevel.PROVINCE: ("address_provinces", "code,name", None),
        GeoLevel.CITY: ("address_cities", "code,name,zip_code,province_code", "province_code"),
        GeoLevel.BARANGAY: ("address_barangays", "code,name,city_code", "city_code"),
    }

    def __init__(
        self,
        base_url: str,
        api_key: str,
        limit: int = REFERENCE_RESULT_LIMIT,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.limit = limit
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"},
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def build_params(
        self, level: GeoLevel, text: str, parent_code: Optional[str] = None
    ) -> dict[str, Any]:
        _table, columns, parent_column = self.TABLES[level]
        params: dict[str, Any] = {
            "select": columns,
            "order": "name.asc",
            "limit": self.limit,
        }
        if parent_column and parent_code:
            params[parent_column] = f"eq.{parent_code}"
        needle = text.strip().replace("*", "").replace("%", "")
        if needle:
            params["name"] = f"ilike.*{needle}*"
        return params

    async def search(
        self, level: GeoLevel, text: str, parent_code: Optional[str] = None
    ) -> list[GeoReferenceEntry]:
        if not self._client:
            raise RuntimeError("Client not started")
        _require_parent(level, parent_code)
        table = self.TABLES[level][0]
        try:
            resp = await self._client.get(f"/{table}", params=self.build_params(level, text, parent_code))
            resp.raise_for_status()
            rows = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ReferenceLookupError(level.value, f"{type(e).__name__}: {e}") from e

        if not isinstance(rows, list):
            raise ReferenceLookupError(level.value, "Unexpected response shape")
        model = ENTRY_MODELS[level]
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as e:
            raise ReferenceLookupError(level.value, f"Invalid row: {e}") from e


class CachedReferenceStore:
    """Short-lived cache in front of another store. Failures are not cached."""

    def __init__(
        self,
        inner: ReferenceStore,
        ttl_seconds: float = REFERENCE_CACHE_TTL_SECONDS,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._cache: dict[tuple[str, str, Optional[str]], tuple[float, list[GeoReferenceEntry]]] = {}

    async def __aenter__(self):
        if hasattr(self.inner, "__aenter__"):
            await self.inner.__aenter__()
        return self

    async def __aexit__(self, *args):
        self._cache.clear()
        if hasattr(self.inner, "__aexit__"):
            await self.inner.__aexit__(*args)

    async def search(
        self, level: GeoLevel, text: str, parent_code: Optional[str] = None
    ) -> list[GeoReferenceEntry]:
        key = (level.value, text.strip().casefold(), parent_code)
        now = self._clock()
        cached = self._cache.get(key)
        if cached and cached[0] > now:
            return list(cached[1])

        results = await self.inner.search(level, text, parent_code)
        if len(self._cache) >= self.max_entries:
            self._cache.pop(next(iter(self._cache)))
        self._cache[key] = (now + self.ttl_seconds, list(results))
        return results


def create_reference_store(
    settings: ReferenceSettings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> CachedReferenceStore:
    """Build the configured store wrapped in a TTL cache. Enter with ``async with``."""
    inner: ReferenceStore
    if settings.REFERENCE_SOURCE == "postgrest":
        if not settings.REFERENCE_API_URL:
            raise RuntimeError("REFERENCE_API_URL is required when REFERENCE_SOURCE=postgrest")
        inner = PostgrestReferenceStore(
            base_url=settings.REFERENCE_API_URL,
            api_key=settings.REFERENCE_API_KEY.get_secret_value(),
            limit=settings.REFERENCE_RESULT_LIMIT,
            transport=transport,
        )
    elif settings.REFERENCE_DATA_PATH:
        inner = InMemoryReferenceStore.from_json(
            settings.REFERENCE_DATA_PATH, limit=settings.REFERENCE_RESULT_LIMIT
        )
    else:
        logger.warning("REFERENCE_DATA_PATH not set; address lookups will find nothing")
        inner = InMemoryReferenceStore(ReferenceDataset(), limit=settings.REFERENCE_RESULT_LIMIT)

    return CachedReferenceStore(inner, ttl_seconds=settings.REFERENCE_CACHE_TTL_SECONDS)
