from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from idintake.domain.models import GeoLevel, GeoReferenceEntry
from idintake.reference.store import InMemoryReferenceStore

FIXTURES = Path(__file__).parent / "fixtures"


class RecordingStore:
    """Wraps a store and records every query it receives."""

    def __init__(self, inner, fail_levels: tuple[GeoLevel, ...] = ()):
        self.inner = inner
        self.fail_levels = fail_levels
        self.calls: list[tuple[GeoLevel, str, Optional[str]]] = []

    async def search(
        self, level: GeoLevel, text: str, parent_code: Optional[str] = None
    ) -> list[GeoReferenceEntry]:
        self.calls.append((level, text, parent_code))
        if level in self.fail_levels:
            raise RuntimeError(f"{level.value} table unavailable")
        return await self.inner.search(level, text, parent_code)

    def levels(self) -> list[GeoLevel]:
        return [call[0] for call in self.calls]


@pytest.fixture
def psgc_path() -> Path:
    return FIXTURES / "psgc_sample.json"


@pytest.fixture
def psgc_store(psgc_path: Path) -> InMemoryReferenceStore:
    return InMemoryReferenceStore.from_json(psgc_path)


@pytest.fixture
def recording_store(psgc_store: InMemoryReferenceStore) -> RecordingStore:
    return RecordingStore(psgc_store)


@pytest.fixture
def make_recording_store(psgc_store: InMemoryReferenceStore):
    def factory(*fail_levels: GeoLevel) -> RecordingStore:
        return RecordingStore(psgc_store, fail_levels=fail_levels)

    return factory
