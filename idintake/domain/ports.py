"""Protocols for the collaborators the pipeline depends on."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, TypeVar

from idintake.domain.models import GeoLevel, GeoReferenceEntry, RecognitionResult

E = TypeVar("E", bound=GeoReferenceEntry)


class RecognizerPort(Protocol):
    """Asynchronous OCR job service."""

    async def submit(self, image_bytes: bytes) -> str: ...

    async def poll(self, job_handle: str) -> RecognitionResult: ...

    async def recognize(self, image_bytes: bytes) -> RecognitionResult: ...


class ReferenceStore(Protocol):
    """Read-only province -> city -> barangay hierarchy.

    ``search`` matches names case-insensitively by substring and returns a
    capped list ordered by name ascending.
    """

    async def search(
        self, level: GeoLevel, text: str, parent_code: Optional[str] = None
    ) -> list[GeoReferenceEntry]: ...


class RankingStrategy(Protocol):
    """Picks one candidate out of a reference query result."""

    def pick(self, query: str, candidates: Sequence[E]) -> Optional[E]: ...
