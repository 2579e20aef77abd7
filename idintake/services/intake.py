"""Intake service: photographed ID in, extracted identity and resolved address out."""

import asyncio
import logging
import time
from datetime import date
from typing import Optional

from pydantic import BaseModel

from idintake.core.config import AppSettings, RecognizerSettings
from idintake.core.exceptions import RecognitionTimedOut, RecognizerUnreachable
from idintake.domain.models import (
    AddressInput,
    AddressResolutionResult,
    ExtractedIdentity,
    GeoLevel,
    GeoReferenceEntry,
    RecognitionResult,
)
from idintake.domain.ports import RecognizerPort, ReferenceStore
from idintake.processors.address_resolver import AddressResolver
from idintake.processors.field_extractor import extract_identity
from idintake.resilience.retry import RetryConfig, async_retry_with_backoff
from idintake.utils.payload import decode_image_payload

logger = logging.getLogger(__name__)


class IntakeResult(BaseModel):
    identity: ExtractedIdentity
    lines: list[str]
    raw_text: str
    job_handle: str
    processing_time_ms: int


class IntakeService:
    """Runs one scan per call; holds no per-request state.

    Args:
        recognizer: Started recognizer client (lifespan-owned); None when unconfigured
        store: Reference store used for picker lookups and address matching
        resolver: Cascading resolver; built over ``store`` when omitted
        timeout_seconds: Hard bound on a whole recognition, retries included
        max_image_size_mb: Largest decoded image accepted
        retry_config: Whole-recognition retries on an unreachable recognizer
    """

    def __init__(
        self,
        recognizer: Optional[RecognizerPort],
        store: ReferenceStore,
        *,
        resolver: Optional[AddressResolver] = None,
        timeout_seconds: float,
        max_image_size_mb: int,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.recognizer = recognizer
        self.store = store
        self.resolver = resolver or AddressResolver(store)
        self.timeout_seconds = timeout_seconds
        self.max_image_size_mb = max_image_size_mb
        self.retry_config = retry_config or RetryConfig(max_attempts=1)

    @classmethod
    def from_settings(
        cls,
        recognizer: Optional[RecognizerPort],
        store: ReferenceStore,
        resolver: AddressResolver,
        app_settings: AppSettings,
        recognizer_settings: RecognizerSettings,
    ) -> "IntakeService":
        return cls(
            recognizer,
            store,
            resolver=resolver,
            timeout_seconds=app_settings.INTAKE_TIMEOUT_SECONDS,
            max_image_size_mb=app_settings.MAX_IMAGE_SIZE_MB,
            retry_config=RetryConfig(max_attempts=recognizer_settings.RECOGNIZER_MAX_ATTEMPTS),
        )

    async def recognize(self, image_bytes: bytes) -> RecognitionResult:
        """Recognition bounded by ``timeout_seconds``; on expiry polling stops.

        The upstream job is left to finish on its own; the Read API offers no
        cancellation.
        """
        if self.recognizer is None:
            raise RecognizerUnreachable("Recognizer endpoint or subscription key not configured")
        try:
            return await asyncio.wait_for(
                async_retry_with_backoff(
                    self.recognizer.recognize,
                    self.retry_config,
                    (RecognizerUnreachable,),
                    image_bytes,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Recognition exceeded %.1fs; abandoned", self.timeout_seconds)
            raise RecognitionTimedOut(None, attempts=None, elapsed_seconds=self.timeout_seconds) from e

    async def scan(self, image_payload: str, *, today: Optional[date] = None) -> IntakeResult:
        started = time.monotonic()
        image_bytes = decode_image_payload(image_payload, max_size_mb=self.max_image_size_mb)

        recognition = await self.recognize(image_bytes)
        identity = extract_identity(recognition.lines, today=today)

        processing_time_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Scan completed",
            extra={
                "job_handle": recognition.job_handle,
                "line_count": len(recognition.lines),
                "document_type": identity.document_type.value,
                "duration_ms": processing_time_ms,
            },
        )
        return IntakeResult(
            identity=identity,
            lines=recognition.lines,
            raw_text=recognition.raw_text,
            job_handle=recognition.job_handle,
            processing_time_ms=processing_time_ms,
        )

    async def match_address(self, address: AddressInput) -> AddressResolutionResult:
        return await self.resolver.resolve(address)

    async def lookup(
        self, level: GeoLevel, search: str = "", parent_code: Optional[str] = None
    ) -> list[GeoReferenceEntry]:
        return await self.store.search(level, search, parent_code)
