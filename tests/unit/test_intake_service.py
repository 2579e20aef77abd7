from __future__ import annotations

import asyncio
import base64
from datetime import date

import httpx
import pytest

from idintake.clients.recognizer import RecognizerClient
from idintake.core.exceptions import (
    InvalidImageError,
    PayloadTooLargeError,
    RecognitionTimedOut,
    RecognizerRejected,
    RecognizerUnreachable,
)
from idintake.domain.models import AddressInput, DocumentType, GeoLevel, RecognitionResult
from idintake.resilience.retry import RetryConfig
from idintake.services.intake import IntakeService

IMAGE = base64.b64encode(b"\xff\xd8jpeg-bytes").decode()


class FakeRecognizer:
    def __init__(self, lines=None, errors=(), delay: float = 0.0):
        self.lines = lines or []
        self.errors = list(errors)
        self.delay = delay
        self.calls = 0

    async def recognize(self, image_bytes: bytes) -> RecognitionResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        return RecognitionResult(lines=self.lines, job_handle="job-1", attempts=1)


def make_service(recognizer, store, **kwargs) -> IntakeService:
    kwargs.setdefault("timeout_seconds", 5.0)
    kwargs.setdefault("max_image_size_mb", 1)
    return IntakeService(recognizer, store, **kwargs)


@pytest.mark.asyncio
async def test_scan_extracts_identity(psgc_store):
    recognizer = FakeRecognizer(
        lines=["SOCIAL SECURITY SYSTEM", "SANTOS, MARIA CLARA", "1990-06-15", "SS 34-1234567-8"]
    )
    service = make_service(recognizer, psgc_store)

    result = await service.scan(IMAGE, today=date(2024, 6, 15))

    assert result.identity.document_type == DocumentType.SSS_ID
    assert result.identity.age == 34
    assert result.identity.id_number == "34-1234567-8"
    assert result.lines[1] == "SANTOS, MARIA CLARA"
    assert result.raw_text.count("\n") == 3
    assert result.job_handle == "job-1"
    assert result.processing_time_ms >= 0


@pytest.mark.asyncio
async def test_scan_rejects_bad_payload_before_recognition(psgc_store):
    recognizer = FakeRecognizer()
    service = make_service(recognizer, psgc_store)
    with pytest.raises(InvalidImageError):
        await service.scan("%%%")
    assert recognizer.calls == 0


@pytest.mark.asyncio
async def test_scan_rejects_oversized_image(psgc_store):
    service = make_service(FakeRecognizer(), psgc_store, max_image_size_mb=1)
    big = base64.b64encode(b"x" * (2 * 1024 * 1024)).decode()
    with pytest.raises(PayloadTooLargeError):
        await service.scan(big)


@pytest.mark.asyncio
async def test_whole_operation_is_bounded(psgc_store):
    service = make_service(FakeRecognizer(delay=1.0), psgc_store, timeout_seconds=0.05)
    with pytest.raises(RecognitionTimedOut) as exc_info:
        await service.scan(IMAGE)
    assert exc_info.value.attempts is None
    assert "attempts" not in exc_info.value.details
    assert exc_info.value.details["elapsed_seconds"] == 0.05


@pytest.mark.asyncio
async def test_unreachable_is_retried_when_configured(psgc_store):
    recognizer = FakeRecognizer(lines=["OK"], errors=[RecognizerUnreachable("dns")])
    service = make_service(
        recognizer,
        psgc_store,
        retry_config=RetryConfig(max_attempts=2, initial_delay_seconds=0.0, jitter=False),
    )
    result = await service.scan(IMAGE)
    assert result.lines == ["OK"]
    assert recognizer.calls == 2


@pytest.mark.asyncio
async def test_unreachable_not_retried_by_default(psgc_store):
    recognizer = FakeRecognizer(errors=[RecognizerUnreachable("dns")])
    service = make_service(recognizer, psgc_store)
    with pytest.raises(RecognizerUnreachable):
        await service.scan(IMAGE)
    assert recognizer.calls == 1


@pytest.mark.asyncio
async def test_rejection_is_never_retried(psgc_store):
    recognizer = FakeRecognizer(errors=[RecognizerRejected(401)])
    service = make_service(
        recognizer,
        psgc_store,
        retry_config=RetryConfig(max_attempts=3, initial_delay_seconds=0.0, jitter=False),
    )
    with pytest.raises(RecognizerRejected):
        await service.scan(IMAGE)
    assert recognizer.calls == 1


@pytest.mark.asyncio
async def test_missing_recognizer_is_unreachable(psgc_store):
    service = make_service(None, psgc_store)
    with pytest.raises(RecognizerUnreachable):
        await service.scan(IMAGE)


@pytest.mark.asyncio
async def test_scan_with_http_recognizer(psgc_store):
    job_url = "https://ocr.example.com/vision/v3.2/read/analyzeResults/abc"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": job_url})
        return httpx.Response(
            200,
            json={
                "status": "succeeded",
                "analyzeResult": {
                    "readResults": [{"lines": [{"text": "COMELEC"}, {"text": "BRGY DAU"}]}]
                },
            },
        )

    client = RecognizerClient(
        "https://ocr.example.com", "key", poll_interval=0, transport=httpx.MockTransport(handler)
    )
    async with client:
        service = make_service(client, psgc_store)
        result = await service.scan(IMAGE)

    assert result.identity.document_type == DocumentType.VOTERS_ID
    assert result.identity.address_text == "BRGY DAU"
    assert result.job_handle == job_url


@pytest.mark.asyncio
async def test_match_and_lookup(psgc_store):
    service = make_service(None, psgc_store)

    resolution = await service.match_address(AddressInput(province="Pampanga", city="Angeles"))
    assert resolution.city.code == "035401"

    barangays = await service.lookup(GeoLevel.BARANGAY, "bali", "035401")
    assert [b.name for b in barangays] == ["Balibago"]
