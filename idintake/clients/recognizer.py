import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from idintake.core.config import RecognizerSettings
from idintake.core.constants import (
    ANALYZE_PATH,
    JOB_LOCATION_HEADER,
    POLL_DEADLINE_GRACE_SECONDS,
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
    RECOGNIZER_CLIENT_TIMEOUT_SECONDS,
    SUBMIT_ACCEPTED_STATUS,
    SUBSCRIPTION_KEY_HEADER,
)
from idintake.core.exceptions import (
    InvalidImageError,
    MissingJobHandle,
    RecognitionFailed,
    RecognitionTimedOut,
    RecognizerRejected,
    RecognizerUnreachable,
)
from idintake.domain.models import JobStatus, RecognitionJob, RecognitionResult

logger = logging.getLogger(__name__)


def flatten_read_result(payload: dict) -> list[str]:
    """Collect line texts across all read regions, keeping reading order."""
    analyze = payload.get("analyzeResult") or {}
    if not isinstance(analyze, dict):
        return []
    lines: list[str] = []
    for region in analyze.get("readResults") or []:
        if not isinstance(region, dict):
            continue
        for line in region.get("lines") or []:
            text = line.get("text") if isinstance(line, dict) else None
            if isinstance(text, str):
                lines.append(text)
    return lines


def _error_message(body: Any) -> Optional[str]:
    """Pull ``error.message`` (or a bare ``message``) out of an upstream JSON body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if body.get("message"):
        return str(body["message"])
    return None


def _response_error_message(resp: httpx.Response) -> Optional[str]:
    try:
        return _error_message(resp.json())
    except ValueError:
        return None


class RecognizerClient:
    """Drives one Azure Read job per call: submit the image, then poll its location.

    The client owns an ``httpx.AsyncClient`` for the lifetime of the ``async with``
    block. Nothing else is kept between calls, so one instance can serve
    concurrent scans.
    """

    def __init__(
        self,
        endpoint: str,
        subscription_key: str,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        timeout: float = RECOGNIZER_CLIENT_TIMEOUT_SECONDS,
        deadline_grace: float = POLL_DEADLINE_GRACE_SECONDS,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.endpoint = endpoint.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.deadline_grace = deadline_grace
        self.timeout = timeout
        self.verify = verify
        self._subscription_key = subscription_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=self.timeout, verify=self.verify, transport=self._transport
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Client not started")
        return self._client

    @property
    def analyze_url(self) -> str:
        return f"{self.endpoint}{ANALYZE_PATH}"

    async def submit(self, image_bytes: bytes) -> str:
        """Send raw image bytes to the analyze endpoint and return the job location."""
        if not image_bytes:
            raise InvalidImageError("Image is empty")

        headers = {
            SUBSCRIPTION_KEY_HEADER: self._subscription_key,
            "Content-Type": "application/octet-stream",
        }
        try:
            resp = await self._http().post(self.analyze_url, content=image_bytes, headers=headers)
        except httpx.TransportError as e:
            logger.error("Recognizer unreachable on submit: %s", type(e).__name__)
            raise RecognizerUnreachable(f"{type(e).__name__}: {e}") from e

        if resp.status_code != SUBMIT_ACCEPTED_STATUS:
            upstream_message = _response_error_message(resp)
            logger.error(
                "Recognizer rejected submission",
                extra={"http_status": resp.status_code, "error_code": "RECOGNIZER_REJECTED"},
            )
            raise RecognizerRejected(resp.status_code, upstream_message)

        job_handle = resp.headers.get(JOB_LOCATION_HEADER)
        if not job_handle:
            logger.error("Recognizer accepted image without %s header", JOB_LOCATION_HEADER)
            raise MissingJobHandle(JOB_LOCATION_HEADER)

        logger.debug("Recognition job submitted", extra={"job_handle": job_handle})
        return job_handle

    async def poll(self, job_handle: str) -> RecognitionResult:
        """Poll a job location until it succeeds, fails, or the poll budget runs out."""
        return await self._poll_job(RecognitionJob(job_handle=job_handle))

    async def recognize(self, image_bytes: bytes) -> RecognitionResult:
        job = RecognitionJob(image_bytes=image_bytes)
        job.job_handle = await self.submit(job.image_bytes)
        return await self._poll_job(job)

    async def _poll_job(self, job: RecognitionJob) -> RecognitionResult:
        """Poll until a terminal status, the attempt ceiling, or the wall-clock deadline.

        The deadline is ``max_attempts * poll_interval + deadline_grace`` from the
        first check; every sleep and status request is cut to the time left.
        """
        job_handle = job.job_handle or ""
        started = time.monotonic()
        deadline = started + self.max_attempts * self.poll_interval + self.deadline_grace

        while job.attempt < self.max_attempts:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.poll_interval, remaining))
            job.attempt += 1

            payload = await self._fetch_status(job, deadline - time.monotonic())
            if payload is None:
                continue

            status = JobStatus.from_upstream(payload.get("status"))
            job.transition(status)

            if status is JobStatus.SUCCEEDED:
                lines = flatten_read_result(payload)
                logger.info(
                    "Recognition succeeded",
                    extra={
                        "job_handle": job_handle,
                        "attempt": job.attempt,
                        "line_count": len(lines),
                        "duration_ms": int((time.monotonic() - started) * 1000),
                    },
                )
                return RecognitionResult(lines=lines, job_handle=job_handle, attempts=job.attempt)

            if status is JobStatus.FAILED:
                logger.error(
                    "Recognition failed upstream",
                    extra={"job_handle": job_handle, "attempt": job.attempt},
                )
                raise RecognitionFailed(job_handle, _error_message(payload))

        job.transition(JobStatus.TIMED_OUT)
        elapsed = time.monotonic() - started
        logger.warning(
            "Recognition timed out after %d checks",
            job.attempt,
            extra={"job_handle": job_handle, "attempt": job.attempt, "max_attempts": self.max_attempts},
        )
        raise RecognitionTimedOut(job_handle, job.attempt, elapsed)

    async def _fetch_status(self, job: RecognitionJob, remaining: float) -> Optional[dict]:
        """One status check bounded by ``remaining`` seconds. Returns None on a transient miss."""
        extra = {"job_handle": job.job_handle, "attempt": job.attempt, "max_attempts": self.max_attempts}
        try:
            resp = await asyncio.wait_for(
                self._http().get(
                    job.job_handle, headers={SUBSCRIPTION_KEY_HEADER: self._subscription_key}
                ),
                timeout=max(remaining, 0.0),
            )
        except asyncio.TimeoutError:
            logger.warning("Status check outlived the poll deadline", extra=extra)
            return None
        except httpx.TransportError as e:
            logger.warning("Status check transport error: %s", type(e).__name__, extra=extra)
            return None

        if not resp.is_success:
            logger.warning("Status check returned HTTP %d", resp.status_code, extra=extra)
            return None

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("Status check returned a non-JSON body", extra=extra)
            return None

        if not isinstance(payload, dict):
            logger.warning("Status check returned unexpected JSON", extra=extra)
            return None
        return payload


def create_recognizer_client(
    settings: RecognizerSettings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> RecognizerClient:
    """Build a client from settings. Enter it with ``async with`` before use."""
    return RecognizerClient(
        endpoint=settings.RECOGNIZER_ENDPOINT,
        subscription_key=settings.RECOGNIZER_SUBSCRIPTION_KEY.get_secret_value(),
        poll_interval=settings.RECOGNIZER_POLL_INTERVAL_SECONDS,
        max_attempts=settings.RECOGNIZER_POLL_MAX_ATTEMPTS,
        timeout=settings.RECOGNIZER_CLIENT_TIMEOUT_SECONDS,
        verify=settings.RECOGNIZER_VERIFY_SSL,
        transport=transport,
    )
