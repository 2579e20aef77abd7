"""Exception hierarchy for the intake pipeline.

Only input decoding and the recognizer orchestration raise these to callers.
Field extraction and address resolution degrade to empty/None output instead.
Every error renders as RFC 7807 Problem Details through ``to_dict``.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification and monitoring."""

    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    EXTERNAL_SERVICE = "external_service"


class BaseError(Exception):
    """Base exception for all intake errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        category: Error category for classification
        http_status: HTTP status code to return
        details: Additional context (dict)
        retryable: Whether the caller may resubmit
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        http_status: int,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.http_status = http_status
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to RFC 7807 Problem Details format."""
        return {
            "type": f"/errors/{self.error_code}",
            "title": self.message,
            "status": self.http_status,
            "code": self.error_code,
            "detail": self.details.get("detail"),
            "category": self.category.value,
            "retryable": self.retryable,
        }


class ClientError(BaseError):
    """Base for client errors (4xx). Never retryable."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.CLIENT_ERROR,
            http_status=kwargs.pop("http_status", 400),
            retryable=False,
            **kwargs,
        )


class InvalidImageError(ClientError):
    """Image payload is empty or not decodable base64."""

    def __init__(self, reason: str):
        super().__init__(
            message="Invalid image payload",
            error_code="INVALID_IMAGE",
            http_status=400,
            details={"detail": reason},
        )


class PayloadTooLargeError(ClientError):
    """Payload too large (413).

    Args:
        max_size_mb: Maximum allowed size in MB
        actual_size_mb: Actual image size in MB
    """

    def __init__(self, max_size_mb: int, actual_size_mb: float):
        super().__init__(
            message=f"Image too large: {actual_size_mb:.2f}MB (max: {max_size_mb}MB)",
            error_code="PAYLOAD_TOO_LARGE",
            http_status=413,
            details={"max_size_mb": max_size_mb, "actual_size_mb": actual_size_mb},
        )


class ExternalServiceError(BaseError):
    """Base for failures of an external collaborator (recognizer, reference store)."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=kwargs.pop("http_status", 502),
            retryable=kwargs.pop("retryable", False),
            **kwargs,
        )


class RecognizerRejected(ExternalServiceError):
    """Recognizer answered the submission with something other than 202.

    Not retried: the request itself was refused (bad key, bad image, quota).
    """

    def __init__(self, upstream_status: int, upstream_message: Optional[str] = None):
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message
        super().__init__(
            message=f"Recognizer rejected the image (HTTP {upstream_status})",
            error_code="RECOGNIZER_REJECTED",
            http_status=502,
            details={
                "detail": upstream_message,
                "upstream_status": upstream_status,
            },
        )


class RecognizerUnreachable(ExternalServiceError):
    """Network-level failure talking to the recognizer (DNS, connect, timeout)."""

    def __init__(self, reason: str):
        super().__init__(
            message="Recognizer service unreachable",
            error_code="RECOGNIZER_UNREACHABLE",
            http_status=503,
            retryable=True,
            details={"detail": reason},
        )


class MissingJobHandle(ExternalServiceError):
    """Recognizer accepted the image but returned no job-location header."""

    def __init__(self, header: str):
        super().__init__(
            message="Recognizer returned no job location",
            error_code="RECOGNIZER_MISSING_JOB_HANDLE",
            http_status=502,
            details={"detail": f"Response header '{header}' is missing"},
        )


class RecognitionFailed(ExternalServiceError):
    """Recognition job reached the upstream ``failed`` state."""

    def __init__(self, job_handle: str, upstream_message: Optional[str] = None):
        self.job_handle = job_handle
        super().__init__(
            message="OCR processing failed",
            error_code="RECOGNITION_FAILED",
            http_status=502,
            details={"detail": upstream_message, "job_handle": job_handle},
        )


class RecognitionTimedOut(ExternalServiceError):
    """Recognition did not reach a terminal state within the poll budget.

    ``attempts`` is None when the whole operation ran out of time before the
    poll loop could report how many checks it made.
    """

    def __init__(self, job_handle: Optional[str], attempts: Optional[int], elapsed_seconds: float):
        self.job_handle = job_handle
        self.attempts = attempts
        details = {
            "detail": (
                "The document could not be read in time. "
                "Retake the photo with better lighting and focus, then try again."
            ),
            "job_handle": job_handle,
            "elapsed_seconds": round(elapsed_seconds, 2),
        }
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(
            message="OCR timed out",
            error_code="RECOGNITION_TIMEOUT",
            http_status=504,
            retryable=True,
            details=details,
        )


class ReferenceLookupError(ExternalServiceError):
    """Geographic reference store query failed. Absorbed by the address resolver."""

    def __init__(self, level: str, reason: str):
        super().__init__(
            message=f"Reference lookup failed for {level}",
            error_code="REFERENCE_LOOKUP_FAILED",
            http_status=502,
            retryable=True,
            details={"detail": reason, "level": level},
        )
