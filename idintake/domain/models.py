"""Domain models for the intake pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict


class JobStatus(str, Enum):
    SUBMITTED = "submitted"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.TIMED_OUT)

    @classmethod
    def from_upstream(cls, value: object) -> "JobStatus":
        """Map a recognizer status string; unknown values count as still running."""
        return _UPSTREAM_STATUS.get(str(value or "").strip().lower(), cls.RUNNING)


_UPSTREAM_STATUS = {
    "notstarted": JobStatus.SUBMITTED,
    "running": JobStatus.RUNNING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
}

_STATUS_ORDER = {
    JobStatus.SUBMITTED: 0,
    JobStatus.RUNNING: 1,
    JobStatus.SUCCEEDED: 2,
    JobStatus.FAILED: 2,
    JobStatus.TIMED_OUT: 2,
}


@dataclass
class RecognitionJob:
    """One in-flight recognition request. Transient and never shared."""

    image_bytes: bytes = field(default=b"", repr=False)
    job_handle: Optional[str] = None
    status: JobStatus = JobStatus.SUBMITTED
    attempt: int = 0

    def transition(self, status: JobStatus) -> None:
        """Move forward only; a late ``notStarted`` after ``running`` leaves the job running."""
        if self.status.is_terminal:
            raise RuntimeError(f"Job already terminal: {self.status.value}")
        if _STATUS_ORDER[status] < _STATUS_ORDER[self.status]:
            return
        self.status = status


class RecognitionResult(BaseModel):
    """Lines in the recognizer's top-to-bottom reading order."""

    lines: list[str]
    job_handle: str
    attempts: int

    @property
    def raw_text(self) -> str:
        return "\n".join(self.lines)


class DocumentType(str, Enum):
    NATIONAL_ID = "Philippine National ID"
    DRIVERS_LICENSE = "Driver's License"
    UMID = "UMID"
    SSS_ID = "SSS ID"
    POSTAL_ID = "Postal ID"
    VOTERS_ID = "Voter's ID"
    GOVERNMENT_ID = "Government ID"


class ExtractedIdentity(BaseModel):
    """Best-effort projection of an ID card. Every field is advisory."""

    model_config = ConfigDict(frozen=True)

    full_name: str = ""
    birth_date: str = ""
    address_text: str = ""
    document_type: DocumentType = DocumentType.GOVERNMENT_ID
    id_number: str = ""
    age: Optional[int] = None


class GeoLevel(str, Enum):
    PROVINCE = "province"
    CITY = "city"
    BARANGAY = "barangay"


class Province(BaseModel):
    code: str
    name: str
    region_code: Optional[str] = None


class City(BaseModel):
    code: str
    name: str
    province_code: str
    zip_code: Optional[str] = None
    type: Optional[Literal["city", "municipality"]] = None


class Barangay(BaseModel):
    code: str
    name: str
    city_code: str


GeoReferenceEntry = Union[Province, City, Barangay]


class AddressInput(BaseModel):
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    raw_address: Optional[str] = None


class ResolvedPlace(BaseModel):
    code: str
    name: str


class ResolvedCity(ResolvedPlace):
    zip_code: str = ""


class AddressResolutionResult(BaseModel):
    province: Optional[ResolvedPlace] = None
    city: Optional[ResolvedCity] = None
    barangay: Optional[ResolvedPlace] = None
    extracted_zip_code: Optional[str] = None
