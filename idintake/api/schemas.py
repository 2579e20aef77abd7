"""Pydantic request/response schemas for API endpoints."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from idintake.domain.models import Barangay, City, ExtractedIdentity, Province


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://www.rfc-editor.org/rfc/rfc7807
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary of the problem")
    status: int = Field(..., description="HTTP status code for this problem")
    detail: Optional[str] = Field(
        None, description="Human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(None, description="Request path of this occurrence")

    # Extension members (allowed by RFC 7807)
    code: str = Field(..., description="Application-specific error code")
    category: str = Field(..., description="Error category (client_error, server_error, etc.)")
    retryable: bool = Field(default=False, description="Whether the request can be retried")
    trace_id: Optional[str] = Field(None, description="Request trace ID")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "/errors/RECOGNITION_TIMEOUT",
                "title": "OCR timed out",
                "status": 504,
                "detail": "The document could not be read in time. "
                "Retake the photo with better lighting and focus, then try again.",
                "instance": "/v1/ocr",
                "code": "RECOGNITION_TIMEOUT",
                "category": "external_service",
                "retryable": True,
                "trace_id": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
            }
        }
    )


class OcrRequest(BaseModel):
    image_base64: str = Field(
        ...,
        min_length=1,
        description="Base64 image bytes, optionally as a data:image/...;base64, URI",
    )


class OcrResponse(BaseModel):
    success: bool = Field(True, description="True when recognition completed")
    data: ExtractedIdentity = Field(..., description="Best-effort identity fields")
    raw_text: str = Field(..., description="Recognized lines joined with newlines")
    lines: List[str] = Field(..., description="Recognized lines in reading order")
    processing_time_ms: int = Field(..., description="Server-side processing time")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "data": {
                    "full_name": "DELA CRUZ, JUAN SANTOS",
                    "birth_date": "1990-06-15",
                    "address_text": "123 BRGY ATLU-BOLA, MABALACAT CITY",
                    "document_type": "Philippine National ID",
                    "id_number": "1234-5678-9012-3456",
                    "age": 34,
                },
                "raw_text": "REPUBLIC OF THE PHILIPPINES\nDELA CRUZ, JUAN SANTOS",
                "lines": ["REPUBLIC OF THE PHILIPPINES", "DELA CRUZ, JUAN SANTOS"],
                "processing_time_ms": 4210,
            }
        }
    )


class ProvinceListResponse(BaseModel):
    provinces: List[Province]


class CityListResponse(BaseModel):
    cities: List[City]


class BarangayListResponse(BaseModel):
    barangays: List[Barangay]


class HealthResponse(BaseModel):
    status: str = Field(..., description="Overall status (healthy/degraded)")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    recognizer: str = Field(..., description="configured/unconfigured")
    reference_source: str = Field(..., description="Reference data backend (file/postgrest)")
