"""ID photo recognition endpoint."""

import logging

from fastapi import APIRouter, Depends, Request

from idintake.api.schemas import OcrRequest, OcrResponse, ProblemDetail
from idintake.core.dependencies import get_intake_service
from idintake.services.intake import IntakeService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/v1/ocr",
    response_model=OcrResponse,
    tags=["ocr"],
    responses={
        400: {"description": "Invalid image payload", "model": ProblemDetail},
        413: {"description": "Image too large", "model": ProblemDetail},
        502: {"description": "Recognizer rejected or failed", "model": ProblemDetail},
        503: {"description": "Recognizer unreachable", "model": ProblemDetail},
        504: {"description": "Recognition timed out", "model": ProblemDetail},
    },
)
async def recognize_id(
    request: Request,
    body: OcrRequest,
    service: IntakeService = Depends(get_intake_service),
):
    trace_id = getattr(request.state, "trace_id", None)
    logger.info(
        "[NEW REQUEST] payload_chars=%d", len(body.image_base64), extra={"trace_id": trace_id}
    )

    result = await service.scan(body.image_base64)

    logger.info(
        "[RESPONSE] document_type=%s lines=%d time=%dms",
        result.identity.document_type.value,
        len(result.lines),
        result.processing_time_ms,
        extra={"trace_id": trace_id, "job_handle": result.job_handle},
    )
    return OcrResponse(
        success=True,
        data=result.identity,
        raw_text=result.raw_text,
        lines=result.lines,
        processing_time_ms=result.processing_time_ms,
    )
