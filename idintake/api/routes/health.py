from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from idintake import __version__
from idintake.api.schemas import HealthResponse
from idintake.core.config import get_app_settings, get_reference_settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(request: Request):
    recognizer_ready = getattr(request.app.state, "recognizer", None) is not None
    service_ready = getattr(request.app.state, "intake_service", None) is not None
    healthy = recognizer_ready and service_ready

    return JSONResponse(
        status_code=200 if service_ready else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "service": get_app_settings().APP_NAME,
            "version": __version__,
            "recognizer": "configured" if recognizer_ready else "unconfigured",
            "reference_source": get_reference_settings().REFERENCE_SOURCE,
        },
    )
