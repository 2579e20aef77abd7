"""FastAPI dependency injection functions."""

from fastapi import HTTPException, Request, status

from idintake.services.intake import IntakeService


async def get_intake_service(request: Request) -> IntakeService:
    """Get the intake service from app state.

    Raises:
        HTTPException: 503 if the service could not be built at startup
    """
    service = getattr(request.app.state, "intake_service", None)

    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Intake service unavailable",
        )

    return service
