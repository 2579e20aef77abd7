import logging
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI

from idintake.clients.recognizer import create_recognizer_client
from idintake.core.config import get_app_settings, get_recognizer_settings, get_reference_settings
from idintake.processors.address_resolver import AddressResolver
from idintake.processors.ranking import get_ranking_strategy
from idintake.reference.store import create_reference_store
from idintake.services.intake import IntakeService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager: builds and closes the shared collaborators."""
    app_settings = get_app_settings()
    recognizer_settings = get_recognizer_settings()
    reference_settings = get_reference_settings()

    async with AsyncExitStack() as stack:
        app.state.recognizer = None
        if recognizer_settings.is_configured:
            logger.info("Initializing recognizer client...")
            app.state.recognizer = await stack.enter_async_context(
                create_recognizer_client(recognizer_settings)
            )
            logger.info("Recognizer client ready")
        else:
            logger.warning("Recognizer not configured; /v1/ocr will answer 503")

        logger.info("Initializing reference store (%s)...", reference_settings.REFERENCE_SOURCE)
        try:
            store = await stack.enter_async_context(create_reference_store(reference_settings))
        except Exception as e:
            logger.error(f"Reference store initialization failed: {e}", exc_info=True)
            app.state.intake_service = None
        else:
            resolver = AddressResolver(
                store, ranking=get_ranking_strategy(reference_settings.RANKING_STRATEGY)
            )
            app.state.intake_service = IntakeService.from_settings(
                app.state.recognizer,
                store,
                resolver,
                app_settings,
                recognizer_settings,
            )
            logger.info("Intake service ready")

        yield

        logger.info("Closing collaborators...")
