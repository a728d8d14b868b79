import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from flightrelay.api.error_handlers import setup_exception_handlers
from flightrelay.api.routers import health, webhooks
from flightrelay.channels.whatsapp.channel import WhatsAppChannel
from flightrelay.channels.whatsapp.client import TwilioClient
from flightrelay.config import Settings, get_settings
from flightrelay.domain.interfaces.classifier_interface import FallbackClassifier
from flightrelay.domain.services.change_detector import ChangeDetector, FlightTracker
from flightrelay.domain.services.dispatcher import RequestDispatcher
from flightrelay.domain.services.intent_service import IntentResolver
from flightrelay.domain.services.subscription_registry import SubscriptionRegistry
from flightrelay.formatters.flight import FlightFormatter
from flightrelay.infrastructure.ai.intent.intent_classifier import LLMIntentClassifier
from flightrelay.infrastructure.ai.llm.base_llm import BaseLLM
from flightrelay.infrastructure.ai.llm.ollama_adapter import OllamaAdapter
from flightrelay.infrastructure.ai.llm.openai_adapter import OpenAIAdapter
from flightrelay.infrastructure.aviation.aviationstack_client import AviationStackClient
from flightrelay.utils.logger import get_logger, set_correlation_id, setup_logging

logger = get_logger(__name__)


def build_classifier(settings: Settings) -> Optional[FallbackClassifier]:
    """
    Create the fallback classifier, or None when it is disabled or cannot
    be configured.
    """
    if not settings.classifier.ENABLED:
        logger.info("Fallback intent classifier disabled")
        return None

    llm_config = {
        "model_name": settings.classifier.MODEL,
        "temperature": settings.classifier.TEMPERATURE,
        "timeout": settings.classifier.TIMEOUT,
        "base_url": settings.classifier.BASE_URL,
        "api_key": settings.classifier.OPENAI_API_KEY,
    }
    try:
        llm: BaseLLM
        if settings.classifier.BACKEND == "openai":
            llm = OpenAIAdapter(llm_config)
        else:
            llm = OllamaAdapter(llm_config)
    except ValueError as e:
        logger.warning(f"Fallback intent classifier unavailable: {str(e)}")
        return None

    return LLMIntentClassifier(llm)


def build_services(app: FastAPI, settings: Settings) -> None:
    """Build the service container and store it on the application state."""
    provider = AviationStackClient(
        api_key=settings.aviation.API_KEY,
        base_url=settings.aviation.BASE_URL,
        timeout=settings.aviation.TIMEOUT,
        max_retries=settings.aviation.MAX_RETRIES
    )
    channel = WhatsAppChannel(TwilioClient(
        account_sid=settings.twilio.ACCOUNT_SID,
        auth_token=settings.twilio.AUTH_TOKEN,
        from_address=settings.twilio.WHATSAPP_FROM,
        base_url=settings.twilio.BASE_URL,
        timeout=settings.twilio.TIMEOUT
    ))
    classifier = build_classifier(settings)
    formatter = FlightFormatter({
        "home_airport": settings.HOME_AIRPORT,
        "airport_name": settings.AIRPORT_NAME,
    })
    registry = SubscriptionRegistry()
    resolver = IntentResolver(
        fallback_classifier=classifier,
        fallback_timeout=settings.classifier.TIMEOUT
    )
    detector = ChangeDetector(
        registry=registry,
        provider=provider,
        transport=channel,
        formatter=formatter,
        max_concurrent_checks=settings.tracking.MAX_CONCURRENT_CHECKS,
        check_timeout=settings.tracking.CHECK_TIMEOUT
    )

    app.state.settings = settings
    app.state.provider = provider
    app.state.channel = channel
    app.state.classifier = classifier
    app.state.registry = registry
    app.state.tracker = FlightTracker(detector, interval_seconds=settings.tracking.POLL_INTERVAL_SECONDS)
    app.state.dispatcher = RequestDispatcher(
        resolver=resolver,
        provider=provider,
        registry=registry,
        formatter=formatter,
        home_airport=settings.HOME_AIRPORT,
        list_limit=settings.LIST_LIMIT
    )


async def close_services(app: FastAPI) -> None:
    await app.state.tracker.stop()
    for name in ("provider", "channel", "classifier"):
        resource = getattr(app.state, name, None)
        if resource is None:
            continue
        try:
            await resource.close()
        except Exception as e:
            logger.warning(f"Error closing {name}: {str(e)}")


# Creating a lifespan context to handle startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.
    Builds the services and starts the flight tracker once.
    """
    settings = getattr(app.state, "settings", None) or get_settings()
    setup_logging(
        settings.logging.LEVEL,
        settings.logging.FORMAT,
        service=settings.APP_NAME,
        environment=settings.ENV
    )
    logger.info(f"Starting {settings.APP_NAME} in {settings.ENV} mode")

    build_services(app, settings)
    app.state.tracker.start()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    await close_services(app)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Creates and configures the FastAPI application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="WhatsApp flight information and gate-change alert relay",
        version=settings.VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )
    app.state.settings = settings

    configure_middleware(app, settings)
    register_routers(app, settings)
    setup_exception_handlers(app)

    return app


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Configure middleware components for the application.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    header = settings.logging.CORRELATION_ID_HEADER

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next: Callable):
        correlation_id = set_correlation_id(request.headers.get(header))
        request.state.correlation_id = correlation_id

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers[header] = correlation_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        logger.info(
            "Request processed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "processing_time": process_time,
                "status_code": response.status_code
            }
        )
        return response


def register_routers(app: FastAPI, settings: Settings) -> None:
    """
    Register API routers with the application.
    """
    app.include_router(
        health.router,
        prefix=f"{settings.API_PREFIX}/health",
        tags=["health"]
    )
    app.include_router(
        webhooks.router,
        prefix=f"{settings.API_PREFIX}/webhooks",
        tags=["webhooks"]
    )


app = create_application()

if __name__ == "__main__":
    from flightrelay.__main__ import main
    main()
