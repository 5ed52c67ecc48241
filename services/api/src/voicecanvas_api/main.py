"""FastAPI application factory and main entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from voicecanvas_shared.config import get_settings
from voicecanvas_shared.db.connection import get_db
from voicecanvas_shared.email import create_mailer
from voicecanvas_shared.logging import configure_logging, get_logger

from .errors import VoiceCanvasError
from .middleware import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from .models.base import ErrorDetail, ErrorResponse
from .routes import auth_tokens, billing, diagnostics, health, speech, user_plan, webhook
from .services import (
    ConcurrencyGate,
    PlanCatalog,
    SpeechService,
    StripeGateway,
    SubscriptionLimitResolver,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()

    logger.info(
        "Starting application",
        service=settings.service_name,
        version=settings.service_version,
        environment=settings.environment,
    )

    app.state.db_initialized = False
    db = get_db()
    try:
        await db.connect()
        await db.create_tables()
        app.state.db_initialized = True
        logger.info("Database connection established and tables created")
    except (SQLAlchemyError, OSError, ValueError) as e:
        # Requests that need the database fail individually
        logger.error("Failed to initialize database", error=str(e))

    yield

    logger.info("Shutting down application")
    await db.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    configure_logging(
        level=settings.logging.level,
        json_format=settings.logging.json_format,
        service_name=settings.service_name,
    )

    app = FastAPI(
        title="VoiceCanvas API",
        description="Text-to-speech, billing and account services for VoiceCanvas",
        version=settings.service_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        openapi_url="/openapi.json" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Process-wide collaborators, resolved by the dependencies module
    app.state.concurrency_gate = ConcurrencyGate(
        SubscriptionLimitResolver(lambda: get_db().session_factory())
    )
    app.state.speech_service = SpeechService(settings.speech)
    app.state.plan_catalog = PlanCatalog.from_settings(settings.stripe)
    app.state.stripe_gateway = StripeGateway(
        settings.stripe.secret_key,
        settings.stripe.webhook_secret,
    )
    app.state.mailer = create_mailer(settings)

    # Middleware (first added = last executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER, "X-Speech-Provider"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.add_exception_handler(VoiceCanvasError, voicecanvas_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(webhook.router)
    app.include_router(speech.router)
    app.include_router(user_plan.router)
    app.include_router(auth_tokens.router)
    app.include_router(billing.router)
    if not settings.is_production:
        app.include_router(diagnostics.router)

    return app


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    details: list[ErrorDetail] | None = None,
    error_type: str | None = None,
) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", None)
    body = ErrorResponse.create(
        code=status_code,
        message=message,
        correlation_id=correlation_id,
        details=details,
        error_type=error_type,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers={CORRELATION_ID_HEADER: correlation_id} if correlation_id else {},
    )


async def voicecanvas_exception_handler(
    request: Request,
    exc: VoiceCanvasError,
) -> JSONResponse:
    """Render application errors with their mapped status."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        error_type=exc.code,
        error=exc.message,
        path=request.url.path,
        status_code=exc.status_code,
    )
    return _error_response(request, exc.status_code, exc.message, error_type=exc.code)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions."""
    return _error_response(request, exc.status_code, str(exc.detail))


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors as 400s with per-field details."""
    details = [
        ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            type=error["type"],
        )
        for error in exc.errors()
    ]
    return _error_response(
        request,
        400,
        "Invalid input data",
        details=details,
        error_type="validation_error",
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
    )

    message = "Internal Server Error"
    if not get_settings().is_production:
        message = f"{message}: {type(exc).__name__}: {exc}"
    return _error_response(request, 500, message, error_type="internal_error")


# Create the app instance
app = create_app()
