"""Commentflow API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from commentflow.auth.service import ProfileService
from commentflow.comments.config import CachedConfigProvider
from commentflow.comments.contracts import WorkflowContext
from commentflow.comments.filtering import KeywordContentFilter
from commentflow.comments.notifications import EmailNotifier, NotificationDispatcher
from commentflow.comments.reports import ReportWorkflow
from commentflow.comments.repository import (
    CassandraCommentRepository,
    CassandraRelatedEntityRepository,
    CassandraReportRepository,
)
from commentflow.comments.router import router as comments_router
from commentflow.comments.workflow import CommentWorkflow
from commentflow.config import Settings, get_settings
from commentflow.core.context import get_request_id
from commentflow.core.database import init_async_cassandra, shutdown_async_cassandra
from commentflow.core.logging import configure_structlog, get_logger
from commentflow.core.middleware import RequestContextMiddleware
from commentflow.core.redis import init_redis, shutdown_redis
from commentflow.email.service import EmailService
from commentflow.health import router as health_router


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    email_service: EmailService | None = None
    config_provider: CachedConfigProvider | None = None
    dispatcher: NotificationDispatcher | None = None


app_state = AppState()


def build_workflows(
    settings: Settings,
    session: Any,
    config: CachedConfigProvider,
    dispatcher: NotificationDispatcher,
    email_service: EmailService | None = None,
) -> tuple[CommentWorkflow, ReportWorkflow, CassandraRelatedEntityRepository]:
    """Assemble the comment workflows from their collaborators."""
    keyspace = settings.cassandra_keyspace
    profiles = ProfileService(session=session, keyspace=keyspace)
    related = CassandraRelatedEntityRepository(session, keyspace)

    context = WorkflowContext(
        comments=CassandraCommentRepository(session, keyspace),
        reports=CassandraReportRepository(session, keyspace),
        related=related,
        identity=profiles,
        content_filter=KeywordContentFilter(settings.comments_bad_words),
        config=config,
        notifier=EmailNotifier(email_service, moderators=profiles, config=config),
    )

    comment_workflow = CommentWorkflow(
        context,
        dispatcher=dispatcher,
        reject_flagged_content=settings.comments_reject_flagged_content,
        reply_notifications_enabled=settings.comments_reply_notifications_enabled,
    )
    report_workflow = ReportWorkflow(
        context,
        dispatcher=dispatcher,
        abuse_notifications_enabled=settings.comments_abuse_notifications_enabled,
    )
    return comment_workflow, report_workflow, related


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - app works without it)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - configuration overrides disabled",
        )

    app_state.config_provider = CachedConfigProvider.from_settings(settings, redis_client)
    await app_state.config_provider.start()
    app_state.dispatcher = NotificationDispatcher()

    # Initialize Email Service (independent of database)
    if settings.email_enabled:
        app_state.email_service = EmailService(
            credentials_path=settings.email_credentials_path,
            sender_address=settings.email_sender_address,
            sender_name=settings.email_sender_name,
        )
        logger.info("email_service_initialized", sender=settings.email_sender_address)

    # Initialize Cassandra (async)
    try:
        app_state.cassandra_session = await init_async_cassandra()
        logger.info("cassandra_initialized")

        comment_workflow, report_workflow, related = build_workflows(
            settings,
            app_state.cassandra_session,
            app_state.config_provider,
            app_state.dispatcher,
            app_state.email_service,
        )
        app.state.comment_workflow = comment_workflow
        app.state.report_workflow = report_workflow
        app.state.related_entities = related
        logger.info(
            "comment_workflow_initialized",
            email_enabled=app_state.email_service is not None,
            redis_enabled=redis_client is not None,
        )
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await app_state.config_provider.stop()
    await app_state.dispatcher.drain()
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Never expose stack traces in responses; handlers below log the details
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Comment moderation and threading API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                or exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions."""
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    app.include_router(health_router)
    app.include_router(comments_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Commentflow API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
