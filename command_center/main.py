"""
FastAPI application entry point
"""
from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from command_center.config import settings
from command_center.services.policy_service import PolicyService
import structlog

logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    from command_center.api.dependencies import get_assistant

    # Startup
    assistant = get_assistant()
    logger.info(
        "Command center is online",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        handlers=[handler["module"] for handler in assistant.dispatcher.registry.list_all()],
    )
    yield
    # Shutdown
    logger.info("Command center is shutting down")
    await assistant.shutdown()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Conversational command pipeline for the NGO admin panel",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Turn unexpected errors into a sanitized 500 response"""
    error_msg = PolicyService.sanitize_error_message(exc)
    logger.error("Unhandled error", error=error_msg, error_type=type(exc).__name__, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": error_msg},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


# Import and include API routers
from command_center.api.v1 import router as api_router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)
