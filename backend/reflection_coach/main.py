import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from reflection_coach.core.config import get_settings
from reflection_coach.core.exceptions import register_exception_handlers
from reflection_coach.core.logging_config import setup_logging
from reflection_coach.core.middleware import RequestContextMiddleware
from reflection_coach.core.rate_limit import limiter, rate_limit_exceeded_handler
from reflection_coach.core.storage import reset_storage_client
from reflection_coach.routers import chat, context, functions, health, reflections

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    logger.info("Starting %s...", settings.app_name)
    if not settings.openai_configured:
        logger.warning("OPENAI_API_KEY is not set; evaluation and chat will return 500")
    yield
    logger.info("Shutting down %s...", settings.app_name)
    reset_storage_client()


app = FastAPI(
    title=settings.app_name,
    description="Reflection journal API with AI scoring and coaching chat",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Correlation and profile ids for log records
app.add_middleware(RequestContextMiddleware)

# Rate limiting (slowapi)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Global exception handlers (domain exceptions → HTTP responses)
register_exception_handlers(app)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(functions.router, prefix=settings.functions_prefix, tags=["Functions"])
app.include_router(
    reflections.router, prefix=f"{settings.api_prefix}/reflections", tags=["Reflections"]
)
app.include_router(chat.router, prefix=settings.api_prefix, tags=["Chat"])
app.include_router(context.router, prefix=settings.api_prefix, tags=["Context"])
