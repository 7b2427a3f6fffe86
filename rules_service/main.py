from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from dotenv import load_dotenv
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from rules_service.api.routers.routers import api_router
from rules_service.core.config import settings
from rules_service.core.database import init_database
from rules_service.core.exceptions import RulesServiceError, rules_service_error_handler
from rules_service.core.logging_config import configure_logging
from rules_service.core.rate_limit import limiter
from rules_service.middleware import RequestIDMiddleware


# Load environment variables
load_dotenv()

# Route stdlib and loguru output through the JSON sink with request_id
configure_logging()

logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=1.0 if settings.is_local else 0.1,
        environment=settings.ENVIRONMENT,
        send_default_pii=False,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables and seed the default catalog before serving requests.

    A startup failure is logged and re-raised so the process exits.
    """
    logger.info("Starting Rules Service...")

    try:
        await init_database()
        logger.info("Database initialized")
        yield
    except Exception:
        logger.exception("Failed to start services")
        raise
    finally:
        logger.info("Shutting down Rules Service...")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
    openapi_url="/openapi.json" if settings.is_local else None,
)

# Add rate limiter state
app.state.limiter = limiter

# Add rate limit exceeded handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Tagged service errors become {"detail": {"code", "message", "errors"}}
app.add_exception_handler(RulesServiceError, rules_service_error_handler)

# Apply the default per-client limit to every route
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(RequestIDMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include all API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    return {
        "status": "OK",
        "service": "rules-service",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
