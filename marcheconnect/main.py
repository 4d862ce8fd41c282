"""
MarchéConnect - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from marcheconnect.api import admin, applications
from marcheconnect.config import settings
from marcheconnect.db import init_db, close_db
from marcheconnect.version import __version__
import logging
import re


# Custom logging filter to redact sensitive data
class SensitiveDataFilter(logging.Filter):
    """Filter to redact sensitive data from logs"""

    EMAIL_PATTERN = re.compile(r'\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b')

    def filter(self, record):
        if hasattr(record, 'msg'):
            msg = str(record.msg)

            # Redact the SMTP password if it ever ends up in a message
            if settings.smtp_password and settings.smtp_password in msg:
                msg = msg.replace(settings.smtp_password, '[REDACTED]')

            # Keep the domain and first letter of vendor emails: j***@example.com
            msg = self.EMAIL_PATTERN.sub(r'\1***@\2', msg)

            record.msg = msg
        return True


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Add filter to all loggers
for handler in logging.root.handlers:
    handler.addFilter(SensitiveDataFilter())

# Add filter to httpx logger (logs geocoding requests)
httpx_logger = logging.getLogger('httpx')
httpx_logger.addFilter(SensitiveDataFilter())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown"""
    # Startup
    logger.info("🚀 Starting MarchéConnect")
    logger.info(f"📦 Version: {__version__}")
    logger.info(f"📝 Environment: {settings.environment}")

    # Initialize database
    await init_db()

    if not settings.smtp_host:
        logger.warning("⚠️  SMTP not configured - notifications will be reported as not sent")

    logger.info("✅ Configuration loaded successfully")
    logger.info(f"🔗 Details form links: {settings.public_base_url}/details/{{application_id}}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title="MarchéConnect",
    description="Vendor applications, committee review and billing for the Christmas market",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)


# ============================================
# CORS Middleware Configuration
# ============================================

# Development origins (local frontend dev server)
dev_origins = [
    "http://localhost:9002",
    "http://127.0.0.1:9002",
]

# Set CORS_ORIGINS env var as comma-separated list: "https://example.com,https://www.example.com"
production_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]

allowed_origins = dev_origins + production_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"✅ CORS configured for origins: {allowed_origins}")


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that JSON cannot encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors (body omitted, it holds personal data)"""
    logger.warning(f"Validation error for {request.method} {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=422,
        content={"detail": _jsonable_errors(exc)}
    )


# Public form and details form
app.include_router(applications.router, prefix="/api/v1", tags=["applications"])

# Committee dashboard
app.include_router(admin.router, prefix="/api/v1", tags=["admin"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": "MarchéConnect",
        "version": __version__,
        "status": "running",
        "environment": settings.environment,
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment
    }
