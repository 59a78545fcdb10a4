"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes (Telegram, WhatsApp, push, questions, broadcast)
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

import httpx

from app.core.config import settings, validate_settings
from app.core.container import build_container
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.db.mongo import MongoDatabase
from app.db.indexes import create_indexes
from app.api import broadcast, push, questions, telegram, whatsapp

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("🚀 Starting Notimon application...")

    database = MongoDatabase(settings)
    client = httpx.AsyncClient(timeout=settings.TRANSPORT_TIMEOUT_SECONDS)

    try:
        logger.info("Validating configuration...")
        validate_settings()
        logger.info("✅ Configuration validated")

        logger.info("Connecting to MongoDB...")
        await database.connect()
        logger.info("✅ MongoDB connected")

        logger.info("Creating database indexes...")
        await create_indexes(database)
        logger.info("✅ Database indexes created")

        app.state.container = build_container(database, settings, client=client)

        logger.info("🎉 Notimon application started successfully!")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Day timezone: {settings.DAY_TIMEZONE}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        await client.aclose()
        database.close()
        raise

    yield  # Application runs here

    # Shutdown
    logger.info("🛑 Shutting down Notimon application...")

    try:
        await client.aclose()
        logger.info("✅ HTTP client closed")

        database.close()
        logger.info("✅ MongoDB connection closed")

        logger.info("👋 Notimon application shut down successfully")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


# Create FastAPI app with lifespan
app = FastAPI(
    title="Notimon - Daily Questions",
    description="Daily question sequences over Telegram, WhatsApp and Web Push",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Log slow requests
    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


add_exception_handlers(app)

# Register API routes
app.include_router(telegram.router, prefix=settings.API_PREFIX, tags=["Telegram"])
app.include_router(whatsapp.router, prefix=settings.API_PREFIX, tags=["WhatsApp"])
app.include_router(push.router, prefix=settings.API_PREFIX, tags=["Push"])
app.include_router(questions.router, prefix=settings.API_PREFIX, tags=["Questions"])
app.include_router(broadcast.router, prefix=settings.API_PREFIX, tags=["Broadcast"])


# Root endpoint
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": "Notimon API",
        "version": APP_VERSION,
        "description": "Multi-channel daily questions",
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint.
    Checks database connectivity and which channels are configured.
    """
    container = request.app.state.container
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": APP_VERSION,
        "checks": {}
    }

    db_healthy = await container.database.check_health()
    health_status["checks"]["database"] = "healthy" if db_healthy else "unhealthy"
    if not db_healthy:
        health_status["status"] = "unhealthy"

    for kind in container.transports.kinds():
        transport = container.transports.get(kind)
        health_status["checks"][kind.value.lower()] = (
            "configured" if transport.is_configured() else "not_configured"
        )

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


# Readiness probe (for Kubernetes/orchestration)
@app.get("/ready", tags=["Health"])
async def readiness_check(request: Request):
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    if await request.app.state.container.database.check_health():
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "reason": "database_unavailable"}
    )


# Liveness probe (for Kubernetes/orchestration)
@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
