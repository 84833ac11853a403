"""
Main FastAPI application.

Startup-investor matchmaking API: founder, investor and admin surfaces
behind role-tagged bearer tokens.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from venturematch.core.config import get_settings, MissingAPIKeyError
from venturematch.core.database import create_tables
from venturematch.core.errors import ServiceError
from venturematch.api.v1 import auth, templates, founder, investor, admin

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

STORAGE_MOUNT = "storage"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Runs on startup and shutdown.
    """
    # Startup
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)
    logger.info("Starting VentureMatch API")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Storage dir: {settings.storage_dir}")

    try:
        create_tables()
        logger.info("Database tables ready")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    # Uploaded images are served from the local storage dir
    if not any(getattr(r, "name", None) == STORAGE_MOUNT for r in app.routes):
        app.mount(
            "/storage",
            StaticFiles(directory=settings.storage_dir, check_dir=False),
            name=STORAGE_MOUNT,
        )

    yield

    # Shutdown
    logger.info("Shutting down")


# Create FastAPI app
app = FastAPI(
    title="VentureMatch API",
    description="Matchmaking between startup founders and investors",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(MissingAPIKeyError)
async def missing_key_handler(request: Request, exc: MissingAPIKeyError):
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(templates.router, prefix="/api/v1")
app.include_router(founder.router, prefix="/api/v1")
app.include_router(investor.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/")
def root():
    """Root endpoint with service info."""
    return {
        "service": "VentureMatch API",
        "version": "0.1.0",
        "roles": ["founder", "investor", "admin"],
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """
    Health check endpoint.

    Returns status of the service and database connectivity.
    """
    from venturematch.core.database import get_engine
    from sqlalchemy import text

    health_status = {
        "status": "healthy",
        "service": "running",
        "database": "unknown"
    }

    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["database"] = f"error: {str(e)}"
        logger.warning(f"Database health check failed: {e}")

    return health_status
