"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

import logging

import uvicorn
from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from .auth.router import router as auth_router
from .config import get_settings
from .core import audit_models  # noqa: F401  registers the audit table
from .core.middleware import setup_middlewares
from .database import Base, engine, get_db
from .exceptions import register_exception_handlers

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=f"{settings.app_name} API",
    description="Registration, email verification and authentication for contributors and participants",
    version=__version__,
)

register_exception_handlers(app)

# The local dev server is always allowed alongside the configured frontend
allowed_origins = sorted({"http://localhost:3000", settings.frontend_url.rstrip("/")})

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_middlewares(app)

app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])

logger.info(f"{settings.app_name} API {__version__} ready, CORS origins: {', '.join(allowed_origins)}")


@app.get("/")
def root():
    """
    Root endpoint with the API name and version.

    Returns:
        dict: Welcome message
    """
    return {"success": True, "message": f"Welcome to {settings.app_name} API", "version": app.version}


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for monitoring.

    Runs a trivial query so that a lost database connection shows up as 503.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "message": "Database unavailable", "status": "unhealthy", "database": "unavailable"},
        )
    return {"success": True, "message": "ok", "status": "healthy", "database": "connected"}


def run():
    """Serve the application with uvicorn using the configured bind address."""
    uvicorn.run(
        "askfield.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
