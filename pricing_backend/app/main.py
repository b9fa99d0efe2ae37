"""
FastAPI Application Entry Point.

This is the main application file for the Fare Pricing Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pricing_backend.app.core.config import settings
from pricing_backend.app.api.v1.router import router as api_v1_router
from pricing_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from pricing_backend.app.db.session import Database
from pricing_backend.app.domain.pricing.fare_calculator import FareCalculator
from pricing_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from pricing_backend.app.models.audit_log import AuditLog
from pricing_backend.app.models.vehicle_type import VehicleType
from pricing_backend.app.models.pricing_multiplier import PricingMultiplier
from pricing_backend.app.models.pricing_event import PricingEvent
from pricing_backend.app.models.pricing_calculation import PricingCalculation
from pricing_backend.app.models.pricing_event_application import PricingEventApplication

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Builds the Database handle and creates tables on startup.
    2. Disposes of the engine on shutdown.
    """
    database = Database.from_settings(settings)
    await database.create_all()
    app.state.database = database
    app.state.fare_calculator = FareCalculator()
    yield
    await database.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Dynamic fare pricing for ride-hailing trips",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Fare Pricing Backend API",
        "docs": "/docs",
        "health": "/health",
    }
