from fastapi import FastAPI
from fastapi.exceptions import HTTPException as FastAPIHTTPException

from telecare.core.config import settings
from telecare.core.logger import setup_logging
from telecare.middleware.cors import configure_cors
from telecare.middleware.logging import RequestLoggerMiddleware
from telecare.middleware import error_handler

# Routers
from telecare.routers import auth as auth_router
from telecare.routers import users as users_router
from telecare.routers import doctors as doctors_router
from telecare.routers import appointments as appointments_router
from telecare.routers import ratings as ratings_router
from telecare.routers import reminders as reminders_router
from telecare.routers import notifications as notifications_router
from telecare.routers import cron as cron_router
from telecare.routers import admin as admin_router
from telecare.routers import health as health_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    setup_logging()
    description = (
        f"{settings.APP_NAME} Backend API.\n\n"
        "Doctor search, appointments, timed consultations, ratings and appointment reminders."
    )

    openapi_tags = [
        {"name": "authentication", "description": "Register and login."},
        {"name": "users", "description": "Current user profile."},
        {"name": "doctors", "description": "Doctor directory and doctor profiles."},
        {"name": "appointments", "description": "Slots, booking, cancellation and consultations."},
        {"name": "ratings", "description": "Ratings and reviews of completed consultations."},
        {"name": "reminders", "description": "Appointment reminders of the current patient."},
        {"name": "notifications", "description": "In-app notifications."},
        {"name": "cron", "description": "Scheduler-facing reminder processing and health."},
        {"name": "admin", "description": "Administrative endpoints."},
        {"name": "health", "description": "Health checks and service status endpoints."},
    ]

    app = FastAPI(
        title=f"{settings.APP_NAME} Backend API",
        version="0.1.0",
        description=description,
        openapi_tags=openapi_tags,
    )

    # Middleware
    configure_cors(app)
    app.add_middleware(RequestLoggerMiddleware)

    # Exception handlers
    app.add_exception_handler(FastAPIHTTPException, error_handler.http_exception_handler)
    app.add_exception_handler(Exception, error_handler.unhandled_exception_handler)

    # Include routers
    app.include_router(health_router.router)
    app.include_router(auth_router.router)
    app.include_router(users_router.router)
    app.include_router(doctors_router.router)
    app.include_router(appointments_router.router)
    app.include_router(ratings_router.router)
    app.include_router(reminders_router.router)
    app.include_router(notifications_router.router)
    app.include_router(cron_router.router)
    app.include_router(admin_router.router)

    return app


app = create_app()
