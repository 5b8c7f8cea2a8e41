"""CORS configuration from BACKEND_CORS_ORIGINS."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from telecare.core.config import settings


def configure_cors(app: FastAPI) -> None:
    origins = settings.cors_origins
    if not origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
