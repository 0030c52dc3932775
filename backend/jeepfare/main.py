"""FastAPI application entry point.

Run with `jeepfare-serve`, or `uvicorn --factory jeepfare.main:create_app`.
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jeepfare.api.endpoints import router
from jeepfare.config import Settings, settings
from jeepfare.services.engine import FareAndRouteEngine, build_engine


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(app_settings: Optional[Settings] = None,
               engine: Optional[FareAndRouteEngine] = None) -> FastAPI:
    app_settings = app_settings or settings
    configure_logging(app_settings.LOG_LEVEL)

    app = FastAPI(
        title=app_settings.API_TITLE,
        version=app_settings.API_VERSION,
        description=app_settings.API_DESCRIPTION,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine or build_engine(app_settings)

    @app.get("/")
    def root():
        return {
            "message": app_settings.API_TITLE,
            "version": app_settings.API_VERSION,
            "docs": "/docs",
        }

    app.include_router(router)
    return app


def serve(app_settings: Optional[Settings] = None):
    """Run the API with uvicorn; the app is built by the create_app factory."""
    app_settings = app_settings or settings
    uvicorn.run(
        "jeepfare.main:create_app",
        factory=True,
        host=app_settings.HOST,
        port=app_settings.PORT,
        log_level=app_settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    serve()
