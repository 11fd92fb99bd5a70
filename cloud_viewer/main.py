# cloud_viewer/main.py

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from cloud_viewer.api.api import api_router
from cloud_viewer.core.config import Settings, settings
from cloud_viewer.core.logging_setup import setup_logging
from cloud_viewer.services.project_store import ProjectStore

logger = logging.getLogger(__name__)


def create_application(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or settings
    setup_logging(app_settings.log_level)

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.VERSION,
    )

    # ---------- CORS ----------
    origins = app_settings.backend_cors_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- STORAGE ----------
    app.state.settings = app_settings
    app.state.project_store = ProjectStore(
        app_settings.pointcloud_root,
        default_client_name=app_settings.default_client_name,
    )

    # ---------- STATIC FILES ----------
    # Point cloud data and info.json files under /pointclouds/<jobNumber>/
    app.mount(
        "/pointclouds",
        StaticFiles(directory=str(app_settings.pointcloud_root), check_dir=False),
        name="pointclouds",
    )

    # ---------- ROUTERS ----------
    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "message": "Point cloud server is running"}

    return app


app = create_application()


def run() -> None:
    logger.info("Point cloud server running on port %s", settings.port)
    logger.info("Point cloud data available at: %s", settings.pointcloud_root)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
