# File: cloud_viewer/api/deps.py

from fastapi import Request

from cloud_viewer.services.project_store import ProjectStore


def get_project_store(request: Request) -> ProjectStore:
    """
    FastAPI dependency that provides the app's ProjectStore.

    Usage in route functions:
        store: ProjectStore = Depends(get_project_store)
    """
    return request.app.state.project_store
