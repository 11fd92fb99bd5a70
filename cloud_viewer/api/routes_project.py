# File: cloud_viewer/api/routes_project.py

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from cloud_viewer.api.deps import get_project_store
from cloud_viewer.core.errors import DecodeError, InvalidJobNumber, WriteError
from cloud_viewer.schemas.project import (
    ProjectDocument,
    ProjectListResponse,
    ProjectSaveResponse,
)
from cloud_viewer.services.location_service import LocationService
from cloud_viewer.services.project_store import ProjectStore, find_non_finite

router = APIRouter()


@router.get(
    "",
    response_model=ProjectListResponse,
    summary="List job numbers with saved project info",
)
def list_projects(store: ProjectStore = Depends(get_project_store)):
    items = store.list_job_numbers()
    return ProjectListResponse(items=items, total=len(items))


@router.get(
    "/{job_number}",
    summary="Get project info",
)
def get_project(
    job_number: str,
    store: ProjectStore = Depends(get_project_store),
):
    """
    Return the saved info.json for a job number.

    Projects that were never saved get a default document instead of a 404,
    so the viewer always has something to render. A corrupt info.json is a
    server error.
    """
    try:
        return store.get(job_number)
    except InvalidJobNumber as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except DecodeError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Error parsing project info", "detail": exc.message},
        )


@router.post(
    "/{job_number}",
    response_model=ProjectSaveResponse,
    summary="Save project info (including CRS data)",
)
def save_project(
    job_number: str,
    payload: ProjectDocument,
    store: ProjectStore = Depends(get_project_store),
):
    """
    Replace the project's info.json with the submitted document.

    Fields that are not sent are dropped from the stored document.
    """
    # NaN/Infinity parse from the body but have no JSON representation
    bad_path = find_non_finite(payload.model_dump(by_alias=True, exclude_unset=True))
    if bad_path:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Non-finite number at {bad_path}",
        )

    try:
        persisted = store.put(job_number, payload.to_document())
    except InvalidJobNumber as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except WriteError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to save project info", "detail": exc.message},
        )

    return ProjectSaveResponse(data=persisted)


@router.get(
    "/{job_number}/location",
    summary="Detect project location from survey files",
)
def detect_project_location(
    job_number: str,
    store: ProjectStore = Depends(get_project_store),
):
    """
    Look for a world file, projection file, sources.json or Potree metadata
    in the job's directory and return the first location found, in WGS84.

    Nothing is saved; the caller decides whether to store the result.
    """
    try:
        detected = LocationService(store).detect_location(job_number)
    except InvalidJobNumber as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    if detected is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No location data found for {job_number}",
        )
    return detected
