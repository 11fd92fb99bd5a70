from fastapi import APIRouter

from cloud_viewer.api.routes_crs import router as crs_router
from cloud_viewer.api.routes_project import router as project_router


api_router = APIRouter()

api_router.include_router(project_router, prefix="/projects", tags=["projects"])
api_router.include_router(crs_router, prefix="/crs", tags=["crs"])
