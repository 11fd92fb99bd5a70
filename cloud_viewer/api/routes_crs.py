# cloud_viewer/api/routes_crs.py
"""
Coordinate reference system endpoints: picker options, code lookup and
point conversion to WGS84 for deriving a project's map location.
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from cloud_viewer.data.crs_options import (
    GEOID_OPTIONS,
    HORIZONTAL_CRS_OPTIONS,
    VERTICAL_CRS_OPTIONS,
)
from cloud_viewer.services.crs_service import UnknownCRS, describe_crs, to_wgs84

router = APIRouter(tags=["crs"])


class TransformRequest(BaseModel):
    x: float
    y: float
    crs: str


class TransformResponse(BaseModel):
    latitude: float
    longitude: float
    source: str


@router.get("/options", summary="CRS choices for the project picker")
def list_crs_options():
    return {
        "horizontal": HORIZONTAL_CRS_OPTIONS,
        "vertical": VERTICAL_CRS_OPTIONS,
        "geoid": GEOID_OPTIONS,
    }


@router.post("/transform", response_model=TransformResponse)
def transform_point(req: TransformRequest):
    """
    Convert a surveyed x/y in the given CRS to latitude/longitude.

    The result can be saved straight into a project's `location`.
    """
    try:
        lat, lon = to_wgs84(req.x, req.y, req.crs)
    except UnknownCRS as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return TransformResponse(latitude=lat, longitude=lon, source=f"crs:{req.crs}")


@router.get("/{code}", summary="Describe a CRS code or geoid model")
def get_crs(code: str):
    try:
        return describe_crs(code)
    except UnknownCRS as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{authority}/{code}", summary="Describe a CRS by authority and code")
def get_crs_by_authority(authority: str, code: str):
    """Same as /{code} with the authority split out, e.g. /EPSG/2965."""
    try:
        return describe_crs(f"{authority}:{code}")
    except UnknownCRS as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
