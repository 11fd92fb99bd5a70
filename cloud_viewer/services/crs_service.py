# cloud_viewer/services/crs_service.py
"""
CRS lookups and point conversion backed by the local PROJ database (pyproj).

Geoid model names are not CRS codes, so they are answered from the static
option list instead.
"""

import logging
import math
from typing import Any, Dict, Tuple

from pyproj import CRS, Transformer
from pyproj.exceptions import ProjError

from cloud_viewer.data.crs_options import find_crs_option

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"


class UnknownCRS(ValueError):
    pass


def load_crs(code: str) -> CRS:
    try:
        return CRS.from_user_input(code)
    except ProjError as exc:
        raise UnknownCRS(f"Unknown coordinate reference system: {code}") from exc


def describe_crs(code: str) -> Dict[str, Any]:
    """
    Describe a CRS code such as "EPSG:2965" or a geoid model such as "GEOID18".

    Raises:
        UnknownCRS: code is neither a geoid option nor known to PROJ
    """
    option = find_crs_option(code)

    if option is not None and option["type"] == "geoid":
        return {
            "code": option["code"],
            "name": option["name"],
            "type": "geoid",
            "option_type": "geoid",
            "is_geographic": False,
            "is_vertical": False,
            "units": [],
            "area_of_use": None,
        }

    crs = load_crs(code)
    area = crs.area_of_use

    return {
        "code": code.strip().upper(),
        "name": crs.name,
        "type": crs.type_name,
        "option_type": option["type"] if option else None,
        "is_geographic": crs.is_geographic,
        "is_vertical": crs.is_vertical,
        "units": [axis.unit_name for axis in crs.axis_info],
        "area_of_use": {
            "name": area.name,
            "west": area.west,
            "south": area.south,
            "east": area.east,
            "north": area.north,
        } if area else None,
    }


def to_wgs84(x: float, y: float, code: str) -> Tuple[float, float]:
    """
    Convert a point in `code` (easting/northing or lon/lat order) to WGS84.

    Returns:
        (latitude, longitude)

    Raises:
        UnknownCRS: code is not known to PROJ
        ValueError: point cannot be converted
    """
    src = load_crs(code)
    if src.is_vertical:
        raise ValueError(f"{code} is a vertical CRS and has no horizontal position")

    try:
        transformer = Transformer.from_crs(src, WGS84, always_xy=True)
        lon, lat = transformer.transform(x, y)
    except ProjError as exc:
        logger.warning("[CRS] Transform from %s failed: %s", code, exc)
        raise ValueError(f"Cannot transform point from {code}: {exc}") from exc

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError(f"Point ({x}, {y}) is outside the valid area of {code}")

    return float(lat), float(lon)
