# cloud_viewer/data/crs_options.py
"""
CRS choices offered in the viewer's coordinate system picker.

Static reference data; stored documents are not validated against it.
"""

from typing import Dict, List, Optional

HORIZONTAL_CRS_OPTIONS: List[Dict[str, str]] = [
    {"code": "EPSG:2792", "name": "NAD83(HARN) / Indiana East", "type": "horizontal"},
    {"code": "EPSG:2793", "name": "NAD83(HARN) / Indiana West", "type": "horizontal"},
    {"code": "EPSG:2965", "name": "NAD83 / Indiana East (ftUS)", "type": "horizontal"},
    {"code": "EPSG:2966", "name": "NAD83 / Indiana West (ftUS)", "type": "horizontal"},
    {"code": "EPSG:2967", "name": "NAD83(HARN) / Indiana East", "type": "horizontal"},
    {"code": "EPSG:6461", "name": "NAD83(2011) / Indiana West (ftUS)", "type": "horizontal"},
    {"code": "EPSG:4326", "name": "WGS 84", "type": "horizontal"},
    {"code": "EPSG:3857", "name": "WGS 84 / Pseudo-Mercator", "type": "horizontal"},
    {"code": "EPSG:4269", "name": "NAD83", "type": "horizontal"},
    {"code": "EPSG:4152", "name": "NAD83(HARN)", "type": "horizontal"},
]

VERTICAL_CRS_OPTIONS: List[Dict[str, str]] = [
    {"code": "EPSG:5702", "name": "NGVD29 height (ftUS)", "type": "vertical"},
    {"code": "EPSG:6360", "name": "NAVD88 height (ftUS)", "type": "vertical"},
    {"code": "EPSG:8052", "name": "MSL height (ftUS)", "type": "vertical"},
    {"code": "ESRI:105798", "name": "EGM96_Geoid_(ftUS)", "type": "vertical"},
    {"code": "ESRI:115908", "name": "Unknown_height_system_(US_survey_foot)", "type": "vertical"},
]

GEOID_OPTIONS: List[Dict[str, str]] = [
    {"code": "GEOID09", "name": "GEOID09", "type": "geoid"},
    {"code": "GEOID12A", "name": "GEOID12A", "type": "geoid"},
    {"code": "GEOID12B", "name": "GEOID12B", "type": "geoid"},
    {"code": "GEOID18", "name": "GEOID18", "type": "geoid"},
    {"code": "GEOID99", "name": "GEOID99", "type": "geoid"},
    {"code": "GGM10", "name": "GGM10", "type": "geoid"},
]

ALL_CRS_OPTIONS = HORIZONTAL_CRS_OPTIONS + VERTICAL_CRS_OPTIONS + GEOID_OPTIONS


def find_crs_option(code: str) -> Optional[Dict[str, str]]:
    code = code.strip().upper()
    for option in ALL_CRS_OPTIONS:
        if option["code"] == code:
            return option
    return None
