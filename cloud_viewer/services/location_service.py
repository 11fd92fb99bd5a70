# cloud_viewer/services/location_service.py
"""
Derive a project's map location from the survey files delivered next to its
point cloud, under <root>/<jobNumber>/.

Sources are tried in order, first hit wins:

    1. world file (<job>.tfw) upper-left position, in the .prj CRS
    2. projection file (<job>.prj / <job>.proj) origin parameters
    3. sources.json bounds center
    4. Potree metadata.json / cloud.js bounding box center

Projected positions are converted to WGS84 with pyproj. A source that is
missing, unreadable or cannot be placed on the globe is skipped.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pyproj import CRS
from pyproj.exceptions import ProjError

from cloud_viewer.services.crs_service import to_wgs84
from cloud_viewer.services.project_store import ProjectStore

logger = logging.getLogger(__name__)

WORLD_FILE_SUFFIXES = (".tfw",)
PROJECTION_FILE_SUFFIXES = (".prj", ".proj")
SOURCES_FILENAME = "sources.json"
POTREE_METADATA_FILENAMES = ("metadata.json", "cloud.js")

_PARAMETER_RE = re.compile(r'PARAMETER\[\s*"([^"]+)"\s*,\s*([-+0-9.eE]+)\s*\]')
_EPSG_RE = re.compile(r"^\s*epsg\s*:\s*(\d+)\s*$", re.IGNORECASE)
_JS_ASSIGNMENT_RE = re.compile(r"=\s*({[\s\S]*})\s*;?\s*$")


def looks_geographic(x: float, y: float) -> bool:
    return -180 <= x <= 180 and -90 <= y <= 90 and abs(x) > 0.01 and abs(y) > 0.01


def normalize_crs_code(value: Any) -> Optional[str]:
    """"epsg:2965" -> "EPSG:2965"; WKT and PROJ strings pass through."""
    if not isinstance(value, str) or not value.strip():
        return None
    match = _EPSG_RE.match(value)
    if match:
        return f"EPSG:{match.group(1)}"
    return value.strip()


def crs_label(crs: CRS) -> str:
    epsg = crs.to_epsg()
    return f"EPSG:{epsg}" if epsg else crs.name


# -----------------------------
# File parsers
# -----------------------------
def parse_world_file(text: str) -> Dict[str, float]:
    """
    Six-line world file: x scale, y skew, x skew, y scale, upper-left x, upper-left y.

    Raises:
        ValueError: fewer than six numeric lines
    """
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if len(lines) < 6:
        raise ValueError("World file must contain 6 lines")
    values = [float(line) for line in lines[:6]]
    keys = ("pixel_size_x", "rotation_y", "rotation_x", "pixel_size_y", "upper_left_x", "upper_left_y")
    return dict(zip(keys, values))


def parse_projection_parameters(wkt: str) -> Dict[str, float]:
    """PARAMETER["name", value] pairs from WKT, keyed by lower-cased name."""
    return {name.lower(): float(value) for name, value in _PARAMETER_RE.findall(wkt)}


def load_potree_metadata(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".js":
        try:
            return json.loads(text)
        except ValueError:
            match = _JS_ASSIGNMENT_RE.search(text)
            if not match:
                raise
            return json.loads(match.group(1))
    return json.loads(text)


def bbox_center(bbox: Any) -> Tuple[float, float]:
    """
    Center of a bounding box in either Potree 1 form ({lx, ly, ux, uy}) or
    min/max form ({"min": [x, y, z], "max": [x, y, z]}).

    Raises:
        ValueError: bbox has neither form
    """
    if not isinstance(bbox, dict):
        raise ValueError("Bounding box must be an object")
    if all(k in bbox for k in ("lx", "ly", "ux", "uy")):
        return (float(bbox["lx"]) + float(bbox["ux"])) / 2, (float(bbox["ly"]) + float(bbox["uy"])) / 2
    if "min" in bbox and "max" in bbox:
        lo, hi = bbox["min"], bbox["max"]
        return (float(lo[0]) + float(hi[0])) / 2, (float(lo[1]) + float(hi[1])) / 2
    raise ValueError("Bounding box has no lx/ly/ux/uy or min/max")


# -----------------------------
# Detection
# -----------------------------
class LocationService:
    def __init__(self, store: ProjectStore):
        self.store = store

    def detect_location(self, job_number: str) -> Optional[Dict[str, Any]]:
        """
        Detect the location of a job from the files in its directory.

        Returns:
            {"location": {latitude, longitude, source, confidence}, "crs": {...} or None}
            or None when no source yields a position.

        Raises:
            InvalidJobNumber: job number is not filesystem safe
        """
        project_dir = self.store.get_project_dir(job_number)
        if not project_dir.is_dir():
            return None

        projection = self._read_projection(project_dir, job_number)

        detectors = (
            ("world file", lambda: self._from_world_file(project_dir, job_number, projection)),
            ("projection file", lambda: self._from_projection(projection)),
            (SOURCES_FILENAME, lambda: self._from_sources_json(project_dir, projection)),
            ("potree metadata", lambda: self._from_potree_metadata(project_dir, projection)),
        )

        for label, detect in detectors:
            try:
                result = detect()
            except (OSError, ValueError, KeyError, IndexError, TypeError) as exc:
                logger.warning("[LOCATION] Skipping %s for %s: %s", label, job_number, exc)
                continue
            if result is not None:
                logger.info(
                    "[LOCATION] Location for %s from %s: %s",
                    job_number, label, result["location"],
                )
                return result

        logger.info("[LOCATION] No location data found for %s", job_number)
        return None

    # ---------- source readers ----------
    def _read_projection(self, project_dir: Path, job_number: str) -> Optional[Dict[str, Any]]:
        path = _find_file(project_dir, job_number, PROJECTION_FILE_SUFFIXES)
        if path is None:
            return None

        try:
            wkt = path.read_text(encoding="utf-8", errors="replace").strip()
        except OSError as exc:
            logger.warning("[LOCATION] Cannot read %s: %s", path.name, exc)
            return None

        try:
            crs = CRS.from_wkt(wkt)
        except ProjError as exc:
            logger.warning("[LOCATION] %s is not a usable WKT definition: %s", path.name, exc)
            crs = None

        return {
            "wkt": wkt,
            "crs": crs,
            "parameters": parse_projection_parameters(wkt),
        }

    def _from_world_file(
        self, project_dir: Path, job_number: str, projection: Optional[Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        path = _find_file(project_dir, job_number, WORLD_FILE_SUFFIXES)
        if path is None:
            return None

        world = parse_world_file(path.read_text(encoding="utf-8"))
        x, y = world["upper_left_x"], world["upper_left_y"]

        if projection is not None and projection["crs"] is not None:
            lat, lon = to_wgs84(x, y, projection["wkt"])
            return _result(lat, lon, "world_file", "high", _crs_block(projection["crs"]))

        if looks_geographic(x, y):
            return _result(y, x, "world_file", "medium", None)

        raise ValueError("world file coordinates are projected but there is no usable .prj")

    def _from_projection(self, projection: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if projection is None:
            return None

        params = projection["parameters"]
        lon = params.get("central_meridian", params.get("longitude_of_center"))
        lat = params.get("latitude_of_origin", params.get("latitude_of_center"))
        if lon is None or lat is None:
            return None

        crs = _crs_block(projection["crs"]) if projection["crs"] is not None else None
        # projection origin, not the survey itself
        return _result(lat, lon, "prj", "low", crs)

    def _from_sources_json(
        self, project_dir: Path, projection: Optional[Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        path = project_dir / SOURCES_FILENAME
        if not path.is_file():
            return None

        data = json.loads(path.read_text(encoding="utf-8"))
        x, y = bbox_center(data["bounds"])
        return self._place_bounds_center(x, y, data.get("projection"), projection, "sources_json")

    def _from_potree_metadata(
        self, project_dir: Path, projection: Optional[Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        for name in POTREE_METADATA_FILENAMES:
            path = project_dir / name
            if not path.is_file():
                continue

            metadata = load_potree_metadata(path)
            bbox = metadata.get("tightBoundingBox") or metadata["boundingBox"]
            x, y = bbox_center(bbox)
            declared = (
                metadata.get("projection")
                or metadata.get("coordinateSystem")
                or metadata.get("crs")
            )
            return self._place_bounds_center(x, y, declared, projection, "potree_bounds")

        return None

    def _place_bounds_center(
        self,
        x: float,
        y: float,
        declared: Any,
        projection: Optional[Dict[str, Any]],
        source: str,
    ) -> Dict[str, Any]:
        code = normalize_crs_code(declared)
        if code is None and projection is not None and projection["crs"] is not None:
            code = projection["wkt"]

        if code is not None:
            lat, lon = to_wgs84(x, y, code)
            return _result(lat, lon, source, "medium", _crs_block(CRS.from_user_input(code)))

        if looks_geographic(x, y):
            return _result(y, x, source, "medium", None)

        raise ValueError(f"bounds center ({x}, {y}) is projected but no CRS is declared")


def _find_file(project_dir: Path, job_number: str, suffixes: Tuple[str, ...]) -> Optional[Path]:
    for suffix in suffixes:
        candidate = project_dir / f"{job_number}{suffix}"
        if candidate.is_file():
            return candidate
    for suffix in suffixes:
        matches = sorted(p for p in project_dir.glob(f"*{suffix}") if p.is_file())
        if matches:
            return matches[0]
    return None


def _crs_block(crs: CRS) -> Dict[str, str]:
    return {"horizontal": crs_label(crs)}


def _result(
    lat: float, lon: float, source: str, confidence: str, crs: Optional[Dict[str, str]]
) -> Dict[str, Any]:
    return {
        "location": {
            "latitude": float(lat),
            "longitude": float(lon),
            "source": source,
            "confidence": confidence,
        },
        "crs": crs,
    }
