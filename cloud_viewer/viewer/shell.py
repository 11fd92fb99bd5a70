# cloud_viewer/viewer/shell.py
"""
Viewer shell: holds what the point cloud viewer page shows around the 3D
panel for one job number.

State per fetch is loading -> loaded | errored. Edits go back to the server
as full documents; the shell only adopts the document the server returns.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from cloud_viewer.viewer.api_client import ProjectApiClient, ProjectApiError

logger = logging.getLogger(__name__)

LOADING = "loading"
LOADED = "loaded"
ERRORED = "errored"

MAP_TYPES = ("default", "terrain", "satellite", "openstreet")
DASHBOARD_PATH = "/"


def format_coordinate(value: Any, precision: int) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.{precision}f}"
    return str(value)


class ViewerShell:
    def __init__(self, job_number: str, client: ProjectApiClient):
        self.job_number = job_number
        self.client = client

        self.state = LOADING
        self.project: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        # error from the most recent edit; does not change `state`
        self.last_error: Optional[str] = None

        self.info_panel_visible = False
        self.sidebar_visible = True
        self.map_type = "default"
        self.closed = False

    # -----------------------------
    # Loading
    # -----------------------------
    def load(self) -> bool:
        self.state = LOADING
        self.error = None

        try:
            project = self.client.get_project(self.job_number)
        except ProjectApiError as exc:
            logger.warning("[VIEWER] Failed to load project %s: %s", self.job_number, exc.message)
            self.project = None
            self.error = exc.message
            self.state = ERRORED
            return False

        self.project = project
        self.state = LOADED
        return True

    def retry(self) -> bool:
        return self.load()

    def navigate_away(self) -> str:
        self.closed = True
        return DASHBOARD_PATH

    # -----------------------------
    # Header / info panel
    # -----------------------------
    @property
    def title(self) -> str:
        if self.project and self.project.get("projectName"):
            return self.project["projectName"]
        if self.job_number:
            return f"Project {self.job_number}"
        return "Viewer"

    @property
    def location(self) -> Optional[Dict[str, Any]]:
        if not self.project:
            return None
        location = self.project.get("location")
        return location if isinstance(location, dict) else None

    @property
    def location_label(self) -> Optional[str]:
        location = self.location
        if location is None:
            return None
        lat = format_coordinate(location.get("latitude"), 4)
        lon = format_coordinate(location.get("longitude"), 4)
        return f"{lat}, {lon}"

    @property
    def location_source(self) -> Optional[str]:
        location = self.location
        if location is None:
            return None
        return location.get("source") or None

    def info_rows(self) -> List[Tuple[str, str]]:
        """Label/value rows for the project information panel."""
        if not self.project:
            return []

        p = self.project
        rows = [
            ("Job Number", str(p.get("jobNumber", self.job_number))),
            ("Project Name", str(p.get("projectName", ""))),
        ]
        if p.get("clientName"):
            rows.append(("Client", p["clientName"]))
        if p.get("description"):
            rows.append(("Description", p["description"]))

        location = self.location
        if location is not None:
            rows.append(("Lat", format_coordinate(location.get("latitude"), 6)))
            rows.append(("Lon", format_coordinate(location.get("longitude"), 6)))
            if location.get("address"):
                rows.append(("Address", location["address"]))
            if location.get("source"):
                source = location["source"]
                if location.get("confidence"):
                    source = f"{source} ({location['confidence']})"
                rows.append(("Source", source))

        crs = p.get("crs")
        if isinstance(crs, dict):
            if crs.get("horizontal"):
                rows.append(("Horizontal", crs["horizontal"]))
            if crs.get("vertical"):
                rows.append(("Vertical", crs["vertical"]))
            if crs.get("geoid"):
                rows.append(("Geoid", crs["geoid"]))

        return rows

    # -----------------------------
    # Edits
    # -----------------------------
    def update(self, changes: Dict[str, Any]) -> bool:
        """
        Send the current document with `changes` applied on top.

        The server replaces the whole document, so the merge happens here.
        Returns False (and sets last_error) without touching the displayed
        project if the save fails.
        """
        if self.project is None:
            raise RuntimeError(f"Project {self.job_number} is not loaded")

        document = {**self.project, **changes}
        document.pop("updatedAt", None)

        try:
            saved = self.client.save_project(self.job_number, document)
        except ProjectApiError as exc:
            logger.warning("[VIEWER] Failed to save project %s: %s", self.job_number, exc.message)
            self.last_error = exc.message
            return False

        self.project = saved
        self.last_error = None
        return True

    def set_crs(
        self,
        horizontal: Optional[str] = None,
        vertical: Optional[str] = None,
        geoid: Optional[str] = None,
    ) -> bool:
        current = (self.project or {}).get("crs")
        crs = dict(current) if isinstance(current, dict) else {}
        for key, value in (("horizontal", horizontal), ("vertical", vertical), ("geoid", geoid)):
            if value is not None:
                crs[key] = value
        return self.update({"crs": crs})

    def set_location(self, latitude: float, longitude: float, source: str = "manual") -> bool:
        """Move the pin; address and confidence already on the location are kept."""
        location = dict(self.location or {})
        location.update(latitude=latitude, longitude=longitude, source=source)
        return self.update({"location": location})

    def use_detected_location(self) -> bool:
        """
        Ask the server to detect the location from the job's survey files and
        save it. A detected CRS only fills in keys the project does not have.

        Returns False (with last_error set) when nothing could be detected.
        """
        if self.project is None:
            raise RuntimeError(f"Project {self.job_number} is not loaded")

        try:
            detected = self.client.detect_location(self.job_number)
        except ProjectApiError as exc:
            logger.warning("[VIEWER] Location detection failed for %s: %s", self.job_number, exc.message)
            self.last_error = exc.message
            return False

        if detected is None:
            self.last_error = f"No location data found for {self.job_number}"
            return False

        changes: Dict[str, Any] = {"location": {**(self.location or {}), **detected["location"]}}
        if isinstance(detected.get("crs"), dict):
            current = self.project.get("crs")
            changes["crs"] = {**detected["crs"], **(current if isinstance(current, dict) else {})}
        return self.update(changes)

    # -----------------------------
    # Panels
    # -----------------------------
    def toggle_info_panel(self) -> bool:
        self.info_panel_visible = not self.info_panel_visible
        return self.info_panel_visible

    def toggle_sidebar(self) -> bool:
        self.sidebar_visible = not self.sidebar_visible
        return self.sidebar_visible

    def set_map_type(self, map_type: str) -> None:
        if map_type not in MAP_TYPES:
            raise ValueError(f"Unknown map type: {map_type}")
        self.map_type = map_type
