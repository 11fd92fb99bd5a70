# File: tests/test_viewer_shell.py

"""
Viewer shell tests.

The shell's API client is pointed at a real app through FastAPI's
TestClient, which speaks the same request() interface as requests.Session.
"""

import pytest
import requests
from fastapi.testclient import TestClient

from cloud_viewer.core.config import Settings
from cloud_viewer.main import create_application
from cloud_viewer.viewer.api_client import ProjectApiClient, ProjectApiError
from cloud_viewer.viewer.shell import ERRORED, LOADED, LOADING, ViewerShell


class BrokenSession:
    """Session whose every request fails at the transport level."""

    def request(self, method, url, **kwargs):
        raise requests.ConnectionError("connection refused")


@pytest.fixture
def root(tmp_path):
    return tmp_path / "pointclouds"


@pytest.fixture
def api(root):
    app = create_application(Settings(pointcloud_root=root))
    return ProjectApiClient(base_url="", session=TestClient(app))


def test_shell_starts_loading(api):
    shell = ViewerShell("1234", api)
    assert shell.state == LOADING
    assert shell.project is None
    assert shell.title == "Project 1234"


def test_load_default_project(api):
    shell = ViewerShell("9999", api)
    assert shell.load() is True
    assert shell.state == LOADED
    assert shell.title == "Project 9999"
    assert shell.location_label is None


def test_header_shows_location_with_four_decimals(api):
    api.save_project(
        "1234",
        {
            "projectName": "Lakeview Survey",
            "location": {"latitude": 39.76838, "longitude": -86.15804, "source": "prj"},
        },
    )
    shell = ViewerShell("1234", api)
    shell.load()

    assert shell.title == "Lakeview Survey"
    assert shell.location_label == "39.7684, -86.1580"
    assert shell.location_source == "prj"


def test_info_rows(api):
    api.save_project(
        "1234",
        {
            "jobNumber": "1234",
            "projectName": "Lakeview Survey",
            "clientName": "Acme",
            "location": {"latitude": 39.7, "longitude": -86.1, "source": "manual", "confidence": "high"},
            "crs": {"horizontal": "EPSG:2965", "geoid": "GEOID18"},
        },
    )
    shell = ViewerShell("1234", api)
    shell.load()
    rows = dict(shell.info_rows())

    assert rows["Job Number"] == "1234"
    assert rows["Client"] == "Acme"
    assert rows["Lat"] == "39.700000"
    assert rows["Lon"] == "-86.100000"
    assert rows["Source"] == "manual (high)"
    assert rows["Horizontal"] == "EPSG:2965"
    assert rows["Geoid"] == "GEOID18"
    assert "Vertical" not in rows


def test_corrupt_project_shows_error_and_retry_recovers(api, root):
    project_dir = root / "1234"
    project_dir.mkdir(parents=True)
    info_path = project_dir / "info.json"
    info_path.write_text("{broken", encoding="utf-8")

    shell = ViewerShell("1234", api)
    assert shell.load() is False
    assert shell.state == ERRORED
    assert shell.project is None
    assert "Error parsing project info" in shell.error

    info_path.write_text('{"projectName": "Repaired"}', encoding="utf-8")
    assert shell.retry() is True
    assert shell.state == LOADED
    assert shell.error is None
    assert shell.title == "Repaired"


def test_transport_failure_is_an_error_state():
    shell = ViewerShell("1234", ProjectApiClient(base_url="http://nowhere", session=BrokenSession()))
    assert shell.load() is False
    assert shell.state == ERRORED
    assert "connection refused" in shell.error
    assert shell.navigate_away() == "/"
    assert shell.closed is True


def test_set_crs_keeps_other_fields_and_adopts_server_copy(api):
    api.save_project("1234", {"projectName": "Lakeview Survey", "clientName": "Acme"})
    shell = ViewerShell("1234", api)
    shell.load()
    previous_stamp = shell.project["updatedAt"]

    assert shell.set_crs(horizontal="EPSG:2965", vertical="EPSG:6360") is True
    assert shell.project["crs"] == {"horizontal": "EPSG:2965", "vertical": "EPSG:6360"}
    assert shell.project["clientName"] == "Acme"
    assert shell.project["updatedAt"] > previous_stamp

    assert shell.set_crs(geoid="GEOID18") is True
    stored = api.get_project("1234")
    assert stored["crs"] == {"horizontal": "EPSG:2965", "vertical": "EPSG:6360", "geoid": "GEOID18"}
    assert stored["projectName"] == "Lakeview Survey"


def test_failed_save_keeps_displayed_project(api):
    shell = ViewerShell("1234", api)
    shell.load()
    before = dict(shell.project)

    # latitude must be numeric, the server rejects this
    assert shell.update({"location": {"latitude": "north", "longitude": 1.0}}) is False
    assert shell.project == before
    assert shell.last_error
    assert shell.state == LOADED


def test_set_location(api):
    shell = ViewerShell("1234", api)
    shell.load()
    assert shell.set_location(39.5, -86.25) is True
    assert shell.location_label == "39.5000, -86.2500"
    assert shell.location_source == "manual"


def test_update_before_load_is_rejected(api):
    shell = ViewerShell("1234", api)
    with pytest.raises(RuntimeError):
        shell.update({"projectName": "x"})


def test_panel_toggles_and_map_type(api):
    shell = ViewerShell("1234", api)
    assert shell.info_panel_visible is False
    assert shell.toggle_info_panel() is True
    assert shell.sidebar_visible is True
    assert shell.toggle_sidebar() is False

    shell.set_map_type("satellite")
    assert shell.map_type == "satellite"
    with pytest.raises(ValueError):
        shell.set_map_type("moon")


def test_client_reports_server_error_message(api, root):
    project_dir = root / "1234"
    project_dir.mkdir(parents=True)
    (project_dir / "info.json").write_text("[]", encoding="utf-8")

    with pytest.raises(ProjectApiError) as exc_info:
        api.get_project("1234")
    assert exc_info.value.status_code == 500


def test_client_list_and_health(api):
    assert api.health() is True
    api.save_project("1001", {"projectName": "A"})
    assert api.list_projects() == ["1001"]


def test_set_location_keeps_address_and_confidence(api):
    api.save_project(
        "1234",
        {
            "location": {
                "latitude": 39.7,
                "longitude": -86.1,
                "source": "prj",
                "address": "100 Main St, Indianapolis",
                "confidence": "low",
            }
        },
    )
    shell = ViewerShell("1234", api)
    shell.load()

    assert shell.set_location(39.8, -86.2) is True
    stored = api.get_project("1234")["location"]
    assert stored["latitude"] == 39.8
    assert stored["longitude"] == -86.2
    assert stored["source"] == "manual"
    assert stored["address"] == "100 Main St, Indianapolis"
    assert stored["confidence"] == "low"


def test_use_detected_location(api, root):
    project_dir = root / "1234"
    project_dir.mkdir(parents=True)
    (project_dir / "sources.json").write_text(
        '{"bounds": {"min": [-86.2, 39.7, 0], "max": [-86.0, 39.9, 10]}}',
        encoding="utf-8",
    )
    api.save_project("1234", {"projectName": "Lakeview Survey", "crs": {"horizontal": "EPSG:2965"}})
    shell = ViewerShell("1234", api)
    shell.load()

    assert shell.use_detected_location() is True
    assert shell.location_label == "39.8000, -86.1000"
    assert shell.location_source == "sources_json"
    assert shell.project["crs"] == {"horizontal": "EPSG:2965"}
    assert shell.project["projectName"] == "Lakeview Survey"


def test_use_detected_location_without_survey_files(api):
    shell = ViewerShell("1234", api)
    shell.load()
    before = dict(shell.project)

    assert shell.use_detected_location() is False
    assert "No location data" in shell.last_error
    assert shell.project == before
