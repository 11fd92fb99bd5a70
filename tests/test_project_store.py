# File: tests/test_project_store.py

"""
Tests for the on-disk project metadata store.

To run:
    pytest -q
"""

import json
import os
from datetime import datetime, timezone

import pytest

from cloud_viewer.core.errors import DecodeError, InvalidJobNumber, WriteError
from cloud_viewer.services.project_store import ProjectStore, parse_timestamp


@pytest.fixture
def store(tmp_path):
    return ProjectStore(tmp_path / "pointclouds", default_client_name="Acme Surveying")


def test_get_unknown_job_returns_default(store):
    doc = store.get("9999")
    assert doc["jobNumber"] == "9999"
    assert doc["projectName"] == "Project 9999"
    assert doc["clientName"] == "Acme Surveying"
    assert doc["description"] == "Point cloud project"
    assert doc["status"] == "active"
    assert parse_timestamp(doc["acquisitionDate"]) is not None


def test_default_is_not_persisted(store):
    store.get("9999")
    assert not (store.root / "9999").exists()
    assert store.list_job_numbers() == []


def test_put_then_get_round_trip(store):
    before = datetime.now(timezone.utc)
    document = {
        "jobNumber": "1234",
        "projectName": "Lakeview Survey",
        "clientName": "Acme",
        "status": "active",
        "location": {"latitude": 39.7684, "longitude": -86.1581, "source": "manual"},
        "crs": {"horizontal": "EPSG:2965", "vertical": "EPSG:6360", "geoid": "GEOID18"},
    }

    saved = store.put("1234", document)
    loaded = store.get("1234")

    assert loaded == saved
    assert {k: v for k, v in loaded.items() if k != "updatedAt"} == document
    assert parse_timestamp(loaded["updatedAt"]) >= before


def test_put_creates_directory_and_info_file(store):
    store.put("5678", {"projectName": "Bridge Deck"})
    info_path = store.root / "5678" / "info.json"
    assert info_path.is_file()
    assert json.loads(info_path.read_text(encoding="utf-8"))["projectName"] == "Bridge Deck"


def test_put_does_not_mutate_callers_document(store):
    document = {"projectName": "Bridge Deck"}
    store.put("5678", document)
    assert "updatedAt" not in document


def test_put_leaves_no_temp_files(store):
    store.put("5678", {"projectName": "Bridge Deck"})
    store.put("5678", {"projectName": "Bridge Deck 2"})
    assert [p.name for p in (store.root / "5678").iterdir()] == ["info.json"]


def test_repeated_put_advances_updated_at(store):
    stamps = [store.put("1234", {"projectName": "Same"})["updatedAt"] for _ in range(5)]
    parsed = [parse_timestamp(s) for s in stamps]
    assert all(a < b for a, b in zip(parsed, parsed[1:]))


def test_put_bumps_stamp_when_previous_is_in_the_future(store):
    project_dir = store.root / "1234"
    project_dir.mkdir(parents=True)
    (project_dir / "info.json").write_text(
        json.dumps({"updatedAt": "2999-01-01T00:00:00.000000Z"}), encoding="utf-8"
    )

    saved = store.put("1234", {"projectName": "Later"})
    assert saved["updatedAt"] == "2999-01-01T00:00:00.000001Z"


def test_last_write_wins(store):
    store.put("1234", {"crs": {"horizontal": "EPSG:2965"}})
    store.put("1234", {"crs": {"horizontal": "EPSG:4326"}})
    assert store.get("1234")["crs"]["horizontal"] == "EPSG:4326"


def test_put_replaces_whole_document(store):
    store.put("1234", {"projectName": "Full", "clientName": "Acme"})
    store.put("1234", {"projectName": "Partial"})
    doc = store.get("1234")
    assert doc["projectName"] == "Partial"
    assert "clientName" not in doc


def test_corrupt_file_raises_decode_error(store):
    project_dir = store.root / "1234"
    project_dir.mkdir(parents=True)
    (project_dir / "info.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(DecodeError) as exc_info:
        store.get("1234")
    assert exc_info.value.job_number == "1234"


def test_non_object_json_raises_decode_error(store):
    project_dir = store.root / "1234"
    project_dir.mkdir(parents=True)
    (project_dir / "info.json").write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(DecodeError):
        store.get("1234")


def test_put_over_corrupt_file_recovers(store):
    project_dir = store.root / "1234"
    project_dir.mkdir(parents=True)
    (project_dir / "info.json").write_text("{not json", encoding="utf-8")

    store.put("1234", {"projectName": "Fixed"})
    assert store.get("1234")["projectName"] == "Fixed"


def test_write_error_when_storage_unavailable(tmp_path):
    # storage root is a plain file, so no project directory can be created
    blocker = tmp_path / "pointclouds"
    blocker.write_text("not a directory", encoding="utf-8")
    store = ProjectStore(blocker)

    with pytest.raises(WriteError) as exc_info:
        store.put("1234", {"projectName": "Nope"})
    assert exc_info.value.job_number == "1234"


@pytest.mark.parametrize("job_number", ["", "   ", "..", "../etc", "a/b", "a\\b", ".hidden", "x" * 129])
def test_invalid_job_numbers_rejected(store, job_number):
    with pytest.raises(InvalidJobNumber):
        store.get(job_number)
    with pytest.raises(InvalidJobNumber):
        store.put(job_number, {"projectName": "x"})


def test_list_job_numbers(store):
    store.put("2001", {"projectName": "B"})
    store.put("1001", {"projectName": "A"})
    (store.root / "empty-dir").mkdir()
    assert store.list_job_numbers() == ["1001", "2001"]


def test_put_rejects_non_finite_numbers(store):
    with pytest.raises(WriteError):
        store.put("1234", {"location": {"latitude": float("nan"), "longitude": 1.0}})

    project_dir = store.root / "1234"
    assert not (project_dir / "info.json").exists()
    assert list(project_dir.iterdir()) == []


def test_stored_nan_literal_raises_decode_error(store):
    project_dir = store.root / "1234"
    project_dir.mkdir(parents=True)
    (project_dir / "info.json").write_text('{"location": {"latitude": NaN}}', encoding="utf-8")

    with pytest.raises(DecodeError) as exc_info:
        store.get("1234")
    assert "not valid JSON" in exc_info.value.message


@pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="root can read files regardless of mode",
)
def test_unreadable_file_raises_decode_error(store):
    store.put("1234", {"projectName": "Locked"})
    info_path = store.root / "1234" / "info.json"
    info_path.chmod(0)
    try:
        with pytest.raises(DecodeError) as exc_info:
            store.get("1234")
    finally:
        info_path.chmod(0o644)
    assert "could not be read" in exc_info.value.message
