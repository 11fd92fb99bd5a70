# cloud_viewer/services/project_store.py
"""
Project metadata store.

One directory per job number under the storage root, each holding a single
info.json document:

    <root>/<jobNumber>/info.json

Reads of a job number that has never been written return a synthesized
default document (not persisted). Writes replace the whole document and are
made atomic with a temp file + rename, so a reader never sees a torn file.
"""

import json
import logging
import math
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from cloud_viewer.core.errors import DecodeError, InvalidJobNumber, WriteError

logger = logging.getLogger(__name__)

INFO_FILENAME = "info.json"
DEFAULT_DESCRIPTION = "Point cloud project"
DEFAULT_STATUS = "active"
MAX_JOB_NUMBER_LENGTH = 128


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO 8601 UTC timestamp with a trailing Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def validate_job_number(job_number: str) -> str:
    """Reject job numbers that are not safe to use as a directory name."""
    if not isinstance(job_number, str) or not job_number.strip():
        raise InvalidJobNumber(str(job_number), "Job number must not be empty")

    # prevent directory traversal
    if (
        ".." in job_number
        or "/" in job_number
        or "\\" in job_number
        or "\x00" in job_number
        or job_number.startswith(".")
    ):
        raise InvalidJobNumber(job_number, f"Invalid job number format: {job_number!r}")

    if len(job_number) > MAX_JOB_NUMBER_LENGTH:
        raise InvalidJobNumber(job_number, "Job number is too long")

    return job_number


def find_non_finite(value: Any, path: str = "") -> Optional[str]:
    """Dotted path of the first NaN/Infinity inside a document, if any."""
    if isinstance(value, float) and not math.isfinite(value):
        return path or "<root>"
    if isinstance(value, Mapping):
        for key, item in value.items():
            found = find_non_finite(item, f"{path}.{key}" if path else str(key))
            if found:
                return found
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            found = find_non_finite(item, f"{path}[{index}]")
            if found:
                return found
    return None


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-finite number {name} is not valid JSON")


class ProjectStore:
    def __init__(self, root: Path, default_client_name: str = "HWC Engineering"):
        self.root = Path(root)
        self.default_client_name = default_client_name

    def get_project_dir(self, job_number: str) -> Path:
        """Get the storage directory for a job number."""
        return self.root / validate_job_number(job_number)

    def get_info_path(self, job_number: str) -> Path:
        return self.get_project_dir(job_number) / INFO_FILENAME

    def default_document(self, job_number: str) -> Dict[str, Any]:
        return {
            "jobNumber": job_number,
            "projectName": f"Project {job_number}",
            "clientName": self.default_client_name,
            "acquisitionDate": utc_timestamp(),
            "description": DEFAULT_DESCRIPTION,
            "status": DEFAULT_STATUS,
        }

    def get(self, job_number: str) -> Dict[str, Any]:
        """
        Return the stored document for a job number.

        Falls back to the default document when nothing has been saved yet.

        Raises:
            InvalidJobNumber: job number is not filesystem safe
            DecodeError: info.json exists but cannot be read or parsed
        """
        info_path = self.get_info_path(job_number)

        if not info_path.is_file():
            logger.debug("[PROJECTS] No info.json for %s, using defaults", job_number)
            return self.default_document(job_number)

        try:
            with open(info_path, "r", encoding="utf-8") as f:
                document = json.load(f, parse_constant=_reject_constant)
        except ValueError as exc:
            logger.error("[PROJECTS] Error parsing project info for %s: %s", job_number, exc)
            raise DecodeError(job_number, f"info.json for {job_number} is not valid JSON ({exc})") from exc
        except OSError as exc:
            logger.error("[PROJECTS] Error reading project info for %s: %s", job_number, exc)
            raise DecodeError(job_number, f"info.json for {job_number} could not be read ({exc})") from exc

        if not isinstance(document, dict):
            logger.error("[PROJECTS] Project info for %s is not a JSON object", job_number)
            raise DecodeError(job_number, f"info.json for {job_number} is not a JSON object")

        return document

    def put(self, job_number: str, document: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Replace the stored document for a job number.

        Stamps updatedAt and returns the document exactly as persisted.

        Raises:
            InvalidJobNumber: job number is not filesystem safe
            WriteError: directory or file could not be written
        """
        project_dir = self.get_project_dir(job_number)
        info_path = project_dir / INFO_FILENAME

        try:
            project_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("[PROJECTS] Error creating project dir for %s: %s", job_number, exc)
            raise WriteError(job_number, f"Could not write info.json for {job_number}: {exc}") from exc

        persisted = dict(document)
        persisted["updatedAt"] = self._next_stamp(info_path)

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=project_dir,
                prefix=".info.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(persisted, f, indent=2, ensure_ascii=False, allow_nan=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, info_path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("[PROJECTS] Error saving project info for %s: %s", job_number, exc)
            raise WriteError(job_number, f"Could not write info.json for {job_number}: {exc}") from exc

        logger.info("[PROJECTS] Saved project info for %s", job_number)
        return persisted

    def list_job_numbers(self) -> List[str]:
        """Job numbers that have a saved info.json, sorted."""
        if not self.root.is_dir():
            return []

        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if entry.is_dir()
            and not entry.name.startswith(".")
            and (entry / INFO_FILENAME).is_file()
        )

    def _next_stamp(self, info_path: Path) -> str:
        """
        Current time, bumped past the previous updatedAt if the clock has not
        moved since the last write.
        """
        now = datetime.now(timezone.utc)
        previous = parse_timestamp(self._read_previous_stamp(info_path))
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return utc_timestamp(now)

    @staticmethod
    def _read_previous_stamp(info_path: Path) -> Optional[str]:
        if not info_path.is_file():
            return None
        # an unreadable previous document is about to be overwritten anyway
        try:
            with open(info_path, "r", encoding="utf-8") as f:
                previous = json.load(f)
        except (OSError, ValueError):
            return None
        if isinstance(previous, dict):
            return previous.get("updatedAt")
        return None
