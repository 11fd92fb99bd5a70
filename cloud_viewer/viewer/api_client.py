"""
cloud_viewer/viewer/api_client.py
HTTP client the viewer shell uses to talk to the project API.

Every failure (connection problem, timeout, non-2xx status, unparseable body)
comes out as a single ProjectApiError carrying a message fit for display.
"""

import logging
from typing import Any, Dict, Optional

import requests

from cloud_viewer.core.config import settings

logger = logging.getLogger(__name__)


class ProjectApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProjectApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[Any] = None,
        timeout: float = 20,
    ):
        """
        Args:
            base_url: API root, e.g. "http://localhost:5000" (defaults to settings)
            session: anything with a requests-style `request()`; a new
                requests.Session when omitted
            timeout: per-request timeout in seconds
        """
        if base_url is None:
            base_url = settings.api_base_url
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}

        try:
            response = self.session.request(
                method, url, json=json, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as exc:
            raise ProjectApiError(f"Request to {path} timed out") from exc
        except requests.RequestException as exc:
            raise ProjectApiError(f"Cannot reach project server: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not 200 <= response.status_code < 300:
            raise ProjectApiError(
                _error_message(body, response.status_code),
                status_code=response.status_code,
            )

        if body is None:
            raise ProjectApiError(
                f"Invalid response from {path}", status_code=response.status_code
            )
        return body

    def get_project(self, job_number: str) -> Dict[str, Any]:
        project = self._request("GET", f"/api/projects/{job_number}")
        if not isinstance(project, dict):
            raise ProjectApiError("Malformed project document")
        return project

    def save_project(self, job_number: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """POST the full document; returns the server-stamped copy."""
        body = self._request("POST", f"/api/projects/{job_number}", json=document)
        if not isinstance(body, dict) or not body.get("success") or not isinstance(body.get("data"), dict):
            raise ProjectApiError("Server did not confirm the save")
        return body["data"]

    def detect_location(self, job_number: str) -> Optional[Dict[str, Any]]:
        """Location derived from the job's survey files, or None if there is none."""
        try:
            body = self._request("GET", f"/api/projects/{job_number}/location")
        except ProjectApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        if not isinstance(body, dict) or not isinstance(body.get("location"), dict):
            raise ProjectApiError("Malformed location response")
        return body

    def list_projects(self) -> list:
        body = self._request("GET", "/api/projects")
        return list(body.get("items", [])) if isinstance(body, dict) else []

    def health(self) -> bool:
        try:
            body = self._request("GET", "/health")
        except ProjectApiError as exc:
            logger.warning("[VIEWER] Health check failed: %s", exc.message)
            return False
        return isinstance(body, dict) and body.get("status") == "ok"


def _error_message(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        detail = body.get("detail")
        error = body.get("error")
        if error and isinstance(detail, str):
            return f"{error}: {detail}"
        if error:
            return str(error)
        if isinstance(detail, str):
            return detail
    return f"Request failed with status {status_code}"
