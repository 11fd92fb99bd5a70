# File: cloud_viewer/core/errors.py

"""
Error types raised by the project metadata store.

A missing document is not an error (the store synthesizes a default), so
there is no NotFound here.
"""


class ProjectStoreError(Exception):
    """Base class for metadata store failures."""

    def __init__(self, job_number: str, message: str):
        super().__init__(message)
        self.job_number = job_number
        self.message = message


class InvalidJobNumber(ProjectStoreError):
    """Job number cannot be used as a directory name."""


class DecodeError(ProjectStoreError):
    """A stored info.json exists but is not a readable JSON object."""


class WriteError(ProjectStoreError):
    """The document could not be persisted."""
