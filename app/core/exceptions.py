# app/core/exceptions.py
"""
Domain error kinds.

NotFoundError is raised both when a row is absent and when it belongs to
another organization, with the same message, so callers cannot probe tenant
boundaries.
"""
from typing import Optional


class ParcTrackError(Exception):
    """Base class for errors surfaced to callers"""

    code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ParcTrackError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, message: Optional[str] = None):
        super().__init__(message or f"{resource} not found")
        self.resource = resource


class BusinessRuleError(ParcTrackError):
    code = "BUSINESS_ERROR"


class ConflictError(ParcTrackError):
    """Concurrent modification of the same row; the caller may retry"""

    code = "CONFLICT"
