"""Error taxonomy shared by the planner, orchestrator and HTTP layer."""
from __future__ import annotations

from typing import Optional


class DNSLookupError(Exception):
    """Base class for failures surfaced to API callers."""

    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "")
        self.message = message or ""

    def __str__(self) -> str:
        return self.message or self.default_message


class QueryValidationError(DNSLookupError):
    """Malformed or incomplete lookup request. Never retried."""

    default_message = "Invalid request parameters."


class ResolutionError(DNSLookupError):
    """The resolution engine rejected the call or reported a per-type error."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        record_type: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.record_type = record_type


class ConfigurationError(DNSLookupError):
    """A required serving layer (static assets) is not configured."""

    default_message = "Assets not configured"
