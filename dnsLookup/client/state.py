"""Single-flight lookup lifecycle on the caller side.

idle -> loading -> success | failed, and success | failed -> loading on the
next submission. While loading, further submissions are refused. A failure
yields exactly one error notification (take_error) and clears any results so
stale records never sit next to a fresh error.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from dnsLookup.lookup.models import Answer, LookupResult, Record

DEFAULT_FAILURE_MESSAGE = "Failed to perform DNS lookup. Please try again."


class QueryPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


class QueryInfo(BaseModel):
    server: Optional[str] = None
    time: Optional[int] = None
    transport: Optional[str] = None
    dnssec: Optional[bool] = None


class QueryInProgressError(RuntimeError):
    """A submission was made while another lookup is loading."""


class QueryStateMachine:
    def __init__(self) -> None:
        self.phase = QueryPhase.IDLE
        self.results: Optional[List[Record]] = None
        self.query_info = QueryInfo()
        self.raw_data: Optional[List[Answer]] = None
        self._error: Optional[str] = None

    @property
    def can_submit(self) -> bool:
        return self.phase is not QueryPhase.LOADING

    @property
    def error(self) -> Optional[str]:
        return self._error

    def submit(self, transport: str, dnssec: bool) -> None:
        if not self.can_submit:
            raise QueryInProgressError("A lookup is already in progress")
        self.phase = QueryPhase.LOADING
        self._error = None
        self.query_info = self.query_info.model_copy(update={"transport": transport, "dnssec": dnssec})

    def succeed(self, result: LookupResult) -> None:
        self._expect_loading()
        self.phase = QueryPhase.SUCCESS
        self.results = list(result.records)
        self.query_info = self.query_info.model_copy(
            update={"server": result.server, "time": result.query_time}
        )
        self.raw_data = list(result.raw_data)

    def fail(self, message: Optional[str] = None) -> None:
        self._expect_loading()
        self.phase = QueryPhase.FAILED
        self._error = message or DEFAULT_FAILURE_MESSAGE
        self.results = None
        self.query_info = QueryInfo()
        self.raw_data = None

    def take_error(self) -> Optional[str]:
        """Return the pending error once, then clear it."""
        error, self._error = self._error, None
        return error

    def _expect_loading(self) -> None:
        if self.phase is not QueryPhase.LOADING:
            raise RuntimeError(f"No lookup in progress (phase={self.phase.value})")
