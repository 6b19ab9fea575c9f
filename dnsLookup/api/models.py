"""Shared Pydantic models for the API layer."""
from __future__ import annotations

from pydantic import BaseModel, Field

VALIDATION_ERROR = "Validation error"
VALIDATION_MESSAGE = "Invalid request parameters."
LOOKUP_FAILED = "DNS lookup failed"
UNEXPECTED_MESSAGE = "An unexpected error occurred"


class ErrorResponse(BaseModel):
    error: str
    message: str


class APIStatus(BaseModel):
    status: str = Field(default="ok")
    service: str = Field(default="dnsLookup")


def validation_error() -> dict:
    return ErrorResponse(error=VALIDATION_ERROR, message=VALIDATION_MESSAGE).model_dump()


def lookup_failed(message: str | None) -> dict:
    return ErrorResponse(error=LOOKUP_FAILED, message=message or UNEXPECTED_MESSAGE).model_dump()
