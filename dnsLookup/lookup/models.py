"""Data models for lookup planning, dispatch and reduction."""
from __future__ import annotations

from enum import Enum
from typing import FrozenSet, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

AUTHORITATIVE = "authoritative"
DNSSEC_RECORD_TYPES: Tuple[str, ...] = ("DNSKEY", "DS", "RRSIG")

Transport = Literal["tcp", "doh"]


class CamelModel(BaseModel):
    """Model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QueryFlag(str, Enum):
    RD = "RD"  # recursion desired
    DO = "DO"  # DNSSEC OK


class DNSQuery(CamelModel):
    """Validated lookup request. Immutable once built."""

    domain: str = Field(min_length=1)
    nameserver: str = Field(min_length=1)
    record_types: Tuple[str, ...] = Field(min_length=1)
    dnssec: bool = False
    transport: Transport = "tcp"

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    @field_validator("record_types")
    @classmethod
    def normalize_record_types(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        seen: List[str] = []
        for item in value:
            rtype = item.strip().upper()
            if rtype and rtype not in seen:
                seen.append(rtype)
        if not seen:
            raise ValueError("at least one record type is required")
        return tuple(seen)

    @property
    def is_authoritative(self) -> bool:
        return self.nameserver == AUTHORITATIVE


class ResolutionPlan(BaseModel):
    is_authoritative: bool
    flags: FrozenSet[QueryFlag]
    target_server: Optional[str] = None
    effective_types: Tuple[str, ...]

    model_config = ConfigDict(frozen=True)


class ErrorInfo(CamelModel):
    code: str
    message: str


class Record(CamelModel):
    """Flattened, presentation-ready resource record."""

    type: str
    name: str
    content: str
    ttl: Optional[int] = Field(default=None, ge=0)


class Answer(CamelModel):
    """Result of one per-type sub-query, as produced by the resolution engine."""

    name: str
    queried_type: str
    rcode: Optional[str] = None
    flags: List[str] = Field(default_factory=list)
    server: Optional[str] = None
    records: List[Record] = Field(default_factory=list)
    error: Optional[ErrorInfo] = None


class LookupResult(CamelModel):
    records: List[Record]
    query_time: int = Field(ge=0)
    server: str
    raw_data: List[Answer]
