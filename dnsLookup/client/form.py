"""Lookup form state: selectable resolvers, transports and record types."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from dnsLookup.lookup.models import AUTHORITATIVE

CUSTOM = "custom"


class Option(BaseModel):
    value: str
    label: str
    disabled: bool = False


class RecordTypeOption(BaseModel):
    id: str
    popular: bool = False


NAMESERVERS: List[Option] = [
    Option(value="8.8.8.8", label="Google (8.8.8.8)"),
    Option(value="9.9.9.9", label="Quad9 (9.9.9.9)"),
    Option(value="208.67.222.222", label="OpenDNS (208.67.222.222)"),
    Option(value=AUTHORITATIVE, label="Authoritative (Root Servers)"),
    Option(value=CUSTOM, label="Custom"),
]

TRANSPORTS: List[Option] = [
    Option(value="udp", label="UDP", disabled=True),
    Option(value="tcp", label="TCP"),
    Option(value="doh", label="DoH (DNS over HTTPS)"),
]

_POPULAR = {"A", "AAAA", "CAA", "CNAME", "DS", "MX", "NS", "SOA", "TXT"}
RECORD_TYPES: List[RecordTypeOption] = [
    RecordTypeOption(id=rtype, popular=rtype in _POPULAR)
    for rtype in (
        "A", "AAAA", "CAA", "CDNSKEY", "CDS", "CERT", "CNAME", "DNAME", "DNSKEY",
        "DS", "HINFO", "HTTPS", "KEY", "LOC", "MX", "NAPTR", "NS", "NSEC", "NSEC3",
        "NSEC3PARAM", "OPENPGPKEY", "PTR", "RP", "RRSIG", "SIG", "SOA", "SRV",
        "SSHFP", "SVCB", "TLSA", "TSIG", "TXT", "URI",
    )
]

EXAMPLE_DOMAINS = ["cloudflare.com", "wikipedia.org", "x.com"]


def selectable_resolvers() -> List[str]:
    """Resolver addresses the form offers directly (no authoritative/custom)."""
    return [opt.value for opt in NAMESERVERS if opt.value not in {AUTHORITATIVE, CUSTOM}]


class LookupForm(BaseModel):
    """Mutable form model mirroring the browser lookup form."""

    domain: str = ""
    nameserver: str = "8.8.8.8"
    custom_nameserver: str = ""
    record_types: List[str] = Field(
        default_factory=lambda: [opt.id for opt in RECORD_TYPES if opt.popular]
    )
    dnssec: bool = False
    transport: str = "tcp"

    @property
    def is_authoritative(self) -> bool:
        return self.nameserver == AUTHORITATIVE

    @property
    def resolved_nameserver(self) -> str:
        return self.custom_nameserver.strip() if self.nameserver == CUSTOM else self.nameserver

    def transport_disabled(self, value: str) -> bool:
        for opt in TRANSPORTS:
            if opt.value == value:
                return opt.disabled or (self.is_authoritative and value == "doh")
        return True

    def reconcile(self) -> bool:
        """Force TCP when authoritative and DoH are both selected.

        Returns True if the transport was changed.
        """
        if self.is_authoritative and self.transport == "doh":
            self.transport = "tcp"
            return True
        return False

    def select_nameserver(self, value: str) -> None:
        self.nameserver = value
        self.reconcile()

    def select_transport(self, value: str) -> None:
        if self.transport_disabled(value):
            raise ValueError(f"Transport {value!r} is not available")
        self.transport = value

    def toggle_record_type(self, rtype: str) -> None:
        if rtype in self.record_types:
            self.record_types = [t for t in self.record_types if t != rtype]
        else:
            self.record_types = [*self.record_types, rtype]

    def build_request(self, domain: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Request body for the lookup endpoint, or None if incomplete."""
        if domain is not None:
            self.domain = domain
        self.reconcile()
        nameserver = self.resolved_nameserver
        if not self.domain or not nameserver or not self.record_types:
            return None
        return {
            "domain": self.domain,
            "nameserver": nameserver,
            "recordTypes": list(self.record_types),
            "dnssec": self.dnssec,
            "transport": self.transport,
        }
