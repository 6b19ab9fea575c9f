"""Configuration loader for the dnsLookup service."""
from __future__ import annotations

import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Well-known resolver IP -> DNS-over-HTTPS endpoint.
# Must cover every resolver offered by dnsLookup.client.form.NAMESERVERS.
DEFAULT_DOH_SERVERS: Mapping[str, str] = MappingProxyType(
    {
        "1.1.1.1": "https://cloudflare-dns.com/dns-query",
        "8.8.8.8": "https://dns.google/dns-query",
        "9.9.9.9": "https://dns.quad9.net/dns-query",
        "208.67.222.222": "https://doh.opendns.com/dns-query",
    }
)

DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent / "ui" / "static")


class LookupConfig(BaseModel):
    timeout_ms: int = Field(default=10_000, gt=0)
    retries: int = Field(default=2, ge=1)
    # Stored as (ip, endpoint) pairs so a frozen config cannot be edited in place
    doh_servers: Tuple[Tuple[str, str], ...] = Field(default=tuple(DEFAULT_DOH_SERVERS.items()))

    model_config = ConfigDict(frozen=True)

    @field_validator("doh_servers", mode="before")
    @classmethod
    def doh_pairs(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return tuple(value.items())
        return value

    @property
    def doh_endpoints(self) -> Mapping[str, str]:
        """Read-only view of the DoH endpoint table."""
        return MappingProxyType(dict(self.doh_servers))


class ApiConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)

    model_config = ConfigDict(frozen=True)


class Settings(BaseModel):
    lookup: LookupConfig = Field(default_factory=LookupConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    static_dir: Optional[str] = Field(default=DEFAULT_STATIC_DIR)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def load(cls, path: str) -> "Settings":
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"dnsLookup config not found: {cfg_path}")
        try:
            raw = yaml.safe_load(cfg_path.read_text()) or {}
            return cls(**raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid dnsLookup config: {exc}") from exc

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from DNSLOOKUP_CONFIG plus individual overrides."""
        config_path = os.getenv("DNSLOOKUP_CONFIG")
        base = cls.load(config_path) if config_path else cls()

        api = base.api.model_copy(
            update={
                "host": os.getenv("DNSLOOKUP_API_HOST", base.api.host),
                "port": int(os.getenv("DNSLOOKUP_API_PORT", str(base.api.port))),
                "reload": bool(os.getenv("DNSLOOKUP_API_RELOAD", "")) or base.api.reload,
            }
        )
        static_dir = base.static_dir
        if "DNSLOOKUP_STATIC_DIR" in os.environ:
            static_dir = os.environ["DNSLOOKUP_STATIC_DIR"] or None
        return base.model_copy(update={"api": api, "static_dir": static_dir})
