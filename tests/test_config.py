"""Tests for settings loading and the DoH endpoint table."""
from __future__ import annotations

import pytest

from dnsLookup.config import DEFAULT_DOH_SERVERS, DEFAULT_STATIC_DIR, LookupConfig, Settings


@pytest.mark.unit
class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.lookup.timeout_ms == 10_000
        assert settings.lookup.retries == 2
        assert settings.static_dir == DEFAULT_STATIC_DIR
        assert dict(settings.lookup.doh_endpoints) == dict(DEFAULT_DOH_SERVERS)

    def test_doh_table_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_DOH_SERVERS["192.0.2.1"] = "https://evil.example/dns-query"
        with pytest.raises(TypeError):
            LookupConfig().doh_endpoints["192.0.2.1"] = "https://evil.example/dns-query"

    def test_configured_doh_table_cannot_be_edited_in_place(self):
        table = {"10.0.0.53": "https://resolver.internal/dns-query"}
        config = LookupConfig(doh_servers=table)
        table["10.0.0.54"] = "https://other.internal/dns-query"

        assert isinstance(config.doh_servers, tuple)
        assert dict(config.doh_endpoints) == {"10.0.0.53": "https://resolver.internal/dns-query"}
        with pytest.raises(AttributeError):
            config.doh_servers.append(("10.0.0.55", "https://x.internal/dns-query"))

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "dnslookup.yaml"
        path.write_text(
            "lookup:\n"
            "  timeout_ms: 5000\n"
            "  doh_servers:\n"
            "    10.0.0.53: https://resolver.internal/dns-query\n"
            "api:\n"
            "  port: 9000\n"
            "static_dir: null\n"
        )

        settings = Settings.load(str(path))

        assert settings.lookup.timeout_ms == 5000
        assert settings.lookup.retries == 2
        assert settings.lookup.doh_endpoints == {"10.0.0.53": "https://resolver.internal/dns-query"}
        assert settings.api.port == 9000
        assert settings.static_dir is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Settings.load(str(tmp_path / "absent.yaml"))

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("lookup:\n  retries: 0\n")
        with pytest.raises(ValueError):
            Settings.load(str(path))

    def test_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "dnslookup.yaml"
        path.write_text("lookup:\n  retries: 4\n")
        monkeypatch.setenv("DNSLOOKUP_CONFIG", str(path))
        monkeypatch.setenv("DNSLOOKUP_API_PORT", "8123")
        monkeypatch.setenv("DNSLOOKUP_STATIC_DIR", "")

        settings = Settings.from_env()

        assert settings.lookup.retries == 4
        assert settings.api.port == 8123
        assert settings.static_dir is None
