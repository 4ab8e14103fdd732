"""Tests for settings loading and the user .env writer."""

import pytest
from pydantic import ValidationError

from core.config import AppSettings, domain_slug, get_user_config_dir, write_user_env_vars
from core.errors import ConfigurationError


class TestAppSettings:

    def test_defaults(self):
        settings = AppSettings(_env_file=None)
        assert settings.request_delay_ms == 100
        assert settings.alias_count == 100
        assert settings.max_retries == 3
        assert settings.secret_length == 12
        assert settings.api_base_url == "https://api.cloudflare.com/client/v4"
        assert settings.request_delay_seconds == pytest.approx(0.1)
        assert settings.base_retry_delay_seconds == pytest.approx(1.0)

    def test_legacy_env_names(self, monkeypatch):
        monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "tok")
        monkeypatch.setenv("EMAIL_DOMAIN", "example.com")
        monkeypatch.setenv("DESTINATION_EMAIL", "me@inbox.test")
        monkeypatch.setenv("RANDOM_SEED", "42")
        monkeypatch.setenv("REQUEST_DELAY_MS", "250")
        settings = AppSettings(_env_file=None)
        assert settings.cloudflare_api_token == "tok"
        assert settings.email_domain == "example.com"
        assert settings.destination_email == "me@inbox.test"
        assert settings.random_seed == 42
        assert settings.request_delay_ms == 250

    def test_prefixed_env_names(self, monkeypatch):
        monkeypatch.setenv("ALIAS_FORGE_MAX_RETRIES", "5")
        monkeypatch.setenv("ALIAS_FORGE_EMAIL_DOMAIN", "prefixed.org")
        settings = AppSettings(_env_file=None)
        assert settings.max_retries == 5
        assert settings.email_domain == "prefixed.org"

    def test_env_file(self, tmp_path):
        env = tmp_path / "custom.env"
        env.write_text("CLOUDFLARE_ZONE_ID=zone-9\nALIAS_COUNT=25\n", encoding="utf-8")
        settings = AppSettings(_env_file=env)
        assert settings.cloudflare_zone_id == "zone-9"
        assert settings.alias_count == 25

    def test_alias_count_bounds(self, monkeypatch):
        monkeypatch.setenv("ALIAS_COUNT", "501")
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)

    def test_require_helpers(self):
        settings = AppSettings(_env_file=None)
        with pytest.raises(ConfigurationError):
            settings.require_token()
        with pytest.raises(ConfigurationError):
            settings.require_domain()
        with pytest.raises(ConfigurationError):
            settings.require_destination()

    def test_require_domain_normalises(self):
        settings = AppSettings(_env_file=None, email_domain=" Example.COM ")
        assert settings.require_domain() == "example.com"


class TestUserEnv:

    def test_config_dir_honours_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setattr("sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_user_config_dir() == tmp_path / "alias-forge"

    def test_write_and_update(self, tmp_path):
        env_path = tmp_path / "cfg" / ".env"
        write_user_env_vars({"CLOUDFLARE_API_TOKEN": "a", "EMAIL_DOMAIN": "x.org"}, env_path=env_path)
        write_user_env_vars({"EMAIL_DOMAIN": "y.org", "CLOUDFLARE_ZONE_ID": None}, env_path=env_path)
        lines = env_path.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("#")
        assert "CLOUDFLARE_API_TOKEN=a" in lines
        assert "EMAIL_DOMAIN=y.org" in lines
        assert not any(line.startswith("CLOUDFLARE_ZONE_ID") for line in lines)


def test_domain_slug():
    assert domain_slug(" Mail.Example.COM ") == "mail-example-com"
