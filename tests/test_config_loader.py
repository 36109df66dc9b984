"""
Tests for configuration loading and validation.

Tests:
- YAML parsing into BotConfig
- TRADEHOOK_* environment overrides
- Credentials records
- Validation errors
"""

import pytest

from config.settings import (
    BotConfig,
    DispatchConfig,
    ExchangeCredentials,
    NotificationConfig,
)
from tradehook.utils.config_loader import ConfigLoader


CONFIG_YAML = """
dispatch:
  cooldown_seconds: 2
  failure_history: 50

notifications:
  alert_on_startup: true
  webhook_url: https://hooks.example.com/relay

logging:
  level: DEBUG

credentials:
  - name: Binance
    exchange: paper
    key: yaml-key
    secret: yaml-secret
    testnet: true
  - name: paper
"""


@pytest.fixture
def loader(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return ConfigLoader(str(path), env_file=str(tmp_path / ".env"))


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_loads_yaml(self, loader):
        config = loader.load()

        assert config.dispatch.cooldown_seconds == 2.0
        assert config.dispatch.failure_history == 50
        assert config.notifications.alert_on_startup is True
        assert config.notifications.webhook_url == "https://hooks.example.com/relay"
        assert config.logging.level == "DEBUG"
        assert [c.name for c in config.credentials] == ["binance", "paper"]

    def test_credentials_options(self, loader):
        creds = loader.load().find_credentials("binance")

        assert creds.exchange_type == "paper"
        assert creds.key == "yaml-key"
        assert creds.options == {"testnet": True}

    def test_missing_file_uses_defaults(self, tmp_path):
        loader = ConfigLoader(
            str(tmp_path / "missing.yaml"), env_file=str(tmp_path / ".env")
        )

        config = loader.load()

        assert config.dispatch.cooldown_seconds == 0.5
        assert config.credentials == []

    def test_env_overrides(self, loader, monkeypatch):
        monkeypatch.setenv("TRADEHOOK_COOLDOWN_SECONDS", "0.25")
        monkeypatch.setenv("TRADEHOOK_ALERT_ON_STARTUP", "false")
        monkeypatch.setenv("TRADEHOOK_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("TRADEHOOK_BINANCE_KEY", "env-key")
        monkeypatch.setenv("TRADEHOOK_BINANCE_SECRET", "env-secret")

        config = loader.load()

        assert config.dispatch.cooldown_seconds == 0.25
        assert config.notifications.alert_on_startup is False
        assert config.logging.level == "WARNING"
        creds = config.find_credentials("binance")
        assert (creds.key, creds.secret) == ("env-key", "env-secret")

    def test_env_file_loaded(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TRADEHOOK_WEBHOOK_URL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("TRADEHOOK_WEBHOOK_URL=https://hooks.example.com/env\n")

        config = ConfigLoader(str(tmp_path / "missing.yaml"), env_file=str(env_file)).load()
        monkeypatch.delenv("TRADEHOOK_WEBHOOK_URL", raising=False)

        assert config.notifications.webhook_url == "https://hooks.example.com/env"


class TestExchangeCredentials:
    """Tests for ExchangeCredentials."""

    def test_from_dict_requires_name(self):
        with pytest.raises(ValueError):
            ExchangeCredentials.from_dict({"exchange": "paper"})

    def test_alias_is_default_exchange(self):
        creds = ExchangeCredentials.from_dict({"name": " Kraken "})
        assert creds.name == "kraken"
        assert creds.exchange_type == "kraken"

    def test_identity(self):
        a = ExchangeCredentials(name="x", exchange="paper", key="k")
        b = ExchangeCredentials(name="x", exchange="paper", key="k", secret="other")
        assert a.identity() == b.identity()

    def test_find_credentials_ignores_case(self):
        config = BotConfig(credentials=[ExchangeCredentials(name="Binance")])
        assert config.find_credentials("binance") is config.credentials[0]

    def test_repr_hides_secret(self):
        creds = ExchangeCredentials(name="x", key="public", secret="hunter2")
        assert "hunter2" not in repr(creds)


class TestValidation:
    """Tests for BotConfig.validate."""

    def test_valid(self):
        config = BotConfig(credentials=[ExchangeCredentials(name="paper")])
        assert config.validate() == []

    def test_duplicate_names(self):
        config = BotConfig(credentials=[
            ExchangeCredentials(name="paper"),
            ExchangeCredentials(name="paper"),
        ])
        assert any("Duplicate" in e for e in config.validate())

    def test_negative_cooldown(self):
        config = BotConfig(dispatch=DispatchConfig(cooldown_seconds=-1))
        assert len(config.validate()) == 1

    def test_bad_webhook(self):
        config = BotConfig(notifications=NotificationConfig(webhook_url="ftp://x"))
        assert len(config.validate()) == 1
