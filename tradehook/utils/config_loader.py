"""
Configuration loader for the tradehook command relay.

Loads configuration from:
1. YAML file (config/config.yaml)
2. Environment variables (TRADEHOOK_* prefix)
3. .env file (via python-dotenv)

Environment variables override YAML values. Exchange keys and secrets
should be set via environment (TRADEHOOK_<NAME>_KEY / _SECRET) rather
than committed to YAML.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from config.settings import (
    BotConfig,
    DispatchConfig,
    ExchangeCredentials,
    LoggingConfig,
    NotificationConfig,
)

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Loads and validates relay configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (TRADEHOOK_*)
    2. YAML config file
    3. Default values in dataclasses
    """

    ENV_PREFIX = "TRADEHOOK_"

    def __init__(
        self,
        config_path: Optional[str] = None,
        env_file: Optional[str] = None,
    ):
        """
        Initialize config loader.

        Args:
            config_path: Path to YAML config file. If None, uses config/config.yaml
            env_file: Path to .env file. If None, uses .env in project root
        """
        self._config_path = Path(config_path) if config_path else Path("config/config.yaml")
        self._env_file = Path(env_file) if env_file else Path(".env")

        # Load .env file if exists
        if self._env_file.exists():
            load_dotenv(self._env_file)
            logger.debug(f"Loaded environment from {self._env_file}")

    def load(self) -> BotConfig:
        """
        Load complete configuration.

        Returns:
            BotConfig with all settings populated

        Raises:
            ValueError: If a credentials record is malformed
        """
        yaml_config = self._load_yaml()
        config = self._build_config(yaml_config)

        errors = config.validate()
        if errors:
            for error in errors:
                logger.warning(f"Config warning: {error}")

        return config

    def _load_yaml(self) -> Dict[str, Any]:
        """Load YAML configuration file."""
        if not self._config_path.exists():
            logger.warning(f"Config file not found: {self._config_path}, using defaults")
            return {}

        with open(self._config_path) as f:
            config = yaml.safe_load(f) or {}

        logger.info(f"Loaded config from {self._config_path}")
        return config

    def _get_env(self, key: str, default: Any = None) -> Any:
        """
        Get environment variable with TRADEHOOK_ prefix.

        Args:
            key: Variable name (without prefix)
            default: Default value if not set

        Returns:
            Environment variable value or default
        """
        full_key = f"{self.ENV_PREFIX}{key}"
        value = os.environ.get(full_key)

        if value is None:
            return default

        # Type conversion based on default type
        if isinstance(default, bool):
            return value.lower() in ("true", "1", "yes")
        elif isinstance(default, int):
            return int(value)
        elif isinstance(default, float):
            return float(value)

        return value

    def _build_credentials(self, records: List[Dict[str, Any]]) -> List[ExchangeCredentials]:
        """Build credentials, letting TRADEHOOK_<NAME>_KEY/_SECRET override YAML."""
        credentials = []
        for record in records:
            item = ExchangeCredentials.from_dict(record)
            env_name = item.name.upper()
            item.key = self._get_env(f"{env_name}_KEY", item.key)
            item.secret = self._get_env(f"{env_name}_SECRET", item.secret)
            credentials.append(item)
        return credentials

    def _build_config(self, yaml_config: Dict[str, Any]) -> BotConfig:
        """Build BotConfig from YAML and environment."""

        # Build Dispatch config
        dispatch_yaml = yaml_config.get("dispatch", {})
        dispatch = DispatchConfig(
            cooldown_seconds=self._get_env(
                "COOLDOWN_SECONDS",
                float(dispatch_yaml.get("cooldown_seconds", 0.5)),
            ),
            failure_history=dispatch_yaml.get("failure_history", 1000),
        )

        # Build Notification config
        notify_yaml = yaml_config.get("notifications", {})
        notifications = NotificationConfig(
            alert_on_startup=self._get_env(
                "ALERT_ON_STARTUP",
                bool(notify_yaml.get("alert_on_startup", False)),
            ),
            log_alerts=notify_yaml.get("log_alerts", True),
            webhook_url=self._get_env("WEBHOOK_URL", notify_yaml.get("webhook_url")),
            webhook_timeout=notify_yaml.get("webhook_timeout", 10.0),
        )

        # Build Logging config
        logging_yaml = yaml_config.get("logging", {})
        log_config = LoggingConfig(
            level=self._get_env("LOG_LEVEL", logging_yaml.get("level", "INFO")),
            file_path=logging_yaml.get("file_path"),
        )

        credentials = self._build_credentials(yaml_config.get("credentials", []) or [])

        return BotConfig(
            dispatch=dispatch,
            notifications=notifications,
            logging=log_config,
            credentials=credentials,
        )
