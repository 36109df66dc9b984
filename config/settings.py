"""
Configuration dataclasses for the tradehook command relay.

All configuration parameters are defined here with sensible defaults.
Values can be overridden via config.yaml or environment variables.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple


# ===========================================
# EXCHANGE CREDENTIALS
# ===========================================

@dataclass
class ExchangeCredentials:
    """
    Credentials for one configured exchange alias.

    `name` is the alias used in alert messages (e.g. `binance(BTCUSD){...}`).
    `exchange` selects the catalog entry; when omitted the alias itself is used.
    """

    name: str
    exchange: Optional[str] = None
    key: str = ""
    secret: str = ""
    options: Dict[str, Any] = field(default_factory=dict)

    RESERVED_KEYS = ("name", "exchange", "key", "secret")

    @property
    def exchange_type(self) -> str:
        """Catalog name used to instantiate the exchange."""
        return self.exchange or self.name

    def identity(self) -> Tuple[str, str, str]:
        """Hashable identity of these credentials."""
        return (self.name, self.exchange_type, self.key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExchangeCredentials":
        """
        Build credentials from a `{name, exchange?, ...}` record.

        Keys other than name/exchange/key/secret are kept in `options`.
        """
        if not data.get("name"):
            raise ValueError("Credentials record requires a name")

        options = {
            k: v for k, v in data.items() if k not in cls.RESERVED_KEYS
        }
        return cls(
            name=str(data["name"]).strip().lower(),
            exchange=data.get("exchange") or None,
            key=str(data.get("key", "") or ""),
            secret=str(data.get("secret", "") or ""),
            options=options,
        )

    def __repr__(self) -> str:
        # Never leak the secret into logs
        return (
            f"ExchangeCredentials(name={self.name!r}, "
            f"exchange={self.exchange_type!r})"
        )


# ===========================================
# DISPATCH CONFIGURATION
# ===========================================

@dataclass
class DispatchConfig:
    """Message dispatch settings."""

    cooldown_seconds: float = 0.5  # Delay before releasing an exchange
    failure_history: int = 1000  # Failures kept for inspection


# ===========================================
# NOTIFICATION CONFIGURATION
# ===========================================

@dataclass
class NotificationConfig:
    """Notification channel settings."""

    alert_on_startup: bool = False
    log_alerts: bool = True
    webhook_url: Optional[str] = None
    webhook_timeout: float = 10.0  # seconds


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file_path: Optional[str] = None


# ===========================================
# MAIN BOT CONFIGURATION
# ===========================================

@dataclass
class BotConfig:
    """Complete configuration combining all sub-configs."""

    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    credentials: List[ExchangeCredentials] = field(default_factory=list)

    def find_credentials(self, name: str) -> Optional[ExchangeCredentials]:
        """Find the credentials configured for an exchange alias."""
        for item in self.credentials:
            if item.name.lower() == name.lower():
                return item
        return None

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        seen = set()
        for item in self.credentials:
            if not item.name.strip():
                errors.append("Credentials entry with an empty name")
                continue
            if item.name in seen:
                errors.append(f"Duplicate credentials for '{item.name}'")
            seen.add(item.name)

        if self.dispatch.cooldown_seconds < 0:
            errors.append(
                f"Cool-down must not be negative, got {self.dispatch.cooldown_seconds}"
            )

        url = self.notifications.webhook_url
        if url and not url.startswith(("http://", "https://")):
            errors.append(f"Webhook URL must be http(s), got {url}")

        return errors
