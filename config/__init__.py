"""Configuration module for the tradehook command relay."""

from .settings import (
    BotConfig,
    DispatchConfig,
    ExchangeCredentials,
    LoggingConfig,
    NotificationConfig,
)

__all__ = [
    "BotConfig",
    "DispatchConfig",
    "ExchangeCredentials",
    "LoggingConfig",
    "NotificationConfig",
]
