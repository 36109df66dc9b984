"""
Core Dispatch Module.

Provides:
- Reference-counted exchange connection pool
- Command sequence execution with per-action failure tolerance
- Alert text extraction
- ExchangeManager tying message dispatch together
"""

from .exchange_pool import (
    ConnectionPool,
)
from .sequence import (
    SequenceResult,
    execute_command_sequence,
    new_session_id,
)
from .alerts import (
    ALERT_MARKER,
    AlertExtractor,
    extract_alert_text,
)
from .manager import (
    ExchangeManager,
)

__all__ = [
    # Pool
    "ConnectionPool",
    # Sequences
    "SequenceResult",
    "execute_command_sequence",
    "new_session_id",
    # Alerts
    "ALERT_MARKER",
    "AlertExtractor",
    "extract_alert_text",
    # Manager
    "ExchangeManager",
]
