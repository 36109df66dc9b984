"""
Error Handling for Command Dispatch.

Failures are contained at the smallest possible scope:
- a malformed token is dropped by the parsers (PARSE_SKIP)
- a block whose exchange is unknown or unconfigured is skipped (EXCHANGE_NOT_FOUND)
- a block whose exchange fails to start is skipped (INITIALIZATION_FAILURE)
- a failing action is reported and the sequence continues (ACTION_FAILURE)
- a broken sequence is reported for that block only (SEQUENCE_FAILURE)

Every failure is logged and recorded in a FailureLog so it can be
inspected without parsing logs.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = auto()       # Informational, nothing lost
    MEDIUM = auto()    # One action lost
    HIGH = auto()      # A whole block lost
    CRITICAL = auto()  # Dispatch itself is broken


class ErrorCategory(Enum):
    """Categories of dispatch failures."""
    PARSE_SKIP = "parse_skip"
    EXCHANGE_NOT_FOUND = "exchange_not_found"
    INITIALIZATION_FAILURE = "initialization_failure"
    ACTION_FAILURE = "action_failure"
    SEQUENCE_FAILURE = "sequence_failure"


DEFAULT_SEVERITY: Dict[ErrorCategory, ErrorSeverity] = {
    ErrorCategory.PARSE_SKIP: ErrorSeverity.LOW,
    ErrorCategory.EXCHANGE_NOT_FOUND: ErrorSeverity.HIGH,
    ErrorCategory.INITIALIZATION_FAILURE: ErrorSeverity.HIGH,
    ErrorCategory.ACTION_FAILURE: ErrorSeverity.MEDIUM,
    ErrorCategory.SEQUENCE_FAILURE: ErrorSeverity.CRITICAL,
}


class TradehookError(Exception):
    """Base exception for command dispatch errors."""

    category = ErrorCategory.SEQUENCE_FAILURE

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def severity(self) -> ErrorSeverity:
        return DEFAULT_SEVERITY[self.category]


class ExchangeNotFoundError(TradehookError):
    """No catalog entry or no credentials for an exchange alias."""
    category = ErrorCategory.EXCHANGE_NOT_FOUND


class ExchangeInitError(TradehookError):
    """An exchange failed to initialise."""
    category = ErrorCategory.INITIALIZATION_FAILURE


class CommandError(TradehookError):
    """A single exchange command failed."""
    category = ErrorCategory.ACTION_FAILURE


class UnknownCommandError(CommandError):
    """The exchange has no command with the requested name."""
    pass


class InvalidArgumentError(CommandError):
    """A command argument could not be interpreted."""
    pass


class SequenceError(TradehookError):
    """The sequence driver itself failed."""
    category = ErrorCategory.SEQUENCE_FAILURE


@dataclass
class FailureRecord:
    """A single recorded failure."""

    category: ErrorCategory
    message: str
    severity: ErrorSeverity
    exchange: Optional[str] = None
    session: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize record to dictionary."""
        return {
            "category": self.category.value,
            "message": self.message,
            "severity": self.severity.name,
            "exchange": self.exchange,
            "session": self.session,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class FailureLog:
    """
    Bounded record of recent failures.

    Shared by the dispatcher, the connection pool and the sequence
    executor so callers can see what went wrong in a message.
    """

    def __init__(self, max_history: int = 1000):
        """
        Initialize failure log.

        Args:
            max_history: Number of recent failures to keep
        """
        self._max_history = max_history
        self._records: List[FailureRecord] = []

    def record(
        self,
        category: ErrorCategory,
        message: str,
        exchange: Optional[str] = None,
        session: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> FailureRecord:
        """Record a failure."""
        record = FailureRecord(
            category=category,
            message=message,
            severity=DEFAULT_SEVERITY[category],
            exchange=exchange,
            session=session,
            details=details or {},
        )
        self._records.append(record)

        # Trim to window size
        if len(self._records) > self._max_history:
            self._records = self._records[-self._max_history:]

        return record

    def record_exception(
        self,
        error: BaseException,
        category: Optional[ErrorCategory] = None,
        exchange: Optional[str] = None,
        session: Optional[str] = None,
    ) -> FailureRecord:
        """Record an exception, using its own category when it has one."""
        if category is None:
            category = getattr(error, "category", ErrorCategory.SEQUENCE_FAILURE)
        details = dict(getattr(error, "details", {}) or {})
        details["error_type"] = type(error).__name__
        return self.record(
            category,
            str(error),
            exchange=exchange,
            session=session,
            details=details,
        )

    def failures(
        self,
        category: Optional[ErrorCategory] = None,
    ) -> List[FailureRecord]:
        """Get recorded failures, optionally filtered by category."""
        if category is None:
            return list(self._records)
        return [r for r in self._records if r.category == category]

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records = []

    def get_stats(self, time_window: float = 300.0) -> Dict[str, Any]:
        """
        Get failure statistics for recent window.

        Args:
            time_window: Seconds to look back (default 5 min)

        Returns:
            Dict with failure statistics
        """
        cutoff = time.time() - time_window
        recent = [r for r in self._records if r.timestamp >= cutoff]

        by_category: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for record in recent:
            cat = record.category.value
            sev = record.severity.name
            by_category[cat] = by_category.get(cat, 0) + 1
            by_severity[sev] = by_severity.get(sev, 0) + 1

        return {
            "total": len(recent),
            "by_category": by_category,
            "by_severity": by_severity,
        }
