"""tradehook - executes trading commands embedded in alert messages."""

__version__ = "0.1.0"
