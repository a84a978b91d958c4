"""Exceptions raised by the sync subsystem."""

from typing import Optional


class SyncError(Exception):
    """Base class for errors that abort a whole sync run."""


class ConfigurationError(SyncError):
    """Required settings (e.g. NetSuite credentials) are missing."""


class AcquisitionError(SyncError):
    """Fetching vendor records from NetSuite failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(Exception):
    """A write or read against the author store was rejected."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class UniqueViolation(StoreError):
    """A uniqueness constraint rejected the write."""

    def __init__(self, message: str):
        super().__init__(message, code="23505")
