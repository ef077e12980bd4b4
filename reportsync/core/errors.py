from __future__ import annotations


class ReportSyncError(Exception):
    """Base class for errors raised inside the sync layer."""


class RemoteUnavailableError(ReportSyncError):
    """
    Backend could not serve the call: transport failure, timeout,
    or an envelope with success=false.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CacheError(ReportSyncError):
    """Persisted cache could not be read, written or (de)serialized."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key
