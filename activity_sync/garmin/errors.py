"""Error taxonomy for the activity sync.

Exceptions are raised for conditions that unwind to a caller. Per-activity
detail failures are never raised; they are reported as ``DetailOutcome``
values carrying one of the ``ErrorCode`` strings below.
"""

from __future__ import annotations


class ErrorCode:
    AUTH_FAILED = "auth_failed"
    EXPORT_CONTROL_MISSING = "export_control_missing"
    NAVIGATION_FAILED = "navigation_failed"
    SETTINGS_CONTROL_MISSING = "settings_control_missing"
    MENU_ENTRY_MISSING = "menu_entry_missing"
    DOWNLOAD_FAILED = "download_failed"
    MALFORMED_DATE = "malformed_date"


class SyncError(Exception):
    """Base class for every error raised by the sync core."""


class NotReady(SyncError):
    """A browser operation was invoked outside the ``READY`` state."""


class ElementNotFound(SyncError):
    """A selector did not match anything the operation could act on."""


class SessionTimeout(SyncError):
    """A browser operation did not settle within its timeout."""


class AuthenticationFailed(SyncError):
    """Sign-in could not be completed. Fatal for the whole run."""


class ExportControlNotFound(SyncError):
    """The bulk "Export CSV" control never became visible."""


class DownloadFailed(SyncError):
    """The browser reported a download that did not complete."""


__all__ = [
    "ErrorCode",
    "SyncError",
    "NotReady",
    "ElementNotFound",
    "SessionTimeout",
    "AuthenticationFailed",
    "ExportControlNotFound",
    "DownloadFailed",
]
