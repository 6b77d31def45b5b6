# src/flowhub/core/errors.py

from __future__ import annotations


class FlowhubError(Exception):
    """Base class for errors raised by the flowhub core."""


class LockStoreUnavailable(FlowhubError):
    """The shared lock store cannot be read or written (delivery degrades, never crashes)."""


class NotificationError(FlowhubError):
    """The OS notification capability refused or failed to display a notification."""


class DismissalError(FlowhubError):
    """The dismissal endpoint did not acknowledge a dismissal."""


class FeedError(FlowhubError):
    """Polling the notification feed failed."""
