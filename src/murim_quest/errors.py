"""Exception types shared across murim-quest."""

from __future__ import annotations


class MurimQuestError(Exception):
    """Base class for all murim-quest errors."""


class InsufficientResource(MurimQuestError):
    """A spend, forge, ascension or check-in was rejected. State is unchanged."""


class WindowClosed(MurimQuestError, ValueError):
    """An action was attempted outside the time window that allows it."""


class CategoryMastered(MurimQuestError, ValueError):
    """New tasks cannot be created in a mastered sub-category."""


class ExternalServiceFailure(MurimQuestError):
    """The text generator was unreachable or returned malformed content."""


class StorageFailure(MurimQuestError):
    """Reading or writing the local store failed."""
