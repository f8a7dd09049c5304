"""Notification sink for celebratory and blocking events."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Notification:
    title: str
    message: str
    kind: str = "info"


class NotificationSink:
    """Collects (title, message) events until the caller drains them."""

    def __init__(self) -> None:
        self.pending: list[Notification] = []

    def notify(self, title: str, message: str, kind: str = "info") -> None:
        self.pending.append(Notification(title=title, message=message, kind=kind))

    def drain(self) -> list[Notification]:
        """Return and clear all pending notifications."""
        drained, self.pending = self.pending, []
        return drained

    def titles(self) -> list[str]:
        return [n.title for n in self.pending]
