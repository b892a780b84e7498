"""Transient user-facing notifications raised by the data-access layer."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum


class NotificationVariant(str, Enum):
    """Visual intent of a notification."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.SUCCESS

    @property
    def message(self) -> str:
        return f"{self.title}: {self.description}"


class Notifier:
    """Bounded queue of notifications waiting to be shown to one user."""

    def __init__(self, maxlen: int = 50) -> None:
        self._queue: deque[Notification] = deque(maxlen=maxlen)

    def __len__(self) -> int:
        return len(self._queue)

    def success(self, title: str, description: str) -> None:
        self._queue.append(Notification(title, description, NotificationVariant.SUCCESS))

    def error(self, title: str, description: str) -> None:
        self._queue.append(Notification(title, description, NotificationVariant.ERROR))

    def info(self, title: str, description: str) -> None:
        self._queue.append(Notification(title, description, NotificationVariant.INFO))

    def peek(self) -> list[Notification]:
        return list(self._queue)

    def drain(self) -> list[Notification]:
        """Return and forget every queued notification, oldest first."""

        items = list(self._queue)
        self._queue.clear()
        return items

    def clear(self) -> None:
        self._queue.clear()


__all__ = ["Notification", "NotificationVariant", "Notifier"]
