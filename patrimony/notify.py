"""User-facing notifications for store, targets and sync events."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from rich.console import Console

LOGGER = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"

_LOG_LEVELS = {SUCCESS: logging.INFO, INFO: logging.INFO, ERROR: logging.WARNING}
_STYLES = {SUCCESS: "green", ERROR: "bold red", INFO: "cyan"}


@dataclass(frozen=True, slots=True)
class Notification:
    message: str
    level: str = INFO


class Notifier(Protocol):
    def notify(self, message: str, level: str = INFO) -> None:
        ...


def _log(message: str, level: str) -> None:
    LOGGER.log(_LOG_LEVELS.get(level, logging.INFO), "[%s] %s", level, message)


class CollectingNotifier:
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, message: str, level: str = INFO) -> None:
        _log(message, level)
        self.notifications.append(Notification(message, level))

    def messages(self, level: str | None = None) -> list[str]:
        return [n.message for n in self.notifications if level is None or n.level == level]

    @property
    def errors(self) -> list[str]:
        return self.messages(ERROR)

    def clear(self) -> None:
        self.notifications.clear()


class ConsoleNotifier(CollectingNotifier):
    """Prints notifications to a rich console and remembers them."""

    def __init__(self, console: Console | None = None) -> None:
        super().__init__()
        self.console = console or Console()

    def notify(self, message: str, level: str = INFO) -> None:
        super().notify(message, level)
        self.console.print(message, style=_STYLES.get(level, ""))


class LoggingNotifier:
    """Routes notifications to the module logger only."""

    def notify(self, message: str, level: str = INFO) -> None:
        _log(message, level)


__all__ = [
    "SUCCESS",
    "ERROR",
    "INFO",
    "Notification",
    "Notifier",
    "CollectingNotifier",
    "ConsoleNotifier",
    "LoggingNotifier",
]
