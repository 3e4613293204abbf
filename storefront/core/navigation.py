"""UI collaborators: where to send the user and how to tell them things."""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Navigator(Protocol):
    def redirect(self, path: str) -> None:
        """Hard redirect to ``path``."""
        ...


@runtime_checkable
class Notifier(Protocol):
    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...


class RecordingNavigator:
    """Navigator for headless callers; remembers every redirect."""

    def __init__(self) -> None:
        self.redirects: list[str] = []

    @property
    def current(self) -> str | None:
        return self.redirects[-1] if self.redirects else None

    def redirect(self, path: str) -> None:
        logger.info("Redirect -> %s", path)
        self.redirects.append(path)


class RecordingNotifier:
    """Notifier that keeps (level, message) pairs and logs them."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def _push(self, level: str, message: str) -> None:
        self.messages.append((level, message))

    def success(self, message: str) -> None:
        logger.info("Notice: %s", message)
        self._push("success", message)

    def error(self, message: str) -> None:
        logger.warning("Error notice: %s", message)
        self._push("error", message)

    def info(self, message: str) -> None:
        logger.info("Notice: %s", message)
        self._push("info", message)

    def last(self, level: str | None = None) -> str | None:
        for msg_level, message in reversed(self.messages):
            if level is None or msg_level == level:
                return message
        return None
