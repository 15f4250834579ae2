"""Transient user notifications (toasts) and confirmation prompts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

INFO = "info"
SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class Toast:
    message: str
    kind: str = INFO


class Notifier:
    """Collects toasts for the render layer and mirrors them to the log."""

    def __init__(self, sink: Callable[[Toast], None] | None = None, keep: int = 50) -> None:
        self._sink = sink
        self.keep = keep
        self.history: list[Toast] = []

    def show(self, message: str, kind: str = INFO) -> Toast:
        toast = Toast(message, kind)
        self.history.append(toast)
        del self.history[: -self.keep]
        if kind == ERROR:
            logger.warning("toast: %s", message)
        else:
            logger.info("toast: %s", message)
        if self._sink is not None:
            self._sink(toast)
        return toast

    def info(self, message: str) -> Toast:
        return self.show(message, INFO)

    def success(self, message: str) -> Toast:
        return self.show(message, SUCCESS)

    def error(self, message: str) -> Toast:
        return self.show(message, ERROR)

    @property
    def last(self) -> Toast | None:
        return self.history[-1] if self.history else None

    def messages(self, kind: str | None = None) -> list[str]:
        return [t.message for t in self.history if kind is None or t.kind == kind]


class Confirmer(Protocol):
    def __call__(self, message: str) -> bool: ...


def always_confirm(message: str) -> bool:
    return True


def never_confirm(message: str) -> bool:
    return False
