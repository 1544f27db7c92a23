"""Publish/subscribe highlight channel shared by the linked views."""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^a-zA-Z0-9]")

Listener = Callable[[Optional[str]], None]


def to_safe_id(key: str) -> str:
    """Replace every non-alphanumeric character with ``-``."""
    return _UNSAFE.sub("-", str(key))


class CrossHighlightBus:
    """
    Carries a single sanitized key (a disaster type or a country).

    Listeners receive the safe key on ``broadcast`` and ``None`` on ``clear``.
    Views compare their own elements through :meth:`is_emphasized`, never
    through each other's internals.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self.active_key: Optional[str] = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def broadcast(self, key: str) -> None:
        self.active_key = to_safe_id(key)
        logger.debug("Highlight %s", self.active_key)
        self._notify()

    def clear(self) -> None:
        if self.active_key is None:
            return
        self.active_key = None
        self._notify()

    def is_emphasized(self, element_key: str) -> bool:
        return self.active_key is None or to_safe_id(element_key) == self.active_key

    def opacity(self, element_key: str, dimmed: float = 0.2) -> float:
        return 1.0 if self.is_emphasized(element_key) else dimmed

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.active_key)
