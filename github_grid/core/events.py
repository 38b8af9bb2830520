import logging
from collections.abc import Callable
from typing import Any


logger = logging.getLogger(__name__)


class Signal:
    """Minimal synchronous notification hub.

    Listeners are called in connection order. A failing listener is logged
    and does not prevent delivery to the remaining ones.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[..., Any]] = []

    def connect(self, listener: Callable[..., Any]) -> None:
        self._listeners.append(listener)

    def disconnect(self, listener: Callable[..., Any]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def disconnect_all(self) -> None:
        self._listeners.clear()

    def emit(self, *args: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener for %s signal failed", self.name)
