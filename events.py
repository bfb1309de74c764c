# Notification channels

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

log = logging.getLogger(__name__)


class Channel:
    """One named stream of notifications with explicit subscribers."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: List[Callable] = []

    def subscribe(self, handler: Callable) -> Callable:
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Callable) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def clear(self) -> None:
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)

    def publish(self, *args) -> None:
        for handler in list(self._handlers):
            handler(*args)


class Notification(Enum):
    SELECT_START = "selectStart"
    SELECT_END = "selectEnd"
    PAUSED = "paused"
    PLAY = "play"
    EXPORT = "export"
    IMPORT = "import"
    MESSAGE = "message"


class ReportKind(Enum):
    CONFIG_MISSING = "config-missing"
    UNSUPPORTED_FILE = "unsupported-file"
    PARSE_FAILURE = "parse-failure"
    READ_FAILURE = "read-failure"
    WRITE_FAILURE = "write-failure"
    EMPTY_SELECTION = "empty-selection"
    INVALID_MOVE = "invalid-move"


@dataclass(frozen=True)
class Report:
    kind: ReportKind
    text: str


class EventBus:
    """A channel per Notification kind."""

    def __init__(self) -> None:
        self.channels: Dict[Notification, Channel] = {n: Channel(n.value) for n in Notification}

    def on(self, kind: Notification, handler: Callable) -> Callable:
        return self.channels[kind].subscribe(handler)

    def off(self, kind: Notification, handler: Callable) -> None:
        self.channels[kind].unsubscribe(handler)

    def emit(self, kind: Notification, *args) -> None:
        self.channels[kind].publish(*args)

    def report(self, kind: ReportKind, text: str) -> Report:
        rep = Report(kind, text)
        log.warning("%s: %s", kind.value, text)
        self.emit(Notification.MESSAGE, rep)
        return rep

    def clear(self) -> None:
        for ch in self.channels.values():
            ch.clear()
