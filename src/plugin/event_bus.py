"""In-process runner host used to replay recorded runner events."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Iterator

logger = logging.getLogger(__name__)


class EventBus:
    """Minimal ``on``/``emit`` host: handlers run synchronously, in order."""

    def __init__(self):
        self._handlers: dict[str, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event: str, handler: Callable[[Any], None]) -> "EventBus":
        self._handlers[event].append(handler)
        return self

    def emit(self, event: str, payload: Any) -> int:
        """Call every handler for ``event``; returns how many ran."""
        handlers = list(self._handlers.get(event, ()))
        if not handlers:
            logger.debug("No handlers for event %s", event)
        for handler in handlers:
            handler(payload)
        return len(handlers)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))


def read_recording(path: str | Path) -> Iterator[tuple[str, dict]]:
    """Yield ``(event, test)`` pairs from a JSON-lines recording.

    Each line is ``{"event": "<runner event>", "test": {...}}``; blank lines
    are skipped.
    """
    path = Path(path)
    with open(path) as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{lineno}: invalid JSON: {e}") from e
            if "event" not in record:
                raise ValueError(f"{path}:{lineno}: missing 'event'")
            yield record["event"], record.get("test") or {}
