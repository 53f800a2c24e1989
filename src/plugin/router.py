"""Lifecycle router — subscribes to runner events and dispatches reports."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Union

from pydantic import ValidationError

from src.models.config import ReporterConfig
from src.reporter.artifacts import ArtifactPublisher
from src.reporter.channel import ReportingChannel, create_channel
from src.reporter.emitter import ReportEmitter

from .host_event import parse_host_event

logger = logging.getLogger(__name__)


class RunnerEvent(str, Enum):
    """Runner event names used when the host does not publish its own."""

    TEST_PENDING = "pendingTest"
    TEST_PASS = "passTest"
    TEST_FAIL = "failTest"
    SUITE_FAIL = "suiteFail"


class RunnerHost(Protocol):
    def on(self, event: str, handler: Callable[[Any], None]) -> Any: ...


def _event_name(events: Any, event: RunnerEvent) -> str:
    if isinstance(events, Mapping):
        return events.get(event.name, event.value)
    if events is not None:
        return getattr(events, event.name, event.value)
    return event.value


class LifecycleRouter:
    """Routes the four reported runner events to the emitter.

    A suite failure carries the same fields as a failed test and is reported
    as one.
    """

    def __init__(self, emitter: ReportEmitter, publisher: ArtifactPublisher | None = None):
        self.emitter = emitter
        self.publisher = publisher

    def attach(self, host: RunnerHost) -> None:
        events = getattr(host, "events", None)
        host.on(_event_name(events, RunnerEvent.TEST_PENDING), self.on_test_pending)
        host.on(_event_name(events, RunnerEvent.TEST_PASS), self.on_test_pass)
        host.on(_event_name(events, RunnerEvent.TEST_FAIL), self.on_test_fail)
        host.on(_event_name(events, RunnerEvent.SUITE_FAIL), self.on_test_fail)
        logger.debug("TeamCity reporter attached to %s", type(host).__name__)

    def on_test_pending(self, test: Any) -> None:
        event = self._parse(test, "pending")
        if event is not None:
            self.emitter.report_pending(event)

    def on_test_pass(self, test: Any) -> None:
        event = self._parse(test, "passed")
        if event is not None:
            self.emitter.report_passed(event)

    def on_test_fail(self, test: Any) -> None:
        event = self._parse(test, "failed")
        if event is not None:
            self.emitter.report_failed(event)

    async def drain(self) -> None:
        """Wait for artifacts still being written."""
        if self.publisher is not None:
            await self.publisher.drain()

    def wait(self, timeout: float | None = None) -> None:
        """Blocking ``drain()`` for runners that emit outside an event loop."""
        if self.publisher is not None:
            self.publisher.wait(timeout)

    def close(self) -> None:
        if self.publisher is not None:
            self.publisher.close()

    def _parse(self, test: Any, kind: str):
        try:
            return parse_host_event(test, kind)
        except ValidationError as e:
            logger.error("Skipping malformed %s event: %s", kind, e)
            return None


def register_reporter(
    host: RunnerHost,
    config: Union[ReporterConfig, Mapping[str, Any], None] = None,
    channel: Optional[ReportingChannel] = None,
) -> LifecycleRouter | None:
    """Plugin entry point. Returns ``None`` and stays inert when disabled."""
    if config is None:
        config = ReporterConfig()
    elif not isinstance(config, ReporterConfig):
        config = ReporterConfig(**config)

    if not config.enabled:
        logger.debug("TeamCity reporter disabled")
        return None

    channel = channel if channel is not None else create_channel()
    publisher = ArtifactPublisher(config, channel)
    router = LifecycleRouter(ReportEmitter(channel, publisher), publisher)
    router.attach(host)
    logger.info("TeamCity reporter enabled, images in %s", config.images_root)
    return router
