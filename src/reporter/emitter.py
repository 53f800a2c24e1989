"""Report emitter — turns typed runner events into TeamCity test messages."""

from __future__ import annotations

import logging
from typing import Union

from src.models.test_event import FailedEvent, PassedEvent, PendingEvent

from .artifacts import ArtifactPublisher
from .channel import ReportingChannel, as_duration
from .naming import format_test_name

logger = logging.getLogger(__name__)


class ReportEmitter:
    """Emits the ordered message sequence for each test outcome.

    TeamCity rejects a ``testFinished`` without a preceding ``testStarted``,
    so every method writes its messages strictly in protocol order before
    handing visual artifacts to the publisher.
    """

    def __init__(self, channel: ReportingChannel, publisher: ArtifactPublisher | None = None):
        self.channel = channel
        self.publisher = publisher

    def report_pending(self, event: PendingEvent) -> None:
        test_name = format_test_name(event)
        logger.debug("Ignored: %s", test_name)
        self.channel.testIgnored(test_name)

    def report_passed(self, event: PassedEvent) -> None:
        test_name = format_test_name(event)
        logger.debug("Passed: %s (%sms)", test_name, event.resolved_duration)
        self.channel.testStarted(test_name)
        self.channel.testFinished(test_name, testDuration=as_duration(event.resolved_duration))
        self._publish_artifacts(event)

    def report_failed(self, event: FailedEvent) -> None:
        test_name = format_test_name(event)
        logger.debug("Failed: %s: %s", test_name, event.failure_message)
        self.channel.testStarted(test_name)
        self.channel.testFailed(
            test_name,
            message=event.failure_message,
            details=event.failure_details,
        )
        self.channel.testFinished(test_name, testDuration=as_duration(event.resolved_duration))
        self._publish_artifacts(event)

    def _publish_artifacts(self, event: Union[PassedEvent, FailedEvent]) -> None:
        if self.publisher is None:
            return
        if event.error_screenshot or event.assert_view_results:
            self.publisher.publish(event)
