"""Reporting channel — TeamCity service messages written to stdout."""

from __future__ import annotations

import sys
from datetime import timedelta
from typing import IO, Optional, Protocol

from teamcity.messages import TeamcityServiceMessages


class ReportingChannel(Protocol):
    """The subset of ``TeamcityServiceMessages`` the reporter relies on."""

    def testIgnored(self, testName: str, message: str = "") -> None: ...

    def testStarted(self, testName: str) -> None: ...

    def testFailed(self, testName: str, message: str = "", details: str = "") -> None: ...

    def testFinished(self, testName: str, testDuration: Optional[timedelta] = None) -> None: ...

    def publishArtifacts(self, path: str) -> None: ...

    def message(self, messageName: str, **properties: str) -> None: ...


def create_channel(output: Optional[IO[str]] = None) -> TeamcityServiceMessages:
    """Build the service-message writer (stdout unless ``output`` is given).

    Text-only streams such as ``io.StringIO`` have no ``buffer`` and must be
    written as ``str``; the library encodes to bytes otherwise.
    """
    out = output if output is not None else sys.stdout
    return TeamcityServiceMessages(output=out, encoding="auto" if hasattr(out, "buffer") else None)


def as_duration(milliseconds: float) -> timedelta:
    return timedelta(milliseconds=milliseconds)
