"""Pytest configuration and shared fixtures."""

import base64
from pathlib import Path
from unittest.mock import Mock

import pytest

from src.models.config import ReporterConfig, ScreenshotPolicy
from src.models.test_event import (
    ErrorInfo,
    FailedEvent,
    PassedEvent,
    PendingEvent,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    """Run the test from an empty directory so relative image paths stay short."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def reporter_config(workdir: Path) -> ReporterConfig:
    return ReporterConfig(images_dir="images")


@pytest.fixture
def always_config(workdir: Path) -> ReporterConfig:
    return ReporterConfig(images_dir="images", report_screenshots=ScreenshotPolicy.ALWAYS)


@pytest.fixture
def never_config(workdir: Path) -> ReporterConfig:
    return ReporterConfig(images_dir="images", report_screenshots=ScreenshotPolicy.NEVER)


# ============================================================================
# Channel Fixtures
# ============================================================================


@pytest.fixture
def channel() -> Mock:
    """Stand-in for TeamcityServiceMessages recording every call in order."""
    return Mock()


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def source_images(tmp_path: Path) -> dict[str, Path]:
    """Reference and current screenshots as a runner would leave them."""
    src = tmp_path / "runner-tmp"
    src.mkdir()
    ref = src / "ref.png"
    curr = src / "curr.png"
    ref.write_bytes(PNG_BYTES + b"-ref")
    curr.write_bytes(PNG_BYTES + b"-curr")
    return {"ref": ref, "curr": curr}


@pytest.fixture
def screenshot_base64() -> str:
    return base64.b64encode(PNG_BYTES).decode("ascii")


# ============================================================================
# Event Fixtures
# ============================================================================


@pytest.fixture
def pending_event() -> PendingEvent:
    return PendingEvent(title_path=["test"], browser_id="bro")


@pytest.fixture
def passed_event() -> PassedEvent:
    return PassedEvent(title_path=["test"], browser_id="bro", duration=100500)


@pytest.fixture
def failed_event() -> FailedEvent:
    return FailedEvent(
        title_path=["test"],
        browser_id="bro",
        duration=100500,
        error=ErrorInfo(message="awesome-error", stack="awesome-stack"),
    )
