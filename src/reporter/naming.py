"""Test names and artifact paths derived from a runner event."""

from __future__ import annotations

from pathlib import Path

from src.models.test_event import EventBase

# Destination prefix TeamCity hides from the regular artifacts tab
HIDDEN_ARTIFACTS_PATH = Path(".teamcity")


def full_title(event: EventBase) -> str:
    """Join the trimmed suite titles root-to-leaf, e.g. ``"Suite: Nested: case"``."""
    return ": ".join(title.strip() for title in event.title_path).strip()


def format_test_name(event: EventBase) -> str:
    return f"{full_title(event)} [{event.browser_id.strip()}]"


def image_path(images_root: Path, event: EventBase, label: str) -> Path:
    """Return ``<images_root>/<full title>/<browser>/<label>.png``."""
    return images_root / full_title(event) / event.browser_id.strip() / f"{label}.png"


def hidden_artifact_path(path: Path) -> Path:
    """Mirror ``path`` under the hidden-artifacts prefix.

    Absolute paths are re-rooted rather than replacing the prefix.
    """
    if path.is_absolute():
        path = path.relative_to(path.anchor)
    return HIDDEN_ARTIFACTS_PATH / path
