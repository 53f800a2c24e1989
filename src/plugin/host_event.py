"""Boundary parsing — loose runner test objects into typed events.

The runner hands over whatever it has: plain dicts from a recording, or live
objects with parent links. Fields are looked up by their Python name first
and the runner's camelCase name second, on mappings and attributes alike.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from typing import Any, Optional

from src.models.test_event import (
    ErrorInfo,
    FailedEvent,
    ImageHandle,
    PassedEvent,
    PendingEvent,
    TestEvent,
    VisualAssertionResult,
)

_MISSING = object()


def _field(obj: Any, *names: str, default: Any = None) -> Any:
    if obj is None:
        return default
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj:
                return obj[name]
        else:
            value = getattr(obj, name, _MISSING)
            if value is not _MISSING:
                return value
    return default


def title_path(test: Any) -> list[str]:
    """Titles from the outermost suite down to the test itself.

    Walks ``parent`` links and stops at the root suite, which has no title
    of its own. An untitled top node without a ``root`` flag is treated as
    that root. Without parent links, a flat ``full_title`` is used as-is.
    """
    if _field(test, "parent") is None:
        flat = _field(test, "full_title", "fullTitle")
        if callable(flat):
            flat = flat()
        if flat is not None:
            return [str(flat)]

    titles: list[str] = []
    node = test
    while node is not None and not _field(node, "root", default=False):
        title = str(_field(node, "title", default="") or "")
        parent = _field(node, "parent")
        if parent is None and node is not test and not title.strip():
            break
        titles.append(title)
        node = parent
    titles.reverse()
    return titles


def _image_handle(value: Any) -> Optional[ImageHandle]:
    if value is None:
        return None
    if isinstance(value, str):
        return ImageHandle(path=value)
    path = _field(value, "path")
    return ImageHandle(path=str(path) if path is not None else None)


def _visual_result(value: Any) -> VisualAssertionResult:
    failed = _field(value, "failed")
    if failed is None:
        # The runner reports a failed check as an exception instance
        failed = isinstance(value, BaseException)
    save_diff_to = _field(value, "save_diff_to", "saveDiffTo")
    return VisualAssertionResult(
        state_name=str(_field(value, "state_name", "stateName", default="")),
        ref_img=_image_handle(_field(value, "ref_img", "refImg")),
        curr_img=_image_handle(_field(value, "curr_img", "currImg")),
        failed=bool(failed),
        save_diff_to=save_diff_to if callable(save_diff_to) else None,
    )


def _error_info(err: Any) -> Optional[ErrorInfo]:
    if err is None:
        return None
    if isinstance(err, str):
        return ErrorInfo(raw=err)

    message = _field(err, "message")
    stack = _field(err, "stack")
    if isinstance(err, BaseException):
        message = message or str(err) or None
        if stack is None and err.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(err), err, err.__traceback__))

    screenshot = _field(err, "screenshot")
    if screenshot is not None and not isinstance(screenshot, str):
        screenshot = _field(screenshot, "base64")

    return ErrorInfo(
        message=str(message) if message else None,
        stack=str(stack) if stack else None,
        raw=err,
        screenshot_base64=screenshot or None,
    )


def parse_host_event(test: Any, kind: str) -> TestEvent:
    """Validate a runner test object into a ``pending``/``passed``/``failed`` event."""
    identity = {
        "title_path": title_path(test),
        "browser_id": str(_field(test, "browser_id", "browserId", default="")),
    }
    if kind == "pending":
        return PendingEvent(**identity)

    outcome = {
        **identity,
        "duration": _field(test, "duration"),
        "assert_view_results": [
            _visual_result(r)
            for r in _field(test, "assert_view_results", "assertViewResults", default=None) or []
        ],
    }
    if kind == "passed":
        return PassedEvent(**outcome)
    if kind == "failed":
        return FailedEvent(
            **outcome,
            hook_duration=_field(_field(test, "hook"), "duration"),
            error=_error_info(_field(test, "err", "error")),
        )
    raise ValueError(f"Unknown event kind: {kind}")
