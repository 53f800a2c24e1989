"""Artifact publisher — persists screenshots and announces them to TeamCity."""

from __future__ import annotations

import asyncio
import base64
import concurrent.futures
import functools
import inspect
import logging
import shutil
import threading
from pathlib import Path
from typing import Any, Callable, Coroutine, Union

from src.models.config import ReporterConfig, ScreenshotPolicy
from src.models.test_event import FailedEvent, ImageHandle, PassedEvent

from .channel import ReportingChannel
from .naming import format_test_name, hidden_artifact_path, image_path

logger = logging.getLogger(__name__)

OutcomeEvent = Union[PassedEvent, FailedEvent]


def _copy_file(source: str, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, target)


def _write_file(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


def _produce_diff(save_diff_to: Callable[..., Any], target: Path) -> Any:
    target.parent.mkdir(parents=True, exist_ok=True)
    return save_diff_to(target)


class ArtifactPublisher:
    """Copies visual-check images under the images root and announces them.

    Persistence runs as asyncio tasks so the caller never waits on disk I/O.
    A runner that emits outside an event loop gets the work scheduled on a
    background loop thread instead; channel writes are serialised by a lock.
    The announcement is sent only after the file is in place; a failed copy,
    write or diff is logged and never announced.
    """

    def __init__(self, config: ReporterConfig, channel: ReportingChannel):
        self.images_root = config.images_root
        self.policy = config.report_screenshots
        self.channel = channel
        self._pending: set[asyncio.Task] = set()
        self._background: set[concurrent.futures.Future] = set()
        self._channel_lock = threading.Lock()
        self._loop_lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self.images_root.mkdir(parents=True, exist_ok=True)

    def publish(self, event: OutcomeEvent) -> None:
        """Schedule persistence + announcement for every artifact of ``event``."""
        if self.policy is ScreenshotPolicy.NEVER:
            return
        test_name = format_test_name(event)

        screenshot = event.error_screenshot
        if screenshot:
            target = image_path(self.images_root, event, "Error")
            self._spawn(self._write_and_announce(test_name, screenshot, target), target)

        for result in event.assert_view_results:
            if result.failed or self.policy is ScreenshotPolicy.ALWAYS:
                self._copy_and_announce(event, test_name, f"{result.state_name}.reference", result.ref_img)

            if not result.failed:
                continue

            self._copy_and_announce(event, test_name, f"{result.state_name}.current", result.curr_img)

            if result.save_diff_to is not None:
                target = image_path(self.images_root, event, f"{result.state_name}.diff")
                self._spawn(self._diff_and_announce(test_name, result.save_diff_to, target), target)

    def announce(self, test_name: str, image: Path) -> None:
        """Publish ``image`` as a hidden artifact and attach it to the test."""
        with self._channel_lock:
            self.channel.publishArtifacts(
                f"{image.absolute()} => {hidden_artifact_path(image.parent)}"
            )
            self.channel.message(
                "testMetadata",
                testName=test_name,
                type="image",
                value=str(hidden_artifact_path(image)),
            )
        logger.debug("Announced %s for %s", image, test_name)

    async def drain(self) -> None:
        """Wait for all in-flight artifacts. Failures are already logged."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        background = self._background_snapshot()
        if background:
            await asyncio.gather(
                *(asyncio.wrap_future(f) for f in background), return_exceptions=True
            )

    def wait(self, timeout: float | None = None) -> None:
        """Block until artifacts scheduled outside a running loop are done."""
        concurrent.futures.wait(self._background_snapshot(), timeout=timeout)

    def close(self) -> None:
        """Stop the background loop, if one was started."""
        with self._loop_lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.close()

    @property
    def pending_count(self) -> int:
        with self._loop_lock:
            return len(self._pending) + len(self._background)

    def _copy_and_announce(
        self, event: OutcomeEvent, test_name: str, label: str, handle: ImageHandle | None
    ) -> None:
        if handle is None or not handle.path:
            return
        target = image_path(self.images_root, event, label)
        self._spawn(self._copy_then_announce(test_name, handle.path, target), target)

    async def _copy_then_announce(self, test_name: str, source: str, target: Path) -> None:
        await asyncio.to_thread(_copy_file, source, target)
        self.announce(test_name, target)

    async def _write_and_announce(self, test_name: str, data: str, target: Path) -> None:
        await asyncio.to_thread(_write_file, target, base64.b64decode(data))
        self.announce(test_name, target)

    async def _diff_and_announce(
        self, test_name: str, save_diff_to: Callable[..., Any], target: Path
    ) -> None:
        result = await asyncio.to_thread(_produce_diff, save_diff_to, target)
        if inspect.isawaitable(result):
            await result
        self.announce(test_name, target)

    def _spawn(self, coro: Coroutine[Any, Any, None], target: Path) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop - hand the work to the background loop thread
            future = asyncio.run_coroutine_threadsafe(
                self._logged(coro, target), self._background_loop()
            )
            with self._loop_lock:
                self._background.add(future)
            future.add_done_callback(self._on_background_done)
            return

        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._on_done, target))

    def _background_loop(self) -> asyncio.AbstractEventLoop:
        with self._loop_lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._loop.run_forever, name="artifact-publisher", daemon=True
                )
                self._thread.start()
            return self._loop

    def _background_snapshot(self) -> list[concurrent.futures.Future]:
        with self._loop_lock:
            return list(self._background)

    async def _logged(self, coro: Coroutine[Any, Any, None], target: Path) -> None:
        try:
            await coro
        except Exception as e:
            logger.error("Failed to publish artifact %s: %s", target, e, exc_info=e)

    def _on_background_done(self, future: concurrent.futures.Future) -> None:
        with self._loop_lock:
            self._background.discard(future)

    def _on_done(self, target: Path, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Artifact publication cancelled: %s", target)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Failed to publish artifact %s: %s", target, exc, exc_info=exc)
