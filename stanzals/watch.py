"""File watchers on a shared watchdog observer, stopped by one cancellation token."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

Log = Callable[..., None]

_IN_PLACE: dict[str, str] = {
    EVENT_TYPE_MODIFIED: "change",
    EVENT_TYPE_CREATED: "change",
    EVENT_TYPE_DELETED: "rename",
}


class CancellationToken:
    """A one-shot signal observed by every watch loop at its next wait."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.fire_count = 0

    @property
    def fired(self) -> bool:
        return self._event.is_set()

    def fire(self) -> None:
        """Set the signal. Firing an already fired token does nothing."""
        if self._event.is_set():
            return
        self.fire_count += 1
        self._event.set()

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait up to timeout seconds for the token to fire.

        Returns:
            True if the token has fired.
        """
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True


@dataclass(frozen=True)
class FileEvent:
    """A change observed on a watched file.

    ``event_type`` is ``"change"`` when the file was written, created, or
    replaced by a move onto it, and ``"rename"`` when it was deleted or moved
    away.
    """

    path: Path
    event_type: str


def _real(path: str | bytes) -> str:
    return os.path.realpath(os.fsdecode(path))


def classify(event: FileSystemEvent, target: str) -> str | None:
    """Return the FileEvent type an observer event means for target, if any.

    Args:
        event: An event from the observer watching target's directory.
        target: Real path of the watched file.
    """
    if event.is_directory:
        return None
    if event.event_type == EVENT_TYPE_MOVED:
        if _real(event.dest_path) == target:
            return "change"
        if _real(event.src_path) == target:
            return "rename"
        return None
    if _real(event.src_path) != target:
        return None
    return _IN_PLACE.get(event.event_type)


class _Forwarder(FileSystemEventHandler):
    """Hands events for one file from the observer thread to an event loop."""

    def __init__(self, watcher: FileWatcher) -> None:
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        event_type = classify(event, self._watcher.target)
        if event_type is None:
            return
        loop = self._watcher.loop
        if loop.is_closed():
            return
        loop.call_soon_threadsafe(
            self._watcher.queue.put_nowait, FileEvent(self._watcher.path, event_type)
        )


class FileWatcher:
    """Async iterator of FileEvents for one path.

    The observer is watching the file's directory from the moment the
    watcher is created, so changes made before the first iteration are still
    reported. Iteration ends, without error, once the token fires.

    Must be created while the event loop is running.

    Raises:
        OSError: If the file's directory cannot be watched.
    """

    def __init__(self, path: Path, token: CancellationToken, observer: BaseObserver) -> None:
        self.path = path
        self.target = _real(path)
        self.token = token
        self.loop = asyncio.get_running_loop()
        self.queue: asyncio.Queue[FileEvent] = asyncio.Queue()
        observer.schedule(_Forwarder(self), os.path.dirname(self.target), recursive=False)

    def __aiter__(self) -> FileWatcher:
        return self

    async def __anext__(self) -> FileEvent:
        if self.token.fired:
            raise StopAsyncIteration
        getter = asyncio.ensure_future(self.queue.get())
        stopper = asyncio.ensure_future(self.token.wait())
        try:
            await asyncio.wait({getter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopper.cancel()
            if not getter.done():
                getter.cancel()
        if self.token.fired or getter.cancelled():
            raise StopAsyncIteration
        return getter.result()


class WatchSet:
    """Active watch loops, the watched source files and their shared token.

    All watchers share one watchdog observer thread, started with the first
    watcher and stopped when the token is fired through ``cancel()``.
    """

    def __init__(self, log: Log = typer.echo, *, timeout: float = 1.0) -> None:
        self.token = CancellationToken()
        self.targets: list[Path] = []
        self.observer = Observer(timeout=timeout)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._log = log

    def __contains__(self, path: object) -> bool:
        return path in self.targets

    def register(self, path: Path) -> bool:
        """Record path as watched. Returns False if it already was."""
        if path in self.targets:
            return False
        self.targets.append(path)
        return True

    def watcher(self, path: Path) -> FileWatcher:
        if not self.observer.is_alive() and not self.token.fired:
            self.observer.start()
        return FileWatcher(path, self.token, self.observer)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        """Run a watch loop as a task; its failure is reported, never re-raised here."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log(f"Error: watcher {task.get_name()} stopped: {exc}", err=True)

    @property
    def tasks(self) -> frozenset[asyncio.Task[Any]]:
        return frozenset(self._tasks)

    def cancel(self) -> None:
        self.token.fire()
        if self.observer.is_alive():
            self.observer.stop()

    def reset(self) -> None:
        self.targets = []

    async def join(self) -> None:
        """Wait for every watch loop and the observer thread to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self.token.fired and self.observer.is_alive():
            await asyncio.to_thread(self.observer.join)
