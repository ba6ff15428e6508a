"""Watch, regenerate and deserialize the workspace definitions database."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from stanzals.config import Settings
from stanzals.discovery import resolve_defined_in
from stanzals.models import DefinitionTable
from stanzals.paths import exists
from stanzals.records import RecordParseError, parse_definitions
from stanzals.toolchain import StanzaToolchain, ToolchainError
from stanzals.watch import FileWatcher, Log, WatchSet


class DefinitionsDatabase:
    """The definitions database of one workspace and the watchers feeding it.

    Every change to a watched descriptor or source file regenerates the whole
    database. The first successful build starts from scratch; later builds
    merge into the existing artifact. Regenerations are serialized, and
    records accumulate across them deduplicated by file, line, column and name.

    ``is_serialized`` is False from the end of a successful build until the
    matching deserialization finishes.
    """

    def __init__(
        self,
        main_proj: Path,
        artifact: Path,
        proj_files: list[Path],
        *,
        toolchain: StanzaToolchain | None = None,
        settings: Settings | None = None,
        log: Log = typer.echo,
    ) -> None:
        self.settings = settings or Settings()
        self.main_proj = main_proj
        self.artifact = artifact
        self.proj_files = list(proj_files)
        self.toolchain = toolchain or StanzaToolchain(
            self.settings.stanza, self.settings.deserialize_script
        )
        self.log = log

        self.is_generated = False
        self.is_serialized = False
        self.definitions = DefinitionTable()
        self.watches = WatchSet(log, timeout=self.settings.observer_timeout)

        self._regen_lock = asyncio.Lock()
        self._requests = 0

    @property
    def stz_files(self) -> list[Path]:
        """Source files currently being watched."""
        return list(self.watches.targets)

    async def traverse(self) -> None:
        """Start a watcher for every descriptor and wait for their initial reads."""
        waits = []
        for proj_file in self.proj_files:
            ready = asyncio.Event()
            task = self.watches.spawn(
                self.setup_proj_watcher(proj_file, ready=ready), name=str(proj_file)
            )
            waits.append(_until_ready(task, ready))
        await asyncio.gather(*waits)

    async def setup_proj_watcher(
        self, proj_file: Path, *, ready: asyncio.Event | None = None
    ) -> None:
        """Read a descriptor, then re-read it on every change until cancelled."""
        self.log(f"Setting up proj file {proj_file} watcher...")
        watcher = self.watches.watcher(proj_file)
        try:
            await self.read_proj_file(proj_file)
        finally:
            if ready is not None:
                ready.set()
        async for event in watcher:
            self.log(f"proj file {proj_file} event occurred '{event.event_type}'")
            if event.event_type == "change":
                await self.read_proj_file(proj_file)

    async def read_proj_file(self, proj_file: Path) -> None:
        """Watch every existing source file a descriptor references, then regenerate."""
        self.log(f"Reading proj file {proj_file}...")
        try:
            text = proj_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.log(f"Error: cannot read {proj_file}: {exc}", err=True)
            raise
        for stz_file in resolve_defined_in(proj_file, text):
            self.watch_stz_file(stz_file)
        await self.regenerate()

    def watch_stz_file(self, stz_file: Path) -> asyncio.Task[None] | None:
        """Start watching a source file unless it is already watched.

        Returns:
            The watch task, or None if the file was already watched.
        """
        if not self.watches.register(stz_file):
            return None
        self.log(f"Watching stanza file {stz_file}...")
        watcher = self.watches.watcher(stz_file)
        return self.watches.spawn(self._observe_stz_file(watcher), name=str(stz_file))

    async def _observe_stz_file(self, watcher: FileWatcher) -> None:
        async for event in watcher:
            self.log(f"stanza file {watcher.path} event occurred '{event.event_type}'")
            if event.event_type == "change":
                await self.regenerate()

    async def regenerate(self) -> None:
        """Handle one regeneration request from a watcher.

        With a debounce window configured, a request followed by another one
        within the window is dropped in favor of the later request. Toolchain
        failures and unreadable deserializer output are logged; the next
        change event is the retry.
        """
        if self.settings.debounce > 0:
            self._requests += 1
            ticket = self._requests
            await asyncio.sleep(self.settings.debounce)
            if ticket != self._requests:
                return
        try:
            await self.generate()
        except (ToolchainError, RecordParseError) as exc:
            self.log(f"Error: regeneration abandoned: {exc}", err=True)

    async def generate(self) -> None:
        """Build the artifact and refresh the records from it.

        Raises:
            ToolchainError: If the build or the deserializer fails.
            RecordParseError: If a deserializer output line is malformed.
        """
        async with self._regen_lock:
            self.log("Generating dat file...")
            merge = self.is_generated and exists(self.artifact)
            await self.toolchain.build(
                self.main_proj,
                self.artifact,
                merge_with=self.artifact if merge else None,
            )
            self.is_generated = True
            self.is_serialized = False
            await self._deserialize()

    async def deserialize(self) -> int:
        """Load records from the current artifact.

        Returns:
            The number of records that were not already known.
        """
        async with self._regen_lock:
            return await self._deserialize()

    async def _deserialize(self) -> int:
        output = await self.toolchain.deserialize(self.artifact)
        added = sum(self.definitions.add(d) for d in parse_definitions(output))
        self.is_serialized = True
        self.log(f"Loaded {added} new definitions ({len(self.definitions)} total).")
        return added

    def abort_all_watchers(self) -> None:
        self.watches.cancel()

    def clear(self) -> None:
        """Stop all watchers and forget the watched source files."""
        self.log("Clearing definitions database...")
        self.abort_all_watchers()
        self.watches.reset()
        if self.settings.clear_records_on_quit:
            self.definitions.clear()


async def _until_ready(task: asyncio.Task[None], ready: asyncio.Event) -> None:
    waiter = asyncio.ensure_future(ready.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
