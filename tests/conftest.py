"""Shared test fixtures for stanzals."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from stanzals.config import ARTIFACT_FILENAME, Settings
from stanzals.database import DefinitionsDatabase
from stanzals.models import Definition, DefinitionKind, Visibility
from stanzals.toolchain import ToolchainError


class RecordingLog:
    """Log callback that keeps every message for inspection."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.errors: list[str] = []

    def __call__(self, message: str, *, err: bool = False) -> None:
        (self.errors if err else self.messages).append(message)


class FakeToolchain:
    """Stands in for the Stanza compiler; records every invocation."""

    def __init__(self, output: str = "", *, delay: float = 0.0) -> None:
        self.output = output
        self.delay = delay
        self.fail_build = False
        self.builds: list[Path | None] = []
        self.deserialized = 0
        self.active = 0
        self.max_active = 0

    async def build(
        self, main_proj: Path, artifact: Path, *, merge_with: Path | None = None
    ) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            self.builds.append(merge_with)
            await asyncio.sleep(self.delay)
            if self.fail_build:
                raise ToolchainError(["stanza", "definitions-database"], 1, "boom")
            artifact.write_bytes(b"defs")
        finally:
            self.active -= 1

    async def deserialize(self, artifact: Path) -> str:
        self.deserialized += 1
        return self.output


SAMPLE_LINE = (
    "file={file}\tline=10\tcol=2\tname=foo\tkind=SrcDefFunction\tvisibility=Public"
)


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    """A workspace whose root descriptor references one existing source file."""
    (tmp_path / "lib").mkdir()
    (tmp_path / "lib" / "a.stanza").write_text(
        "defpackage a :\n  import core\n\ndefn foo () :\n  false\n", encoding="utf-8"
    )
    (tmp_path / "stanza.proj").write_text(
        'package a defined-in "lib/a.stanza"\n', encoding="utf-8"
    )
    return tmp_path


@pytest.fixture()
def sample_output(workspace: Path) -> str:
    return SAMPLE_LINE.format(file=workspace / "lib" / "a.stanza") + "\n"


@pytest.fixture()
def log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture()
def toolchain(sample_output: str) -> FakeToolchain:
    return FakeToolchain(sample_output)


@pytest.fixture()
def settings() -> Settings:
    return Settings(observer_timeout=0.05)


@pytest.fixture()
def db(
    workspace: Path, toolchain: FakeToolchain, settings: Settings, log: RecordingLog
) -> DefinitionsDatabase:
    return DefinitionsDatabase(
        workspace / "stanza.proj",
        workspace / ARTIFACT_FILENAME,
        [workspace / "stanza.proj"],
        toolchain=toolchain,
        settings=settings,
        log=log,
    )


@pytest.fixture()
def foo_definition(workspace: Path) -> Definition:
    return Definition(
        file=workspace / "lib" / "a.stanza",
        line=10,
        col=2,
        name="foo",
        kind=DefinitionKind.FUNCTION,
        visibility=Visibility.PUBLIC,
    )
