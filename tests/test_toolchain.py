"""Tests for the external toolchain wrapper."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from stanzals.toolchain import StanzaToolchain, ToolchainError, _run


class TestCommands:
    """Tests for argv construction."""

    def test_build_command(self) -> None:
        tc = StanzaToolchain("stanza")
        assert tc.build_command(Path("/ws/stanza.proj"), Path("/ws/defs.dat")) == [
            "stanza", "definitions-database", "/ws/stanza.proj", "-o", "/ws/defs.dat",
        ]

    def test_build_command_with_merge(self) -> None:
        tc = StanzaToolchain("stanza")
        command = tc.build_command(
            Path("/ws/stanza.proj"), Path("/ws/defs.dat"), merge_with=Path("/ws/defs.dat")
        )
        assert command[-2:] == ["-merge-with", "/ws/defs.dat"]

    def test_deserialize_command(self) -> None:
        tc = StanzaToolchain("stanza", Path("tools/deserialize.stanza"))
        assert tc.deserialize_command(Path("/ws/defs.dat")) == [
            "stanza", "run", "tools/deserialize.stanza", "--", "/ws/defs.dat",
        ]


class TestRun:
    """Tests for subprocess execution."""

    def test_returns_stdout(self) -> None:
        out = asyncio.run(_run([sys.executable, "-c", "print('file=a')"]))
        assert out.strip() == "file=a"

    def test_nonzero_exit(self) -> None:
        with pytest.raises(ToolchainError) as excinfo:
            asyncio.run(
                _run([sys.executable, "-c", "import sys; sys.exit('no proj')"])
            )
        assert excinfo.value.returncode == 1
        assert "no proj" in excinfo.value.stderr

    def test_missing_executable(self, tmp_path: Path) -> None:
        tc = StanzaToolchain(str(tmp_path / "no-stanza"))
        with pytest.raises(ToolchainError) as excinfo:
            asyncio.run(tc.build(tmp_path / "stanza.proj", tmp_path / "defs.dat"))
        assert excinfo.value.returncode is None
