"""Invocation of the external Stanza build and deserializer."""

from __future__ import annotations

import asyncio
from pathlib import Path


class ToolchainError(RuntimeError):
    """An external toolchain command failed to start or exited non-zero."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or (
            f"exit status {returncode}" if returncode is not None else "failed to start"
        )
        super().__init__(f"{command[0]} {command[1]}: {detail}")


class StanzaToolchain:
    """Runs ``stanza definitions-database`` and the deserializer script."""

    def __init__(self, executable: str = "stanza", deserialize_script: Path | None = None) -> None:
        self.executable = executable
        self.deserialize_script = deserialize_script or Path("scripts/deserialize.stanza")

    def build_command(
        self, main_proj: Path, artifact: Path, *, merge_with: Path | None = None
    ) -> list[str]:
        """Return the argv for building the definitions database."""
        command = [self.executable, "definitions-database", str(main_proj), "-o", str(artifact)]
        if merge_with is not None:
            command += ["-merge-with", str(merge_with)]
        return command

    def deserialize_command(self, artifact: Path) -> list[str]:
        """Return the argv for dumping the definitions database as text."""
        return [self.executable, "run", str(self.deserialize_script), "--", str(artifact)]

    async def build(
        self, main_proj: Path, artifact: Path, *, merge_with: Path | None = None
    ) -> None:
        """Build the definitions database, optionally merging with a prior artifact.

        Raises:
            ToolchainError: If the compiler cannot be started or fails.
        """
        await _run(self.build_command(main_proj, artifact, merge_with=merge_with))

    async def deserialize(self, artifact: Path) -> str:
        """Return the deserializer's standard output for artifact.

        Raises:
            ToolchainError: If the deserializer cannot be started or fails.
        """
        return await _run(self.deserialize_command(artifact))


async def _run(command: list[str]) -> str:
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ToolchainError(command, None, str(exc)) from exc
    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        raise ToolchainError(
            command, process.returncode, stderr.decode("utf-8", errors="replace")
        )
    return stdout.decode("utf-8", errors="replace")
