"""The interactive prompt."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

import typer

from stanzals.arguments import parse_args, tokenize
from stanzals.commands import CommandContext, dispatch
from stanzals.config import PROMPT
from stanzals.database import DefinitionsDatabase
from stanzals.watch import Log

LineReader = Callable[[], Awaitable["str | None"]]


class PromptLog:
    """Log callback that keeps background messages off the visible prompt.

    While ``awaiting_input`` is set, a message is preceded by a newline and
    followed by the prompt again.
    """

    def __init__(self, prompt: str = PROMPT, echo: Log = typer.echo) -> None:
        self.prompt = prompt
        self.awaiting_input = False
        self._echo = echo

    def __call__(self, message: str, *, err: bool = False) -> None:
        if self.awaiting_input:
            self._echo("")
        self._echo(message, err=err)
        if self.awaiting_input:
            self.show_prompt()

    def show_prompt(self) -> None:
        self._echo(self.prompt, nl=False)


async def read_stdin_line() -> str | None:
    """Read one line from stdin without blocking the event loop; None on EOF."""
    line = await asyncio.to_thread(sys.stdin.readline)
    if not line:
        return None
    return line.rstrip("\r\n")


class InteractiveLoop:
    """Read a line, dispatch it, repeat until ``quit`` (or end of input)."""

    def __init__(
        self,
        db: DefinitionsDatabase,
        workspace: Path,
        *,
        log: PromptLog | None = None,
        read_line: LineReader = read_stdin_line,
    ) -> None:
        self.log = log or PromptLog()
        self.read_line = read_line
        self.context = CommandContext(db=db, workspace=workspace, log=self.log)

    @property
    def running(self) -> bool:
        return self.context.running

    async def run(self) -> None:
        while self.context.running:
            line = await self._next_line()
            if line is None:
                line = "quit"
            self.context.args = parse_args(tokenize(line))
            dispatch(self.context)
        self.log("Definitions database shut down cleanly.")

    async def _next_line(self) -> str | None:
        self.log.show_prompt()
        self.log.awaiting_input = True
        try:
            return await self.read_line()
        finally:
            self.log.awaiting_input = False
