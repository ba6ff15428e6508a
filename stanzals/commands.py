"""Prompt commands and their dispatch table."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from stanzals.arguments import ParsedArgs
from stanzals.database import DefinitionsDatabase
from stanzals.paths import is_within
from stanzals.watch import Log


@dataclass
class CommandContext:
    """State shared between the prompt loop and command handlers."""

    db: DefinitionsDatabase
    workspace: Path
    log: Log
    args: ParsedArgs = field(default_factory=ParsedArgs)
    running: bool = True


Handler = Callable[[CommandContext], None]


def document_symbols_action(ctx: CommandContext) -> None:
    """List the definitions in one file."""
    if not ctx.args.params:
        return
    path = Path(ctx.args.params[0])
    if not path.is_absolute():
        path = ctx.workspace / path
    for definition in ctx.db.definitions.in_file(path):
        ctx.log(definition.format())


def folder_symbols_action(ctx: CommandContext) -> None:
    """List every known definition; ``--nocore`` keeps workspace files only."""
    workspace_only = ctx.args.flag("nocore")
    for definition in ctx.db.definitions:
        if workspace_only and not is_within(definition.file, ctx.workspace):
            continue
        ctx.log(definition.format())


def _not_implemented(ctx: CommandContext) -> None:
    # Accepted so clients can issue it; answers nothing yet.
    return None


references_action = _not_implemented
hover_action = _not_implemented
completions_action = _not_implemented
diagnostic_action = _not_implemented
definition_action = _not_implemented
implementations_action = _not_implemented
signature_action = _not_implemented


def quit_action(ctx: CommandContext) -> None:
    ctx.running = False
    ctx.db.clear()


COMMANDS: dict[str, Handler] = {
    "document-symbols": document_symbols_action,
    "folder-symbols": folder_symbols_action,
    "references": references_action,
    "hover": hover_action,
    "completions": completions_action,
    "diagnostic": diagnostic_action,
    "definition": definition_action,
    "implementations": implementations_action,
    "signature": signature_action,
    "quit": quit_action,
}


def dispatch(ctx: CommandContext) -> bool:
    """Run the handler named by the parsed command.

    Returns:
        False if the command is unknown, True otherwise (including empty input).
    """
    name = ctx.args.command
    if name is None:
        return True
    handler = COMMANDS.get(name)
    if handler is None:
        ctx.log(
            f"Error: unknown action '{name}'. Available: {', '.join(COMMANDS)}",
            err=True,
        )
        return False
    handler(ctx)
    return True
