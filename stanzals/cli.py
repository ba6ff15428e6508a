"""CLI entry point for stanzals."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from stanzals.config import ARTIFACT_FILENAME, PROJ_FILENAME, Settings
from stanzals.database import DefinitionsDatabase
from stanzals.discovery import discover_proj_files
from stanzals.repl import InteractiveLoop, LineReader, PromptLog, read_stdin_line


def _prepare_artifact(workspace: Path) -> Path:
    """Return the artifact path, removing a stale artifact from a previous run."""
    artifact = workspace / ARTIFACT_FILENAME
    if artifact.is_file():
        artifact.unlink()
    return artifact


async def serve(
    db: DefinitionsDatabase,
    workspace: Path,
    log: PromptLog,
    read_line: LineReader = read_stdin_line,
) -> None:
    """Run the initial traversal, then the prompt, then wait for watchers to stop."""
    await db.traverse()
    await InteractiveLoop(db, workspace, log=log, read_line=read_line).run()
    await db.watches.join()


app = typer.Typer(
    name="stanzals",
    help="Keep a Stanza definitions database up to date and query it interactively.",
    no_args_is_help=False,
)


@app.command()
def main(
    workspace: Annotated[
        Path,
        typer.Argument(
            help="Workspace root directory containing stanza.proj.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    stanza: Annotated[
        str,
        typer.Option("--stanza", envvar="STANZALS_STANZA", help="Stanza compiler executable."),
    ] = "stanza",
    deserialize_script: Annotated[
        Path,
        typer.Option(
            "--deserialize-script",
            envvar="STANZALS_DESERIALIZE_SCRIPT",
            help="Stanza script that dumps the definitions database as text.",
        ),
    ] = Path("scripts/deserialize.stanza"),
    observer_timeout: Annotated[
        float,
        typer.Option(
            "--observer-timeout",
            envvar="STANZALS_OBSERVER_TIMEOUT",
            min=0.01,
            help="Seconds the file observer waits between checks (bounds shutdown time).",
        ),
    ] = 1.0,
    debounce: Annotated[
        float,
        typer.Option(
            "--debounce",
            envvar="STANZALS_DEBOUNCE",
            min=0.0,
            help="Coalesce change events arriving within this many seconds (0: off).",
        ),
    ] = 0.0,
    clear_on_quit: Annotated[
        bool,
        typer.Option(
            "--clear-on-quit",
            envvar="STANZALS_CLEAR_ON_QUIT",
            help="Also drop loaded definitions when quitting.",
        ),
    ] = False,
) -> None:
    """Watch the workspace and start the interactive prompt."""
    main_proj = workspace / PROJ_FILENAME
    if not main_proj.is_file():
        typer.echo(f"Error: no main {PROJ_FILENAME} file in {workspace}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Main proj file: {main_proj}")

    artifact = _prepare_artifact(workspace)
    typer.echo(f"Dat file: {artifact}")

    proj_files = discover_proj_files(workspace)
    if main_proj not in proj_files:
        proj_files.insert(0, main_proj)
    typer.echo(f"All proj files: {', '.join(str(p) for p in proj_files)}")

    settings = Settings(
        stanza=stanza,
        deserialize_script=deserialize_script,
        observer_timeout=observer_timeout,
        debounce=debounce,
        clear_records_on_quit=clear_on_quit,
    )
    log = PromptLog()
    db = DefinitionsDatabase(main_proj, artifact, proj_files, settings=settings, log=log)
    asyncio.run(serve(db, workspace, log))
