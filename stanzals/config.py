"""Runtime settings and fixed workspace names."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

PROJ_FILENAME = "stanza.proj"
SOURCE_EXTENSION = ".stanza"
ARTIFACT_FILENAME = "lb-stanza-code_defsdb.dat"
PROMPT = "stnzls> "


@dataclass(frozen=True)
class Settings:
    """Knobs for the toolchain, the file watchers and shutdown behavior."""

    stanza: str = "stanza"
    deserialize_script: Path = Path("scripts/deserialize.stanza")
    # Seconds the watchdog observer waits between checks; also bounds shutdown time.
    observer_timeout: float = 1.0
    # Seconds to wait for further change events before regenerating; 0 disables.
    debounce: float = 0.0
    clear_records_on_quit: bool = False
