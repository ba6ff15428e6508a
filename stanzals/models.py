"""Core data structures for stanzals."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple


class DefinitionKind(enum.Enum):
    """The syntactic kind of a definition."""

    FUNCTION = "function"
    TYPE = "type"
    MULTI = "multi"
    VARIABLE = "variable"
    UNKNOWN = "unknown"


class Visibility(enum.Enum):
    """Package-level visibility of a definition."""

    PRIVATE = "private"
    PROTECTED = "protected"
    PUBLIC = "public"


class DefinitionKey(NamedTuple):
    """Identity of a definition across regenerations."""

    file: Path
    line: int
    col: int
    name: str


@dataclass(frozen=True)
class Definition:
    """A single definition reported by the definitions database."""

    file: Path
    line: int
    col: int
    name: str
    kind: DefinitionKind
    visibility: Visibility

    @property
    def key(self) -> DefinitionKey:
        return DefinitionKey(self.file, self.line, self.col, self.name)

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"

    def format(self) -> str:
        """Render as ``file:line:col name``."""
        return f"{self.location} {self.name}"


class DefinitionTable:
    """Insertion-ordered definitions, deduplicated by key.

    Records accumulate across regenerations; a record whose key is already
    present is ignored rather than replaced.
    """

    def __init__(self) -> None:
        self._records: dict[DefinitionKey, Definition] = {}

    def add(self, definition: Definition) -> bool:
        """Insert a definition unless its key is already present.

        Returns:
            True if the definition was inserted.
        """
        key = definition.key
        if key in self._records:
            return False
        self._records[key] = definition
        return True

    def in_file(self, path: Path) -> list[Definition]:
        """Return definitions whose file has the same name and parent as path."""
        return [
            d
            for d in self._records.values()
            if d.file.name == path.name and d.file.parent == path.parent
        ]

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Definition):
            item = item.key
        return item in self._records

    def __iter__(self) -> Iterator[Definition]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)
