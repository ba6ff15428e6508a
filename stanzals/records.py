"""Parsing of deserializer output into Definition records."""

from __future__ import annotations

from pathlib import Path

from stanzals.models import Definition, DefinitionKind, Visibility

REQUIRED_FIELDS: tuple[str, ...] = ("file", "line", "col", "name", "kind", "visibility")

_KIND_MAP: dict[str, DefinitionKind] = {
    "srcdeffunction": DefinitionKind.FUNCTION,
    "srcdeftype": DefinitionKind.TYPE,
    "srcdefmulti": DefinitionKind.MULTI,
    "srcdefvariable": DefinitionKind.VARIABLE,
    "function": DefinitionKind.FUNCTION,
    "type": DefinitionKind.TYPE,
    "multi": DefinitionKind.MULTI,
    "variable": DefinitionKind.VARIABLE,
}


class RecordParseError(ValueError):
    """A deserializer output line could not be turned into a Definition."""


def parse_kind(token: str) -> DefinitionKind:
    """Map a deserializer kind token to a DefinitionKind, defaulting to UNKNOWN."""
    return _KIND_MAP.get(token.strip().lower(), DefinitionKind.UNKNOWN)


def parse_visibility(token: str) -> Visibility:
    """Map a deserializer visibility token to a Visibility.

    Raises:
        RecordParseError: If the token names no known visibility.
    """
    try:
        return Visibility(token.strip().lower())
    except ValueError:
        raise RecordParseError(f"unknown visibility {token!r}") from None


def parse_definition_line(line: str) -> Definition:
    """Parse one tab-separated ``key=value`` line.

    Args:
        line: A single line of deserializer output, without the newline.

    Returns:
        The parsed Definition.

    Raises:
        RecordParseError: If a required field is missing or malformed.
    """
    fields: dict[str, str] = {}
    for segment in line.split("\t"):
        if not segment:
            continue
        key, sep, value = segment.partition("=")
        if not sep:
            raise RecordParseError(f"segment without '=': {segment!r}")
        fields[key.strip()] = value

    missing = [name for name in REQUIRED_FIELDS if name not in fields]
    if missing:
        raise RecordParseError(f"missing fields {', '.join(missing)} in {line!r}")

    try:
        line_no = int(fields["line"])
        col = int(fields["col"])
    except ValueError:
        raise RecordParseError(f"non-numeric position in {line!r}") from None

    return Definition(
        file=Path(fields["file"]),
        line=line_no,
        col=col,
        name=fields["name"],
        kind=parse_kind(fields["kind"]),
        visibility=parse_visibility(fields["visibility"]),
    )


def parse_definitions(output: str) -> list[Definition]:
    """Parse every non-empty line of deserializer output."""
    return [
        parse_definition_line(line)
        for line in output.splitlines()
        if line.strip()
    ]
