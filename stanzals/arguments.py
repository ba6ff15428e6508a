"""Tokenizing and flag parsing for prompt input."""

from __future__ import annotations

from dataclasses import dataclass, field

_QUOTES = frozenset({"'", '"'})


def tokenize(text: str) -> list[str]:
    """Split a prompt line into tokens.

    Tokens are separated by whitespace. A single- or double-quoted span is
    part of one token and may contain whitespace. Inside it, a backslash
    followed by the span's own quote character yields the quote alone (the
    backslash is dropped, as in a POSIX shell); any other backslash is kept
    literally. An unterminated span runs to the end of the line.

    Args:
        text: The raw input line.

    Returns:
        The tokens, with quotes removed.
    """
    tokens: list[str] = []
    buff: list[str] = []
    in_token = False
    quote: str | None = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote is not None:
            if ch == "\\" and i + 1 < len(text) and text[i + 1] == quote:
                buff.append(quote)
                i += 1
            elif ch == quote:
                quote = None
            else:
                buff.append(ch)
        elif ch in _QUOTES:
            quote = ch
            in_token = True
        elif ch.isspace():
            if in_token:
                tokens.append("".join(buff))
                buff = []
                in_token = False
        else:
            buff.append(ch)
            in_token = True
        i += 1
    if in_token:
        tokens.append("".join(buff))
    return tokens


@dataclass
class ParsedArgs:
    """Positional arguments and flags of one prompt line."""

    positional: list[str] = field(default_factory=list)
    flags: dict[str, str | bool] = field(default_factory=dict)

    @property
    def command(self) -> str | None:
        return self.positional[0] if self.positional else None

    @property
    def params(self) -> list[str]:
        return self.positional[1:]

    def flag(self, name: str) -> bool:
        """Return whether a boolean flag was given and not negated."""
        return self.flags.get(name, False) not in (False, "false", "0")


def parse_args(tokens: list[str]) -> ParsedArgs:
    """Separate flags from positional arguments.

    ``--name`` sets a flag, ``--no-name`` clears it, ``--name=value`` stores a
    value and ``-abc`` sets ``a``, ``b`` and ``c``. Everything after ``--``
    is positional.
    """
    parsed = ParsedArgs()
    remaining = iter(tokens)
    for token in remaining:
        if token == "--":
            parsed.positional.extend(remaining)
            break
        if token.startswith("--") and len(token) > 2:
            name, sep, value = token[2:].partition("=")
            if sep:
                parsed.flags[name] = value
            elif name.startswith("no-"):
                parsed.flags[name[3:]] = False
            else:
                parsed.flags[name] = True
        elif token.startswith("-") and len(token) > 1 and not token[1].isdigit():
            for letter in token[1:]:
                parsed.flags[letter] = True
        else:
            parsed.positional.append(token)
    return parsed
