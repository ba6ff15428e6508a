"""Small filesystem helpers."""

from __future__ import annotations

import os
from pathlib import Path


def exists(path: Path) -> bool:
    """Return True if anything exists at path."""
    return os.path.lexists(path)


def is_within(path: Path, root: Path) -> bool:
    """Check whether path is root or lies somewhere beneath it.

    Both paths are made absolute and normalized (``..`` collapsed) but
    symlinks are not resolved.
    """
    target = Path(os.path.normpath(os.path.abspath(path)))
    base = Path(os.path.normpath(os.path.abspath(root)))
    if target == base:
        return True
    return base in target.parents
