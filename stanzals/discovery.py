"""Workspace discovery with gitignore support."""

from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path

import pathspec

from stanzals.config import PROJ_FILENAME, SOURCE_EXTENSION

SKIP_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        ".hg",
        ".svn",
        "build",
        "dist",
        "pkgs",
    }
)

_DEFINED_IN = re.compile(
    r'defined-in\s+"([\w/\\:.\-]+' + re.escape(SOURCE_EXTENSION) + r')"'
)


def _git_ls_files(root: Path) -> set[str] | None:
    """Return the set of git-tracked and untracked-but-not-ignored files.

    Returns:
        Set of repo-relative file paths, or None if git is unavailable
        or the directory is not a git repository.
    """
    if not (root / ".git").exists():
        return None
    try:
        result = subprocess.run(
            ["git", "ls-files", "--cached", "--others", "--exclude-standard"],
            cwd=root,
            capture_output=True,
            text=True,
            timeout=10,
            check=False,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return set(result.stdout.splitlines())


def _load_gitignore(root: Path) -> pathspec.PathSpec:
    """Load .gitignore from root, returning a PathSpec matcher."""
    gitignore_path = root / ".gitignore"
    if gitignore_path.is_file():
        lines = gitignore_path.read_text(encoding="utf-8").splitlines()
        return pathspec.PathSpec.from_lines("gitignore", lines)
    return pathspec.PathSpec.from_lines("gitignore", [])


def discover_proj_files(root: Path) -> list[Path]:
    """Walk root and return absolute paths of every descriptor file.

    Ignored files (per git, or the root .gitignore when git is unavailable)
    and hidden or vendored directories are skipped.

    Args:
        root: Workspace root directory.

    Returns:
        Absolute descriptor paths, sorted.
    """
    git_files = _git_ls_files(root)
    gitignore = _load_gitignore(root) if git_files is None else None

    results: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        # Prune skip dirs and hidden dirs in-place to prevent descent
        dirnames[:] = sorted(
            d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")
        )
        if PROJ_FILENAME not in filenames:
            continue
        if (Path(dirpath) / PROJ_FILENAME).is_symlink():
            continue

        rel = Path(dirpath).relative_to(root) / PROJ_FILENAME
        if git_files is not None:
            if rel.as_posix() not in git_files:
                continue
        elif gitignore and gitignore.match_file(rel.as_posix()):
            continue

        results.append(root / rel)

    results.sort()
    return results


def find_defined_in(text: str) -> list[str]:
    """Return every ``defined-in "<path>.stanza"`` path in descriptor text, in order."""
    return _DEFINED_IN.findall(text)


def resolve_defined_in(proj_file: Path, text: str) -> list[Path]:
    """Resolve descriptor references against the descriptor's directory.

    References to files that do not exist are dropped, as are repeats.
    """
    base = proj_file.parent
    resolved: list[Path] = []
    for ref in find_defined_in(text):
        candidate = Path(os.path.normpath(base / ref))
        if candidate.is_file() and candidate not in resolved:
            resolved.append(candidate)
    return resolved
