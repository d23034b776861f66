"""Flashcard review and category-scored practice tests."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

_VERSION_LINE = re.compile(r'^version\s*=\s*"([^"]+)"\s*$')


def _source_tree_version() -> str | None:
    """Read `[project].version` from the nearest pyproject.toml when running from a checkout."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.is_file():
            continue
        section = ""
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped.startswith("["):
                section = stripped
                continue
            match = _VERSION_LINE.match(stripped)
            if section == "[project]" and match:
                return match.group(1)
        return None
    return None


def _resolve_version() -> str:
    local = _source_tree_version()
    if local is not None:
        return local
    try:
        return version("quizdeck")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _resolve_version()
