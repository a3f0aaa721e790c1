"""sqlconcentration package."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

_VERSION_LINE = re.compile(r'^version\s*=\s*"([^"]+)"\s*$')


def _source_tree_version() -> str | None:
    """Read `[project].version` when running from a checkout without an install."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if pyproject.is_file():
            return _project_version(pyproject.read_text(encoding="utf-8"))
    return None


def _project_version(text: str) -> str | None:
    section = ""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("[") and stripped.endswith("]"):
            section = stripped
        elif section == "[project]":
            match = _VERSION_LINE.match(stripped)
            if match:
                return match.group(1)
    return None


def _resolve_version() -> str:
    local = _source_tree_version()
    if local is not None:
        return local
    try:
        return version("sqlconcentration")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _resolve_version()
