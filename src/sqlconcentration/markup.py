"""Light markdown rendering for AI explanations."""

from __future__ import annotations

import re

_H3 = re.compile(r"^### (.*)$", re.MULTILINE)
_H2 = re.compile(r"^## (.*)$", re.MULTILINE)
_BOLD = re.compile(r"\*\*(.*?)\*\*")
_CODE = re.compile(r"`(.*?)`")


def markdown_to_terminal(text: str) -> str:
    """Plain-text rendering for the shell: uppercase headings, bare bold and code."""
    out = _H3.sub(lambda match: match.group(1).upper(), text)
    out = _H2.sub(lambda match: match.group(1).upper(), out)
    out = _BOLD.sub(r"\1", out)
    return _CODE.sub(r"\1", out)
