"""Extract perspective descriptors from free-form model text."""

from __future__ import annotations

import re
from typing import List

_NUMBERED_LINE = re.compile(r"^\d+[.)]\s*(.+)$")
_PARAGRAPH_BREAK = re.compile(r"\n{2,}")


def parse_perspectives(raw: object) -> List[str]:
    """Return the numbered-list items of `raw`, in order.

    Models do not always honour the requested list format, so when no line
    matches the text is split into paragraphs instead.  An empty result is
    the caller's failure to handle.
    """

    if not isinstance(raw, str):
        return []

    results: List[str] = []
    for line in raw.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue
        match = _NUMBERED_LINE.match(trimmed)
        if match and match.group(1).strip():
            results.append(match.group(1).strip())

    if results:
        return results
    return [block.strip() for block in _PARAGRAPH_BREAK.split(raw) if block.strip()]
