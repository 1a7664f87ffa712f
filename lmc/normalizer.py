"""Source line normalization: strip // comments, collapse whitespace runs."""

from __future__ import annotations
import re
from typing import Optional

__all__ = ['normalize_line', 'COMMENT_MARKER']

COMMENT_MARKER = '//'

_WHITESPACE_RUN = re.compile(r'\s+')


def normalize_line(line: str) -> Optional[str]:
    """Return the line with its comment removed and every whitespace run
    collapsed to one space, or None if nothing but whitespace is left.

    Leading whitespace is collapsed, not removed: "   INP" -> " INP".
    The leading space is what tells the parser there is no label.
    """
    code = line.split(COMMENT_MARKER, 1)[0]
    if not code.strip():
        return None
    return _WHITESPACE_RUN.sub(' ', code)
