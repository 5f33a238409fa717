"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Glob pattern translation for tool search.
"""

from __future__ import annotations

import re

_REGEX_SPECIAL = frozenset("[.+^${}()|\\]")


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Convert a glob pattern to an anchored, case-insensitive regex.

    ``**`` matches anything including slashes, ``*`` any run of characters
    except ``/``, and ``?`` one character except ``/``.

    Examples:
        ``*file*`` matches ``read_file`` and ``file_utils``;
        ``server/*`` matches ``server/tool`` but not ``server/sub/tool``;
        ``server/**`` matches both.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "*" and pattern[i + 1 : i + 2] == "*":
            parts.append(".*")
            i += 2
            while i < len(pattern) and pattern[i] == "*":
                i += 1
        elif char == "*":
            parts.append("[^/]*")
            i += 1
        elif char == "?":
            parts.append("[^/]")
            i += 1
        elif char in _REGEX_SPECIAL:
            parts.append("\\" + char)
            i += 1
        else:
            parts.append(char)
            i += 1
    return re.compile(f"^{''.join(parts)}$", re.IGNORECASE)
