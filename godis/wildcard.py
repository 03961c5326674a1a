"""Glob-style patterns as used by KEYS and PSUBSCRIBE."""

from __future__ import annotations

import re
from dataclasses import dataclass

ERR_END_WITH_ESCAPE = "end with escape \\"

_REPLACEMENTS = {
    "+": r"\+",
    ")": r"\)",
    "$": r"\$",
    ".": r"\.",
    "{": r"\{",
    "}": r"\}",
    "|": r"\|",
    "*": ".*",
    "?": ".",
}


@dataclass(frozen=True)
class Pattern:
    """A compiled wildcard pattern."""

    regex: re.Pattern

    def is_match(self, s: str) -> bool:
        """Tell whether the whole string matches the pattern."""
        return self.regex.match(s) is not None


def _opens_negated_class(src: str, i: int) -> bool:
    # "^" right after an unescaped "[" negates the class.
    if i == 0 or src[i - 1] != "[":
        return False
    return i == 1 or src[i - 2] != "\\"


def compile_pattern(src: str) -> Pattern:
    """Compile a wildcard string; raise ValueError if it is malformed."""
    parts = ["^"]
    i = 0
    while i < len(src):
        ch = src[i]
        if ch == "\\":
            if i == len(src) - 1:
                raise ValueError(ERR_END_WITH_ESCAPE)
            parts.append(src[i : i + 2])
            i += 2
            continue
        if ch == "^":
            parts.append("^" if _opens_negated_class(src, i) else r"\^")
        else:
            parts.append(_REPLACEMENTS.get(ch, ch))
        i += 1
    parts.append(r"\Z")
    try:
        regex = re.compile("".join(parts))
    except re.error as exc:
        raise ValueError(str(exc)) from exc
    return Pattern(regex)