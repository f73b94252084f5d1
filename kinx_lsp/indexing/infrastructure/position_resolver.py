"""
Position Resolver

Maps a symbol name + line number back to an exact column span.

- String literals are blanked to spaces before matching, except `%{...}`
  interpolation placeholders, so columns never shift.
- Matches are whole-word: neighbours must not be identifier characters.
- The dedup map records every claimed (name, line, column) for one compile
  pass, so successive lookups return successive occurrences.
"""

import re
from collections.abc import Hashable, Sequence
from functools import lru_cache

_IDENT_CHARS = "A-Za-z0-9_$"

_STRING_LITERAL = re.compile(r'"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'')
_PLACEHOLDER = re.compile(r"%\{[^}]*\}")

Span = tuple[int, int]


@lru_cache(maxsize=4096)
def mask_string_literals(line: str) -> str:
    """Replace string literal contents with spaces, keeping `%{...}` placeholders."""

    def _blank(match: re.Match[str]) -> str:
        literal = match.group(0)
        masked = [" "] * len(literal)
        for placeholder in _PLACEHOLDER.finditer(literal):
            masked[placeholder.start() : placeholder.end()] = literal[placeholder.start() : placeholder.end()]
        return "".join(masked)

    return _STRING_LITERAL.sub(_blank, line)


@lru_cache(maxsize=1024)
def word_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![{_IDENT_CHARS}]){re.escape(name)}(?![{_IDENT_CHARS}])")


def iter_word_spans(name: str, text: str) -> list[Span]:
    """All whole-word occurrences of `name` outside string literals."""
    if not name:
        return []
    return [(m.start(), m.end()) for m in word_pattern(name).finditer(mask_string_literals(text))]


class PositionResolver:
    """
    Column resolver with a per-pass dedup map.

    One instance lives for exactly one compile pass; share it between the
    index builder and the diagnostics translator.
    """

    def __init__(self) -> None:
        self._claimed: set[Hashable] = set()

    def find(self, name: str, lines: Sequence[str], line: int, check_dup: bool = True) -> Span | None:
        """
        Find the next occurrence of `name` on `lines[line]`.

        Args:
            name: Symbol name (matched literally, whole-word)
            lines: Source buffer
            line: 0-based line number
            check_dup: Claim the occurrence and skip already claimed ones.
                When False the first occurrence is returned and nothing is claimed.

        Returns:
            (start, end) column span, or None when not found
        """
        text = _line_at(lines, line)
        if text is None:
            return None
        for start, end in iter_word_spans(name, text):
            if not check_dup:
                return start, end
            if self.claim((name, line, start)):
                return start, end
        return None

    def find_all_unclaimed(self, name: str, lines: Sequence[str], line: int) -> list[Span]:
        """Claim and return every remaining occurrence of `name` on the line."""
        text = _line_at(lines, line)
        if text is None:
            return []
        return [(start, end) for start, end in iter_word_spans(name, text) if self.claim((name, line, start))]

    def claim(self, key: Hashable) -> bool:
        """Claim a key; False when it was already claimed in this pass."""
        if key in self._claimed:
            return False
        self._claimed.add(key)
        return True

    def is_claimed(self, key: Hashable) -> bool:
        return key in self._claimed


def _line_at(lines: Sequence[str], line: int) -> str | None:
    if 0 <= line < len(lines):
        return lines[line]
    return None
