"""Line-based substring search over a log body."""

from __future__ import annotations

from sflogs.models.search import LogMatch

CONTEXT_LINES = 2


class TextMatcher:
    """Stateless substring matcher with a fixed context window."""

    def __init__(self, context_lines: int = CONTEXT_LINES) -> None:
        self._context_lines = context_lines

    def search(self, body: str, pattern: str, case_sensitive: bool = False) -> list[LogMatch]:
        """Find every line of ``body`` containing ``pattern``.

        Lines are split on ``\\n`` only. Matching is a plain substring test,
        lower-casing both sides unless ``case_sensitive`` is set.

        Returns:
            Matches in increasing line order, each with up to
            ``context_lines`` trimmed lines before and after it.
        """
        lines = body.split("\n")
        needle = pattern if case_sensitive else pattern.lower()
        matches: list[LogMatch] = []
        for index, line in enumerate(lines):
            haystack = line if case_sensitive else line.lower()
            if needle in haystack:
                matches.append(
                    LogMatch(
                        line_number=index + 1,
                        line=line.strip(),
                        context=self._context(lines, index),
                    )
                )
        return matches

    def _context(self, lines: list[str], match_index: int) -> list[str]:
        start = max(0, match_index - self._context_lines)
        end = min(len(lines) - 1, match_index + self._context_lines)
        return [
            f"{i + 1}: {lines[i].strip()}" for i in range(start, end + 1) if i != match_index
        ]
