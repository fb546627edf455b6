"""Case-insensitive literal search highlighting for diff lines."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Any, Iterable, Sequence

from .models import Segment
from .exceptions import MalformedQueryError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _compile_query(query: str) -> re.Pattern:
    """Compile and cache an escaped, case-insensitive pattern for a query."""
    try:
        return re.compile(re.escape(query), re.IGNORECASE)
    except re.error as e:
        raise MalformedQueryError(query, str(e))


def _pattern_for(query: Any):
    """Pattern for a usable query, or None when nothing should be highlighted."""
    if not query:
        return None
    if not isinstance(query, str):
        logger.debug("Ignoring non-string search query of type %s", type(query).__name__)
        return None
    try:
        return _compile_query(query)
    except MalformedQueryError as e:
        logger.debug("%s", e)
        return None


def highlight(line: str, query: Any) -> list[Segment]:
    """
    Split a line into alternating unmatched/matched segments.

    Matching is literal and case-insensitive; segment text keeps the
    line's original casing. An empty or unusable query yields the whole
    line as one unmatched segment.
    """
    pattern = _pattern_for(query)
    if pattern is None:
        return [Segment(line, False)]

    segments = []
    last = 0
    for match in pattern.finditer(line):
        if match.start() > last:
            segments.append(Segment(line[last:match.start()], False))
        segments.append(Segment(match.group(0), True))
        last = match.end()

    if last < len(line) or not segments:
        segments.append(Segment(line[last:], False))
    return segments


def count_matches(lines: Iterable[str], query: Any) -> int:
    """Total number of query occurrences across lines."""
    pattern = _pattern_for(query)
    if pattern is None:
        return 0
    return sum(len(pattern.findall(line)) for line in lines)


def matching_line_indices(lines: Sequence[str], query: Any) -> list[int]:
    """Positions of lines containing the query at least once."""
    pattern = _pattern_for(query)
    if pattern is None:
        return []
    return [i for i, line in enumerate(lines) if pattern.search(line)]
