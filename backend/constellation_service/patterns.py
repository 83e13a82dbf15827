"""Prioritised text extraction — ordered (pattern, extract) tables, first hit wins."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Any, Callable

TAG_RE = re.compile(r"<[^>]*>")
WS_RE = re.compile(r"\s+")

Extract = Callable[[re.Match], Any]


def clean_text(raw: str, limit: int | None = None) -> str:
    """Strip tags, decode entities, collapse whitespace."""
    text = WS_RE.sub(" ", html.unescape(TAG_RE.sub("", raw))).strip()
    if limit is not None:
        text = text[:limit].rstrip()
    return text


def group_text(index: int = 1, limit: int | None = None) -> Extract:
    """Extractor returning a cleaned capture group (None if it cleans to empty)."""

    def _extract(match: re.Match) -> str | None:
        value = match.group(index)
        if value is None:
            return None
        return clean_text(value, limit) or None

    return _extract


def group_float(index: int = 1, lo: float | None = None, hi: float | None = None) -> Extract:
    """Extractor parsing a capture group as float, rejecting values outside [lo, hi]."""

    def _extract(match: re.Match) -> float | None:
        try:
            value = float(match.group(index))
        except (TypeError, ValueError):
            return None
        if lo is not None and value < lo:
            return None
        if hi is not None and value > hi:
            return None
        return value

    return _extract


def group_int(index: int = 1, lo: int | None = None, hi: int | None = None) -> Extract:
    def _extract(match: re.Match) -> int | None:
        try:
            value = int(match.group(index))
        except (TypeError, ValueError):
            return None
        if lo is not None and value < lo:
            return None
        if hi is not None and value > hi:
            return None
        return value

    return _extract


def constant(value: Any) -> Extract:
    return lambda _match: value


@dataclass(frozen=True)
class FieldPattern:
    pattern: re.Pattern
    extract: Extract


def rule(regex: str, extract: Extract, flags: int = re.IGNORECASE) -> FieldPattern:
    return FieldPattern(re.compile(regex, flags), extract)


@dataclass(frozen=True)
class PrioritizedExtractor:
    """Candidate patterns for one field, tried in order.

    A pattern that matches but whose extract function returns None (or an
    empty string) does not count; the next candidate is tried.
    """

    field: str
    patterns: tuple[FieldPattern, ...]

    def extract(self, text: str) -> Any:
        for candidate in self.patterns:
            match = candidate.pattern.search(text)
            if match is None:
                continue
            value = candidate.extract(match)
            if value is not None and value != "":
                return value
        return None

    def extract_all(self, text: str, limit: int | None = None) -> list[Any]:
        """Every match of the first candidate that yields anything."""
        for candidate in self.patterns:
            values = []
            for match in candidate.pattern.finditer(text):
                value = candidate.extract(match)
                if value is not None and value != "":
                    values.append(value)
                if limit is not None and len(values) >= limit:
                    break
            if values:
                return values
        return []
