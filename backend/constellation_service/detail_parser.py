"""Detail page parser — per-source field tables of prioritised text patterns.

``parse`` reports only what the page actually contained: a field with no
matching pattern stays ``None`` (or empty for list fields). Fallback values
are applied later, in ``fallbacks.assemble_entry``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from typing import Any
from urllib.parse import urljoin

from constellation_service.models import (
    DeepSkyObject,
    Hemisphere,
    Month,
    NotableObject,
    SourceKind,
)
from constellation_service.patterns import (
    PrioritizedExtractor,
    clean_text,
    constant,
    group_float,
    group_int,
    group_text,
    rule,
)

logger = logging.getLogger(__name__)

MONTH_ALT = "|".join(m.value for m in Month)
NUMBER = r"([+\-−]?\d+(?:\.\d+)?)"


@dataclass
class ParsedDetail:
    canonical_name: str | None = None
    short_code: str | None = None
    origin_culture: str | None = None
    story: str | None = None
    meaning: str | None = None
    related_figures: list[str] = field(default_factory=list)
    reference_object_name: str | None = None
    object_count: int | None = None
    coverage_area: float | None = None
    hemisphere: Hemisphere | None = None
    seasonal_peak: Month | None = None
    declination_deg: float | None = None
    right_ascension_hours: float | None = None
    notable_objects: list[NotableObject] = field(default_factory=list)
    deep_sky_objects: list[DeepSkyObject] = field(default_factory=list)
    image_url: str | None = None
    detail_chart_url: str | None = None

    def found_fields(self) -> set[str]:
        """Names of the fields that were actually parsed from the page."""
        return {f.name for f in fields(self) if getattr(self, f.name) not in (None, [])}


# ---------------------------------------------------------------------------
# Extract functions
# ---------------------------------------------------------------------------

def _signed_float(lo: float, hi: float):
    def _extract(match: re.Match) -> float | None:
        raw = match.group(1).replace("−", "-")
        try:
            value = float(raw)
        except ValueError:
            return None
        return value if lo <= value <= hi else None

    return _extract


def _canonical_name(match: re.Match) -> str | None:
    text = re.sub(r"constellation", "", clean_text(match.group(1)), flags=re.IGNORECASE)
    return " ".join(text.split()) or None


def _upper(match: re.Match) -> str:
    return match.group(1).strip().upper()


def _capitalized(match: re.Match) -> str:
    return match.group(1).strip().capitalize()


def _brightest(match: re.Match) -> str | None:
    # the magnitude-first pattern carries the star name in its last group
    groups = [g for g in match.groups() if g]
    if not groups:
        return None
    return clean_text(groups[-1]) or None


def _month(match: re.Match) -> Month | None:
    try:
        return Month(match.group(1).capitalize())
    except ValueError:
        return None


def _figures(match: re.Match) -> list[str] | None:
    parts = re.split(r",|\band\b", clean_text(match.group(1)))
    names = [p.strip() for p in parts if p.strip()]
    return names[:6] or None


def _url(match: re.Match) -> str:
    # resolved against the page URL in parse()
    return match.group(1).strip()


def _notable_object(match: re.Match) -> NotableObject | None:
    try:
        return NotableObject(
            name=clean_text(match.group(1)),
            magnitude=float(match.group(2).replace("−", "-")),
            kind=clean_text(match.group(3)) or "Star",
            distance=float(match.group(4).replace(",", "")),
        )
    except ValueError:
        return None


def _deep_sky_object(match: re.Match) -> DeepSkyObject | None:
    name = " ".join(match.group(1).split())
    kind = clean_text(match.group(2))
    try:
        magnitude = float(match.group(3).replace("−", "-"))
    except ValueError:
        return None
    return DeepSkyObject(name=name, kind=kind, magnitude=magnitude, description=f"{kind} {name}")


# ---------------------------------------------------------------------------
# Field tables
# ---------------------------------------------------------------------------

_IMAGE = PrioritizedExtractor("image_url", (
    rule(r'<img[^>]+src="([^"]*constellation[^"]*)"[^>]*>', _url),
    rule(r'<img[^>]+src="([^"]*star[^"]*)"[^>]*>', _url),
    rule(r'<img[^>]+src="([^"]*)"[^>]*alt="[^"]*constellation[^"]*"', _url),
    rule(r'<img[^>]+alt="[^"]*constellation[^"]*"[^>]+src="([^"]*)"', _url),
    rule(r'<img[^>]+src="([^"]*\.(?:jpg|jpeg|png|gif))"[^>]*>', _url),
))

_CHART = PrioritizedExtractor("detail_chart_url", (
    rule(r'<img[^>]+src="([^"]*(?:map|chart|star|diagram)[^"]*)"[^>]*>', _url),
    rule(r'<img[^>]+alt="[^"]*(?:map|chart|star|diagram)[^"]*"[^>]+src="([^"]*)"', _url),
    rule(r'<img[^>]+src="([^"]*)"[^>]*alt="[^"]*(?:map|chart|star|diagram)[^"]*"', _url),
))

_HEMISPHERE = PrioritizedExtractor("hemisphere", (
    rule(r"northern\s+hemisphere", constant(Hemisphere.NORTHERN)),
    rule(r"southern\s+hemisphere", constant(Hemisphere.SOUTHERN)),
    rule(r"equatorial|both\s+hemispheres", constant(Hemisphere.BOTH)),
))

_SEASON = PrioritizedExtractor("seasonal_peak", (
    rule(rf"best\s+(?:seen|visible|viewed|viewing)[^<\n\r]{{0,40}}?\b({MONTH_ALT})\b", _month),
    rule(rf"\b({MONTH_ALT})\s+at\s+9(?::00)?\s*p\.?m", _month),
))

_DECLINATION = PrioritizedExtractor("declination_deg", (
    rule(r"declination[:\s]*" + NUMBER, _signed_float(-90, 90)),
    rule(r"\bDec\b\.?[:\s]*" + NUMBER, _signed_float(-90, 90), flags=0),
))

_RIGHT_ASCENSION = PrioritizedExtractor("right_ascension_hours", (
    rule(r"right\s*ascension[:\s]*(\d+(?:\.\d+)?)", group_float(lo=0, hi=23.999)),
    rule(r"\bRA\b[:\s]*(\d+(?:\.\d+)?)", group_float(lo=0, hi=23.999), flags=0),
))

_NOTABLE_OBJECTS = PrioritizedExtractor("notable_objects", (
    rule(
        r"<tr[^>]*>\s*<td[^>]*>([^<]{2,60})</td>\s*"
        r"<td[^>]*>\s*" + NUMBER + r"\s*</td>\s*"
        r"<td[^>]*>([^<]{2,40})</td>\s*"
        r"<td[^>]*>\s*(\d[\d,]*(?:\.\d+)?)[^<]*</td>",
        _notable_object,
    ),
))

_DEEP_SKY_OBJECTS = PrioritizedExtractor("deep_sky_objects", (
    rule(
        r"\b((?:M|NGC|IC)\s?\d{1,4})\s*[-–:(]\s*([A-Za-z][A-Za-z ]{2,30}?)\s*[,)]?\s*"
        r"mag(?:nitude)?\.?\s*:?\s*" + NUMBER,
        _deep_sky_object,
        flags=0,
    ),
))

FIELD_TABLES: dict[SourceKind, tuple[PrioritizedExtractor, ...]] = {
    SourceKind.PRIMARY: (
        PrioritizedExtractor("canonical_name", (
            rule(r"Latin\s*name[:\s]*([^<\n\r|]+)", _canonical_name),
            rule(r"Constellation[:\s]*([^<\n\r|]+)", _canonical_name),
            rule(r"<title>([^|]+)\s*\|", _canonical_name),
            rule(r"genitive[:\s]*([^<\n\r,.]+)", _canonical_name),
        )),
        PrioritizedExtractor("short_code", (
            rule(r"Abbreviation[:\s]*([A-Z]{2,4})\b", _upper),
            rule(r"\(([A-Z]{2,4})\)", _upper, flags=0),
            rule(r"IAU\s*designation[:\s]*([A-Z]{2,4})\b", _upper),
        )),
        PrioritizedExtractor("story", (
            rule(r'<div[^>]*class="[^"]*content[^"]*"[^>]*>([^<]{200,2000})</div>', group_text(limit=800)),
            rule(r"<p[^>]*>([^<]{200,2000})</p>", group_text(limit=800)),
            rule(r"<td[^>]*>([^<]{200,2000})</td>", group_text(limit=800)),
        )),
        PrioritizedExtractor("reference_object_name", (
            rule(r"brightest\s+star[:\s]*([^<\n\r,.]+)", _brightest),
            rule(r"alpha[:\s]*([^<\n\r,.]+)", _brightest),
            rule(r"magnitude[:\s]*[^\d]*(\d+\.?\d*)[^<\n\r]*star[:\s]*([^<\n\r,.]+)", _brightest),
        )),
        PrioritizedExtractor("coverage_area", (
            rule(r"area[:\s]*(\d+(?:\.\d+)?)", group_float(lo=1, hi=2000)),
            rule(r"(\d+(?:\.\d+)?)\s*square\s*degrees", group_float(lo=1, hi=2000)),
            rule(r"size[:\s]*(\d+(?:\.\d+)?)\s*sq", group_float(lo=1, hi=2000)),
        )),
        PrioritizedExtractor("object_count", (
            rule(r"(\d+)\s*stars", group_int(lo=1, hi=1000)),
            rule(r"contains[:\s]*(\d+)", group_int(lo=1, hi=1000)),
        )),
        PrioritizedExtractor("origin_culture", (
            rule(r"\b(greek|roman|babylonian|egyptian|chinese|arabic|sumerian)\s+myth", _capitalized),
            rule(r"mythology[:\s]+([A-Z][^<\n\r,.]{2,40})", group_text(), flags=0),
            rule(r"\bancient\s+([A-Z]\w+)", _capitalized, flags=0),
        )),
        PrioritizedExtractor("meaning", (
            rule(r'meaning[:\s]+(?:&quot;|")?([^<\n\r,."&]{2,80})', group_text()),
            rule(r'name\s+means\s+(?:&quot;|")?([^<\n\r,."&]{2,80})', group_text()),
        )),
        PrioritizedExtractor("related_figures", (
            rule(r"(?:characters|figures)[:\s]+([^<\n\r.]{3,200})", _figures),
        )),
        _HEMISPHERE,
        _SEASON,
        _DECLINATION,
        _RIGHT_ASCENSION,
        _IMAGE,
        _CHART,
    ),
    SourceKind.BACKUP: (
        PrioritizedExtractor("story", (
            rule(r'<div[^>]*class="[^"]*content[^"]*"[^>]*>([^<]{200,})</div>', group_text(limit=600)),
            rule(r"<p[^>]*>([^<]{200,})</p>", group_text(limit=600)),
        )),
        PrioritizedExtractor("reference_object_name", (
            rule(r"brightest\s+star(?:\s+is)?[:\s]+([A-Z][A-Za-z\s]+?)(?:[,.(<]|$)", _brightest, flags=0),
            rule(r"brightest\s+star(?:\s+is)?[:\s]+([A-Za-z][A-Za-z\s]+?)(?:[,.(<]|$)", _brightest),
        )),
        _HEMISPHERE,
        _SEASON,
        _DECLINATION,
        _RIGHT_ASCENSION,
        _IMAGE,
        _CHART,
    ),
}

LIST_FIELDS: dict[str, tuple[PrioritizedExtractor, int]] = {
    "notable_objects": (_NOTABLE_OBJECTS, 5),
    "deep_sky_objects": (_DEEP_SKY_OBJECTS, 5),
}

URL_FIELDS = ("image_url", "detail_chart_url")


def parse(body: str, display_name: str, source: SourceKind, page_url: str = "") -> ParsedDetail:
    """Extract every field the page offers; never raises on unmatched content."""
    values: dict[str, Any] = {}
    for extractor in FIELD_TABLES[source]:
        value = extractor.extract(body)
        if value is not None:
            values[extractor.field] = value

    for name, (extractor, limit) in LIST_FIELDS.items():
        found = extractor.extract_all(body, limit=limit)
        if found:
            values[name] = found

    for name in URL_FIELDS:
        if name in values and page_url:
            values[name] = urljoin(page_url, values[name])

    parsed = ParsedDetail(**values)
    logger.debug("Parsed %s (%s): %s", display_name, source.value, sorted(parsed.found_fields()))
    return parsed
