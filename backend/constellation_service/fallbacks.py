"""Deterministic fallbacks and catalogue entry assembly.

Parsed fields always win. Whatever the detail page did not yield is filled
from functions of the display name only, so two harvests of the same
content produce identical entries.
"""

from __future__ import annotations

import hashlib
import random
import re
from dataclasses import dataclass

from constellation_service.detail_parser import ParsedDetail
from constellation_service.models import (
    AstronomyFacts,
    CatalogueEntry,
    DeepSkyObject,
    Hemisphere,
    Month,
    Narrative,
    NotableObject,
    Position,
)

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")

SOUTHERN_NAMES = ("crux", "centaurus", "carina", "vela", "puppis", "hydra", "ara", "lupus")
BOTH_NAMES = ("orion", "eridanus", "pisces", "virgo", "ophiuchus")

DEFAULT_REFERENCE_OBJECT = "Variable"

# (greek letter, magnitude, kind, distance ly)
DEFAULT_STAR_TEMPLATE = (
    ("Alpha", 1.5, "Main Sequence", 50.0),
    ("Beta", 2.0, "Giant", 75.0),
    ("Gamma", 2.5, "Supergiant", 100.0),
)


def slugify(name: str) -> str:
    """Stable id: lowercase, non-alphanumeric runs -> '-', trimmed."""
    return _NON_SLUG_RE.sub("-", name.lower()).strip("-")


def short_code_for(name: str) -> str:
    if len(name) <= 3:
        return name.upper()
    return name[:3].upper()


def hemisphere_for(name: str) -> Hemisphere:
    slug = slugify(name)
    if any(s in slug for s in SOUTHERN_NAMES):
        return Hemisphere.SOUTHERN
    if any(b in slug for b in BOTH_NAMES):
        return Hemisphere.BOTH
    return Hemisphere.NORTHERN


def seasonal_peak_for(name: str) -> Month:
    return Month.from_number(sum(ord(ch) for ch in name) % 12 + 1)


@dataclass(frozen=True)
class SyntheticNumbers:
    object_count: int
    coverage_area: float
    declination_deg: float
    right_ascension_hours: float


def synthetic_numbers(entry_id: str) -> SyntheticNumbers:
    """Placeholder numerics drawn from a PRNG seeded by the entry id.

    All four values are always drawn, in the same order, so each one stays
    stable whichever of the others were actually parsed.
    """
    seed = int(hashlib.sha256(entry_id.encode("utf-8")).hexdigest()[:16], 16)
    rng = random.Random(seed)
    return SyntheticNumbers(
        object_count=rng.randint(15, 44),
        coverage_area=float(rng.randint(200, 999)),
        declination_deg=float(rng.randint(-80, 79)),
        right_ascension_hours=float(rng.randint(0, 23)),
    )


def default_notable_objects(name: str) -> list[NotableObject]:
    return [
        NotableObject(name=f"{letter} {name}", magnitude=mag, kind=kind, distance=dist)
        for letter, mag, kind, dist in DEFAULT_STAR_TEMPLATE
    ]


def default_deep_sky_objects(name: str) -> list[DeepSkyObject]:
    return [
        DeepSkyObject(
            name=f"{name} Nebula",
            kind="Nebula",
            magnitude=7.5,
            description=f"Beautiful nebula in {name}",
        )
    ]


def default_story(name: str) -> str:
    return f"{name} is a constellation visible in the night sky with rich astronomical significance."


def assemble_entry(display_name: str, parsed: ParsedDetail, default_culture: str = "Ancient") -> CatalogueEntry:
    """Merge parsed fields with per-field fallbacks into a complete entry."""
    entry_id = slugify(display_name)
    synthetic = synthetic_numbers(entry_id)
    declination = parsed.declination_deg if parsed.declination_deg is not None else synthetic.declination_deg

    return CatalogueEntry(
        id=entry_id,
        display_name=display_name,
        canonical_name=parsed.canonical_name or display_name,
        short_code=parsed.short_code or short_code_for(display_name),
        narrative=Narrative(
            origin_culture=parsed.origin_culture or default_culture,
            story=parsed.story or default_story(display_name),
            meaning=parsed.meaning or display_name,
            related_figures=parsed.related_figures or [],
        ),
        astronomy=AstronomyFacts(
            reference_object_name=parsed.reference_object_name or DEFAULT_REFERENCE_OBJECT,
            object_count=parsed.object_count if parsed.object_count is not None else synthetic.object_count,
            coverage_area=parsed.coverage_area if parsed.coverage_area is not None else synthetic.coverage_area,
            hemisphere=parsed.hemisphere or hemisphere_for(display_name),
            seasonal_peak=parsed.seasonal_peak or seasonal_peak_for(display_name),
            declination_deg=declination,
        ),
        position=Position(
            right_ascension_hours=(
                parsed.right_ascension_hours
                if parsed.right_ascension_hours is not None
                else synthetic.right_ascension_hours
            ),
            declination_deg=declination,
        ),
        notable_objects=parsed.notable_objects or default_notable_objects(display_name),
        deep_sky_objects=parsed.deep_sky_objects or default_deep_sky_objects(display_name),
        image_url=parsed.image_url or "",
        detail_chart_url=parsed.detail_chart_url or "",
    )
