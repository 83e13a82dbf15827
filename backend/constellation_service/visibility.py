"""Sky visibility heuristic — which catalogue entries are worth looking for now.

Simplified model with no rise/set times, precession or refraction. An
entry is "visible" when it is not confined to the opposite hemisphere, clears
the horizon at transit, is within three months of its seasonal peak, and the
observer's local hour is at night.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Iterable

from constellation_service.models import CatalogueEntry, Hemisphere, MoonPhase, VisibilityResult

logger = logging.getLogger(__name__)

HEMISPHERE_CUTOFF_DEG = 30.0
MAX_MONTH_DISTANCE = 3
NIGHT_ENDS_HOUR = 6     # visible while hour < 6
NIGHT_STARTS_HOUR = 18  # ... or hour > 18
OPTIMAL_START_HOUR = 22
OPTIMAL_END_HOUR = 3

LUNAR_CYCLE_DAYS = 29.5
MOON_PHASES = tuple(MoonPhase)

NEUTRAL_PHASE = MoonPhase.FIRST_QUARTER
NEUTRAL_ILLUMINATION = 50
DEFAULT_VIEWING_WINDOW = "21:00 - 02:00"
DEFAULT_CONDITIONS = "Data unavailable"

SUMMER_MONTHS = (6, 7, 8)

# (latitude strictly above, window in Jun-Aug, window otherwise), first match wins
VIEWING_WINDOWS: tuple[tuple[float, str, str], ...] = (
    (50.0, "22:00 - 03:00", "20:00 - 05:00"),    # high northern
    (0.0, "21:00 - 02:00", "21:00 - 02:00"),     # mid northern
    (-30.0, "20:00 - 01:00", "20:00 - 01:00"),   # equatorial / tropical
    (-math.inf, "19:00 - 24:00", "21:00 - 03:00"),  # southern
)

# (illumination strictly below, note)
ILLUMINATION_NOTES: tuple[tuple[float, str], ...] = (
    (25, "Excellent dark skies"),
    (75, "Good viewing conditions"),
    (math.inf, "Bright moon affects visibility"),
)


def month_distance(a: int, b: int) -> int:
    """Circular distance between two months (1-12), 0..6."""
    diff = abs(a - b) % 12
    return min(diff, 12 - diff)


def altitude_at_transit(lat: float, declination: float) -> float:
    return 90.0 - abs(lat - declination)


def is_night(hour: int) -> bool:
    return hour < NIGHT_ENDS_HOUR or hour > NIGHT_STARTS_HOUR


def is_visible(entry: CatalogueEntry, lat: float, month: int, hour: int) -> bool:
    astro = entry.astronomy
    if astro.hemisphere is Hemisphere.NORTHERN and lat < -HEMISPHERE_CUTOFF_DEG:
        return False
    if astro.hemisphere is Hemisphere.SOUTHERN and lat > HEMISPHERE_CUTOFF_DEG:
        return False
    if altitude_at_transit(lat, astro.declination_deg) < 0:
        return False
    if month_distance(month, astro.seasonal_peak.number) > MAX_MONTH_DISTANCE:
        return False
    return is_night(hour)


def lunar_cycle_position(when: datetime) -> float:
    """Position in a 29.5-day cycle counted from the day of year, in [0, 1)."""
    day_of_year = when.timetuple().tm_yday
    return (day_of_year % LUNAR_CYCLE_DAYS) / LUNAR_CYCLE_DAYS


def moon_phase(cycle: float) -> MoonPhase:
    return MOON_PHASES[int(cycle * len(MOON_PHASES)) % len(MOON_PHASES)]


def moon_illumination(cycle: float) -> int:
    value = math.floor(50 + 50 * math.cos(2 * math.pi * cycle))
    return max(0, min(100, value))


def best_viewing_window(lat: float, month: int) -> str:
    for above, summer, other in VIEWING_WINDOWS:
        if lat > above:
            return summer if month in SUMMER_MONTHS else other
    return DEFAULT_VIEWING_WINDOW


def conditions_note(illumination: int, hour: int) -> str:
    notes = [next(note for below, note in ILLUMINATION_NOTES if illumination < below)]
    if hour >= OPTIMAL_START_HOUR or hour <= OPTIMAL_END_HOUR:
        notes.append("Optimal viewing hours")
    return ", ".join(notes)


def _valid_coordinates(lat: float, lon: float) -> bool:
    try:
        return math.isfinite(lat) and math.isfinite(lon) and -90 <= lat <= 90 and -180 <= lon <= 180
    except TypeError:
        return False


def default_result(now_local: datetime | None = None) -> VisibilityResult:
    """Result used when the inputs are unusable: nothing visible, generic advice."""
    phase, illumination = NEUTRAL_PHASE, NEUTRAL_ILLUMINATION
    if now_local is not None:
        cycle = lunar_cycle_position(now_local)
        phase, illumination = moon_phase(cycle), moon_illumination(cycle)
    return VisibilityResult(
        visible_ids=[],
        moon_phase_label=phase,
        moon_illumination_pct=illumination,
        best_viewing_window=DEFAULT_VIEWING_WINDOW,
        conditions_note=DEFAULT_CONDITIONS,
    )


def compute_visibility(
    catalogue: Iterable[CatalogueEntry] | None,
    lat: float,
    lon: float,
    now_local: datetime | None = None,
) -> VisibilityResult:
    """Visible entry ids (best overhead match first) plus moon and viewing advice.

    Never raises; unusable input degrades to ``default_result``.
    """
    now_local = now_local or datetime.now()
    if not _valid_coordinates(lat, lon):
        logger.info("Invalid observer coordinates lat=%r lon=%r, returning defaults", lat, lon)
        return default_result(now_local)

    try:
        month, hour = now_local.month, now_local.hour
        visible = [entry for entry in (catalogue or []) if is_visible(entry, lat, month, hour)]
        visible.sort(key=lambda entry: abs(entry.astronomy.declination_deg - lat))

        cycle = lunar_cycle_position(now_local)
        illumination = moon_illumination(cycle)
        return VisibilityResult(
            visible_ids=[entry.id for entry in visible],
            moon_phase_label=moon_phase(cycle),
            moon_illumination_pct=illumination,
            best_viewing_window=best_viewing_window(lat, month),
            conditions_note=conditions_note(illumination, hour),
        )
    except Exception:
        logger.exception("Visibility computation failed")
        return default_result(now_local)
