"""
Shared fixtures: fake upstream pages, a counting fetcher and a controllable clock.
"""

from __future__ import annotations

import html

import pytest

from constellation_service.config import BACKUP_INDEX_URL, PRIMARY_INDEX_URL, Settings
from constellation_service.fallbacks import slugify
from constellation_service.fetcher import UpstreamUnavailable
from constellation_service.models import (
    AstronomyFacts,
    CatalogueEntry,
    Hemisphere,
    Month,
    Narrative,
    Position,
)

PRIMARY_BASE = "https://www.go-astronomy.com/"
BACKUP_BASE = "https://noirlab.edu/public/education/constellations/"

PRIMARY_NAMES = [
    "Andromeda", "Aquarius", "Aquila", "Aries", "Auriga",
    "Bo&ouml;tes", "Cassiopeia", "Cygnus", "Orion", "Ursa Major",
]

STORY = (
    "Orion is one of the most conspicuous and recognisable patterns in the night sky. "
    "It is named after a hunter from old legends and contains the bright red supergiant "
    "Betelgeuse and the blue supergiant Rigel along with the famous belt asterism."
)

ORION_DETAIL = f"""
<html><head><title>Orion Constellation | Go Astronomy</title></head>
<body>
<img src="/images/constellations/orion.jpg" alt="Orion constellation">
<img src="/charts/orion-map.png" alt="Orion sky chart">
<ul>
<li>Latin name: Orion</li>
<li>Abbreviation: Ori</li>
<li>Brightest star: Rigel</li>
<li>Area: 594 square degrees</li>
<li>Hemisphere: equatorial</li>
<li>Right ascension: 5.5</li>
<li>Declination: +5</li>
<li>Meaning: "The Hunter"</li>
<li>Best seen in January at 9 p.m.</li>
</ul>
<p>{STORY}</p>
<p>It has 81 stars with Bayer or Flamsteed designations.</p>
<p>In Greek mythology Orion was a giant huntsman.</p>
<p>Characters: Artemis, Apollo and Merope.</p>
<table>
<tr><td>Rigel</td><td>0.13</td><td>Blue supergiant</td><td>860 ly</td></tr>
<tr><td>Betelgeuse</td><td>0.42</td><td>Red supergiant</td><td>548 ly</td></tr>
</table>
<p>M42 - Orion Nebula, magnitude 4.0</p>
</body></html>
"""

BARE_DETAIL = "<html><body><p>Nothing to see here.</p></body></html>"

CRUX_DETAIL = f"""
<html><body>
<div class="content">{"The Southern Cross is a small but famous pattern. " * 6}</div>
<p>The brightest star is Acrux.</p>
<p>It is best seen from the southern hemisphere.</p>
</body></html>
"""


def primary_index(names: list[str]) -> str:
    rows = "\n".join(f'<li><a href="constellations.php?Name={n}">{n}</a></li>' for n in names)
    return f"<html><body><ul>{rows}</ul></body></html>"


def backup_index(names: list[str]) -> str:
    rows = "\n".join(
        f'<li><a class="c" href="/public/education/constellations/{slugify(n)}/">{n}</a></li>' for n in names
    )
    return f"<html><body><ul>{rows}</ul></body></html>"


def primary_url(name: str) -> str:
    return f"{PRIMARY_BASE}constellations.php?Name={html.unescape(name)}"


def backup_url(name: str) -> str:
    return f"{BACKUP_BASE}{slugify(html.unescape(name))}/"


class FakeFetcher:
    """Serves canned pages and counts every call; unknown or failing URLs raise."""

    def __init__(self, pages: dict[str, str] | None = None, failing: set[str] | None = None):
        self.pages = dict(pages or {})
        self.failing = set(failing or ())
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url in self.failing or url not in self.pages:
            raise UpstreamUnavailable(url, 3, "test failure")
        return self.pages[url]

    def count(self, url: str) -> int:
        return self.calls.count(url)


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_entry(
    name: str,
    declination: float,
    hemisphere: Hemisphere = Hemisphere.BOTH,
    peak: Month = Month.JUNE,
) -> CatalogueEntry:
    return CatalogueEntry(
        id=slugify(name),
        display_name=name,
        canonical_name=name,
        short_code=name[:3].upper(),
        narrative=Narrative(origin_culture="Greek", story="", meaning=name),
        astronomy=AstronomyFacts(
            reference_object_name="Alpha",
            object_count=20,
            coverage_area=500.0,
            hemisphere=hemisphere,
            seasonal_peak=peak,
            declination_deg=declination,
        ),
        position=Position(right_ascension_hours=12.0, declination_deg=declination),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        primary_url=PRIMARY_INDEX_URL,
        backup_url=BACKUP_INDEX_URL,
        fetch_retries=1,
        fetch_backoff_s=0,
        batch_size=4,
        batch_pause_s=0.3,
    )


@pytest.fixture
def primary_pages() -> dict[str, str]:
    pages = {PRIMARY_INDEX_URL: primary_index(PRIMARY_NAMES)}
    for name in PRIMARY_NAMES:
        pages[primary_url(name)] = ORION_DETAIL if name == "Orion" else BARE_DETAIL
    return pages
