from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises with camelCase keys (frontend contract), accepts either form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Enumerations ---

class Hemisphere(str, Enum):
    NORTHERN = "northern"
    SOUTHERN = "southern"
    BOTH = "both"


class Month(str, Enum):
    JANUARY = "January"
    FEBRUARY = "February"
    MARCH = "March"
    APRIL = "April"
    MAY = "May"
    JUNE = "June"
    JULY = "July"
    AUGUST = "August"
    SEPTEMBER = "September"
    OCTOBER = "October"
    NOVEMBER = "November"
    DECEMBER = "December"

    @property
    def number(self) -> int:
        return list(Month).index(self) + 1

    @classmethod
    def from_number(cls, number: int) -> Month:
        return list(cls)[(number - 1) % 12]


class MoonPhase(str, Enum):
    NEW_MOON = "New Moon"
    WAXING_CRESCENT = "Waxing Crescent"
    FIRST_QUARTER = "First Quarter"
    WAXING_GIBBOUS = "Waxing Gibbous"
    FULL_MOON = "Full Moon"
    WANING_GIBBOUS = "Waning Gibbous"
    LAST_QUARTER = "Last Quarter"
    WANING_CRESCENT = "Waning Crescent"


class SourceKind(str, Enum):
    PRIMARY = "primary"
    BACKUP = "backup"


# --- Catalogue entry ---

class Narrative(CamelModel):
    origin_culture: str
    story: str
    meaning: str
    related_figures: list[str] = []


class AstronomyFacts(CamelModel):
    reference_object_name: str = Field(description="Brightest / reference star")
    object_count: int
    coverage_area: float = Field(description="Area in square degrees")
    hemisphere: Hemisphere
    seasonal_peak: Month
    declination_deg: float


class Position(CamelModel):
    right_ascension_hours: float = Field(ge=0, lt=24)
    declination_deg: float = Field(ge=-90, le=90)


class NotableObject(CamelModel):
    name: str
    magnitude: float
    kind: str
    distance: float = Field(description="Light years")


class DeepSkyObject(CamelModel):
    name: str
    kind: str
    magnitude: float
    description: str


class CatalogueEntry(CamelModel):
    id: str
    display_name: str
    canonical_name: str
    short_code: str
    narrative: Narrative
    astronomy: AstronomyFacts
    position: Position
    notable_objects: list[NotableObject] = []
    deep_sky_objects: list[DeepSkyObject] = []
    image_url: str = ""
    detail_chart_url: str = ""


# --- Visibility ---

class VisibilityResult(CamelModel):
    visible_ids: list[str] = []
    moon_phase_label: MoonPhase
    moon_illumination_pct: int = Field(ge=0, le=100)
    best_viewing_window: str
    conditions_note: str


# --- API responses ---

class HealthResponse(BaseModel):
    status: str = "ok"
