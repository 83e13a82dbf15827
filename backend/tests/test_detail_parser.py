"""
Tests for the detail page parser and the prioritised extractor tables.
"""

import re

from constellation_service.detail_parser import ParsedDetail, parse
from constellation_service.models import Hemisphere, Month, SourceKind
from constellation_service.patterns import PrioritizedExtractor, clean_text, group_float, group_text, rule

from .conftest import BARE_DETAIL, CRUX_DETAIL, ORION_DETAIL, STORY, backup_url, primary_url


class TestPrioritizedExtractor:
    """Ordered (pattern, extract) tables."""

    def test_first_matching_pattern_wins(self):
        extractor = PrioritizedExtractor("area", (
            rule(r"area[:\s]*(\d+)", group_float()),
            rule(r"(\d+)\s*square\s*degrees", group_float()),
        ))
        assert extractor.extract("Area: 10, or 20 square degrees") == 10.0

    def test_rejected_value_falls_through_to_next_pattern(self):
        extractor = PrioritizedExtractor("ra", (
            rule(r"RA[:\s]*(\d+)", group_float(lo=0, hi=23.999), flags=0),
            rule(r"hours[:\s]*(\d+)", group_float(lo=0, hi=23.999)),
        ))
        assert extractor.extract("RA: 130 hours: 5") == 5.0

    def test_no_match_is_none(self):
        extractor = PrioritizedExtractor("name", (rule(r"name:\s*(\w+)", group_text()),))
        assert extractor.extract("nothing here") is None

    def test_extract_all_respects_limit(self):
        extractor = PrioritizedExtractor("ids", (rule(r"M(\d+)", group_text(), flags=0),))
        assert extractor.extract_all("M1 M2 M3 M4", limit=2) == ["1", "2"]

    def test_clean_text(self):
        assert clean_text("  <b>Bo&ouml;tes</b>\n the   herdsman ") == "Boötes the herdsman"
        assert clean_text("abcdef", limit=3) == "abc"

    def test_tables_are_plain_data(self):
        extractor = PrioritizedExtractor("x", (rule(r"x=(\d+)", group_text()),))
        assert isinstance(extractor.patterns[0].pattern, re.Pattern)


class TestPrimaryDetail:
    """go-astronomy detail pages."""

    def setup_method(self):
        self.parsed = parse(ORION_DETAIL, "Orion", SourceKind.PRIMARY, page_url=primary_url("Orion"))

    def test_names_and_codes(self):
        assert self.parsed.canonical_name == "Orion"
        assert self.parsed.short_code == "ORI"

    def test_narrative_fields(self):
        assert self.parsed.story == STORY
        assert self.parsed.origin_culture == "Greek"
        assert self.parsed.meaning == "The Hunter"
        assert self.parsed.related_figures == ["Artemis", "Apollo", "Merope"]

    def test_astronomy_fields(self):
        assert self.parsed.reference_object_name == "Rigel"
        assert self.parsed.coverage_area == 594.0
        assert self.parsed.object_count == 81
        assert self.parsed.hemisphere is Hemisphere.BOTH
        assert self.parsed.seasonal_peak is Month.JANUARY
        assert self.parsed.declination_deg == 5.0
        assert self.parsed.right_ascension_hours == 5.5

    def test_notable_objects_from_table(self):
        names = [obj.name for obj in self.parsed.notable_objects]
        assert names == ["Rigel", "Betelgeuse"]
        assert self.parsed.notable_objects[0].magnitude == 0.13
        assert self.parsed.notable_objects[0].kind == "Blue supergiant"
        assert self.parsed.notable_objects[0].distance == 860.0

    def test_deep_sky_objects(self):
        assert len(self.parsed.deep_sky_objects) == 1
        dso = self.parsed.deep_sky_objects[0]
        assert dso.name == "M42"
        assert dso.kind == "Orion Nebula"
        assert dso.magnitude == 4.0

    def test_image_urls_made_absolute(self):
        assert self.parsed.image_url == "https://www.go-astronomy.com/images/constellations/orion.jpg"
        assert self.parsed.detail_chart_url == "https://www.go-astronomy.com/charts/orion-map.png"

    def test_negative_declination_with_unicode_minus(self):
        parsed = parse("<li>Declination: −60.5</li>", "Crux", SourceKind.PRIMARY)
        assert parsed.declination_deg == -60.5

    def test_out_of_range_values_are_not_found(self):
        parsed = parse("<li>Declination: 120</li><li>Right ascension: 30</li>", "Nowhere", SourceKind.PRIMARY)
        assert parsed.declination_deg is None
        assert parsed.right_ascension_hours is None


class TestUnmatchedFields:
    """A page with no recognisable content parses to an empty result, without raising."""

    def test_bare_page_has_no_found_fields(self):
        parsed = parse(BARE_DETAIL, "Lyra", SourceKind.PRIMARY)
        assert parsed == ParsedDetail()
        assert parsed.found_fields() == set()

    def test_found_fields_lists_parsed_fields(self):
        parsed = parse("<li>Area: 300</li>", "Lyra", SourceKind.PRIMARY)
        assert parsed.found_fields() == {"coverage_area"}

    def test_empty_body(self):
        assert parse("", "Lyra", SourceKind.BACKUP).found_fields() == set()


class TestBackupDetail:
    """NOIRLab detail pages."""

    def test_story_brightest_and_hemisphere(self):
        parsed = parse(CRUX_DETAIL, "Crux", SourceKind.BACKUP, page_url=backup_url("Crux"))
        assert parsed.story.startswith("The Southern Cross is a small but famous pattern.")
        assert len(parsed.story) <= 600
        assert parsed.reference_object_name == "Acrux"
        assert parsed.hemisphere is Hemisphere.SOUTHERN

    def test_backup_table_ignores_primary_only_fields(self):
        parsed = parse(ORION_DETAIL, "Orion", SourceKind.BACKUP)
        assert parsed.canonical_name is None
        assert parsed.short_code is None
        assert parsed.origin_culture is None
