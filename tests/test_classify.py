"""
Tests for entity classification.
"""

import pytest

from uatstats.classify import EXCLUDED_KEYWORDS, OFFICE_MARKERS, classify, excluded_category, is_office_name
from uatstats.schema import CandidateEntity


def candidate(name: str) -> CandidateEntity:
    return CandidateEntity(display_name=name, tax_id="1", region="Sample", locality_name="Example")


class TestOfficeMarkers:
    """Test administrative office detection."""

    @pytest.mark.parametrize("name", [
        "MUNICIPIUL IASI",
        "ORAȘUL EXAMPLE TOWN",
        "Comuna Twin Rivers",
        "PRIMĂRIA COMUNEI TWIN RIVERS",
    ])
    def test_office_names(self, name):
        assert is_office_name(name)
        assert classify(candidate(name)).label == "office"

    def test_markers_match_whole_words(self):
        """COMUNAL and ORASENESC are not office markers."""
        assert not is_office_name("SERVICIUL PUBLIC COMUNAL DE GOSPODARIE")
        assert not is_office_name("SPITALUL ORASENESC EXAMPLE")


class TestExcludedKeywords:
    """Test the institution blacklist."""

    @pytest.mark.parametrize("name,category", [
        ("SCOALA GIMNAZIALA NR 1 EXAMPLE", "school"),
        ("Școala Gimnazială Example", "school"),
        ("SPITALUL ORASENESC EXAMPLE", "hospital"),
        ("JUDECATORIA EXAMPLE", "court"),
        ("PAROHIA ORTODOXA EXAMPLE", "religious"),
        ("MUZEUL JUDETEAN", "cultural"),
        ("DIRECTIA SANITAR VETERINARA", "agency"),
        ("INSPECTORATUL DE POLITIE", "agency"),
        ("CONSILIUL JUDEȚEAN SAMPLE", "county"),
        ("JUDEȚUL SAMPLE", "county"),
    ])
    def test_categories(self, name, category):
        assert excluded_category(name) == category
        result = classify(candidate(name))
        assert result.is_excluded
        assert result.category == category
        assert result.label == "excluded"

    def test_prefix_semantics(self):
        """Keywords match at word start only."""
        assert excluded_category("SPITALUL JUDETEAN") == "hospital"
        assert excluded_category("EXAMPLE OSPITAL") is None

    def test_unclassified(self):
        result = classify(candidate("SERVICIUL PUBLIC COMUNAL DE GOSPODARIE"))
        assert not result.is_office
        assert not result.is_excluded
        assert result.label == "unclassified"

    def test_keyword_list_has_no_office_markers(self):
        keywords = {k for k, _ in EXCLUDED_KEYWORDS}
        assert not keywords & set(OFFICE_MARKERS)


class TestOfficeOverride:
    """An office marker always wins over the blacklist."""

    @pytest.mark.parametrize("name", [
        "COMUNA EXAMPLE - CAMINUL CULTURAL",
        "PRIMARIA ORASULUI EXAMPLE DIRECTIA DE ASISTENTA SOCIALA",
        "MUNICIPIUL SAMPLE SPITALUL MUNICIPAL",
    ])
    def test_office_never_excluded(self, name):
        assert excluded_category(name) is not None
        result = classify(candidate(name))
        assert result.is_office
        assert not result.is_excluded
