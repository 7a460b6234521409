"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from pathlib import Path
from typing import Dict, List, Tuple

from uatstats.logger import get_logger

# Configure the shared logger before any module grabs it: no log files, no console noise
get_logger(enable_file=False, enable_console=False)

from uatstats.env import Settings
from uatstats.errors import TransientFetchError
from uatstats.schema import CandidateEntity, HousingRow, TaxRow


class FakeIndex:
    """In-memory search index: exact query string -> candidates."""

    def __init__(self):
        self.results: Dict[str, List[CandidateEntity]] = {}
        self.failing: set = set()
        self.calls: List[Tuple[str, int]] = []

    def add(self, query: str, *candidates: CandidateEntity) -> "FakeIndex":
        self.results.setdefault(query, []).extend(candidates)
        return self

    def fail(self, query: str) -> "FakeIndex":
        self.failing.add(query)
        return self

    def search(self, query: str, limit: int = 10) -> List[CandidateEntity]:
        self.calls.append((query, limit))
        if query in self.failing:
            raise TransientFetchError(f"search failed: {query}")
        return list(self.results.get(query, []))[:limit]

    @property
    def queries(self) -> List[str]:
        return [q for q, _ in self.calls]


class FakeStats:
    """In-memory statistics source. Values may be row lists or exceptions to raise."""

    def __init__(self):
        self.tax: Dict[Tuple[str, int], object] = {}
        self.housing: Dict[str, object] = {}
        self.tax_calls: List[Tuple[str, int]] = []
        self.housing_calls: List[str] = []

    def set_tax(self, tax_id: str, year: int, amount, code: str = "07.01.01") -> "FakeStats":
        self.tax[(tax_id, year)] = [TaxRow(code=code, amount=amount)]
        return self

    def fail_tax(self, tax_id: str, year: int) -> "FakeStats":
        self.tax[(tax_id, year)] = TransientFetchError("timed out")
        return self

    def set_housing(self, sub_code: str, *observations: Tuple[object, object]) -> "FakeStats":
        self.housing[sub_code] = [HousingRow(value=v, year=y) for v, y in observations]
        return self

    def fail_housing(self, sub_code: str) -> "FakeStats":
        self.housing[sub_code] = TransientFetchError("timed out")
        return self

    def tax_rows(self, tax_id: str, year: int, category: str = "07.01.01") -> List[TaxRow]:
        self.tax_calls.append((tax_id, year))
        value = self.tax.get((tax_id, year), [])
        if isinstance(value, Exception):
            raise value
        return value

    def housing_rows(self, sub_code: str, dataset: str = "LOC101B") -> List[HousingRow]:
        self.housing_calls.append(sub_code)
        value = self.housing.get(sub_code, [])
        if isinstance(value, Exception):
            raise value
        return value


class FakeClient(FakeIndex, FakeStats):
    """Search index and statistics source in one object, like TransparentaClient."""

    def __init__(self):
        FakeIndex.__init__(self)
        FakeStats.__init__(self)


@pytest.fixture
def fake_index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def fake_stats() -> FakeStats:
    return FakeStats()


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def settings() -> Settings:
    """Settings with no pacing delay."""
    return Settings(delay=0.0)


@pytest.fixture
def sample_catalog() -> Dict[str, Dict[str, Dict[str, str]]]:
    """Two regions, native kind values."""
    return {
        "Sample": {
            "Example Town": {"tip": "oraș"},
            "Twin-Rivers": {"tip": "comună"},
        },
        "Other": {
            "Bigcity": {"kind": "municipality"},
        },
    }


@pytest.fixture
def catalog_file(tmp_path, sample_catalog) -> Path:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(sample_catalog, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def populated_store(tmp_path) -> Path:
    """Store where Bigcity already has data and Example Town is a stored zero."""
    path = tmp_path / "uat_data.json"
    data = {
        "generated": "2025-01-01",
        "resolved": 1,
        "total": 3,
        "localities": {
            "Other": {
                "Bigcity": {"tax": 1200.0, "taxYear": 2024, "houses": 10, "housesYear": 2023},
            },
            "Sample": {
                "Example Town": {"tax": 0, "taxYear": None, "houses": 0, "housesYear": None},
            },
        },
    }
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
