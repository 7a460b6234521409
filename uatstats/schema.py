from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .normalize import strip_diacritics


class Kind(str, Enum):
    MUNICIPALITY = "municipality"
    TOWN = "town"
    COMMUNE = "commune"

    @property
    def office_word(self) -> str:
        return OFFICE_WORDS[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["Kind"]:
        if isinstance(value, Kind):
            return value
        if not isinstance(value, str):
            return None
        key = strip_diacritics(value).strip().lower()
        return KIND_ALIASES.get(key)


OFFICE_WORDS = {
    Kind.MUNICIPALITY: "MUNICIPIUL",
    Kind.TOWN: "ORAȘUL",
    Kind.COMMUNE: "COMUNA",
}

# Catalog files use the native administrative terms
KIND_ALIASES = {
    "municipality": Kind.MUNICIPALITY,
    "municipiu": Kind.MUNICIPALITY,
    "town": Kind.TOWN,
    "oras": Kind.TOWN,
    "commune": Kind.COMMUNE,
    "comuna": Kind.COMMUNE,
}


@dataclass(frozen=True)
class LocalityRef:
    region: str
    name: str
    kind: Optional[Kind] = None


@dataclass(frozen=True)
class CandidateEntity:
    display_name: str
    tax_id: str
    region: str
    locality_name: str
    sub_code: Optional[str] = None


@dataclass(frozen=True)
class ResolvedMatch:
    tax_id: str
    display_name: str
    region: str
    locality_name: str
    sub_code: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: CandidateEntity) -> "ResolvedMatch":
        return cls(
            tax_id=candidate.tax_id,
            display_name=candidate.display_name,
            region=candidate.region,
            locality_name=candidate.locality_name,
            sub_code=candidate.sub_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "taxId": self.tax_id,
            "subCode": self.sub_code,
            "displayName": self.display_name,
            "region": self.region,
            "localityName": self.locality_name,
        }


@dataclass(frozen=True)
class StatRecord:
    tax: float = 0.0
    tax_year: Optional[int] = None
    houses: int = 0
    houses_year: Optional[int] = None

    @property
    def has_data(self) -> bool:
        return self.tax > 0 or self.houses > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tax": self.tax,
            "taxYear": self.tax_year,
            "houses": self.houses,
            "housesYear": self.houses_year,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatRecord":
        return cls(
            tax=float(data.get("tax") or 0),
            tax_year=data.get("taxYear"),
            houses=int(data.get("houses") or 0),
            houses_year=data.get("housesYear"),
        )


@dataclass(frozen=True)
class TaxRow:
    code: str
    amount: Any = None


@dataclass(frozen=True)
class HousingRow:
    value: Any = None
    year: Any = None
    territory_name: Optional[str] = None


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_non_negative_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and v >= 0


def _is_optional_year(v: Any) -> bool:
    return v is None or (isinstance(v, int) and not isinstance(v, bool))


def validate_catalog(data: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    Expected shape: {region: {locality: {"kind": ...}}}. The legacy "tip"
    key is accepted in place of "kind".
    """
    errors: List[str] = []
    if not isinstance(data, dict):
        return ["Catalog must be a mapping of region -> localities"]
    if not data:
        errors.append("Catalog is empty")

    for region, localities in data.items():
        if not _is_non_empty_str(region):
            errors.append(f"Region name must be a non-empty string: {region!r}")
            continue
        if not isinstance(localities, dict):
            errors.append(f"Region '{region}' must map to a mapping of localities")
            continue
        for name, info in localities.items():
            if not _is_non_empty_str(name):
                errors.append(f"Locality name in '{region}' must be a non-empty string")
                continue
            if not isinstance(info, dict):
                errors.append(f"Locality '{region}/{name}' must map to an object")
                continue
            raw_kind = info.get("kind", info.get("tip"))
            if raw_kind is not None and Kind.parse(raw_kind) is None:
                errors.append(f"Locality '{region}/{name}' has unknown kind: {raw_kind!r}")
    return errors


def validate_store(data: Any) -> List[str]:
    """Validate a {region: {locality: StatRecord}} mapping."""
    errors: List[str] = []
    if not isinstance(data, dict):
        return ["Store must be a mapping of region -> localities"]

    for region, localities in data.items():
        if not isinstance(localities, dict):
            errors.append(f"Region '{region}' must map to a mapping of localities")
            continue
        for name, record in localities.items():
            where = f"{region}/{name}"
            if not isinstance(record, dict):
                errors.append(f"Record '{where}' must be an object")
                continue
            for f in ("tax", "houses"):
                if f in record and not _is_non_negative_number(record[f]):
                    errors.append(f"Field '{f}' of '{where}' must be a non-negative number")
            for f in ("taxYear", "housesYear"):
                if not _is_optional_year(record.get(f)):
                    errors.append(f"Field '{f}' of '{where}' must be an integer year or null")
    return errors
