"""
Entity classification for catalog search results.

A search for a locality returns every public body registered there:
schools, hospitals, courts, parishes, agencies. Only the local
administrative office (the town hall) carries the locality's fiscal
record, so candidates are labelled before ranking.

Both keyword lists are data. Office markers match whole words; excluded
keywords match at the start of a word, so "SPITAL" also catches
"SPITALUL" and "SPITALUL JUDETEAN". An office marker always wins over
the exclusion list.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from .normalize import match_key
from .schema import CandidateEntity

OFFICE_MARKERS: Tuple[str, ...] = (
    "MUNICIPIUL",
    "MUNICIPIU",
    "ORASUL",
    "ORAS",
    "COMUNA",
    "PRIMARIA",
)

# (keyword, category), evaluated in order; the first hit names the category
EXCLUDED_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    # education
    ("SCOALA", "school"),
    ("LICEUL", "school"),
    ("COLEGIUL", "school"),
    ("GRADINITA", "school"),
    ("SEMINARUL", "school"),
    ("UNIVERSITATEA", "school"),
    ("ACADEMIA", "school"),
    ("PALATUL COPIILOR", "school"),
    ("CLUBUL COPIILOR", "school"),
    ("CENTRUL SCOLAR", "school"),
    ("CENTRUL JUDETEAN DE RESURSE", "school"),
    ("CASA CORPULUI DIDACTIC", "school"),
    # health
    ("SPITAL", "hospital"),
    ("SANATORIUL", "hospital"),
    ("DISPENSARUL", "hospital"),
    ("CENTRUL MEDICAL", "hospital"),
    ("SERVICIUL DE AMBULANTA", "hospital"),
    ("AMBULANTA", "hospital"),
    # justice
    ("JUDECATORIA", "court"),
    ("TRIBUNALUL", "court"),
    ("CURTEA DE APEL", "court"),
    ("CURTEA DE CONTURI", "court"),
    ("PARCHETUL", "court"),
    ("PENITENCIARUL", "court"),
    # religious
    ("PAROHIA", "religious"),
    ("BISERICA", "religious"),
    ("MANASTIREA", "religious"),
    ("SCHITUL", "religious"),
    ("EPISCOPIA", "religious"),
    ("ARHIEPISCOPIA", "religious"),
    ("MITROPOLIA", "religious"),
    ("PROTOPOPIATUL", "religious"),
    ("CULTUL", "religious"),
    # culture
    ("MUZEUL", "cultural"),
    ("BIBLIOTECA", "cultural"),
    ("CASA DE CULTURA", "cultural"),
    ("CAMINUL CULTURAL", "cultural"),
    ("CENTRUL CULTURAL", "cultural"),
    ("TEATRUL", "cultural"),
    ("FILARMONICA", "cultural"),
    ("ANSAMBLUL", "cultural"),
    # agencies and regulators
    ("AGENTIA", "agency"),
    ("AUTORITATEA", "agency"),
    ("DIRECTIA", "agency"),
    ("OFICIUL", "agency"),
    ("GARDA", "agency"),
    ("INSPECTORATUL", "agency"),
    ("ADMINISTRATIA", "agency"),
    ("CAMERA", "agency"),
    ("CASA JUDETEANA", "agency"),
    ("CASA DE PENSII", "agency"),
    ("CASA DE ASIGURARI", "agency"),
    ("REGIA", "agency"),
    ("COMPANIA", "agency"),
    ("SOCIETATEA", "agency"),
    ("INSTITUTUL", "agency"),
    ("INSTITUTIA PREFECTULUI", "agency"),
    ("PREFECTURA", "agency"),
    ("ASOCIATIA", "agency"),
    ("FUNDATIA", "agency"),
    ("CENTRUL DE ASISTENTA", "agency"),
    ("CAMINUL DE BATRANI", "agency"),
    # police, emergency, military
    ("POLITIA", "security"),
    ("JANDARMERIA", "security"),
    ("POMPIERII", "security"),
    ("UNITATEA MILITARA", "security"),
    ("CENTRUL MILITAR", "security"),
    ("BAZA AERIANA", "security"),
    # county level
    ("CONSILIUL JUDETEAN", "county"),
    ("JUDETUL", "county"),
)


@dataclass(frozen=True)
class Classification:
    is_office: bool
    is_excluded: bool
    category: Optional[str] = None

    @property
    def label(self) -> str:
        if self.is_office:
            return "office"
        if self.is_excluded:
            return "excluded"
        return "unclassified"


def _word_pattern(keyword: str, whole_word: bool) -> Pattern[str]:
    tail = r"\b" if whole_word else ""
    return re.compile(r"\b" + re.escape(keyword) + tail)


_OFFICE_PATTERNS: List[Pattern[str]] = [_word_pattern(k, True) for k in OFFICE_MARKERS]
_EXCLUDED_PATTERNS: List[Tuple[Pattern[str], str]] = [
    (_word_pattern(k, False), category) for k, category in EXCLUDED_KEYWORDS
]


def is_office_name(name: str) -> bool:
    key = match_key(name)
    return any(p.search(key) for p in _OFFICE_PATTERNS)


def excluded_category(name: str) -> Optional[str]:
    key = match_key(name)
    for pattern, category in _EXCLUDED_PATTERNS:
        if pattern.search(key):
            return category
    return None


def classify(candidate: CandidateEntity) -> Classification:
    if is_office_name(candidate.display_name):
        return Classification(is_office=True, is_excluded=False)
    category = excluded_category(candidate.display_name)
    return Classification(is_office=False, is_excluded=category is not None, category=category)
