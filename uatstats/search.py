"""
Search query strategies for locality resolution.

The order of the strings returned by build_queries decides match quality:
the resolver stops at the first query that yields an acceptable match.
"""

from typing import List, Optional, Union

from .normalize import leading_type_word, strip_diacritics, trailing_word
from .schema import Kind

DEFAULT_MAX_QUERIES = 10
GENERIC_OFFICE_WORD = "PRIMARIA"


def _join(*parts: Optional[str]) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def _office_queries(office: str, name: str, region: str) -> List[str]:
    return [
        _join(office, name, region),
        _join(office, strip_diacritics(name), region),
        _join(name, region),
    ]


def _hyphen_space_variants(name: str) -> List[str]:
    variants = []
    if "-" in name:
        variants.append(name.replace("-", " "))
    if " " in name:
        variants.append(name.replace(" ", "-"))
    return variants


def build_queries(
    region: str,
    name: str,
    kind: Union[Kind, str, None] = None,
    max_queries: int = DEFAULT_MAX_QUERIES,
) -> List[str]:
    """
    Returns the ordered, de-duplicated search strings for one locality,
    most specific first, capped at max_queries.
    """
    k = Kind.parse(kind)
    office = k.office_word if k else ""
    plain = strip_diacritics(name)

    queries: List[str] = [
        _join(office, name, region),
        _join(office, plain, region),
        _join(name, region),
        _join(plain, region),
        _join(GENERIC_OFFICE_WORD, name),
    ]
    for variant in _hyphen_space_variants(name):
        queries.extend(_office_queries(office, variant, region))

    first = leading_type_word(name)
    if first:
        queries.append(_join(first, region))
    last = trailing_word(name)
    if last:
        queries.append(_join(last, region))

    seen = set()
    result: List[str] = []
    for q in queries:
        if q and q not in seen:
            seen.add(q)
            result.append(q)
    return result[:max_queries]

