"""
Locality resolver.

Runs the search strategies for one locality in order against the search
index and stops at the first query whose results contain an acceptable
candidate. Candidates outside the target region or classified as excluded
institutions are dropped; the rest are ranked by a fixed rule list.

There is no fallback to "first entity in the region": a locality that no
rule accepts resolves to no match.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .classify import Classification, classify
from .errors import TransientFetchError
from .logger import get_logger
from .normalize import hyphen_space_equivalent, match_key
from .schema import CandidateEntity, LocalityRef, ResolvedMatch
from .search import DEFAULT_MAX_QUERIES, build_queries

logger = get_logger()

DEFAULT_SEARCH_LIMIT = 10

SearchFn = Callable[[str, int], List[CandidateEntity]]


@dataclass(frozen=True)
class _Scored:
    candidate: CandidateEntity
    classification: Classification
    locality_key: str
    display_key: str


def _office_exact(s: _Scored, target: str) -> bool:
    return s.classification.is_office and hyphen_space_equivalent(s.locality_key, target)


def _office_locality_contains(s: _Scored, target: str) -> bool:
    return s.classification.is_office and target in s.locality_key


def _office_display_contains(s: _Scored, target: str) -> bool:
    return s.classification.is_office and target in s.display_key


def _locality_exact(s: _Scored, target: str) -> bool:
    return hyphen_space_equivalent(s.locality_key, target)


def _any_contains(s: _Scored, target: str) -> bool:
    return target in s.locality_key or target in s.display_key


# Highest priority first; within a rule the search index order decides
RANKING_RULES: Tuple[Tuple[str, Callable[[_Scored, str], bool]], ...] = (
    ("office_exact_locality", _office_exact),
    ("office_locality_contains", _office_locality_contains),
    ("office_name_contains", _office_display_contains),
    ("exact_locality", _locality_exact),
    ("name_contains", _any_contains),
)


@dataclass
class Resolution:
    """Outcome of resolving one locality, with the trail that led to it."""

    match: Optional[ResolvedMatch] = None
    query: Optional[str] = None
    strategy: Optional[int] = None
    rule: Optional[str] = None
    queries_tried: List[str] = field(default_factory=list)
    failed_queries: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.match is not None


def filter_candidates(region: str, candidates: Iterable[CandidateEntity]) -> List[_Scored]:
    region_key = match_key(region)
    kept: List[_Scored] = []
    for c in candidates:
        if match_key(c.region) != region_key:
            continue
        classification = classify(c)
        if classification.is_excluded:
            continue
        kept.append(_Scored(c, classification, match_key(c.locality_name), match_key(c.display_name)))
    return kept


def select_match(
    region: str,
    name: str,
    candidates: Sequence[CandidateEntity],
) -> Optional[Tuple[CandidateEntity, str]]:
    """
    Pick the best candidate for (region, name) from one result set.

    Returns (candidate, rule_name) or None when no rule accepts any
    candidate.
    """
    target = match_key(name)
    if not target:
        return None
    scored = filter_candidates(region, candidates)
    for rule_name, rule in RANKING_RULES:
        for s in scored:
            if rule(s, target):
                return s.candidate, rule_name
    return None


def resolve(
    ref: LocalityRef,
    search: SearchFn,
    limit: int = DEFAULT_SEARCH_LIMIT,
    max_queries: int = DEFAULT_MAX_QUERIES,
    queries: Optional[Sequence[str]] = None,
) -> Resolution:
    """
    Resolve a locality to at most one catalog entity.

    Args:
        ref: Locality to resolve
        search: Callable(query, limit) returning candidates in index order
        limit: Result-count limit per search call
        max_queries: Cap on the number of strategies tried
        queries: Explicit strategy list (defaults to build_queries)

    Returns:
        Resolution; resolution.match is None when nothing qualified
    """
    if queries is None:
        queries = build_queries(ref.region, ref.name, ref.kind, max_queries)

    resolution = Resolution()
    for index, query in enumerate(queries, 1):
        resolution.queries_tried.append(query)
        try:
            candidates = search(query, limit)
        except TransientFetchError as e:
            resolution.failed_queries.append(query)
            logger.warning("Search failed", query=query, region=ref.region, locality=ref.name, error=str(e))
            continue

        picked = select_match(ref.region, ref.name, candidates)
        if picked is None:
            logger.debug("No acceptable candidate", query=query, candidates=len(candidates))
            continue

        candidate, rule_name = picked
        resolution.match = ResolvedMatch.from_candidate(candidate)
        resolution.query = query
        resolution.strategy = index
        resolution.rule = rule_name
        logger.record_strategy_hit(index)
        logger.debug(
            "Resolved locality",
            region=ref.region,
            locality=ref.name,
            query=query,
            rule=rule_name,
            entity=candidate.display_name,
            tax_id=candidate.tax_id,
        )
        return resolution

    return resolution
