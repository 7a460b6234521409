"""
Resumable batch orchestrator.

LOAD_CATALOG -> LOAD_STORE -> SELECT_TARGETS -> (RESOLVE -> AGGREGATE ->
MERGE)* -> WRITE_STORE. Localities are processed one at a time in
(region, name) order with a flat pause between them. Only localities
missing from the store, or stored without data, are queried, so re-runs
are incremental and leave resolved localities untouched.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .checkpoint import CheckpointJournal
from .env import Settings
from .errors import Outcome
from .logger import get_logger
from .resolver import resolve
from .schema import LocalityRef, ResolvedMatch, StatRecord
from .stats import aggregate
from .storage import KEPT, ResultStore, load_catalog, load_store, save_store

logger = get_logger()


@dataclass
class LocalityResult:
    ref: LocalityRef
    outcome: Outcome
    match: Optional[ResolvedMatch] = None
    record: Optional[StatRecord] = None
    query: Optional[str] = None
    tax_failed: bool = False
    housing_failed: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.FOUND

    @property
    def detail(self) -> str:
        if self.outcome == Outcome.NOT_FOUND:
            return "no entity found"
        name = self.match.display_name if self.match else "?"
        tax_id = self.match.tax_id if self.match else "?"
        if self.outcome == Outcome.ENTITY_FOUND_NO_STAT:
            return f"entity found ({name}, CUI: {tax_id}) but no qualifying statistic"
        record = self.record or StatRecord()
        text = f"({name}) {record.tax:,.2f} RON, {record.houses} houses"
        if record.tax <= 0:
            text += " [no tax data]"
        if record.houses <= 0:
            text += " [no housing data]"
        return text

    def label(self) -> str:
        kind = f" ({self.ref.kind.value})" if self.ref.kind else ""
        return f"{self.ref.region} → {self.ref.name}{kind}"


@dataclass
class BatchSummary:
    catalog_size: int
    targets: int
    processed: int = 0
    found: int = 0
    still_missing: int = 0
    resolved: int = 0
    output_path: Optional[Path] = None
    output_kb: int = 0
    replayed: int = 0
    interrupted: bool = False
    unresolved: List[LocalityResult] = field(default_factory=list)


def select_targets(
    catalog: Iterable[LocalityRef],
    store: ResultStore,
    regions: Optional[Iterable[str]] = None,
) -> List[LocalityRef]:
    """Localities absent from the store or stored with tax == 0 and houses == 0."""
    wanted = {r.casefold() for r in regions} if regions else None
    targets = []
    for ref in catalog:
        if wanted is not None and ref.region.casefold() not in wanted:
            continue
        existing = store.get(ref.region, ref.name)
        if existing is None or not existing.has_data:
            targets.append(ref)
    targets.sort(key=lambda r: (r.region, r.name))
    return targets


def process_locality(ref: LocalityRef, index, stats, settings: Settings) -> LocalityResult:
    """
    Resolve one locality and fetch its statistics.

    index provides search(query, limit); stats provides tax_rows and
    housing_rows. Network failures never escape: they surface as a
    NOT_FOUND or ENTITY_FOUND_NO_STAT outcome.
    """
    resolution = resolve(ref, index.search, limit=settings.search_limit, max_queries=settings.max_queries)
    if resolution.match is None:
        return LocalityResult(ref=ref, outcome=Outcome.NOT_FOUND)

    match = resolution.match
    result = aggregate(stats, match.tax_id, match.sub_code, years=settings.tax_years)
    outcome = Outcome.FOUND if result.record.has_data else Outcome.ENTITY_FOUND_NO_STAT
    return LocalityResult(
        ref=ref,
        outcome=outcome,
        match=match,
        record=result.record,
        query=resolution.query,
        tax_failed=result.tax_failed,
        housing_failed=result.housing_failed,
    )


def run_batch(
    catalog_path: Path,
    store_path: Path,
    client,
    settings: Settings,
    checkpoint_db: Optional[Path] = None,
    regions: Optional[Iterable[str]] = None,
    limit: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    out: Callable[..., None] = print,
) -> BatchSummary:
    """
    Run one incremental pass over the catalog.

    Args:
        catalog_path: JSON catalog {region: {locality: {kind}}}
        store_path: JSON result store, read at start and rewritten at end
        client: Search index and statistics source (see TransparentaClient)
        settings: Pacing, limits and tax years
        checkpoint_db: Optional SQLite journal for crash recovery
        regions: Optional region filter
        limit: Optional cap on the number of localities processed
        sleep: Pause function between localities
        out: Progress sink

    Raises:
        FatalSetupError: If the catalog or store cannot be read
    """
    catalog = load_catalog(catalog_path)
    store = load_store(store_path)

    journal = CheckpointJournal(checkpoint_db) if checkpoint_db else None
    replayed = 0
    try:
        if journal is not None:
            for region, name, record in journal.pending():
                if store.merge(region, name, record) != KEPT:
                    replayed += 1
            if replayed:
                logger.info("Replayed checkpoints from an interrupted run", count=replayed)

        targets = select_targets(catalog, store, regions)
        if limit is not None:
            targets = targets[:limit]

        summary = BatchSummary(catalog_size=len(catalog), targets=len(targets), replayed=replayed)
        logger.reset_metrics()
        logger.info("Batch run started", catalog=len(catalog), targets=len(targets), delay=settings.delay)
        out(f"{len(targets)} localities to resolve ({len(catalog)} in catalog)")

        try:
            for i, ref in enumerate(targets, 1):
                result = process_locality(ref, client, client, settings)
                logger.record_outcome(result.outcome.value)
                summary.processed += 1

                if result.record is not None:
                    status = store.merge(ref.region, ref.name, result.record)
                    if journal is not None and status != KEPT:
                        journal.record(ref, result.record, result.match.tax_id if result.match else None)

                if result.ok:
                    summary.found += 1
                    out(f"[{i}/{len(targets)}] {result.label()}... ✓ {result.detail}")
                else:
                    summary.still_missing += 1
                    summary.unresolved.append(result)
                    out(f"[{i}/{len(targets)}] {result.label()}... ✗ {result.detail}")

                if i < len(targets):
                    sleep(settings.delay)
        except KeyboardInterrupt:
            summary.interrupted = True
            logger.warning("Batch run interrupted", processed=summary.processed, targets=len(targets))
            out("\nInterrupted, writing collected results...")

        save_store(store_path, store, catalog)
        if journal is not None:
            journal.clear()
    finally:
        if journal is not None:
            journal.close()

    summary.resolved = store.count_with_data(catalog)
    summary.output_path = store_path
    summary.output_kb = round(store_path.stat().st_size / 1024)
    logger.info(
        "Batch run finished",
        found=summary.found,
        still_missing=summary.still_missing,
        resolved=summary.resolved,
        total=summary.catalog_size,
        interrupted=summary.interrupted,
    )
    logger.log_metrics_summary()
    return summary


def format_summary(summary: BatchSummary) -> List[str]:
    lines = [
        "",
        "============================",
        f"{'Interrupted' if summary.interrupted else 'Done'}! "
        f"Found {summary.found} new, {summary.still_missing} still missing",
        f"Total: {summary.resolved}/{summary.catalog_size} localities with data",
        f"Output: {summary.output_path} ({summary.output_kb} KB)",
    ]
    if summary.replayed:
        lines.append(f"Recovered from checkpoint: {summary.replayed}")
    if summary.unresolved:
        lines.append("")
        lines.append("Still missing:")
        for result in summary.unresolved:
            lines.append(f"  - {result.label()} [{result.outcome.value}: {result.detail}]")
    return lines
