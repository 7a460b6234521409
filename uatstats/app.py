import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

from . import __version__
from .batch import format_summary, process_locality, run_batch, select_targets
from .env import get_settings, load_env
from .errors import FatalSetupError
from .logger import get_logger
from .schema import Kind, LocalityRef
from .search import build_queries
from .storage import load_catalog, load_store
from .transparenta import TransparentaClient


def _client(settings) -> TransparentaClient:
    return TransparentaClient(url=settings.graphql_url, timeout=settings.timeout)


def _kind(value):
    if value is None:
        return None
    kind = Kind.parse(value)
    if kind is None:
        raise SystemExit(f"Unknown kind: {value} (use municipality/town/commune or municipiu/oraș/comună)")
    return kind


def cmd_run(args: argparse.Namespace) -> None:
    settings = args.settings
    if args.delay is not None:
        settings = replace(settings, delay=args.delay)

    summary = run_batch(
        catalog_path=Path(args.catalog),
        store_path=Path(args.store),
        client=_client(settings),
        settings=settings,
        checkpoint_db=Path(args.checkpoint_db) if args.checkpoint_db else None,
        regions=args.region,
        limit=args.limit,
    )
    for line in format_summary(summary):
        print(line)
    if summary.interrupted:
        raise SystemExit(130)


def cmd_resolve(args: argparse.Namespace) -> None:
    settings = args.settings
    ref = LocalityRef(region=args.region, name=args.name, kind=_kind(args.kind))
    client = _client(settings)
    result = process_locality(ref, client, client, settings)
    payload = {
        "entity": result.match.to_dict() if result.match else None,
        "record": result.record.to_dict() if result.record else None,
        "outcome": result.outcome.value,
        "query": result.query,
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def cmd_queries(args: argparse.Namespace) -> None:
    queries = build_queries(args.region, args.name, _kind(args.kind), args.settings.max_queries)
    print("Search strategies:")
    for i, q in enumerate(queries, 1):
        print(f" {i:2d}. {q}")


def cmd_missing(args: argparse.Namespace) -> None:
    catalog = load_catalog(Path(args.catalog))
    store = load_store(Path(args.store))
    targets = select_targets(catalog, store, args.region)
    if not targets:
        print("Nothing missing: every locality in the catalog has data.")
        return
    print(f"{len(targets)} of {len(catalog)} localities have no data:\n")
    for ref in targets:
        record = store.get(ref.region, ref.name)
        state = "stored without data" if record is not None else "not in store"
        print(f"  {ref.region} → {ref.name} ({state})")


def main():
    # Load .env if present (UATSTATS_GRAPHQL_URL, UATSTATS_DELAY, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="uatstats", description="Resolve localities and collect tax and housing statistics")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--log-level", help="Console log level (default: UATSTATS_LOG_LEVEL or INFO)")
    parser.add_argument("--no-log-file", action="store_true", help="Do not write a dated log file")

    subparsers = parser.add_subparsers(dest="command")
    run = subparsers.add_parser("run", help="Resolve every catalog locality still missing data and update the store")
    run.add_argument("--catalog", required=True, help="Path to catalog JSON {region: {locality: {kind}}}")
    run.add_argument("--store", default="data/uat_data.json", help="Path to result store (default: data/uat_data.json)")
    run.add_argument("--checkpoint-db", help="SQLite journal for crash recovery (optional)")
    run.add_argument("--delay", type=float, help="Seconds between localities (default: UATSTATS_DELAY or 1.2)")
    run.add_argument("--region", action="append", help="Only process this region (repeatable)")
    run.add_argument("--limit", type=int, help="Optional limit on number of localities to process")
    run.set_defaults(func=cmd_run)

    res = subparsers.add_parser("resolve", help="Resolve one locality and print its entity and statistics as JSON")
    res.add_argument("--region", required=True, help="Region (county) name")
    res.add_argument("--name", required=True, help="Locality name")
    res.add_argument("--kind", help="municipality/town/commune")
    res.set_defaults(func=cmd_resolve)

    qry = subparsers.add_parser("queries", help="Print the ordered search strategies for a locality")
    qry.add_argument("--region", required=True, help="Region (county) name")
    qry.add_argument("--name", required=True, help="Locality name")
    qry.add_argument("--kind", help="municipality/town/commune")
    qry.set_defaults(func=cmd_queries)

    mis = subparsers.add_parser("missing", help="List catalog localities without data (no network)")
    mis.add_argument("--catalog", required=True, help="Path to catalog JSON")
    mis.add_argument("--store", default="data/uat_data.json", help="Path to result store (default: data/uat_data.json)")
    mis.add_argument("--region", action="append", help="Only list this region (repeatable)")
    mis.set_defaults(func=cmd_missing)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        settings = get_settings()
        get_logger().configure(
            level=args.log_level or settings.log_level,
            log_dir=settings.log_dir,
            enable_file=not args.no_log_file,
        )
        args.settings = settings
        args.func(args)
    except FatalSetupError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
