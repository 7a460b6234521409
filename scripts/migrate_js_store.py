#!/usr/bin/env python3
"""
Convert a legacy JavaScript data file into the JSON result store.

The legacy file is a comment header followed by `const UAT_DATA = {...};`
where the object literal is plain JSON.

Usage:
    python scripts/migrate_js_store.py --js js/uat-data.js --out data/uat_data.json
"""

import argparse
import json
import re
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from uatstats.schema import validate_store
from uatstats.storage import KEPT, ResultStore, load_store, save_store

DATA_PATTERN = re.compile(r"const\s+UAT_DATA\s*=\s*(\{[\s\S]*\})\s*;")


def parse_js_store(source: str) -> dict:
    """Extract the UAT_DATA object literal from the JavaScript source."""
    match = DATA_PATTERN.search(source)
    if not match:
        raise ValueError("No `const UAT_DATA = {...};` declaration found")
    return json.loads(match.group(1))


def migrate(js_path: Path, out_path: Path, dry_run: bool = False) -> int:
    """
    Migrate localities from the legacy JS file into the JSON store.

    Args:
        js_path: Path to the legacy JavaScript data file
        out_path: Path to the JSON result store (merged into if it exists)
        dry_run: If True, don't write the store

    Returns:
        Number of localities that were added or filled in
    """
    print(f"Loading localities from {js_path}...")
    data = parse_js_store(js_path.read_text(encoding="utf-8"))

    errors = validate_store(data)
    if errors:
        print(f"❌ Legacy data is invalid ({len(errors)} errors):")
        for e in errors[:10]:
            print(f"  - {e}")
        raise SystemExit(2)

    legacy = ResultStore.from_dict(data)
    print(f"Found {len(legacy)} localities ({legacy.count_with_data()} with data)")

    store = load_store(out_path)
    changed = 0
    for region, localities in legacy.to_dict().items():
        for name in localities:
            status = store.merge(region, name, legacy.get(region, name))
            if status != KEPT:
                changed += 1

    if dry_run:
        print(f"\n[DRY RUN] Would write {len(store)} localities to {out_path} ({changed} added or filled)")
        return changed

    document = save_store(out_path, store)
    print(f"\n✓ Wrote {out_path}: {document['resolved']}/{document['total']} localities with data ({changed} added or filled)")
    return changed


def main():
    parser = argparse.ArgumentParser(description="Convert a legacy UAT_DATA JavaScript file into the JSON store")
    parser.add_argument("--js", type=Path, required=True, help="Path to the legacy JavaScript data file")
    parser.add_argument("--out", type=Path, default=Path("data/uat_data.json"), help="Path to the JSON result store")
    parser.add_argument("--dry-run", action="store_true", help="Preview without writing")
    args = parser.parse_args()

    if not args.js.exists():
        print(f"❌ Error: file not found: {args.js}")
        sys.exit(1)

    try:
        migrate(args.js, args.out, dry_run=args.dry_run)
    except (ValueError, json.JSONDecodeError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
