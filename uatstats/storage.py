import json
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .errors import FatalSetupError
from .schema import Kind, LocalityRef, StatRecord, validate_catalog, validate_store

# Merge statuses
NEW = "new"
UPDATED = "updated"
UNRESOLVED = "unresolved"
KEPT = "kept"


def _read_json(path: Path, what: str) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
    except OSError as e:
        raise FatalSetupError(f"Cannot read {what} {path}: {e}")
    if not content:
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise FatalSetupError(f"{what.capitalize()} {path} is not valid JSON: {e}")


def load_catalog(path: Path) -> List[LocalityRef]:
    """
    Read the locality catalog, sorted by region then name.

    Raises:
        FatalSetupError: If the file is missing, unparseable or invalid
    """
    if not path.exists():
        raise FatalSetupError(f"Catalog not found: {path}")
    data = _read_json(path, "catalog")
    errors = validate_catalog(data)
    if errors:
        raise FatalSetupError(f"Invalid catalog {path}: " + "; ".join(errors[:5]))

    refs = []
    for region, localities in data.items():
        for name, info in localities.items():
            kind = Kind.parse(info.get("kind", info.get("tip")))
            refs.append(LocalityRef(region=region, name=name, kind=kind))
    refs.sort(key=lambda r: (r.region, r.name))
    return refs


class ResultStore:
    """
    Mapping region -> locality -> StatRecord.

    merge() only fills gaps: a record with data is never replaced, and a
    record without data never replaces anything.
    """

    def __init__(self, data: Optional[Dict[str, Dict[str, StatRecord]]] = None):
        self._data: Dict[str, Dict[str, StatRecord]] = data or {}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ResultStore":
        data = {
            region: {name: StatRecord.from_dict(record) for name, record in localities.items()}
            for region, localities in raw.items()
        }
        return cls(data)

    def get(self, region: str, name: str) -> Optional[StatRecord]:
        return self._data.get(region, {}).get(name)

    def __contains__(self, key) -> bool:
        region, name = key
        return self.get(region, name) is not None

    def __len__(self) -> int:
        return sum(len(localities) for localities in self._data.values())

    def merge(self, region: str, name: str, record: StatRecord) -> str:
        existing = self.get(region, name)
        if existing is not None and existing.has_data:
            return KEPT
        if existing is None:
            self._data.setdefault(region, {})[name] = record
            return NEW if record.has_data else UNRESOLVED
        if record.has_data:
            self._data[region][name] = record
            return UPDATED
        return KEPT

    def count_with_data(self, catalog: Optional[Iterable[LocalityRef]] = None) -> int:
        if catalog is None:
            return sum(1 for localities in self._data.values() for r in localities.values() if r.has_data)
        count = 0
        for ref in catalog:
            record = self.get(ref.region, ref.name)
            if record is not None and record.has_data:
                count += 1
        return count

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {
            region: {name: record.to_dict() for name, record in sorted(localities.items())}
            for region, localities in sorted(self._data.items())
        }


def load_store(path: Path) -> ResultStore:
    """
    Read a result store. A missing or empty file is an empty store.

    Raises:
        FatalSetupError: If the file exists but cannot be parsed
    """
    if not path.exists():
        return ResultStore()
    raw = _read_json(path, "store")
    if raw is None:
        return ResultStore()
    if isinstance(raw, dict) and "localities" in raw:
        raw = raw["localities"]
    errors = validate_store(raw)
    if errors:
        raise FatalSetupError(f"Invalid store {path}: " + "; ".join(errors[:5]))
    return ResultStore.from_dict(raw)


def save_store(
    path: Path,
    store: ResultStore,
    catalog: Optional[List[LocalityRef]] = None,
    generated: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Rewrite the store file wholesale, header first.

    Written to a temporary file in the same directory and then renamed, so
    an interrupted write leaves the previous store intact.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {
        "generated": (generated or date.today()).isoformat(),
        "resolved": store.count_with_data(catalog),
        "total": len(catalog) if catalog is not None else len(store),
        "localities": store.to_dict(),
    }
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return document
