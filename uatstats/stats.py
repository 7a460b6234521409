"""
Statistics aggregation for a resolved locality.

The tax figure and the housing count come from independent calls, so they
run concurrently and fail independently: a failed fetch contributes
"no data" to the record and is reported through the failure flags.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .env import DEFAULT_TAX_YEARS
from .errors import TransientFetchError
from .logger import get_logger
from .schema import HousingRow, StatRecord, TaxRow
from .transparenta import HOUSING_DATASET, TAX_CATEGORY

logger = get_logger()

CENT = Decimal("0.01")


@dataclass(frozen=True)
class AggregateResult:
    record: StatRecord
    tax_failed: bool = False
    housing_failed: bool = False

    @property
    def missing(self) -> List[str]:
        """Names of the statistics that yielded nothing usable."""
        gaps = []
        if self.record.tax <= 0:
            gaps.append("tax")
        if self.record.houses <= 0:
            gaps.append("houses")
        return gaps


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def _to_year(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def positive_amount(rows: Iterable[TaxRow], category: str = TAX_CATEGORY) -> Optional[Decimal]:
    """First strictly positive amount among rows of the target category."""
    for row in rows:
        if row.code != category:
            continue
        amount = _to_decimal(row.amount)
        if amount is not None and amount > 0:
            return amount
    return None


def latest_observation(rows: Sequence[HousingRow]) -> Tuple[int, Optional[int]]:
    """(count, year) of the observation with the largest year, (0, None) if none."""
    latest: Optional[HousingRow] = None
    latest_year: Optional[int] = None
    for row in rows:
        year = _to_year(row.year)
        if year is not None and (latest_year is None or year > latest_year):
            latest, latest_year = row, year
    if latest is None:
        return 0, None
    value = _to_decimal(latest.value)
    count = int(value) if value is not None and value > 0 else 0
    return count, latest_year


def fetch_tax(
    source,
    tax_id: str,
    years: Sequence[int] = DEFAULT_TAX_YEARS,
    category: str = TAX_CATEGORY,
) -> Tuple[float, Optional[int], bool]:
    """
    Newest year with a positive amount wins.

    Returns:
        (tax, tax_year, failed) where failed is True only if every year
        raised a transient error
    """
    failures = 0
    for year in years:
        try:
            rows = source.tax_rows(tax_id, year, category)
        except TransientFetchError as e:
            failures += 1
            logger.debug("Tax lookup failed", tax_id=tax_id, year=year, error=str(e))
            continue
        amount = positive_amount(rows, category)
        if amount is not None:
            return float(amount.quantize(CENT, rounding=ROUND_HALF_UP)), year, False
    return 0.0, None, bool(years) and failures == len(years)


def fetch_housing(source, sub_code: Optional[str], dataset: str = HOUSING_DATASET) -> Tuple[int, Optional[int], bool]:
    """Returns (houses, houses_year, failed)."""
    if not sub_code:
        return 0, None, False
    try:
        rows = source.housing_rows(sub_code, dataset)
    except TransientFetchError as e:
        logger.debug("Housing lookup failed", sub_code=sub_code, error=str(e))
        return 0, None, True
    houses, year = latest_observation(rows)
    return houses, year, False


def aggregate(
    source,
    tax_id: str,
    sub_code: Optional[str] = None,
    years: Sequence[int] = DEFAULT_TAX_YEARS,
) -> AggregateResult:
    """Fetch the tax and housing figures for one entity concurrently."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        tax_future = executor.submit(fetch_tax, source, tax_id, tuple(years))
        housing_future = executor.submit(fetch_housing, source, sub_code)
        tax, tax_year, tax_failed = tax_future.result()
        houses, houses_year, housing_failed = housing_future.result()

    record = StatRecord(tax=tax, tax_year=tax_year, houses=houses, houses_year=houses_year)
    return AggregateResult(record=record, tax_failed=tax_failed, housing_failed=housing_failed)
