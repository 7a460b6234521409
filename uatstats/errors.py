"""
Error taxonomy for locality resolution runs.

Per-call failures are swallowed into "no result" at the smallest scope;
only setup failures abort a run.
"""

from enum import Enum


class UatStatsError(Exception):
    """Base class for all uatstats errors."""


class TransientFetchError(UatStatsError):
    """A single network call failed (timeout, non-2xx, malformed payload)."""


class FatalSetupError(UatStatsError):
    """Catalog, store or settings could not be read. Aborts the run."""


class Outcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ENTITY_FOUND_NO_STAT = "entity_found_no_stat"
