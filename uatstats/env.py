import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

from .errors import FatalSetupError

DEFAULT_GRAPHQL_URL = "https://api.transparenta.eu/graphql"
DEFAULT_TAX_YEARS = (2025, 2024, 2023, 2022)


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class Settings:
    graphql_url: str = DEFAULT_GRAPHQL_URL
    timeout: float = 30.0
    delay: float = 1.2
    search_limit: int = 10
    max_queries: int = 10
    tax_years: Tuple[int, ...] = field(default=DEFAULT_TAX_YEARS)
    log_level: str = "INFO"
    log_dir: Path = Path("logs")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise FatalSetupError(f"{name} must be a number, got {raw!r}")


def _env_years(name: str, default: Tuple[int, ...]) -> Tuple[int, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        years = tuple(int(y) for y in raw.split(",") if y.strip())
    except ValueError:
        raise FatalSetupError(f"{name} must be a comma-separated list of years, got {raw!r}")
    if not years:
        raise FatalSetupError(f"{name} must list at least one year")
    # Newest first, the tax lookup stops at the first positive year
    return tuple(sorted(set(years), reverse=True))


def get_settings() -> Settings:
    """Build Settings from UATSTATS_* environment variables."""
    return Settings(
        graphql_url=os.getenv("UATSTATS_GRAPHQL_URL", DEFAULT_GRAPHQL_URL),
        timeout=_env_number("UATSTATS_TIMEOUT", 30.0, float),
        delay=_env_number("UATSTATS_DELAY", 1.2, float),
        search_limit=_env_number("UATSTATS_SEARCH_LIMIT", 10, int),
        max_queries=_env_number("UATSTATS_MAX_QUERIES", 10, int),
        tax_years=_env_years("UATSTATS_TAX_YEARS", DEFAULT_TAX_YEARS),
        log_level=os.getenv("UATSTATS_LOG_LEVEL", "INFO").upper(),
        log_dir=Path(os.getenv("UATSTATS_LOG_DIR", "logs")),
    )
