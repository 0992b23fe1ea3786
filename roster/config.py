"""
Centralized configuration with environment variable overrides.

Service endpoints, pagination defaults, and import thresholds are all
configurable here. Nothing is hardcoded in controller or import logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_int_tuple(env_var: str, default: str) -> tuple[int, ...]:
    """Parse a comma-separated list of integers, e.g. ``"100,200,500"``."""
    raw = os.getenv(env_var, default)
    try:
        return tuple(int(part) for part in raw.split(",") if part.strip())
    except (ValueError, TypeError, AttributeError):
        raise ValueError(
            f"Invalid integer list for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ServiceConfig:
    """Roster REST backend connection settings."""

    base_url: str = os.getenv("ROSTER_API_URL", "http://localhost:3000/api")
    auth_token: str = os.getenv("ROSTER_API_TOKEN", "")
    request_timeout_sec: float = _safe_float("ROSTER_REQUEST_TIMEOUT", "30.0")


@dataclass(frozen=True)
class PaginationConfig:
    """Page size options and count-estimation parameters."""

    default_page_size: int = _safe_int("ROSTER_DEFAULT_PAGE_SIZE", "100")
    page_size_options: tuple[int, ...] = _safe_int_tuple(
        "ROSTER_PAGE_SIZE_OPTIONS", "100,200,300,400,500"
    )
    min_estimated_pages: int = _safe_int("ROSTER_MIN_ESTIMATED_PAGES", "2")


@dataclass(frozen=True)
class ImportConfig:
    """Spreadsheet import heuristics and bulk-upload batching."""

    header_scan_rows: int = _safe_int("IMPORT_HEADER_SCAN_ROWS", "10")
    batch_size: int = _safe_int("IMPORT_BATCH_SIZE", "1000")
    max_reported_errors: int = _safe_int("IMPORT_MAX_REPORTED_ERRORS", "10")


@dataclass(frozen=True)
class FilterConfig:
    """Parameters behind computed (pseudo) filters."""

    old_client_age_days: int = _safe_int("OLD_CLIENT_AGE_DAYS", "365")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    service: ServiceConfig = field(default_factory=ServiceConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.service.request_timeout_sec <= 0:
        raise ValueError(
            "ROSTER_REQUEST_TIMEOUT must be > 0, "
            f"got {config.service.request_timeout_sec}"
        )

    options = config.pagination.page_size_options
    if not options:
        raise ValueError("ROSTER_PAGE_SIZE_OPTIONS must list at least one page size")
    if any(size < 1 for size in options):
        raise ValueError(
            f"ROSTER_PAGE_SIZE_OPTIONS must all be >= 1, got {list(options)}"
        )
    if config.pagination.default_page_size not in options:
        raise ValueError(
            f"ROSTER_DEFAULT_PAGE_SIZE ({config.pagination.default_page_size}) "
            f"must be one of {list(options)}"
        )
    if config.pagination.min_estimated_pages < 1:
        raise ValueError(
            "ROSTER_MIN_ESTIMATED_PAGES must be >= 1, "
            f"got {config.pagination.min_estimated_pages}"
        )

    for name, value in [
        ("IMPORT_HEADER_SCAN_ROWS", config.imports.header_scan_rows),
        ("IMPORT_BATCH_SIZE", config.imports.batch_size),
        ("OLD_CLIENT_AGE_DAYS", config.filters.old_client_age_days),
    ]:
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if config.imports.max_reported_errors < 0:
        raise ValueError(
            "IMPORT_MAX_REPORTED_ERRORS must be >= 0, "
            f"got {config.imports.max_reported_errors}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for roster service at '%s'", config.service.base_url)
    return config


# Singleton instance
settings = load_config()
