# ============================================================================
# HSMS - VPC Reporting Configuration
# ============================================================================
# Environment-backed configuration with type casting and defaults.
# Every key can be overridden with an HSMS_<KEY> environment variable
# (e.g. HSMS_DB_PATH, HSMS_COMPANY_NAME).
# ============================================================================

import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("vpc_reports.config")

ENV_PREFIX = "HSMS_"

# key -> (default, value_type)
DEFAULT_CONFIG = {
    "db_path": ("hsms.db", "string"),
    "timezone": ("UTC", "string"),
    "log_level": ("INFO", "string"),

    # Branding printed in report headers
    "company_name": ("Your Company Name", "string"),
    "company_address": ("123 Business Street, City, Country", "string"),
    "company_contact": ("Phone: (123) 456-7890 | Email: safety@company.com", "string"),

    # Summary reports above this many records get generation notes
    "large_report_threshold": (100, "int"),
}


class ReportsConfig:
    """
    Configuration manager for the VPC reporting subsystem.

    Values resolve in order: runtime override (``set``), environment
    variable, built-in default.
    """

    _cache: Dict[str, Any] = {}
    _overrides: Dict[str, Any] = {}
    _cache_loaded: bool = False

    @classmethod
    def _load_cache(cls):
        """Load defaults and environment overrides into the cache."""
        if cls._cache_loaded:
            return

        for key, (default, vtype) in DEFAULT_CONFIG.items():
            raw = os.environ.get(ENV_PREFIX + key.upper())
            if raw is None:
                cls._cache[key] = default
            else:
                cls._cache[key] = cls._cast_value(raw, vtype, default)

        cls._cache_loaded = True

    @classmethod
    def _cast_value(cls, value: str, value_type: str, default: Any = None) -> Any:
        """Cast string value to appropriate type."""
        if value is None:
            return default
        if value_type == "bool":
            return value.strip().lower() in ("true", "1", "yes", "on")
        if value_type == "int":
            try:
                return int(value)
            except ValueError:
                logger.warning("Ignoring non-integer config value %r", value)
                return default
        return value

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        if key in cls._overrides:
            return cls._overrides[key]
        cls._load_cache()
        return cls._cache.get(key, default)

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        """Override a value for the lifetime of the process."""
        cls._overrides[key] = value

    @classmethod
    def reload(cls) -> None:
        """Drop cached values and runtime overrides."""
        cls._cache = {}
        cls._overrides = {}
        cls._cache_loaded = False


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value."""
    return ReportsConfig.get(key, default)


def set_config(key: str, value: Any) -> None:
    """Set a configuration value."""
    ReportsConfig.set(key, value)


def get_timezone():
    """Get the configured timezone object."""
    tz_name = get_config("timezone", "UTC")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", tz_name)
        return ZoneInfo("UTC")


def get_local_now() -> datetime:
    """Current time in the configured timezone, as a naive datetime.

    Stored timestamps are naive local strings, so comparisons stay naive.
    """
    return datetime.now(get_timezone()).replace(tzinfo=None)


def format_display_ts(dt: Optional[datetime] = None) -> str:
    """Format a datetime the way report headers show it."""
    if dt is None:
        dt = get_local_now()
    return dt.strftime("%B %d, %Y %H:%M:%S")
