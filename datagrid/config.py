"""
DataGrid configuration — all environment variables in one place.

Read from environment at import time. Every setting has a default, so the
engine works with no environment at all.
"""

from __future__ import annotations

import os


def _env_bool(key: str, default: str = "false") -> bool:
    return os.environ.get(key, default).strip().lower() in ("1", "true", "yes")


class Settings:
    """Engine settings from environment variables."""

    # Query defaults
    PAGE_LIMIT: int = int(os.environ.get("DATAGRID_PAGE_LIMIT", "10"))  # paging policy, no _limit given
    SUGGEST_LIMIT: int = int(os.environ.get("DATAGRID_SUGGEST_LIMIT", "5"))

    # Unknown fields and bad values raise QueryError instead of never matching
    STRICT_CRITERIA: bool = _env_bool("DATAGRID_STRICT_CRITERIA")

    # Persistence
    MV_DELIMITER: str = os.environ.get("DATAGRID_MV_DELIMITER", "|")
    CSV_DELIMITER: str = os.environ.get("DATAGRID_CSV_DELIMITER", ",")


# Singleton instance
settings = Settings()

if settings.PAGE_LIMIT < 1:
    raise RuntimeError("DATAGRID_PAGE_LIMIT must be a positive integer")
if settings.SUGGEST_LIMIT < 1:
    raise RuntimeError("DATAGRID_SUGGEST_LIMIT must be a positive integer")
if len(settings.MV_DELIMITER) != 1:
    raise RuntimeError("DATAGRID_MV_DELIMITER must be a single character")
if len(settings.CSV_DELIMITER) != 1:
    raise RuntimeError("DATAGRID_CSV_DELIMITER must be a single character")
