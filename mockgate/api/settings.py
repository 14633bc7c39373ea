from __future__ import annotations

import os


def _get_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


def _get_str(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or default).strip()


# --------------------------------------------------
# Logging
# --------------------------------------------------
LOG_LEVEL = _get_str("LOG_LEVEL", "INFO").upper()

# --------------------------------------------------
# Imposters
# --------------------------------------------------
IMPOSTERS_DIR = _get_str("IMPOSTERS_DIR", "imposters")

# --------------------------------------------------
# Schema matching
# --------------------------------------------------
# Off: every match loads the schema file fresh from disk.
SCHEMA_CACHE_ENABLED = _get_bool("SCHEMA_CACHE_ENABLED", "0")
