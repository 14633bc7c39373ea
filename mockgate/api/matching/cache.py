from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Tuple, TypeVar

from .types import SchemaFileReadError, SchemaKind

logger = logging.getLogger("mockgate")

T = TypeVar("T")

Stamp = Tuple[int, int]  # (st_mtime_ns, st_size)


class SchemaCache:
    """
    Parsed schemas keyed by (absolute path, kind).
    Every lookup re-stats the file; a changed mtime or size reloads it.
    Loader failures are not cached.
    """

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, SchemaKind], Tuple[Stamp, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def get_or_load(self, path: Path, kind: SchemaKind, loader: Callable[[Path], T]) -> T:
        try:
            st = path.stat()
        except OSError as e:
            raise SchemaFileReadError(f"error reading the schema file {path}: {e}") from e

        stamp: Stamp = (st.st_mtime_ns, st.st_size)
        key = (str(path), kind)

        cached = self._entries.get(key)
        if cached and cached[0] == stamp:
            return cached[1]

        value = loader(path)
        if cached:
            logger.debug("[schema-cache] reloaded %s", path)
        self._entries[key] = (stamp, value)
        return value
