"""Disk cache for block-pinned chain reads.

Only data pinned to a concrete block is ever stored: such reads are immutable,
whereas "latest" state changes with every block.
"""

import hashlib
import json
import os
import shutil
import sys
from pathlib import Path
from typing import Any

from market_vaults.constants import CACHE_DIR_NAME, CACHE_VERSION


def get_cache_dir() -> Path:
    """Cache directory under $XDG_CACHE_HOME (default ~/.cache), created on demand."""
    base = Path(os.getenv("XDG_CACHE_HOME") or Path.home() / ".cache")
    cache_dir = base / CACHE_DIR_NAME
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def clear_cache() -> None:
    cache_dir = get_cache_dir()
    entries = sum(1 for _ in cache_dir.glob("*.json"))
    shutil.rmtree(cache_dir)
    print(f"✅ Cache cleared ({entries} entries).", file=sys.stderr)


def cache_key(prefix: str, *parts: Any) -> str:
    """Deterministic key; bumping CACHE_VERSION orphans every previous entry."""
    raw = ":".join([prefix, CACHE_VERSION, *(str(p) for p in parts)])
    return hashlib.sha256(raw.encode()).hexdigest()


def _entry_path(key: str) -> Path:
    return get_cache_dir() / f"{key}.json"


def get_cached(key: str) -> Any | None:
    """Cached value for `key`, or None when missing or unreadable."""
    path = _entry_path(key)
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as ex:
        print(f"⚠️  Ignoring unreadable cache entry {path.name}: {ex}", file=sys.stderr)
        path.unlink(missing_ok=True)
        return None


def set_cached(key: str, data: Any) -> None:
    """Store `data` as JSON; a failed write only costs a refetch next time."""
    path = _entry_path(key)
    try:
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, separators=(",", ":"))
    except OSError as ex:
        print(f"⚠️  Could not write cache entry {path.name}: {ex}", file=sys.stderr)
