"""
TTL cache — memoize an expensive computation on disk for a freshness window.

The value is stored as gzip-compressed JSON::

    {"key": "...", "created_at": 1707..., "value": ...}

Writes are atomic (write to temp file in the same directory, then
``os.replace``) so readers in other processes never see a torn file.
Within a process, a lock around check-and-compute guarantees that
concurrent callers inside one freshness window trigger at most one
computation; the others get the memoized value.
"""

from __future__ import annotations

import gzip
import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class TTLCache:
    """A single-key, file-backed cache with a freshness window.

    Args:
        path: Cache file location (``*.json.gz``).
        key: Identity of the cached value.  A file written under a
            different key is treated as a miss.
        fresh_duration: Max age in seconds.  ``<= 0`` disables reuse.
        clock: Time source (seconds since epoch), injectable for tests.
    """

    def __init__(
        self,
        path: Path,
        *,
        key: str,
        fresh_duration: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = path
        self.key = key
        self.fresh_duration = fresh_duration
        self._clock = clock
        self._lock = threading.Lock()
        self._memo: tuple[float, Any] | None = None

    def _is_fresh(self, created_at: float, now: float) -> bool:
        if self.fresh_duration <= 0:
            return False
        return 0 <= now - created_at < self.fresh_duration

    def get_or_init(self, compute_fn: Callable[[], Any]) -> Any:
        """Return the cached value, computing and persisting it when stale.

        Exceptions from ``compute_fn`` propagate and nothing is cached.
        """
        with self._lock:
            now = self._clock()

            if self._memo is not None and self._is_fresh(self._memo[0], now):
                logger.debug("cache HIT (memory) for %s", self.key)
                return self._memo[1]

            entry = self._load()
            if entry is not None and self._is_fresh(entry["created_at"], now):
                logger.debug(
                    "cache HIT for %s (age %ds)", self.key, round(now - entry["created_at"])
                )
                self._memo = (entry["created_at"], entry["value"])
                return entry["value"]

            t0 = time.monotonic()
            value = compute_fn()
            logger.debug(
                "cache MISS for %s (computed in %.2fs)", self.key, time.monotonic() - t0
            )

            self._save(value, now)
            self._memo = (now, value)
            return value

    def clear(self) -> None:
        """Drop the memo and the file."""
        with self._lock:
            self._memo = None
            self.path.unlink(missing_ok=True)

    # ── Persistence ─────────────────────────────────────────────

    def _load(self) -> dict[str, Any] | None:
        if not self.path.is_file():
            return None
        try:
            with gzip.open(self.path, "rt", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, EOFError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Corrupt cache file %s: %s — refetching", self.path, e)
            return None

        if not isinstance(data, dict) or data.get("key") != self.key:
            logger.debug("cache file %s holds a different key — ignoring", self.path)
            return None
        if not isinstance(data.get("created_at"), (int, float)):
            return None
        return data

    def _save(self, value: Any, created_at: float) -> None:
        payload = json.dumps(
            {"key": self.key, "created_at": created_at, "value": value},
            ensure_ascii=False,
        ).encode("utf-8")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=".cache_",
                suffix=".tmp",
            )
            tmp = Path(tmp_path)
            try:
                with os.fdopen(fd, "wb") as raw, gzip.GzipFile(fileobj=raw, mode="wb") as gz:
                    gz.write(payload)
                os.replace(tmp, self.path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            # The computed value is still returned; only reuse is lost.
            logger.warning("Failed to write cache %s: %s", self.path, e)
            return

        logger.debug("cache saved to %s", self.path)
