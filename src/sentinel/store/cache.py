"""Crawl cache gate: at most one ingestion per source signature per TTL.

The gate stores a small JSON document next to the knowledge index and
checks it lazily. A changed source signature invalidates the cache even
inside the freshness window.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from pathlib import Path

from sentinel.store.models import CacheMetadata, SourceRecord, utcnow

CACHE_FILENAME = "crawl-cache.json"
CACHE_TTL = timedelta(hours=1)
SIGNATURE_DELIMITER = "|"


def sources_signature(sources: Iterable[SourceRecord | str]) -> str:
    """Canonical signature of a source set: sorted URLs joined by ``|``."""
    urls = [s if isinstance(s, str) else s.url for s in sources]
    return SIGNATURE_DELIMITER.join(sorted(urls))


class CacheGate:
    """Track freshness of the last ingestion run.

    Args:
        path: Location of the cache metadata JSON file.
        ttl: Freshness window (fixed policy: one hour).
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        path: Path | str,
        ttl: timedelta = CACHE_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.path = Path(path)
        self.ttl = ttl
        self._clock = clock

    def load(self) -> CacheMetadata | None:
        """Return stored metadata, or None when absent or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
            return CacheMetadata.from_dict(json.loads(raw))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError):
            # A corrupt cache file only means "not fresh".
            return None

    def is_valid(self, current_signature: str | None = None) -> bool:
        metadata = self.load()
        if metadata is None:
            return False
        if current_signature is not None and metadata.sources_signature != current_signature:
            return False
        return self._clock() - metadata.last_run_at < self.ttl

    def record_run(self, signature: str, chunks_added: int) -> CacheMetadata:
        """Overwrite the metadata with a run that finished now."""
        metadata = CacheMetadata(
            last_run_at=self._clock(),
            sources_signature=signature,
            chunks_added=chunks_added,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(metadata.to_dict(), indent=2), encoding="utf-8")
        return metadata

    def age_minutes(self) -> int | None:
        """Whole minutes since the last run, or None without metadata."""
        metadata = self.load()
        if metadata is None:
            return None
        return int((self._clock() - metadata.last_run_at).total_seconds() // 60)

    def clear(self) -> bool:
        """Delete the metadata so the next ingest always runs. True if removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
