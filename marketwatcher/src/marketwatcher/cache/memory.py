import logging
import time
from typing import Callable, Dict, Iterable, Optional, Tuple

from ..identifiers import derive_id
from ..models.article import Article

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60  # seconds


class ArticleCache:
    """
    In-memory article cache keyed by derived identifier.
    Entries older than ttl seconds are treated as absent and removed on read
    or by sweep_expired(). No size bound; contents die with the process.
    """
    def __init__(self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Article, float]] = {}

    def _expired(self, inserted_at: float, now: float) -> bool:
        return now - inserted_at > self.ttl

    def put(self, article_id: str, article: Article) -> None:
        """Store an article, replacing any entry and resetting its timestamp."""
        self._entries[article_id] = (article, self._clock())

    def put_many(self, articles: Iterable[Article], id_fn: Callable[[Article], str] = derive_id) -> None:
        count = 0
        for article in articles:
            self.put(id_fn(article), article)
            count += 1
        logger.debug(f"Cached {count} articles ({len(self._entries)} total)")

    def get(self, article_id: str) -> Optional[Article]:
        entry = self._entries.get(article_id)
        if entry is None:
            return None

        article, inserted_at = entry
        if self._expired(inserted_at, self._clock()):
            del self._entries[article_id]
            logger.debug(f"Cache entry expired: {article_id}")
            return None
        return article

    def sweep_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        stale = [k for k, (_, ts) in self._entries.items() if self._expired(ts, now)]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.info(f"Swept {len(stale)} expired cache entries")
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, article_id: str) -> bool:
        return self.get(article_id) is not None
