import logging
from typing import Dict, Optional

from .cache.memory import ArticleCache
from .config import API_KEY_ENV_VARS, get_api_keys
from .errors import (
    AllProvidersFailedError,
    ConfigurationError,
    FetchTimeoutError,
    MalformedIdentifierError,
    MarketWatcherError,
    ProviderConnectionError,
)
from .feed import fetch_with_fallback
from .identifiers import derive_id
from .models.article import Article, NewsResult
from .providers.http import Deadline
from .providers.registry import get_providers
from .resolver import resolve
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)

NO_KEYS_MESSAGE = (
    "Please set NEWS_API_KEY or GNEWS_API_KEY in your environment variables. "
    "Get free API keys from newsapi.org or gnews.io"
)
TIMEOUT_MESSAGE = (
    "The request took too long to complete. This could be due to network issues "
    "or the news service being temporarily unavailable. Please try again in a few moments."
)
EMPTY_MESSAGE = (
    "No articles available at the moment. This might be a temporary issue. "
    "Please try again later."
)
NETWORK_MESSAGE = (
    "Unable to connect to the news service. "
    "Please check your internet connection and try again."
)


class NewsService:
    """
    Listing and article lookup for the news pages.
    Owns the article cache; build one per process and share it.
    Neither list_news nor get_article raises.
    """

    def __init__(self, api_keys: Optional[Dict[str, str]] = None, settings: Optional[Settings] = None,
                 cache: Optional[ArticleCache] = None):
        self.api_keys = dict(api_keys) if api_keys is not None else get_api_keys()
        self.settings = settings or Settings()
        self.providers = get_providers(self.settings.providers)
        self.cache = cache if cache is not None else ArticleCache(ttl=self.settings.cache_ttl)

    def _configured(self) -> bool:
        return any(self.api_keys.get(p.key) for p in self.providers)

    def list_news(self) -> NewsResult:
        """Latest business headlines, tagged with identifiers and cached."""
        logger.info(
            "API key status: "
            + ", ".join(f"{k}={'set' if self.api_keys.get(k) else 'missing'}" for k in API_KEY_ENV_VARS)
        )
        if not self._configured():
            logger.error("No news API keys configured")
            return NewsResult(error=NO_KEYS_MESSAGE)

        try:
            deadline = Deadline(self.settings.feed_timeout)
            articles = fetch_with_fallback(self.providers, self.api_keys, deadline=deadline)
        except FetchTimeoutError as e:
            logger.error(f"News fetch timed out: {e}")
            return NewsResult(error=TIMEOUT_MESSAGE)
        except AllProvidersFailedError as e:
            logger.error(f"Error fetching news: {e}")
            if not e.failures:
                return NewsResult(error=EMPTY_MESSAGE)
            if e.errors and all(isinstance(err, ProviderConnectionError) for err in e.errors):
                return NewsResult(error=NETWORK_MESSAGE)
            return NewsResult(error=e.message)
        except MarketWatcherError as e:
            logger.error(f"Error fetching news: {e}")
            return NewsResult(error=e.message)
        except Exception as e:
            logger.exception("Unexpected error fetching news")
            return NewsResult(error=str(e) or "Unknown error")

        tagged = [a.with_id(derive_id(a)) for a in articles]
        self.cache.put_many(tagged, lambda a: a.id)
        return NewsResult(articles=tagged)

    def get_article(self, article_id: str) -> Optional[Article]:
        """Article by identifier, or None when it cannot be found."""
        deadline = None
        if self.settings.resolve_timeout is not None:
            deadline = Deadline(self.settings.resolve_timeout)

        try:
            return resolve(article_id, self.providers, self.api_keys, self.cache, deadline=deadline)
        except MalformedIdentifierError as e:
            logger.warning(e.message)
        except ConfigurationError as e:
            logger.error(f"Article lookup unavailable: {e.message}")
        except Exception:
            logger.exception(f"Error fetching article {article_id}")
        return None

    def sweep_cache(self) -> int:
        return self.cache.sweep_expired()

    def key_status(self) -> Dict[str, Dict[str, object]]:
        """Which API keys are set, without exposing them."""
        status = {}
        for provider_key, env_var in API_KEY_ENV_VARS.items():
            key = self.api_keys.get(provider_key) or ""
            status[env_var] = {
                "present": bool(key),
                "length": len(key),
                "starts_with": key[:4] if key else "N/A",
            }
        return status


_service: Optional[NewsService] = None


def get_service() -> NewsService:
    """Process-wide service built from the environment and marketwatcher.yaml."""
    global _service
    if _service is None:
        _service = NewsService(settings=load_settings())
    return _service
