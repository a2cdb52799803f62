import logging
from typing import List, Mapping, Optional, Sequence

from .errors import AllProvidersFailedError, FetchTimeoutError
from .models.article import Article
from .providers.http import Deadline
from .providers.registry import Provider

logger = logging.getLogger(__name__)


def fetch_with_fallback(
    providers: Sequence[Provider],
    api_keys: Mapping[str, str],
    deadline: Optional[Deadline] = None,
) -> List[Article]:
    """
    Try providers in order and return the first non-empty article list.

    Providers without a key are skipped. Failures are collected as
    "<name>: <message>" and reported together in AllProvidersFailedError
    once every provider is exhausted. A spent deadline aborts the whole
    sequence, including a response still in flight, with FetchTimeoutError.
    """
    failures: List[str] = []
    errors: List[Exception] = []

    for provider in providers:
        api_key = api_keys.get(provider.key)
        if not api_key:
            logger.warning(f"{provider.name} API key not configured, skipping")
            continue

        if deadline is not None:
            deadline.check("News fetch")

        logger.info(f"Trying {provider.name}")
        try:
            articles = provider.fetch_top_news(api_key, deadline=deadline)
        except FetchTimeoutError as e:
            if deadline is not None and deadline.expired():
                raise
            failures.append(f"{provider.name}: {e}")
            errors.append(e)
            logger.warning(f"{provider.name} failed: {e}")
            continue
        except Exception as e:
            failures.append(f"{provider.name}: {e}")
            errors.append(e)
            logger.warning(f"{provider.name} failed: {e}")
            continue

        if deadline is not None:
            deadline.check("News fetch")

        if articles:
            logger.info(f"Fetched {len(articles)} articles from {provider.name}")
            return articles

        logger.warning(f"{provider.name} returned no articles")

    raise AllProvidersFailedError(failures, errors)
