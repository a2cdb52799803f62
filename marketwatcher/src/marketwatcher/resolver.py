import logging
from typing import Mapping, Optional, Sequence

from .cache.memory import ArticleCache
from .errors import ConfigurationError, MalformedIdentifierError
from .identifiers import derive_id, extract_fingerprint, url_fingerprint
from .models.article import Article
from .providers.http import Deadline
from .providers.registry import Provider

logger = logging.getLogger(__name__)


def _match(articles, article_id: str, fingerprint: str) -> Optional[Article]:
    # Exact identifier first, then the URL fingerprint alone: the slug can
    # differ (truncation, title edits) while the URL stays the same.
    for article in articles:
        if derive_id(article) == article_id:
            return article
    for article in articles:
        if url_fingerprint(article.url) == fingerprint:
            return article
    return None


def resolve(
    article_id: str,
    providers: Sequence[Provider],
    api_keys: Mapping[str, str],
    cache: ArticleCache,
    deadline: Optional[Deadline] = None,
) -> Optional[Article]:
    """
    Find an article by derived identifier.

    Checks the cache, then pages through every keyed provider (at most
    provider.page_cap pages each) looking for a match. Page failures count
    as "no match on that page". Returns None when nothing matches.
    Raises MalformedIdentifierError for ids without a fingerprint and
    ConfigurationError when no provider has a key.
    """
    cached = cache.get(article_id)
    if cached is not None:
        logger.info(f"Article found in cache: {article_id}")
        return cached

    fingerprint = extract_fingerprint(article_id)
    if not fingerprint:
        raise MalformedIdentifierError(
            f"Invalid article ID format: {article_id}",
            {"id": article_id},
        )

    keyed = [(p, api_keys.get(p.key)) for p in providers if api_keys.get(p.key)]
    if not keyed:
        raise ConfigurationError("No news providers configured for article lookup")

    logger.info(f"Searching for article: {article_id}")
    for provider, api_key in keyed:
        for page in range(1, provider.page_cap + 1):
            if deadline is not None and deadline.expired():
                logger.warning(f"Article search deadline reached before {provider.name} page {page}")
                return None

            try:
                articles = provider.fetch_page(api_key, page, deadline=deadline)
            except Exception as e:
                logger.warning(f"{provider.name} page {page} failed: {e}")
                continue

            if not articles:
                logger.debug(f"{provider.name} exhausted at page {page}")
                break

            found = _match(articles, article_id, fingerprint)
            if found is not None:
                logger.info(f"Article found on {provider.name} page {page}: {article_id}")
                return found.with_id(derive_id(found))

    logger.info(f"Article not found: {article_id}")
    return None
