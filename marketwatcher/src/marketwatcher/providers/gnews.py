import logging
from typing import Any, List, Optional

from ..errors import ConfigurationError
from ..models.article import Article, ArticleSource
from .http import Deadline, get_json, now_iso, text

logger = logging.getLogger(__name__)

NAME = "GNews"
BASE_URL = "https://gnews.io/api/v4"

LIST_PAGE_SIZE = 10
SEARCH_PAGE_SIZE = 100
PAGE_CAP = 3


def _normalize(item: Any) -> Article:
    # GNews item: {
    #   "title": "...", "description": "...", "content": "...",
    #   "url": "...", "image": "...", "publishedAt": "...",
    #   "source": {"name": "...", "url": "..."}
    # }
    if not isinstance(item, dict):
        item = {}
    source = item.get("source") if isinstance(item.get("source"), dict) else {}
    description = text(item.get("description"))

    return Article(
        title=text(item.get("title")),
        description=description,
        content=text(item.get("content")) or description,
        publishedAt=text(item.get("publishedAt")) or now_iso(),
        source=ArticleSource(name=text(source.get("name")) or "Unknown"),
        url=text(item.get("url")),
        urlToImage=text(item.get("image")) or None,
    )


def fetch_page(api_key: Optional[str], page: int, *, page_size: int = SEARCH_PAGE_SIZE,
               deadline: Optional[Deadline] = None) -> List[Article]:
    """
    Fetch one page of English US business top headlines.
    Reference: https://gnews.io/docs/v4#top-headlines-endpoint
    """
    if not api_key:
        raise ConfigurationError(
            "GNEWS_API_KEY is missing. Get a free key from gnews.io "
            "and add it to your .env file."
        )

    params = {
        "category": "business",
        "lang": "en",
        "country": "us",
        "max": page_size,
        "page": page,
        "apikey": api_key,
    }
    data = get_json(f"{BASE_URL}/top-headlines", params, provider=NAME, deadline=deadline)

    raw = data.get("articles")
    items = [_normalize(item) for item in raw] if isinstance(raw, list) else []
    logger.debug(f"{NAME} page {page}: {len(items)} articles")
    return items


def fetch_top_news(api_key: Optional[str], *, deadline: Optional[Deadline] = None) -> List[Article]:
    return fetch_page(api_key, 1, page_size=LIST_PAGE_SIZE, deadline=deadline)
