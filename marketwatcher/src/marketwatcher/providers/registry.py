from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from ..errors import ConfigurationError
from ..models.article import Article
from . import gnews, newsapi


@dataclass(frozen=True)
class Provider:
    """
    One upstream news source.
    `key` indexes the API key map; `page_cap` bounds article search.
    Both fetch callables take an optional `deadline` keyword.
    """
    name: str
    key: str
    page_cap: int
    fetch_top_news: Callable[..., List[Article]]
    fetch_page: Callable[..., List[Article]]


NEWSAPI = Provider(
    name=newsapi.NAME,
    key="newsapi",
    page_cap=newsapi.PAGE_CAP,
    fetch_top_news=newsapi.fetch_top_news,
    fetch_page=newsapi.fetch_page,
)

GNEWS = Provider(
    name=gnews.NAME,
    key="gnews",
    page_cap=gnews.PAGE_CAP,
    fetch_top_news=gnews.fetch_top_news,
    fetch_page=gnews.fetch_page,
)

PROVIDERS: Dict[str, Provider] = {p.key: p for p in (NEWSAPI, GNEWS)}

DEFAULT_ORDER = ("newsapi", "gnews")


def get_providers(keys: Optional[Iterable[str]] = None) -> List[Provider]:
    """Providers in the requested order."""
    order = list(keys) if keys is not None else list(DEFAULT_ORDER)
    unknown = [k for k in order if k not in PROVIDERS]
    if unknown:
        raise ConfigurationError(
            f"Unknown news provider(s): {', '.join(unknown)}",
            {"known": sorted(PROVIDERS)},
        )
    return [PROVIDERS[k] for k in order]
