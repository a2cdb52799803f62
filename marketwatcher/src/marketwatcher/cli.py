import sys
import json
import logging
import click
from .errors import format_error, MarketWatcherError
from .logging import configure_logging
from .service import get_service

__version__ = "0.1.0"

# Configure logging at module level
configure_logging()
logger = logging.getLogger(__name__)


class ArticleNotFound(MarketWatcherError):
    """Raised by the CLI when an article id resolves to nothing"""
    pass


@click.group()
def cli():
    """marketwatcher: stock market news."""
    pass


@cli.group()
def news():
    """List headlines and look up articles."""
    pass


@news.command("list")
@click.option("--sweep", is_flag=True, help="Drop expired cache entries first")
def list_news(sweep):
    """
    Fetch the latest business headlines.
    Provider errors are reported in the "error" field, never as a failure.
    """
    service = get_service()
    if sweep:
        service.sweep_cache()

    result = service.list_news()
    _print_json(result.to_wire(), cached=False, count=len(result.articles))


@news.command("get")
@click.argument("article_id")
def get_article(article_id):
    """Look up one article by its identifier."""
    article_id = (article_id or "").strip()
    if not article_id:
        raise click.BadParameter("article id must be non-empty.")

    service = get_service()
    cached = service.cache.get(article_id) is not None
    article = service.get_article(article_id)
    if article is None:
        raise ArticleNotFound(
            "Article not found. The article may no longer be available in the latest news feed.",
            {"id": article_id},
        )
    _print_json(article.to_wire(), cached=cached)


@cli.command()
def keys():
    """Show which API keys are configured (never the keys themselves)."""
    _print_json(get_service().key_status())


@cli.command()
def version():
    """Print version information."""
    _print_json({"version": __version__})


def _print_json(data, cached=False, **meta):
    """Helper to print standard JSON envelope."""
    payload = {
        "ok": True,
        "data": data,
        "meta": {
            "version": 1,
            "cached": cached,
            **meta
        }
    }
    click.echo(json.dumps(payload, indent=2))


def main():
    """Entry point for the CLI."""
    try:
        cli(standalone_mode=False)
    except Exception as e:
        if isinstance(e, click.exceptions.Exit):
            sys.exit(e.exit_code)
        if isinstance(e, click.exceptions.Abort):
            sys.exit(130)

        click.echo(format_error(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
