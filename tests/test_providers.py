import json
import unittest
from pathlib import Path
from unittest.mock import Mock, patch
import sys

import requests

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "marketwatcher" / "src"
sys.path.insert(0, str(SRC))

from marketwatcher.errors import (
    ConfigurationError,
    FetchTimeoutError,
    ProviderConnectionError,
    ProviderError,
    UpstreamError,
)
from marketwatcher.providers import gnews, newsapi
from marketwatcher.providers.http import Deadline
from marketwatcher.providers.registry import GNEWS, NEWSAPI, get_providers

REQUESTS_GET = "marketwatcher.providers.http.requests.get"


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _response(status=200, body=None, reason="OK"):
    """Streamed response; an Exception body stands for an unparseable payload."""
    resp = Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.reason = reason
    raw = b"<html>oops</html>" if isinstance(body, Exception) else json.dumps(body).encode()
    resp.iter_content.return_value = [raw[:7], raw[7:]]
    return resp


NEWSAPI_BODY = {
    "status": "ok",
    "totalResults": 2,
    "articles": [
        {
            "source": {"id": None, "name": "Reuters"},
            "title": "Stocks close higher as tech rebounds",
            "description": "Wall Street gained on Tuesday.",
            "url": "https://www.reuters.com/markets/stocks-close-higher",
            "urlToImage": "https://www.reuters.com/img.jpg",
            "publishedAt": "2024-05-14T20:15:00Z",
            "content": "Wall Street gained on Tuesday as chipmakers rallied [+1200 chars]",
        },
        {
            "source": {"id": None, "name": None},
            "title": None,
            "description": "Only a description",
            "url": "https://example.com/partial",
            "urlToImage": None,
            "publishedAt": "2024-05-14T19:00:00Z",
            "content": None,
        },
    ],
}

GNEWS_BODY = {
    "totalArticles": 1,
    "articles": [
        {
            "title": "Treasury yields slip ahead of CPI",
            "description": "Bond yields edged lower.",
            "content": "Bond yields edged lower on Monday...",
            "url": "https://www.cnbc.com/yields-slip",
            "image": "https://www.cnbc.com/yields.jpg",
            "publishedAt": "2024-05-13T14:00:00Z",
            "source": {"name": "CNBC", "url": "https://www.cnbc.com"},
        }
    ],
}


class TestNewsApiAdapter(unittest.TestCase):
    @patch(REQUESTS_GET)
    def test_top_news_request_and_normalization(self, mock_get):
        mock_get.return_value = _response(body=NEWSAPI_BODY)

        clock = FakeClock()
        deadline = Deadline(8, clock=clock)
        clock.now = 4

        articles = newsapi.fetch_top_news("key-1", deadline=deadline)

        url = mock_get.call_args.args[0]
        kwargs = mock_get.call_args.kwargs
        self.assertEqual(url, "https://newsapi.org/v2/top-headlines")
        self.assertEqual(kwargs["params"], {
            "category": "business",
            "country": "us",
            "pageSize": 10,
            "page": 1,
            "apiKey": "key-1",
        })
        self.assertEqual(kwargs["timeout"], 4)
        self.assertTrue(kwargs["stream"])
        mock_get.return_value.close.assert_called_once()

        self.assertEqual(len(articles), 2)
        first = articles[0]
        self.assertEqual(first.title, "Stocks close higher as tech rebounds")
        self.assertEqual(first.source.name, "Reuters")
        self.assertEqual(first.url_to_image, "https://www.reuters.com/img.jpg")
        self.assertEqual(first.published_at, "2024-05-14T20:15:00Z")
        self.assertIsNone(first.id)

    @patch(REQUESTS_GET)
    def test_null_fields_are_coerced(self, mock_get):
        mock_get.return_value = _response(body=NEWSAPI_BODY)

        partial = newsapi.fetch_top_news("key-1")[1]

        self.assertEqual(partial.title, "")
        self.assertEqual(partial.content, "Only a description")
        self.assertEqual(partial.source.name, "Unknown")
        self.assertIsNone(partial.url_to_image)

    @patch(REQUESTS_GET)
    def test_malformed_records_are_kept(self, mock_get):
        mock_get.return_value = _response(body={"status": "ok", "articles": [{}, "junk", None]})

        articles = newsapi.fetch_page("key-1", 2)

        self.assertEqual(len(articles), 3)
        for a in articles:
            self.assertEqual(a.title, "")
            self.assertEqual(a.url, "")
            self.assertEqual(a.description, "")
            self.assertEqual(a.content, "")
            self.assertEqual(a.source.name, "Unknown")
            self.assertTrue(a.published_at)
        params = mock_get.call_args.kwargs["params"]
        self.assertEqual(params["pageSize"], 100)
        self.assertEqual(params["page"], 2)

    @patch(REQUESTS_GET)
    def test_missing_articles_envelope(self, mock_get):
        mock_get.return_value = _response(body={"status": "ok", "totalResults": 0})
        self.assertEqual(newsapi.fetch_top_news("key-1"), [])

    @patch(REQUESTS_GET)
    def test_missing_key(self, mock_get):
        with self.assertRaises(ConfigurationError):
            newsapi.fetch_top_news(None)
        with self.assertRaises(ConfigurationError):
            newsapi.fetch_page("", 1)
        mock_get.assert_not_called()

    @patch(REQUESTS_GET)
    def test_upstream_message_is_surfaced(self, mock_get):
        mock_get.return_value = _response(
            status=401,
            body={"status": "error", "code": "apiKeyInvalid", "message": "Your API key is invalid."},
            reason="Unauthorized",
        )

        with self.assertRaises(UpstreamError) as ctx:
            newsapi.fetch_top_news("bad-key")

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Your API key is invalid.")
        self.assertEqual(ctx.exception.details["status_code"], 401)

    @patch(REQUESTS_GET)
    def test_unparseable_error_body_uses_status_line(self, mock_get):
        mock_get.return_value = _response(status=502, body=ValueError("no json"), reason="Bad Gateway")

        with self.assertRaises(UpstreamError) as ctx:
            newsapi.fetch_top_news("key-1")

        self.assertEqual(ctx.exception.message, "502 Bad Gateway")

    @patch(REQUESTS_GET)
    def test_invalid_json_on_success(self, mock_get):
        mock_get.return_value = _response(body=ValueError("bad json"))
        with self.assertRaises(ProviderError):
            newsapi.fetch_top_news("key-1")

    @patch(REQUESTS_GET)
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.Timeout("read timed out")
        with self.assertRaises(FetchTimeoutError):
            newsapi.fetch_top_news("key-1")

    @patch(REQUESTS_GET)
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("dns failure")
        with self.assertRaises(ProviderConnectionError) as ctx:
            newsapi.fetch_top_news("key-1")
        self.assertIn("Unable to connect to NewsAPI", ctx.exception.message)

    @patch(REQUESTS_GET)
    def test_slow_body_is_aborted_at_deadline(self, mock_get):
        clock = FakeClock()
        deadline = Deadline(1, clock=clock)
        raw = json.dumps(NEWSAPI_BODY).encode()

        def trickle(chunk_size=None):
            for i in range(0, len(raw), 12):
                clock.now += 0.4
                yield raw[i:i + 12]

        resp = _response(body=NEWSAPI_BODY)
        resp.iter_content.side_effect = trickle
        mock_get.return_value = resp

        with self.assertRaises(FetchTimeoutError):
            newsapi.fetch_top_news("key-1", deadline=deadline)
        resp.close.assert_called_once()

    @patch(REQUESTS_GET)
    def test_spent_deadline_skips_request(self, mock_get):
        clock = FakeClock()
        deadline = Deadline(1, clock=clock)
        clock.now = 2

        with self.assertRaises(FetchTimeoutError):
            gnews.fetch_page("key-2", 1, deadline=deadline)
        mock_get.assert_not_called()

    @patch(REQUESTS_GET)
    def test_read_error_mid_body(self, mock_get):
        resp = _response(body=NEWSAPI_BODY)
        resp.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("connection reset")
        mock_get.return_value = resp

        with self.assertRaises(ProviderError):
            newsapi.fetch_top_news("key-1")
        resp.close.assert_called_once()


class TestGNewsAdapter(unittest.TestCase):
    @patch(REQUESTS_GET)
    def test_page_request_and_image_field(self, mock_get):
        mock_get.return_value = _response(body=GNEWS_BODY)

        articles = gnews.fetch_page("key-2", 3)

        url = mock_get.call_args.args[0]
        self.assertEqual(url, "https://gnews.io/api/v4/top-headlines")
        self.assertEqual(mock_get.call_args.kwargs["params"], {
            "category": "business",
            "lang": "en",
            "country": "us",
            "max": 100,
            "page": 3,
            "apikey": "key-2",
        })
        self.assertEqual(len(articles), 1)
        self.assertEqual(articles[0].url_to_image, "https://www.cnbc.com/yields.jpg")
        self.assertEqual(articles[0].source.name, "CNBC")
        self.assertEqual(articles[0].to_wire()["urlToImage"], "https://www.cnbc.com/yields.jpg")

    @patch(REQUESTS_GET)
    def test_top_news_page_size(self, mock_get):
        mock_get.return_value = _response(body=GNEWS_BODY)
        gnews.fetch_top_news("key-2")
        params = mock_get.call_args.kwargs["params"]
        self.assertEqual(params["max"], 10)
        self.assertEqual(params["page"], 1)

    @patch(REQUESTS_GET)
    def test_errors_list_is_surfaced(self, mock_get):
        mock_get.return_value = _response(
            status=403,
            body={"errors": ["You have reached your request limit for today."]},
            reason="Forbidden",
        )
        with self.assertRaises(UpstreamError) as ctx:
            gnews.fetch_top_news("key-2")
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn("request limit", ctx.exception.message)

    def test_missing_key(self):
        with self.assertRaises(ConfigurationError):
            gnews.fetch_top_news(None)


class TestRegistry(unittest.TestCase):
    def test_page_caps(self):
        self.assertEqual(NEWSAPI.page_cap, 5)
        self.assertEqual(GNEWS.page_cap, 3)

    def test_order(self):
        self.assertEqual([p.key for p in get_providers()], ["newsapi", "gnews"])
        self.assertEqual([p.name for p in get_providers(["gnews", "newsapi"])], ["GNews", "NewsAPI"])

    def test_unknown_provider(self):
        with self.assertRaises(ConfigurationError):
            get_providers(["newsapi", "bloomberg"])


if __name__ == "__main__":
    unittest.main()
