import datetime
import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from ..errors import FetchTimeoutError, ProviderConnectionError, ProviderError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10  # seconds, per request when no deadline applies
CHUNK_SIZE = 4096

HEADERS = {
    "Accept": "application/json",
    "User-Agent": "MarketWatcher/1.0",
}


class Deadline:
    """Wall-clock budget shared by a sequence of requests."""

    def __init__(self, seconds: float, clock=time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, what: str = "request"):
        if self.expired():
            raise FetchTimeoutError(
                f"{what} exceeded the {self.seconds:g}s deadline",
                {"deadline_seconds": self.seconds},
            )


def _error_message(resp: requests.Response, body: bytes) -> str:
    """Upstream error text if the body carries one, else the status line."""
    try:
        data = json.loads(body) if body else None
    except ValueError:
        data = None

    if isinstance(data, dict):
        # NewsAPI: {"status": "error", "code": ..., "message": ...}
        if isinstance(data.get("message"), str) and data["message"]:
            return data["message"]
        # GNews: {"errors": ["..."]} or {"errors": {"field": "..."}}
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
        if isinstance(errors, dict) and errors:
            return "; ".join(str(e) for e in errors.values())

    return f"{resp.status_code} {resp.reason or ''}".strip()


def _read_body(resp: requests.Response, provider: str, deadline: Optional[Deadline]) -> bytes:
    # requests' timeout bounds each socket read, not the transfer, so the
    # deadline is checked between chunks.
    chunks = []
    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
        if deadline is not None:
            deadline.check(f"{provider} request")
        if chunk:
            chunks.append(chunk)
    return b"".join(chunks)


def get_json(url: str, params: Dict[str, Any], *, provider: str,
             deadline: Optional[Deadline] = None) -> Dict[str, Any]:
    """
    Single GET returning the decoded JSON object.
    Raises UpstreamError on non-2xx, FetchTimeoutError on timeout or a spent
    deadline, ProviderConnectionError when the provider cannot be reached and
    ProviderError on other transport or decode failures.
    """
    if deadline is not None:
        deadline.check(f"{provider} request")
        timeout = deadline.remaining()
    else:
        timeout = DEFAULT_TIMEOUT

    try:
        resp = requests.get(url, params=params, headers=HEADERS, timeout=timeout, stream=True)
    except requests.Timeout as e:
        logger.warning(f"{provider} request timed out after {timeout:g}s")
        raise FetchTimeoutError(f"{provider} request timed out: {e}", {"timeout": timeout})
    except requests.ConnectionError as e:
        logger.error(f"{provider} connection failed: {e}")
        raise ProviderConnectionError(f"Unable to connect to {provider}: {e}")
    except requests.RequestException as e:
        logger.error(f"{provider} request failed: {e}")
        raise ProviderError(f"{provider} request failed: {e}")

    try:
        body = _read_body(resp, provider, deadline)
    except FetchTimeoutError:
        logger.warning(f"{provider} response still streaming at the deadline, aborting")
        raise
    except requests.RequestException as e:
        logger.error(f"{provider} response read failed: {e}")
        raise ProviderError(f"{provider} response read failed: {e}")
    finally:
        resp.close()

    if not resp.ok:
        message = _error_message(resp, body)
        logger.error(f"{provider} returned HTTP {resp.status_code}: {message}")
        raise UpstreamError(message, resp.status_code)

    try:
        data = json.loads(body)
    except ValueError as e:
        raise ProviderError(f"{provider} returned invalid JSON: {e}")

    if not isinstance(data, dict):
        raise ProviderError(f"{provider} returned an unexpected payload ({type(data).__name__})")
    return data


def text(value: Any, default: str = "") -> str:
    """Coerce an upstream field to a string; null and non-strings become default."""
    if isinstance(value, str):
        return value
    return default


def now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat().replace("+00:00", "Z")
