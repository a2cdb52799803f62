import json
import traceback
from typing import List, Optional


class MarketWatcherError(Exception):
    """Base exception for marketwatcher"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(MarketWatcherError):
    """Missing API keys, no usable providers or a bad settings file"""
    pass


class ProviderError(MarketWatcherError):
    """Transport or parse failure talking to a news provider"""
    pass


class ProviderConnectionError(ProviderError):
    """Provider could not be reached (DNS, refused or reset connection)"""
    pass


class UpstreamError(ProviderError):
    """Provider answered with a non-2xx status"""
    def __init__(self, message: str, status_code: int, details: dict = None):
        details = dict(details or {})
        details.setdefault("status_code", status_code)
        super().__init__(message, details)
        self.status_code = status_code


class FetchTimeoutError(ProviderError, TimeoutError):
    """Request deadline exceeded"""
    pass


class MalformedIdentifierError(MarketWatcherError):
    """Article identifier has no extractable fingerprint"""
    pass


class AllProvidersFailedError(MarketWatcherError):
    """Every configured provider failed or returned no articles"""
    def __init__(self, failures: Optional[List[str]] = None, errors: Optional[List[Exception]] = None):
        self.failures = list(failures or [])
        self.errors = list(errors or [])
        message = "\n".join(["All news providers failed:"] + self.failures)
        super().__init__(message, {"failures": self.failures})


def format_error(e: Exception) -> str:
    """Format exception as the JSON error envelope printed by the CLI"""

    if isinstance(e, MarketWatcherError):
        error_type = e.__class__.__name__
        message = e.message
        details = e.details
    else:
        error_type = "UnknownError"
        message = str(e)
        details = {
            "traceback": traceback.format_exc().splitlines()
        }

    payload = {
        "ok": False,
        "error": {
            "type": error_type,
            "message": message,
            "details": details
        },
        "meta": {
            "version": 1
        }
    }

    return json.dumps(payload, indent=2)
