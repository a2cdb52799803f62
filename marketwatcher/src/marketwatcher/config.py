import os
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

NEWS_API_KEY_ENV = "NEWS_API_KEY"
GNEWS_API_KEY_ENV = "GNEWS_API_KEY"

# Provider key -> environment variable holding its API key
API_KEY_ENV_VARS = {
    "newsapi": NEWS_API_KEY_ENV,
    "gnews": GNEWS_API_KEY_ENV,
}

_PLACEHOLDER = "your_key_here"


def load_env_file(path: str = ".env"):
    """
    Load environment variables from a .env file into os.environ.
    Does not override existing values.
    """
    p = Path(path)
    if not p.exists():
        return

    try:
        with open(p) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, val = line.split('=', 1)
                    key = key.strip()
                    val = val.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = val
    except OSError as e:
        logger.warning(f"Failed to load .env: {e}")


# Load on import
load_env_file()


def _read_key(env_var: str) -> Optional[str]:
    key = (os.environ.get(env_var) or "").strip()
    # Handle the template default left in .env.example
    if not key or key == _PLACEHOLDER:
        return None
    return key


def get_news_api_key() -> Optional[str]:
    """Get the NewsAPI.org key, or None if it is missing."""
    return _read_key(NEWS_API_KEY_ENV)


def get_gnews_api_key() -> Optional[str]:
    """Get the GNews key, or None if it is missing."""
    return _read_key(GNEWS_API_KEY_ENV)


def get_api_keys() -> Dict[str, str]:
    """Map provider key -> API key for every provider with a configured key."""
    found = {
        "newsapi": get_news_api_key(),
        "gnews": get_gnews_api_key(),
    }
    keys = {k: v for k, v in found.items() if v}
    logger.debug(
        "API key status: "
        + ", ".join(f"{API_KEY_ENV_VARS[k]}={'set' if v else 'missing'}" for k, v in found.items())
    )
    return keys
