from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from .cache.memory import DEFAULT_TTL
from .errors import ConfigurationError
from .providers.registry import DEFAULT_ORDER, PROVIDERS

DEFAULT_SETTINGS_PATH = "marketwatcher.yaml"
DEFAULT_FEED_TIMEOUT = 8  # seconds for the whole listing fallback sequence


class Settings(BaseModel):
    """Runtime knobs. Every field has a default so the YAML file is optional."""
    providers: List[str] = Field(default_factory=lambda: list(DEFAULT_ORDER))
    feed_timeout: float = DEFAULT_FEED_TIMEOUT
    # None disables the deadline on article lookup
    resolve_timeout: Optional[float] = None
    cache_ttl: float = DEFAULT_TTL

    @field_validator("providers")
    @classmethod
    def _known_providers(cls, value: List[str]) -> List[str]:
        norm = [str(v).strip().lower() for v in value]
        if not norm:
            raise ValueError("must be a non-empty list")
        unknown = [v for v in norm if v not in PROVIDERS]
        if unknown:
            raise ValueError(f"unknown provider(s): {', '.join(unknown)}")
        return norm

    @field_validator("feed_timeout", "cache_ttl")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("resolve_timeout")
    @classmethod
    def _positive_or_none(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("must be > 0 or null")
        return value


def load_settings(path: str = DEFAULT_SETTINGS_PATH) -> Settings:
    """
    Load settings from YAML. A missing file yields the defaults.
    Expected shape:
      marketwatcher:
        providers: [newsapi, gnews]
        feed_timeout: 8
        resolve_timeout: null
        cache_ttl: 3600
    """
    p = Path(path)
    if not p.exists():
        return Settings()

    try:
        data = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid settings YAML: {e}")

    section = data.get("marketwatcher") if isinstance(data, dict) else None
    if not isinstance(data, dict) or not isinstance(section or {}, dict):
        raise ConfigurationError("Settings file must contain a 'marketwatcher' object.")

    try:
        return Settings(**(section or {}))
    except PydanticValidationError as e:
        problems = [f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigurationError(
            "Invalid settings: " + "; ".join(problems),
            {"path": str(p)},
        )
