"""
Stable article identifiers.

An identifier is "<slug>-<fingerprint>": the slug comes from the first 40
characters of the title, the fingerprint is a 32-bit rolling hash of the URL
rendered in base 36. The hash reproduces JavaScript's String.charCodeAt
arithmetic exactly (UTF-16 code units, signed 32-bit wraparound) so links
handed out earlier keep resolving.
"""
import re
import struct
from typing import Any, Mapping, Optional, Union

from .models.article import Article

SLUG_TITLE_LENGTH = 40

# JavaScript's whitespace set (String.prototype.trim, /\s/), not Python's
_JS_WHITESPACE = "\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
_WHITESPACE_RE = re.compile(f"[{_JS_WHITESPACE}]+")
_LEADING_WS_RE = re.compile(f"^[{_JS_WHITESPACE}]+")
_TRAILING_WS_RE = re.compile(f"[{_JS_WHITESPACE}]+" + r"\Z")
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_\-]+")
_MULTI_HYPHEN_RE = re.compile(r"-{2,}")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _utf16_units(text: str):
    data = text.encode("utf-16-le", errors="surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def _truncate_utf16(text: str, length: int) -> str:
    data = text.encode("utf-16-le", errors="surrogatepass")[: length * 2]
    # A surrogate pair cut in half is dropped; slugify would strip it anyway.
    return data.decode("utf-16-le", errors="ignore")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def slugify(text: str) -> str:
    """Convert text to a URL-friendly slug."""
    slug = (text or "").lower()
    slug = _TRAILING_WS_RE.sub("", _LEADING_WS_RE.sub("", slug))
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _NON_WORD_RE.sub("", slug)
    slug = _MULTI_HYPHEN_RE.sub("-", slug)
    return slug.strip("-")


def url_fingerprint(url: str) -> str:
    """32-bit polynomial hash of the URL (h = h*31 + unit), abs, base 36."""
    h = 0
    for unit in _utf16_units(url or ""):
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


def _field(article: Union[Article, Mapping[str, Any]], name: str) -> str:
    if isinstance(article, Mapping):
        value = article.get(name)
    else:
        value = getattr(article, name, None)
    return value if isinstance(value, str) else ""


def derive_id(article: Union[Article, Mapping[str, Any]]) -> str:
    """Identifier for an article from its title and URL. Never raises."""
    title_slug = slugify(_truncate_utf16(_field(article, "title"), SLUG_TITLE_LENGTH))
    return f"{title_slug}-{url_fingerprint(_field(article, 'url'))}"


def extract_fingerprint(article_id: str) -> Optional[str]:
    """Trailing fingerprint segment of an identifier, or None if it has none."""
    parts = (article_id or "").split("-")
    if len(parts) < 2 or not parts[-1]:
        return None
    return parts[-1]
