"""Text normalisation helpers shared by the request forms."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_IFRAME_BLOCK = re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE)
_JAVASCRIPT_URI = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")

_PHONE_DISALLOWED = re.compile(r"[^0-9+\-() ]")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ZIP_TOKEN = re.compile(r"\b\d{5}(?:-\d{4})?\b")

MAX_EMAIL_LENGTH = 254
DEFAULT_PHOTO_PREFIXES = ("https://res.cloudinary.com/", "data:image/")


def sanitize_text(value: str, max_length: int = 1000) -> str:
    """Strip markup and script vectors, trim, and truncate to ``max_length``."""
    cleaned = _SCRIPT_BLOCK.sub("", value)
    cleaned = _IFRAME_BLOCK.sub("", cleaned)
    cleaned = _JAVASCRIPT_URI.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = _ANY_TAG.sub("", cleaned).strip()
    return cleaned[:max_length]


def normalize_email(value: str) -> Optional[str]:
    """Return the trimmed lower-cased address, or None if it is not well formed."""
    email = value.strip().lower()
    if len(email) > MAX_EMAIL_LENGTH or not _EMAIL.match(email):
        return None
    return email


def sanitize_phone(value: str) -> str:
    return _PHONE_DISALLOWED.sub("", value).strip()


def extract_zip_code(address: str) -> Optional[str]:
    match = _ZIP_TOKEN.search(address)
    if not match:
        return None
    return match.group(0)[:5]


def filter_photo_urls(
    raw: str,
    allowed_prefixes: Iterable[str] = DEFAULT_PHOTO_PREFIXES,
    limit: int = 12,
) -> List[str]:
    prefixes = tuple(allowed_prefixes)
    urls = [url for url in raw.split(" ") if url.strip()]
    return [url for url in urls if url.startswith(prefixes)][:limit]
