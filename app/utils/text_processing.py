"""
Text helpers for post content, pagination and request ids.
"""

import math
import re
import secrets
import string
import time

WORDS_PER_MINUTE = 200


def generate_slug(title: str | None) -> str:
    """
    Build a URL slug from a post title.

    Special characters are removed, spaces and underscores collapse into
    single hyphens and leading/trailing hyphens are stripped.
    """
    if not title:
        return ""
    slug = title.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def calculate_reading_time(text: str | None) -> int:
    """Estimated reading time in whole minutes, rounded up."""
    if not text or not text.strip():
        return 0
    words = len(text.split())
    return math.ceil(words / WORDS_PER_MINUTE)


def build_pagination(page: int, limit: int, total: int) -> dict:
    """Pagination metadata for list responses."""
    pages = math.ceil(total / limit) if limit > 0 else 0
    start = (page - 1) * limit
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
        "hasNext": page * limit < total,
        "hasPrev": start > 0,
    }


BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_random_string(length: int = 10, alphabet: str = BASE36_ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_request_id() -> str:
    """Request id of the form `<epoch-ms>-<9 base36 chars>`."""
    return f"{int(time.time() * 1000)}-{generate_random_string(9)}"
