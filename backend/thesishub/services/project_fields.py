"""
Field rules shared by project create and edit.

Each normaliser returns the value to store or raises InvalidProjectDataError.
"""
import json
from datetime import datetime
from typing import Any, List, Optional

from thesishub.core.config import settings
from thesishub.core.exceptions import InvalidProjectDataError
from thesishub.utils.text import is_http_url, plain_text_length

TITLE_MIN, TITLE_MAX = 3, 200
AUTHOR_NAME_MAX = 100
GITHUB_LINK_MAX = 500
TECH_STACK_MAX_ITEMS = 20
TAGS_MAX_ITEMS = 10
LIST_ITEM_MAX_CHARS = 50
MIN_YEAR = 2000
GITHUB_HOSTS = ("github.com", "www.github.com")


def normalize_title(value: Any) -> str:
    title = str(value or "").strip()
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise InvalidProjectDataError(
            f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters", field="title"
        )
    return title


def normalize_abstract(value: Any) -> str:
    """Rich text is stored as given; the rule applies to its plain-text length"""
    abstract = str(value or "").strip()
    length = plain_text_length(abstract)
    if length < settings.ABSTRACT_MIN_CHARS:
        raise InvalidProjectDataError(
            f"Abstract must be at least {settings.ABSTRACT_MIN_CHARS} characters of text", field="abstract"
        )
    if length > settings.ABSTRACT_MAX_CHARS:
        raise InvalidProjectDataError(
            f"Abstract cannot exceed {settings.ABSTRACT_MAX_CHARS} characters of text", field="abstract"
        )
    return abstract


def parse_string_list(value: Any, max_items: int, max_chars: int = LIST_ITEM_MAX_CHARS) -> List[str]:
    """
    Accepts a list, a JSON-encoded list or a comma separated string.
    Items are trimmed, empties dropped, each cut to ``max_chars`` and the
    list truncated to ``max_items``.
    """
    if value is None:
        return []
    items: List[Any]
    if isinstance(value, (list, tuple)):
        items = list(value)
    else:
        text = str(value).strip()
        items = []
        if text.startswith("["):
            try:
                decoded = json.loads(text)
                if isinstance(decoded, list):
                    items = decoded
            except json.JSONDecodeError:
                items = []
        if not items:
            items = text.strip("[]").split(",")
    cleaned = []
    for item in items:
        s = str(item).strip().strip('"').strip()
        if s:
            cleaned.append(s[:max_chars])
    return cleaned[:max_items]


def normalize_year(value: Any, now: Optional[datetime] = None) -> int:
    """Year in [2000, current + 1]; anything else becomes the current year"""
    current = (now or datetime.now()).year
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError):
        return current
    if MIN_YEAR <= year <= current + 1:
        return year
    return current


def normalize_github_link(value: Any) -> Optional[str]:
    link = str(value or "").strip()
    if not link:
        return None
    if len(link) > GITHUB_LINK_MAX or not is_http_url(link, allowed_hosts=GITHUB_HOSTS):
        raise InvalidProjectDataError(
            "GitHub link must be a valid github.com URL", field="github_link"
        )
    return link


def normalize_author_name(value: Any, default: str) -> str:
    name = str(value or "").strip()
    if not name:
        return default[:AUTHOR_NAME_MAX]
    if len(name) > AUTHOR_NAME_MAX:
        raise InvalidProjectDataError(
            f"Author name cannot exceed {AUTHOR_NAME_MAX} characters", field="author"
        )
    return name


def normalize_supervisor_name(value: Any) -> Optional[str]:
    name = str(value or "").strip()
    if len(name) > AUTHOR_NAME_MAX:
        raise InvalidProjectDataError("Supervisor name is too long", field="supervisor")
    return name or None
