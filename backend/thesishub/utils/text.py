"""
Text helpers: rich-text stripping, LIKE escaping and URL checks.
"""
import re
from typing import Iterable, Optional
from urllib.parse import urlparse

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")

# Only the entities the editor emits; anything else is left as-is
_ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&amp;", "&"),  # last, so "&amp;lt;" stays "&lt;"
)


def strip_html(html: Optional[str]) -> str:
    """Plain text of a rich-text fragment: tags removed, entities decoded, whitespace collapsed"""
    if not html:
        return ""
    text = _TAG_RE.sub(" ", html)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return _WS_RE.sub(" ", text).strip()


def plain_text_length(html: Optional[str]) -> int:
    return len(strip_html(html))


def escape_like(value: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so user input matches literally"""
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )


def is_http_url(value: str, allowed_hosts: Optional[Iterable[str]] = None) -> bool:
    """True for an absolute http(s) URL, optionally restricted to exact hosts"""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    if allowed_hosts is not None:
        return (parsed.hostname or "").lower() in {h.lower() for h in allowed_hosts}
    return True
