import re

_HTML_ENTITIES = (
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&nbsp;", " "),
)

_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[\s\S]*?</\1\s*>", re.I)
_TAG_RE = re.compile(r"<[^>]+>")


def truncate(text: str, max_chars: int, suffix: str = "...") -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - len(suffix)] + suffix


def decode_html_entities(text: str) -> str:
    """Decode the handful of entities that show up in titles and attributes."""
    if not text:
        return ""
    for entity, char in _HTML_ENTITIES:
        text = text.replace(entity, char)
    return text


def decode_backslash_escapes(text: str) -> str:
    """
    Decode a string lifted out of page-script JSON without a full parse.
    Handles \\uXXXX, \\n, \\r (dropped), \\/ and \\".
    """
    if not text:
        return ""
    text = _UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)
    return (
        text.replace("\\n", "\n")
        .replace("\\r", "")
        .replace("\\/", "/")
        .replace('\\"', '"')
    )


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def strip_tags(html: str) -> str:
    """Drop script/style bodies and tags, leaving space-separated text."""
    text = _SCRIPT_STYLE_RE.sub(" ", html or "")
    text = _TAG_RE.sub(" ", text)
    return re.sub(r"\s+", " ", text)


def host_label(url: str) -> str:
    """First hostname label with any leading www. removed ("feeds" for feeds.example.com)."""
    match = re.search(r"^[a-z][a-z0-9+.-]*://(?:[^@/]*@)?([^/:?#]+)", url or "", re.I)
    if not match:
        return ""
    host = re.sub(r"^www\.", "", match.group(1).lower())
    return host.split(".")[0]
