"""
Two front-ends over page markup, one capability interface.

SoupMarkupSource answers element queries from a parsed BeautifulSoup
document; TextMarkupSource answers the same queries by scanning raw HTML
text with regular expressions. The extraction rules in page_context.py
only talk to MarkupSource, so both front-ends yield the same PageContext
for the same page.
"""

import re
from abc import ABC, abstractmethod
from html import unescape
from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup, NavigableString

from utils.text import collapse_whitespace, strip_tags

_ATTR_RE = re.compile(
    r"""([^\s=/>"']+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+)))?"""
)
_ANY_TAG_RE = re.compile(r"<([a-zA-Z][\w:-]*)\b([^>]*)>")
# comments and script/style bodies, whichever opens first
_HIDDEN_RE = re.compile(r"<!--[\s\S]*?-->|<(script|style)\b[\s\S]*?</\1\s*>", re.I)
_JSON_LD_RE = re.compile(
    r"""<script\b[^>]*type\s*=\s*["']application/ld\+json["'][^>]*>([\s\S]*?)</script\s*>""",
    re.I,
)


class MarkupSource(ABC):
    """Element queries the page context builder needs."""

    @abstractmethod
    def anchor_hrefs(self) -> List[str]:
        """Raw href values of every <a href>, in document order."""

    @abstractmethod
    def media_sources(self) -> List[str]:
        """Raw src values of <audio src> / <source src>, in document order."""

    @abstractmethod
    def meta_tags(self) -> List[Dict[str, str]]:
        """Attributes of every <meta>, keys lower-cased."""

    @abstractmethod
    def first_attr(self, tag: Optional[str], attr: str, value: str, target: str) -> str:
        """`target` attribute of the first `tag` (None = any element) whose `attr` equals `value`."""

    @abstractmethod
    def first_text(self, tag: str) -> str:
        """Decoded, whitespace-collapsed text of the first `tag` element."""

    @abstractmethod
    def json_ld_blocks(self) -> List[str]:
        """Non-empty bodies of application/ld+json scripts."""

    @abstractmethod
    def body_text(self) -> str:
        """Visible text with script/style removed."""

    @abstractmethod
    def raw_markup(self) -> str:
        """Serialized markup, including inline script bodies."""


def _attr_value(value) -> str:
    # bs4 returns multi-valued attributes (class, rel) as lists
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


class SoupMarkupSource(MarkupSource):
    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    def anchor_hrefs(self) -> List[str]:
        return [_attr_value(a.get("href")) for a in self.soup.find_all("a", href=True)]

    def media_sources(self) -> List[str]:
        return [_attr_value(tag.get("src")) for tag in self.soup.find_all(["audio", "source"], src=True)]

    def meta_tags(self) -> List[Dict[str, str]]:
        return [
            {key.lower(): _attr_value(val) for key, val in meta.attrs.items()}
            for meta in self.soup.find_all("meta")
        ]

    def first_attr(self, tag: Optional[str], attr: str, value: str, target: str) -> str:
        wanted = value.lower()
        for el in self.soup.find_all(tag if tag else True):
            if _attr_value(el.get(attr)).strip().lower() == wanted:
                return _attr_value(el.get(target)).strip()
        return ""

    def first_text(self, tag: str) -> str:
        el = self.soup.find(tag)
        if el is None:
            return ""
        return collapse_whitespace(el.get_text(" "))

    def json_ld_blocks(self) -> List[str]:
        blocks = []
        for script in self.soup.find_all("script"):
            if _attr_value(script.get("type")).strip().lower() != "application/ld+json":
                continue
            raw = script.get_text().strip()
            if raw:
                blocks.append(raw)
        return blocks

    def body_text(self) -> str:
        parts = []
        for node in self.soup.find_all(string=True):
            # Comments, doctypes and CDATA are NavigableString subclasses
            if type(node) is not NavigableString:
                continue
            if node.parent is not None and node.parent.name in ("script", "style"):
                continue
            parts.append(str(node))
        return re.sub(r"\s+", " ", " ".join(parts))

    def raw_markup(self) -> str:
        return str(self.soup)


class TextMarkupSource(MarkupSource):
    """
    Regex scanner over raw HTML. Element queries only see markup outside
    comments and script/style bodies, and values are unescaped the way
    html.parser does it, so results line up with SoupMarkupSource.
    """

    def __init__(self, html: str):
        self.html = html or ""
        self.visible = _HIDDEN_RE.sub(" ", self.html)

    @staticmethod
    def _parse_attrs(raw: str) -> Dict[str, str]:
        attrs = {}
        for m in _ATTR_RE.finditer(raw or ""):
            name = m.group(1).lower()
            if name in attrs:
                continue
            value = next((g for g in m.group(2, 3, 4) if g is not None), "")
            attrs[name] = unescape(value)
        return attrs

    def _tags(self, *names: str) -> List[Dict[str, str]]:
        wanted = {n.lower() for n in names}
        return [
            self._parse_attrs(m.group(2))
            for m in _ANY_TAG_RE.finditer(self.visible)
            if not wanted or m.group(1).lower() in wanted
        ]

    def anchor_hrefs(self) -> List[str]:
        return [attrs["href"] for attrs in self._tags("a") if "href" in attrs]

    def media_sources(self) -> List[str]:
        return [attrs["src"] for attrs in self._tags("audio", "source") if "src" in attrs]

    def meta_tags(self) -> List[Dict[str, str]]:
        return self._tags("meta")

    def first_attr(self, tag: Optional[str], attr: str, value: str, target: str) -> str:
        wanted = value.lower()
        names = (tag,) if tag else ()
        for attrs in self._tags(*names):
            if attrs.get(attr, "").strip().lower() == wanted:
                return attrs.get(target, "").strip()
        return ""

    def first_text(self, tag: str) -> str:
        m = re.search(rf"<{tag}\b[^>]*>([\s\S]*?)</{tag}\s*>", self.visible, re.I)
        if not m:
            return ""
        return collapse_whitespace(unescape(strip_tags(m.group(1))))

    def json_ld_blocks(self) -> List[str]:
        return [m.group(1).strip() for m in _JSON_LD_RE.finditer(self.html) if m.group(1).strip()]

    def body_text(self) -> str:
        return unescape(strip_tags(self.visible))

    def raw_markup(self) -> str:
        return self.html


def as_markup_source(source: Union[str, BeautifulSoup, MarkupSource, None]) -> MarkupSource:
    if isinstance(source, MarkupSource):
        return source
    if isinstance(source, BeautifulSoup):
        return SoupMarkupSource(source)
    if source is None or isinstance(source, str):
        return TextMarkupSource(source or "")
    raise TypeError(f"Unsupported markup source: {type(source).__name__}")
