"""
Page context extraction.

Collects every hint a page carries about the podcast episode it shows:
direct Overcast plus-links, episode and show title candidates, audio and
feed URLs, and Apple Podcasts IDs. The rules run once over a MarkupSource,
so a parsed BeautifulSoup document and a raw HTML string go through the
same code.

Sources, in order:
  1. the page's own URL, when it is a plus-link
  2. anchors: plus-links, Apple Podcasts IDs, feed URLs
  3. <audio>/<source> and twitter:player:stream audio URLs
  4. title-bearing meta tags, itemprop name/author, <h1>, <title>
  5. plus-links inside meta content and visible text (text capped at 8)
  6. JSON-LD episode / series nodes
  7. YouTube-style embedded JSON: ownerChannelName, shortDescription
  8. backslash-escaped Apple Podcasts URLs inside page scripts
"""

import json
import re
import logging
from typing import Iterable, List, Optional, Union
from urllib.parse import urldefrag, urljoin

import httpx
from bs4 import BeautifulSoup

from config import settings
from models.internal import LinkCandidate, PageContext
from services.markup_sources import MarkupSource, as_markup_source
from utils.text import decode_backslash_escapes, decode_html_entities

logger = logging.getLogger(__name__)

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}

PLUS_LINK_RE = re.compile(r"https?://overcast\.fm/\+[A-Za-z0-9_-]+(?:#[^\s\"'<>]*)?", re.I)
_ESCAPED_APPLE_URL_RE = re.compile(r"https?:\\/\\/podcasts\.apple\.com[^\"'<>\s]+", re.I)
_OWNER_CHANNEL_RE = re.compile(r'"ownerChannelName"\s*:\s*"((?:[^"\\]|\\.)*)"')
_SHORT_DESCRIPTION_RE = re.compile(r'"shortDescription"\s*:\s*"((?:[^"\\]|\\.)*)"', re.I)
_TUNE_IN_RE = re.compile(r"tune\s+in\s+to\s+([^,\n.!?]{3,120})", re.I)
_SHOW_LABEL_RE = re.compile(r"(?:podcast|show)\s*[:\-]\s*([^\n]{3,120})", re.I)

_EPISODE_TITLE_METAS = {("property", "og:title"), ("name", "twitter:title"), ("name", "title")}


def is_plus_link(url: str) -> bool:
    return bool(url) and PLUS_LINK_RE.fullmatch(url.strip()) is not None


def push_unique(values: List[str], value) -> None:
    """Append a trimmed, non-empty string unless already present (exact match)."""
    if not isinstance(value, str):
        return
    value = value.strip()
    if value and value not in values:
        values.append(value)


def dedupe(values: Iterable[str]) -> List[str]:
    out: List[str] = []
    for v in values:
        push_unique(out, v)
    return out


def _resolve_url(value: str, base_url: str) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        resolved = urljoin(base_url, value) if base_url else value
    except ValueError:
        return None
    if not re.match(r"^[a-z][a-z0-9+.-]*:", resolved, re.I):
        return None
    return resolved


def _apple_podcast_id(url: str) -> Optional[str]:
    m = re.search(rf"\bid(\d{{{settings.min_apple_id_digits},}})\b", url, re.I)
    return m.group(1) if m else None


def _is_feed_url(url: str) -> bool:
    lower = url.lower()
    return "/rss" in lower or "feed" in lower or lower.endswith(".xml")


def rank_links(candidates: Iterable[LinkCandidate]) -> List[LinkCandidate]:
    """
    Strip fragments, keep the heaviest candidate per URL, sort by weight.
    Equal weights keep first-seen order.
    """
    best = {}
    for candidate in candidates:
        url = urldefrag(candidate.url.strip()).url
        if not url:
            continue
        existing = best.get(url)
        if existing is None or candidate.weight > existing.weight:
            best[url] = candidate.model_copy(update={"url": url})
    return sorted(best.values(), key=lambda c: c.weight, reverse=True)


def _json_ld_nodes(parsed) -> list:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("@graph"), list):
        return parsed["@graph"]
    return [parsed]


def _collect_json_ld(blocks: List[str], episode_titles: List[str], podcast_titles: List[str]) -> None:
    for raw in blocks:
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.debug("Skipping malformed JSON-LD block")
            continue

        for node in _json_ld_nodes(parsed):
            if not isinstance(node, dict):
                continue
            types = node.get("@type")
            if not isinstance(types, list):
                types = [types]
            joined = " ".join(str(t) for t in types if t).lower()

            if "episode" in joined:
                push_unique(episode_titles, node.get("name"))
                push_unique(episode_titles, node.get("headline"))
                series = node.get("partOfSeries")
                if isinstance(series, dict):
                    push_unique(podcast_titles, series.get("name"))

            if "podcastseries" in joined or "podcastshow" in joined:
                push_unique(podcast_titles, node.get("name"))


def _collect_embedded_json(raw: str, episode_titles: List[str], podcast_titles: List[str]) -> None:
    owner = _OWNER_CHANNEL_RE.search(raw)
    if owner:
        push_unique(podcast_titles, decode_backslash_escapes(owner.group(1)))

    m = _SHORT_DESCRIPTION_RE.search(raw)
    description = decode_backslash_escapes(m.group(1)) if m else ""
    if not description:
        return

    first_line = next((line.strip() for line in description.split("\n") if line.strip()), "")
    push_unique(episode_titles, first_line)

    tune_in = _TUNE_IN_RE.search(description)
    if tune_in:
        push_unique(podcast_titles, tune_in.group(1))
    labelled = _SHOW_LABEL_RE.search(description)
    if labelled:
        push_unique(podcast_titles, labelled.group(1))


def extract_page_context(
    page_url: str,
    source: Union[str, BeautifulSoup, MarkupSource, None],
) -> PageContext:
    """Build a PageContext from a page URL plus its markup (HTML string or parsed soup)."""
    page_url = (page_url or "").strip()
    markup = as_markup_source(source)

    links: List[LinkCandidate] = []
    episode_titles: List[str] = []
    podcast_titles: List[str] = []
    audio_urls: List[str] = []
    feed_urls: List[str] = []
    apple_ids: List[str] = []

    def push_link(url: str, origin: str, weight: int) -> None:
        if url:
            links.append(LinkCandidate(url=url, source=origin, weight=weight))

    if is_plus_link(page_url):
        push_link(page_url, "current-url", settings.weight_current_url)

    for href_value in markup.anchor_hrefs():
        href = _resolve_url(href_value, page_url)
        if not href:
            continue
        if is_plus_link(href):
            push_link(href, "anchor", settings.weight_anchor)

        lower = href.lower()
        if "podcasts.apple.com" in lower or "itunes.apple.com" in lower:
            push_unique(apple_ids, _apple_podcast_id(href))
        if _is_feed_url(href):
            push_unique(feed_urls, href)

    for src_value in markup.media_sources():
        push_unique(audio_urls, _resolve_url(src_value, page_url))

    for meta in markup.meta_tags():
        content = (meta.get("content") or "").strip()
        if not content:
            continue
        name = (meta.get("name") or "").strip().lower()
        prop = (meta.get("property") or "").strip().lower()

        if name == "twitter:player:stream":
            push_unique(audio_urls, _resolve_url(content, page_url) or content)
        if ("property", prop) in _EPISODE_TITLE_METAS or ("name", name) in _EPISODE_TITLE_METAS:
            push_unique(episode_titles, decode_html_entities(content))
        if prop == "og:site_name":
            push_unique(podcast_titles, decode_html_entities(content))

        for match in PLUS_LINK_RE.findall(content):
            push_link(match, "meta", settings.weight_meta)

    push_unique(episode_titles, markup.first_text("h1"))
    push_unique(episode_titles, markup.first_text("title"))
    push_unique(podcast_titles, decode_html_entities(markup.first_attr("link", "itemprop", "name", "content")))
    push_unique(podcast_titles, decode_html_entities(markup.first_attr(None, "itemprop", "author", "content")))

    _collect_json_ld(markup.json_ld_blocks(), episode_titles, podcast_titles)

    raw = markup.raw_markup()
    _collect_embedded_json(raw, episode_titles, podcast_titles)

    for escaped in _ESCAPED_APPLE_URL_RE.findall(raw)[: settings.max_embedded_apple_urls]:
        push_unique(apple_ids, _apple_podcast_id(escaped.replace("\\/", "/")))

    for match in PLUS_LINK_RE.findall(markup.body_text())[: settings.max_text_link_matches]:
        push_link(match, "text", settings.weight_text)

    context = PageContext(
        page_url=page_url,
        episode_titles=episode_titles,
        podcast_titles=podcast_titles,
        audio_urls=audio_urls,
        feed_urls=feed_urls,
        apple_podcast_ids=apple_ids,
        overcast_links=rank_links(links),
    )
    logger.info(
        f"Page context for {page_url or '(no url)'}: "
        f"{len(context.episode_titles)} episode title(s), "
        f"{len(context.podcast_titles)} podcast title(s), "
        f"{len(context.feed_urls)} feed(s), "
        f"{len(context.overcast_links)} direct link(s)"
    )
    return context


async def fetch_page_context(page_url: str) -> PageContext:
    """Fetch a page and extract its context. Raises httpx.HTTPStatusError on a failing response."""
    async with httpx.AsyncClient(
        timeout=settings.http_timeout_sec, follow_redirects=True, headers=_HEADERS
    ) as client:
        resp = await client.get(page_url)
        resp.raise_for_status()

    return extract_page_context(page_url, BeautifulSoup(resp.text, "html.parser"))
