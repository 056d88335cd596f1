"""
Search query building.

Turns a PageContext into Overcast search queries, strongest first:
  - podcast title candidates, boosted (+100 by default)
  - the first hostname label of each feed URL
  - segments of the best episode title split on | - – — :
  - the whole best episode title
"""

import re
import logging
from typing import List, Optional

from config import settings
from models.internal import PageContext, SearchQuery
from services.title_selection import best_episode_title
from utils.text import collapse_whitespace, host_label

logger = logging.getLogger(__name__)

NOISE_QUERIES = {"youtube", "podcast", "episode", "apple podcasts", "spotify"}

_PLATFORM_RE = re.compile(r"\b(?:youtube|apple podcasts|spotify)\b", re.I)
_SEPARATOR_RE = re.compile(r"[:|\-]")
_GUEST_RE = re.compile(r"with|feat\.?|featuring|vision|interview", re.I)
_TITLE_SPLIT_RE = re.compile(r"[|\-–—:]")


def score_search_query(text: str) -> int:
    """
    Score a query string on its own merits (no boost).

    Pure platform/noise words score 0. Otherwise:
      base:                                  min(len, 80)
      names youtube / apple podcasts / spotify: -25
      contains : | or -:                        +10
      guest phrasing (with, feat., interview):  +8
    """
    text = text or ""
    if text.lower() in NOISE_QUERIES:
        return 0

    score = min(len(text), 80)
    if _PLATFORM_RE.search(text):
        score -= 25
    if _SEPARATOR_RE.search(text):
        score += 10
    if _GUEST_RE.search(text):
        score += 8
    return score


def build_search_queries(page_context: PageContext, episode_title: Optional[str] = None) -> List[SearchQuery]:
    """Ranked, case-insensitively deduplicated queries for the page."""
    ranked = {}  # lower-cased text -> [first_seen, SearchQuery]

    def offer(value: str, boost: int = 0) -> None:
        text = collapse_whitespace(value)
        if len(text) < settings.min_query_length:
            return
        if text.lower() in NOISE_QUERIES:
            return
        score = score_search_query(text) + boost
        if score <= 0:
            return

        key = text.lower()
        existing = ranked.get(key)
        if existing is None:
            ranked[key] = [len(ranked), SearchQuery(text=text, score=score)]
        elif score > existing[1].score:
            existing[1] = SearchQuery(text=text, score=score)

    for title in page_context.podcast_titles:
        offer(title, boost=settings.podcast_title_query_boost)

    for feed_url in page_context.feed_urls:
        offer(host_label(feed_url))

    if episode_title is None:
        episode_title = best_episode_title(page_context.episode_titles)
    for segment in _TITLE_SPLIT_RE.split(episode_title):
        offer(segment)
    offer(episode_title)

    ordered = sorted(ranked.values(), key=lambda entry: (-entry[1].score, entry[0]))
    queries = [query for _, query in ordered]
    logger.info(f"Search queries: {' | '.join(q.text for q in queries) or '(none)'}")
    return queries
