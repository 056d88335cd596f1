import re
from typing import Iterable

_YOUTUBE_DASH_SUFFIX_RE = re.compile(r"\s-\s*youtube$", re.I)
_YOUTUBE_PIPE_SUFFIX_RE = re.compile(r"\s\|\s*youtube$", re.I)
_APPLE_PODCASTS_RE = re.compile(r"apple podcasts?", re.I)


def score_episode_title_candidate(title: str) -> int:
    """
    Rank a raw title candidate: longer is better, platform-decorated titles lose.

      base:                    min(len, 180)
      ends " - YouTube":       -45
      ends " | YouTube":       -35
      mentions Apple Podcasts: -20
    """
    title = (title or "").strip()
    if not title:
        return 0

    score = min(len(title), 180)
    if _YOUTUBE_DASH_SUFFIX_RE.search(title):
        score -= 45
    if _YOUTUBE_PIPE_SUFFIX_RE.search(title):
        score -= 35
    if _APPLE_PODCASTS_RE.search(title):
        score -= 20
    return score


def best_episode_title(titles: Iterable[str]) -> str:
    """Highest-scoring candidate; ties keep the earliest one."""
    candidates = []
    for title in titles or []:
        title = (title or "").strip()
        if title and title not in candidates:
            candidates.append(title)

    candidates.sort(key=score_episode_title_candidate, reverse=True)
    return candidates[0] if candidates else ""
