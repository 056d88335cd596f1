import re

EXACT_MATCH_SCORE = 120
CONTAINMENT_BONUS = 35


def normalize_title(text: str) -> str:
    """Lowercase, &amp; -> and, punctuation to spaces, collapse whitespace."""
    text = (text or "").lower().replace("&amp;", "and")
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def score_episode_title_match(target: str, candidate: str) -> float:
    """
    Similarity between the page's episode title and a show-page episode title.

    Scoring rubric:
      Exact match after normalization:  120 (decisive)
      One title contains the other:     +35
      Shared-word ratio:                +100 * |common| / max(|target|, |candidate|)
    """
    target = normalize_title(target)
    candidate = normalize_title(candidate)
    if not target or not candidate:
        return 0

    if target == candidate:
        return EXACT_MATCH_SCORE

    score = 0.0
    if target in candidate or candidate in target:
        score += CONTAINMENT_BONUS

    target_tokens = set(target.split())
    candidate_tokens = set(candidate.split())
    if not target_tokens or not candidate_tokens:
        return score

    overlap = len(target_tokens & candidate_tokens)
    score += overlap / max(len(target_tokens), len(candidate_tokens)) * 100
    return score
