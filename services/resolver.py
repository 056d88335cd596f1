"""
Episode resolution: page context in, Overcast episode URL out.

States:
  DIRECT_LOOKUP -> hit: done
                -> miss: QUERY_BUILD -> SEARCH_EXECUTE -> CANDIDATE_RANK
                   -> EPISODE_FETCH_SCORE -> short-circuit: done
                                          -> exhausted: BEST_OR_FAIL

Collaborators are duck-typed:
  search_provider.search(query) -> List[SearchResult]  (raises RateLimitedError on 429)
  page_fetcher.get(url)         -> FetchedPage
  hint_service.infer(context)   -> Optional[EpisodeHint]  (optional)

Processing order is fixed (queries by score, candidates by ambiguity then
title, episode links in page order) so the same inputs always pick the
same episode. Searches may run concurrently; their results are merged in
query order.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

import httpx

from config import settings
from models.internal import (
    EpisodeCandidate,
    PageContext,
    PodcastCandidate,
    ResolutionResult,
    SearchQuery,
    SearchResult,
)
from models.requests import ResolveRequest
from models.responses import ResolveResponse
from services.episode_links import extract_episode_links
from services.errors import NoMatchError, RateLimitedError
from services.hint_inference import apply_hint, default_hint_service
from services.overcast_account import get_episode_item_id, save_episode_to_account, verify_episode_presence
from services.overcast_client import OvercastClient
from services.page_context import extract_page_context, fetch_page_context
from services.query_builder import build_search_queries
from services.title_matching import score_episode_title_match
from services.title_selection import best_episode_title
from utils.text import truncate

logger = logging.getLogger(__name__)


async def _log(emit, step: str, message: str) -> None:
    logger.info(message)
    if emit:
        await emit("log", step=step, message=message)


def podcast_url(result: SearchResult) -> str:
    return f"{settings.overcast_base_url.rstrip('/')}/p{result.id}-{result.hash}"


def pick_direct_link(page_context: PageContext) -> Optional[ResolutionResult]:
    """Heaviest plus-link already on the page, if any."""
    if not page_context.overcast_links:
        return None
    top = page_context.overcast_links[0]
    return ResolutionResult(url=top.url, source=f"direct-{top.source}")


async def _search_candidates(
    queries: List[SearchQuery],
    search_provider,
    emit=None,
) -> List[PodcastCandidate]:
    """
    Run the top queries and merge their results into podcast candidates.
    A show seen by several queries keeps the smallest result count, i.e.
    the most selective query that found it.
    """
    selected = queries[: settings.max_search_queries]
    outcomes = await asyncio.gather(
        *(search_provider.search(q.text) for q in selected),
        return_exceptions=True,
    )

    # 429 aborts; a network failure on one query only drops that query
    result_sets: List[List[SearchResult]] = []
    for query, outcome in zip(selected, outcomes):
        if isinstance(outcome, httpx.HTTPError):
            logger.warning(f"Search failed for '{truncate(query.text, 60)}': {outcome}")
            outcome = []
        elif isinstance(outcome, BaseException):
            raise outcome
        result_sets.append(outcome)

    candidates: Dict[Tuple[str, str], PodcastCandidate] = {}
    for query, results in zip(selected, result_sets):
        await _log(emit, "search", f"Search '{truncate(query.text, 60)}' returned {len(results)} result(s)")
        for result in results[: settings.max_results_per_query]:
            key = (result.id, result.hash)
            existing = candidates.get(key)
            if existing is None:
                candidates[key] = PodcastCandidate(
                    direct_url=podcast_url(result),
                    title=result.title or "search",
                    originating_query=query.text,
                    query_result_count=len(results),
                )
            elif len(results) < existing.query_result_count:
                existing.query_result_count = len(results)
                existing.originating_query = query.text

    return list(candidates.values())


def rank_podcast_candidates(candidates: List[PodcastCandidate]) -> List[PodcastCandidate]:
    """Least ambiguous first (smallest result count), then by title; top N kept."""
    ranked = sorted(candidates, key=lambda c: (c.query_result_count, c.title))
    return ranked[: settings.max_podcast_candidates]


async def _score_candidates(
    podcasts: List[PodcastCandidate],
    target_title: str,
    page_fetcher,
    emit=None,
) -> Tuple[Optional[EpisodeCandidate], List[EpisodeCandidate]]:
    """
    Fetch each show page and score its episodes against the target title.
    Returns (short_circuit_match, all_positive_candidates).
    """
    scored: List[EpisodeCandidate] = []

    for podcast in podcasts:
        try:
            page = await page_fetcher.get(podcast.direct_url)
        except httpx.HTTPError as e:
            logger.warning(f"Show page fetch failed for {podcast.direct_url}: {e}")
            continue

        if page.status == 429:
            raise RateLimitedError(podcast.direct_url)
        if not page.ok:
            logger.warning(f"Show page returned HTTP {page.status}: {podcast.direct_url}")
            continue

        links = extract_episode_links(page.body)
        budget = (
            settings.high_confidence_episode_budget
            if podcast.is_high_confidence
            else settings.default_episode_budget
        )
        to_score = links[:budget]
        await _log(
            emit, "score",
            f"Scoring {len(to_score)} of {len(links)} episode link(s) from "
            f"'{podcast.title}' ({podcast.direct_url})",
        )

        for link in to_score:
            score = score_episode_title_match(target_title, link.title)
            if score <= 0:
                continue
            candidate = EpisodeCandidate(
                url=link.url,
                title=link.title,
                score=score,
                podcast_title=podcast.title,
                podcast_url=podcast.direct_url,
            )
            if score >= settings.short_circuit_score:
                return candidate, scored
            scored.append(candidate)

    return None, scored


async def resolve(
    page_context: PageContext,
    search_provider,
    page_fetcher,
    target_title_override: Optional[str] = None,
    hint_service=None,
    emit=None,
) -> ResolutionResult:
    """
    Resolve a page context to an Overcast episode URL.
    Raises NoMatchError when nothing clears the thresholds and
    RateLimitedError as soon as Overcast answers 429.
    """
    page_context = await apply_hint(page_context, hint_service)

    target_title = (target_title_override or "").strip() or best_episode_title(page_context.episode_titles)
    await _log(emit, "context", f"Attempting match for title: {target_title or '(none)'}")

    direct = pick_direct_link(page_context)
    if direct:
        await _log(emit, "direct", f"Direct Overcast link on page: {direct.url} ({direct.source})")
        return direct

    queries = build_search_queries(page_context)
    if not queries:
        await _log(emit, "search", "No search queries could be built from this page")
        raise NoMatchError("no search queries")

    candidates = await _search_candidates(queries, search_provider, emit=emit)
    podcasts = rank_podcast_candidates(candidates)
    await _log(
        emit, "rank",
        f"Kept {len(podcasts)} of {len(candidates)} podcast candidate(s): "
        + (", ".join(f"{p.title} [{p.query_result_count}]" for p in podcasts) or "(none)"),
    )

    match, scored = await _score_candidates(podcasts, target_title, page_fetcher, emit=emit)
    if match:
        await _log(emit, "score", f"Decisive title match: '{match.title}' ({match.score:.1f})")
        return ResolutionResult(url=match.url, source=f"search:{match.podcast_title}")

    if not scored:
        await _log(emit, "score", "No episode titles overlapped the target title")
        raise NoMatchError("no scored candidates")

    best = max(scored, key=lambda c: c.score)
    await _log(emit, "score", f"Best title match: '{best.title}' ({best.score:.1f})")
    if best.score < settings.acceptance_floor:
        raise NoMatchError(f"best score {best.score:.1f} below {settings.acceptance_floor}")

    return ResolutionResult(url=best.url, source=f"search:{best.podcast_title}")


async def run_resolution(request: ResolveRequest, emit=None, client: Optional[OvercastClient] = None) -> ResolveResponse:
    """
    Full request flow: page context (given HTML or fetched), optional hint,
    resolution, and optional save into the account.
    """
    if request.html is not None:
        page_context = extract_page_context(request.page_url, request.html)
    else:
        await _log(emit, "context", f"Fetching target page: {request.page_url}")
        page_context = await fetch_page_context(request.page_url)

    hint_service = default_hint_service() if request.use_hints else None
    page_context = await apply_hint(page_context, hint_service)
    target_title = (request.target_title or "").strip() or best_episode_title(page_context.episode_titles)

    owns_client = client is None
    client = client or OvercastClient()
    try:
        result = await resolve(
            page_context,
            search_provider=client,
            page_fetcher=client,
            target_title_override=request.target_title,
            emit=emit,
        )
        response = ResolveResponse(
            url=result.url,
            source=result.source,
            target_episode_title=target_title,
        )

        if request.save:
            item_id = await get_episode_item_id(client, result.url)
            await save_episode_to_account(client, item_id)
            await _log(emit, "save", f"Saved episode {item_id} to the Overcast account")
            response.item_id = item_id
            response.verification = await verify_episode_presence(client, item_id, result.url)

        return response
    finally:
        if owns_client:
            await client.aclose()
