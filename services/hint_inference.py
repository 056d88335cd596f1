"""
Optional Gemini hint: guess the show name and episode title from the
candidates the extractor found. Best effort only. Any failure leaves the
page context as it was and resolution carries on with heuristics.
"""
from google import genai
from google.genai import types
from models.internal import EpisodeHint, PageContext
from services.page_context import dedupe
from config import settings
from typing import Optional
import asyncio
import json
import logging

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """You identify which podcast episode a web page is about.

You get the page URL plus noisy title candidates scraped from the page
(meta tags, headings, channel names, video descriptions).

Return one JSON object:
{
  "podcastName": "the podcast/show name, or empty string if unsure",
  "episodeTitle": "the episode title without site or platform suffixes, or empty string"
}

RULES:
- Prefer names that literally appear in the candidates
- Strip decorations like " - YouTube", "| Apple Podcasts", site names
- A YouTube channel name is only the podcast name if nothing better exists
- Never invent a title that is not supported by the candidates"""


def _build_prompt(page_context: PageContext) -> str:
    return (
        f"PAGE URL: {page_context.page_url or 'Unknown'}\n"
        f"EPISODE TITLE CANDIDATES:\n"
        + "\n".join(f"- {t}" for t in page_context.episode_titles[:10])
        + "\nPODCAST TITLE CANDIDATES:\n"
        + "\n".join(f"- {t}" for t in page_context.podcast_titles[:10])
    )


class GeminiHintService:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self._client = None

    def _infer_sync(self, page_context: PageContext) -> Optional[EpisodeHint]:
        """Synchronous Gemini call, run via executor for async compat."""
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)

        response = self._client.models.generate_content(
            model=self.model,
            contents=_build_prompt(page_context),
            config=types.GenerateContentConfig(
                system_instruction=_SYSTEM_PROMPT,
                max_output_tokens=settings.gemini_max_output_tokens,
                temperature=settings.gemini_temperature,
                response_mime_type="application/json",
            ),
        )
        raw = json.loads((response.text or "").strip() or "{}")
        if not isinstance(raw, dict):
            return None
        return EpisodeHint(
            podcast_name=str(raw.get("podcastName") or "").strip() or None,
            episode_title=str(raw.get("episodeTitle") or "").strip() or None,
        )

    async def infer(self, page_context: PageContext) -> Optional[EpisodeHint]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._infer_sync, page_context)


def default_hint_service() -> Optional[GeminiHintService]:
    if not settings.gemini_api_key:
        return None
    return GeminiHintService()


async def apply_hint(page_context: PageContext, hint_service=None) -> PageContext:
    """Return a copy of the context with hinted names moved to the front of the candidate lists."""
    if hint_service is None:
        return page_context

    try:
        hint = await hint_service.infer(page_context)
    except Exception as e:
        logger.warning(f"Episode hint failed, continuing without it: {e}")
        return page_context

    if not hint:
        return page_context

    update = {}
    if hint.podcast_name and hint.podcast_name.strip():
        update["podcast_titles"] = dedupe([hint.podcast_name, *page_context.podcast_titles])
    if hint.episode_title and hint.episode_title.strip():
        update["episode_titles"] = dedupe([hint.episode_title, *page_context.episode_titles])
    if not update:
        return page_context

    logger.info(
        f"Episode hint: podcast='{hint.podcast_name or ''}' "
        f"episode='{(hint.episode_title or '')[:60]}'"
    )
    return page_context.model_copy(update=update)
