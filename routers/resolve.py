import time
import json
import asyncio
import logging

import httpx
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from models.internal import PageContext
from models.requests import ContextRequest, ResolveRequest
from models.responses import ResolveResponse, ErrorResponse
from services.errors import NoMatchError, RateLimitedError, TransportError
from services.page_context import extract_page_context, fetch_page_context
from services.resolver import run_resolution

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["resolve"])


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, RateLimitedError):
        return HTTPException(status_code=429, detail={"error": "Overcast rate limit", "detail": str(e)})
    if isinstance(e, NoMatchError):
        return HTTPException(status_code=404, detail={"error": "No matching episode", "detail": str(e)})
    if isinstance(e, TransportError):
        return HTTPException(status_code=502, detail={"error": "Overcast request failed", "detail": str(e)})
    if isinstance(e, httpx.HTTPError):
        return HTTPException(status_code=502, detail={"error": "Unable to load target page", "detail": str(e)})
    return HTTPException(status_code=500, detail={"error": "Resolution failed", "detail": str(e)})


@router.post(
    "/context",
    response_model=PageContext,
    responses={502: {"model": ErrorResponse, "description": "Target page could not be fetched"}},
    summary="Extract episode hints from a page",
)
async def context(request: ContextRequest) -> PageContext:
    if request.html is not None:
        return extract_page_context(request.page_url, request.html)
    try:
        return await fetch_page_context(request.page_url)
    except httpx.HTTPError as e:
        logger.warning(f"Target page fetch failed for {request.page_url}: {e}")
        raise _http_error(e)


@router.post(
    "/resolve",
    response_model=ResolveResponse,
    responses={
        404: {"model": ErrorResponse, "description": "No matching episode"},
        429: {"model": ErrorResponse, "description": "Overcast rate limited the lookup"},
        502: {"model": ErrorResponse, "description": "Upstream request failed"},
    },
    summary="Match a page to an Overcast episode",
    description=(
        "Uses a direct Overcast link on the page when there is one, otherwise "
        "searches Overcast for the show and matches the episode title."
    ),
)
async def resolve(request: ResolveRequest) -> ResolveResponse:
    start_time = time.time()
    try:
        result = await run_resolution(request)
        elapsed = time.time() - start_time
        logger.info(f"Resolved {request.page_url} -> {result.url} ({result.source}) in {elapsed:.1f}s")
        return result
    except NoMatchError as e:
        logger.info(f"No match for {request.page_url}: {e.reason}")
        raise _http_error(e)
    except Exception as e:
        elapsed = time.time() - start_time
        logger.error(f"Resolution failed for {request.page_url} after {elapsed:.1f}s: {e}", exc_info=True)
        raise _http_error(e)


@router.post("/resolve-stream", summary="Match a page with SSE progress")
async def resolve_stream(request: ResolveRequest):
    progress_q: asyncio.Queue = asyncio.Queue()

    async def on_progress(event_type: str, **data):
        await progress_q.put({"type": event_type, **data})

    async def generate():
        start_time = time.time()
        try:
            task = asyncio.create_task(run_resolution(request, emit=on_progress))

            while not task.done():
                try:
                    event = await asyncio.wait_for(progress_q.get(), timeout=0.5)
                    yield f"data: {json.dumps(event)}\n\n"
                except asyncio.TimeoutError:
                    pass

            # Drain remaining events
            while not progress_q.empty():
                event = progress_q.get_nowait()
                yield f"data: {json.dumps(event)}\n\n"

            result = task.result()
            elapsed = round(time.time() - start_time, 1)
            yield f"data: {json.dumps({'type': 'result', 'elapsed': elapsed, 'data': result.model_dump()})}\n\n"

        except Exception as e:
            elapsed = round(time.time() - start_time, 1)
            status = _http_error(e).status_code
            if status >= 500:
                logger.error(f"Resolution stream failed after {elapsed}s: {e}", exc_info=True)
            yield f"data: {json.dumps({'type': 'error', 'status': status, 'message': str(e)})}\n\n"

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/health")
async def health():
    return {"status": "ok"}
