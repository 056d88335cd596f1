"""
Shared pytest fixtures for the Overcast episode resolver tests.
"""

import pytest
from typing import Dict, List, Optional

from models.internal import FetchedPage, SearchResult
from services.errors import RateLimitedError


EPISODE_TITLE = (
    "Turning Air, Water, and Sunlight into Natural Gas: "
    "Casey Handmer's Vision for Sustainable Energy"
)
PODCAST_TITLE = "Hardware to Save a Planet"


# ============================================================================
# Collaborator fakes
# ============================================================================

class FakeSearchProvider:
    """Search provider stub: canned results per query, records every call."""

    def __init__(self, results: Optional[Dict[str, List[SearchResult]]] = None, rate_limited=()):
        self.results = results or {}
        self.rate_limited = set(rate_limited)
        self.calls: List[str] = []

    async def search(self, query: str) -> List[SearchResult]:
        self.calls.append(query)
        if query in self.rate_limited:
            raise RateLimitedError(f"https://overcast.fm/podcasts/search_autocomplete?q={query}")
        return list(self.results.get(query, []))


class FakePageFetcher:
    """Page fetcher stub: canned pages per URL (404 otherwise), records every call."""

    def __init__(self, pages: Optional[Dict[str, FetchedPage]] = None):
        self.pages = pages or {}
        self.calls: List[str] = []

    async def get(self, url: str) -> FetchedPage:
        self.calls.append(url)
        return self.pages.get(url, FetchedPage(status=404, body="Not Found"))


class FakeHintService:
    def __init__(self, hint=None, error: Optional[Exception] = None):
        self.hint = hint
        self.error = error
        self.calls = 0

    async def infer(self, page_context):
        self.calls += 1
        if self.error:
            raise self.error
        return self.hint


@pytest.fixture
def search_provider():
    """Factory for FakeSearchProvider."""
    return FakeSearchProvider


@pytest.fixture
def page_fetcher():
    """Factory for FakePageFetcher."""
    return FakePageFetcher


@pytest.fixture
def hint_service():
    """Factory for FakeHintService."""
    return FakeHintService


# ============================================================================
# Markup fixtures
# ============================================================================

def build_show_page(episodes) -> str:
    """Overcast-style show page with one plus-link anchor per (token, title)."""
    cells = "\n".join(
        f'<a class="extendedepisodecell" href="/+{token}">{title}</a>'
        for token, title in episodes
    )
    return f"""
    <html>
      <head><title>Show - Overcast</title></head>
      <body>
        <h2>Episodes</h2>
        {cells}
        <a href="/podcasts">Your podcasts</a>
      </body>
    </html>
    """


@pytest.fixture
def show_page():
    """Factory building show page HTML from (token, title) pairs."""
    return build_show_page


@pytest.fixture
def youtube_watch_html():
    """Raw HTML of a YouTube watch page for a podcast episode."""
    return f"""
    <html>
      <head>
        <title>{EPISODE_TITLE} - YouTube</title>
        <meta name="title" content="{EPISODE_TITLE}" />
        <meta property="og:title" content="{EPISODE_TITLE}" />
        <meta property="og:site_name" content="YouTube" />
        <link itemprop="name" content="Synapse" />
        <script>
          var ytInitialPlayerResponse = {{"videoDetails":{{"ownerChannelName":"Synapse",
          "shortDescription":"Tune in to {PODCAST_TITLE}, where Dylan Garrett sits down with Casey Handmer.\\n\\nListen: https:\\/\\/podcasts.apple.com\\/us\\/podcast\\/hardware\\/id1234567890"}}}};
        </script>
      </head>
      <body>
        <h1>{EPISODE_TITLE}</h1>
      </body>
    </html>
    """


@pytest.fixture
def blog_episode_html():
    """Raw HTML of a podcast host page with JSON-LD, feeds and audio."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
      <title>Ep. 42: The Future of Transparency &amp; Trust | ELGL</title>
      <meta property="og:title" content="Ep. 42: The Future of Transparency &amp; Trust" />
      <meta name="twitter:title" content="The Future of Transparency" />
      <meta name="twitter:player:stream" content="/media/ep42.mp3" />
      <meta property="og:site_name" content="GovLove" />
      <meta name="description" content="Also on Overcast: https://overcast.fm/+meta42#t=10" />
      <script type="application/ld+json">
        {"@context": "https://schema.org", "@graph": [
          {"@type": "PodcastEpisode", "name": "The Future of Transparency",
           "partOfSeries": {"@type": "PodcastSeries", "name": "GovLove Podcast"}},
          {"@type": "PodcastSeries", "name": "GovLove"}
        ]}
      </script>
      <script type="application/ld+json">{ this is not json </script>
    </head>
    <body>
      <h1>Ep. 42: The   Future of Transparency</h1>
      <audio controls><source src="https://cdn.example.com/ep42.mp3" type="audio/mpeg"></audio>
      <p>Listen on <a href="https://podcasts.apple.com/us/podcast/govlove/id987654321">Apple Podcasts</a>
         or <a href="https://overcast.fm/+anchor42#t=30">Overcast</a>.</p>
      <p>Subscribe: <a href="https://www.govlove.example.com/feed/podcast.xml">RSS</a></p>
      <p>Short links: https://overcast.fm/+text42 and https://overcast.fm/+anchor42</p>
    </body>
    </html>
    """
