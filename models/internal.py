from pydantic import BaseModel
from typing import Optional, List


class LinkCandidate(BaseModel):
    """A plus-link found on the page, weighted by where it was found."""
    url: str
    source: str              # "current-url", "anchor", "meta" or "text"
    weight: int


class PageContext(BaseModel):
    """Everything the extractor could learn about the episode on a page."""
    page_url: str = ""
    episode_titles: List[str] = []
    podcast_titles: List[str] = []
    audio_urls: List[str] = []
    feed_urls: List[str] = []
    apple_podcast_ids: List[str] = []
    overcast_links: List[LinkCandidate] = []   # weight-sorted, fragment-free


class SearchQuery(BaseModel):
    text: str
    score: float


class SearchResult(BaseModel):
    """One row of the Overcast search autocomplete response."""
    id: str
    hash: str
    title: str = ""


class PodcastCandidate(BaseModel):
    """A show returned by search, before its episode page is fetched."""
    direct_url: str
    title: str
    originating_query: str
    query_result_count: int

    @property
    def is_high_confidence(self) -> bool:
        return self.query_result_count == 1


class EpisodeLink(BaseModel):
    """Episode link scraped from a show page."""
    url: str
    title: str


class EpisodeCandidate(BaseModel):
    """After title match scoring."""
    url: str
    title: str
    score: float
    podcast_title: str
    podcast_url: str


class FetchedPage(BaseModel):
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class EpisodeHint(BaseModel):
    """Show/episode names inferred by the hint service."""
    podcast_name: Optional[str] = None
    episode_title: Optional[str] = None


class ResolutionResult(BaseModel):
    url: str
    source: str              # "direct-<origin>" or "search:<podcast title>"
