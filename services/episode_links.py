import re
import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from config import settings
from models.internal import EpisodeLink
from utils.text import collapse_whitespace

logger = logging.getLogger(__name__)

_RELATIVE_PLUS_LINK_RE = re.compile(r"/\+[A-Za-z0-9_-]+(?:#[^\"]*)?")


def extract_episode_links(html: str, base_url: Optional[str] = None) -> List[EpisodeLink]:
    """
    Episode links from an Overcast show page.

    Keeps anchors whose href is a relative plus-link ("/+abc"), drops the
    fragment, resolves against the Overcast origin and uses the anchor text
    as the title. First occurrence of each URL wins; untitled links are skipped.
    """
    base_url = base_url or settings.overcast_base_url
    soup = BeautifulSoup(html or "", "html.parser")

    links: List[EpisodeLink] = []
    seen_urls = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if not isinstance(href, str) or not _RELATIVE_PLUS_LINK_RE.fullmatch(href):
            continue

        title = collapse_whitespace(anchor.get_text(" "))
        if not title:
            continue

        url = urljoin(base_url, href.split("#", 1)[0])
        if url in seen_urls:
            continue
        seen_urls.add(url)
        links.append(EpisodeLink(url=url, title=title))

    logger.debug(f"Show page yielded {len(links)} episode link(s)")
    return links
