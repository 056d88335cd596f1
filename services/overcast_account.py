"""
Account actions on a resolved episode, using an already-authenticated
Overcast session: look up the item ID, save it, verify it was saved.
"""

import re
import logging

from models.responses import Verification
from services.errors import RateLimitedError, TransportError
from services.overcast_client import OvercastClient
from utils.text import truncate

logger = logging.getLogger(__name__)

_ITEM_ID_ATTR_RE = re.compile(r'data-item-id="(\d+)"', re.I)
_ITEM_ID_APP_URL_RE = re.compile(r"overcast:///(\d+)", re.I)


async def get_episode_item_id(client: OvercastClient, episode_url: str) -> str:
    page = await client.get(episode_url)
    if page.status == 429:
        raise RateLimitedError(episode_url)
    if not page.ok:
        raise TransportError(
            episode_url, page.status,
            f"Failed to open episode link (HTTP {page.status}).",
        )

    m = _ITEM_ID_ATTR_RE.search(page.body) or _ITEM_ID_APP_URL_RE.search(page.body)
    if not m:
        raise ValueError("Couldn't extract the Overcast episode ID from the detected link.")
    return m.group(1)


async def save_episode_to_account(client: OvercastClient, item_id: str) -> None:
    url = f"/podcasts/set_progress/{item_id}"
    page = await client.post_form(url, {"p": "0", "speed": "0", "v": "0"})
    if page.status == 429:
        raise RateLimitedError(client.absolute(url))
    if not page.ok:
        raise TransportError(
            client.absolute(url), page.status,
            f"Failed to save episode in Overcast (HTTP {page.status}).",
        )

    text = page.body.strip()
    if text and not re.fullmatch(r"-?\d+(?:\.\d+)?", text):
        raise ValueError(f"Unexpected Overcast response while saving: {truncate(text, 120)}")
    logger.info(f"Saved Overcast item {item_id}")


async def verify_episode_presence(client: OvercastClient, item_id: str, episode_url: str = "") -> Verification:
    """Check the episode page, then the /podcasts listing, for the saved item."""
    if episode_url:
        page = await client.get(episode_url)
        if page.ok:
            has_marker = "existing_episode_for_user" in page.body
            has_delete = f"/podcasts/delete_item/{item_id}" in page.body
            if has_marker and has_delete:
                return Verification(verified=True, reason="Episode page shows it is saved in your account.")

    listing = await client.get("/podcasts")
    if not listing.ok:
        return Verification(verified=False, reason=f"Unable to load /podcasts (HTTP {listing.status})")

    if f'data-item-id="{item_id}"' in listing.body:
        return Verification(verified=True, reason="Found saved item in /podcasts HTML.")

    return Verification(
        verified=False,
        reason="Item was saved but wasn't found in /podcasts HTML snapshot.",
    )
