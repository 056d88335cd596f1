from pydantic import BaseModel, Field
from typing import Optional


class ContextRequest(BaseModel):
    page_url: str = Field(
        ..., min_length=1, max_length=2000,
        description="URL of the page showing the episode",
    )
    html: Optional[str] = Field(
        None,
        description="Page markup; fetched from page_url when omitted",
    )


class ResolveRequest(ContextRequest):
    target_title: Optional[str] = Field(
        None, max_length=500,
        description="Episode title to match instead of the best title found on the page",
    )
    use_hints: bool = Field(
        default=True,
        description="Ask Gemini for show/episode names when an API key is configured",
    )
    save: bool = Field(
        default=False,
        description="Save the matched episode into the Overcast account (needs a session cookie)",
    )
