from pydantic import BaseModel, Field
from typing import Optional


class Verification(BaseModel):
    verified: bool
    reason: str = ""


class ResolveResponse(BaseModel):
    url: str = Field(description="Overcast episode URL")
    source: str = Field(description="'direct-<origin>' or 'search:<podcast title>'")
    target_episode_title: str = ""
    item_id: Optional[str] = Field(None, description="Overcast item ID, set when saved")
    verification: Optional[Verification] = None


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
