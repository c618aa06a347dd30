from datetime import datetime

from pydantic import BaseModel


class FollowEdge(BaseModel):
    """``observer_handle`` follows ``followed_handle``. Unique on (observer, followed_id)."""

    observer_handle: str
    followed_id: str
    followed_handle: str
    bio: str = ""
    first_seen: datetime | None = None
