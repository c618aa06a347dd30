from datetime import datetime

from pydantic import BaseModel


class FollowedAccount(BaseModel):
    """One entry of an account's following list."""

    id: str
    username: str
    name: str = ""
    bio: str = ""


class Profile(BaseModel):
    username: str
    name: str = ""
    followers_count: int = 0
    following_count: int = 0
    tweets_count: int = 0
    created_at: datetime | None = None
    bio: str = ""


class Post(BaseModel):
    post_id: str
    text: str
    created_at: datetime | None = None
