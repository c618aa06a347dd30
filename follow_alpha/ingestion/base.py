from abc import ABC, abstractmethod
from typing import AsyncIterator

from follow_alpha.ingestion.models import FollowedAccount, Post, Profile


class SocialClient(ABC):
    """Data-source capability the monitor needs from the social platform.

    Retry, caching and pacing live in the monitor, not here.
    """

    @abstractmethod
    async def login(self) -> None:
        """Authenticate. Raises LoginError on failure."""
        ...

    @abstractmethod
    async def get_user_id(self, handle: str) -> str | None:
        ...

    @abstractmethod
    def get_following(self, user_id: str, max_count: int) -> AsyncIterator[FollowedAccount]:
        """Yield accounts ``user_id`` follows, at most ``max_count`` of them."""
        ...

    @abstractmethod
    async def get_profile(self, handle: str) -> Profile | None:
        ...

    @abstractmethod
    async def get_recent_posts(self, user_id: str, count: int) -> list[Post]:
        ...
