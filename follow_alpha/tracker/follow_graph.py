"""Follow-list differencing: fetch who an account follows, diff, persist."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from follow_alpha.errors import LoginError
from follow_alpha.ingestion.base import SocialClient
from follow_alpha.ingestion.models import FollowedAccount
from follow_alpha.storage.gateway import PersistenceGateway
from follow_alpha.tracker.models import FollowEdge

logger = logging.getLogger(__name__)


class FollowGraphTracker:
    def __init__(
        self,
        client: SocialClient,
        gateway: PersistenceGateway,
        max_following: int = 20_000,
        page_delay: float = 0.1,
        page_delay_every: int = 100,
    ) -> None:
        self._client = client
        self._gateway = gateway
        self.max_following = max_following
        self.page_delay = page_delay
        self.page_delay_every = page_delay_every

    async def get_following(self, handle: str) -> list[FollowedAccount]:
        """Full current follow list for ``handle``. Raises on fetch failure."""
        user_id = await self._client.get_user_id(handle)
        if not user_id:
            raise LookupError(f"unable to resolve user id for @{handle}")

        logger.info("Fetching following list for %s (ID: %s)...", handle, user_id)
        following: list[FollowedAccount] = []
        async for account in self._client.get_following(user_id, self.max_following):
            following.append(account)
            if len(following) >= self.max_following:
                break
            # Pace pagination to stay under platform rate limits
            if self.page_delay_every and len(following) % self.page_delay_every == 0:
                await asyncio.sleep(self.page_delay)

        logger.info("Retrieved %d following users for %s", len(following), handle)
        return following

    async def check_for_new_following(self, handle: str) -> list[FollowedAccount]:
        """Accounts ``handle`` follows that were not stored before this call.

        New edges are persisted before being returned. Any fetch or storage
        failure yields [] so the account is simply retried next cycle.
        """
        try:
            latest = await self.get_following(handle)
        except LoginError:
            raise
        except Exception as exc:
            logger.error("Error fetching follows for %s: %s", handle, exc)
            return []

        if not latest:
            logger.warning("Skipping %s, unable to fetch following list", handle)
            return []

        try:
            stored = await self._gateway.get_stored_following_ids(handle)
            seen: set[str] = set()
            new_follows = []
            for account in latest:
                if account.id in stored or account.id in seen:
                    continue
                seen.add(account.id)
                new_follows.append(account)

            if new_follows:
                await self._gateway.bulk_upsert_follow_edges(
                    FollowEdge(
                        observer_handle=handle,
                        followed_id=f.id,
                        followed_handle=f.username,
                        bio=f.bio,
                    )
                    for f in new_follows
                )
        except SQLAlchemyError as exc:
            logger.error("Failed to persist follows for %s: %s", handle, exc)
            return []

        for follow in new_follows:
            logger.info(
                "%s just followed %s (%s) - Bio: %s",
                handle, follow.username, follow.id, follow.bio,
            )
        return new_follows
