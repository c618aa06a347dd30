"""Mark signals as tweeted when our posting account has mentioned them."""

import logging

from follow_alpha.errors import LoginError
from follow_alpha.ingestion.base import SocialClient
from follow_alpha.storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


async def check_and_mark_tweeted(
    client: SocialClient,
    gateway: PersistenceGateway,
    handle: str,
    count: int = 3,
    unposted_limit: int = 500,
) -> list[str]:
    """Scan ``handle``'s last ``count`` posts for usernames of unposted signals.

    Every matching signal is flipped to tweeted. Returns the token mints marked.
    """
    if not handle:
        return []

    try:
        user_id = await client.get_user_id(handle)
        if not user_id:
            logger.warning("Cannot reconcile tweets: unknown account @%s", handle)
            return []
        posts = await client.get_recent_posts(user_id, count)
        if not posts:
            logger.info("No recent tweets found for @%s", handle)
            return []

        unposted = await gateway.get_unposted_signals(unposted_limit)
        if not unposted:
            logger.info("No unposted alpha signals to check against tweets")
            return []

        marked: list[str] = []
        for post in posts:
            text = post.text.lower()
            for signal in unposted:
                if signal.token_mint in marked:
                    continue
                if signal.username and signal.username.lower() in text:
                    await gateway.mark_signal_tweeted(signal.token_mint)
                    marked.append(signal.token_mint)
                    logger.info(
                        "Marked alpha signal for @%s as tweeted based on tweet: %r",
                        signal.username, post.text[:50],
                    )
    except LoginError:
        raise
    except Exception as exc:
        logger.error("Error checking and marking tweeted alpha signals: %s", exc)
        return []

    if marked:
        logger.info("Marked %d alpha signals as tweeted", len(marked))
    return marked
