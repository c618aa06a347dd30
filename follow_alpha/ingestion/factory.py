"""Factory for creating the right Twitter client based on config."""

import logging

from follow_alpha.config import Settings
from follow_alpha.ingestion.base import SocialClient

logger = logging.getLogger(__name__)


def create_social_client(settings: Settings) -> SocialClient:
    """Create the configured client (twikit or official API)."""
    if settings.twitter_provider == "twikit":
        from follow_alpha.ingestion.twikit_client import TwikitClient
        logger.info("Using twikit (free scraper) for Twitter data")
        return TwikitClient(
            username=settings.twitter_username,
            email=settings.twitter_email,
            password=settings.twitter_password,
            cookies_file=settings.twikit_cookies_file,
            capsolver_api_key=settings.capsolver_api_key,
            login_retries=settings.login_retries,
        )
    else:
        from follow_alpha.ingestion.twitter import TwitterApiClient
        logger.info("Using official X API (paid) for Twitter data")
        return TwitterApiClient(settings.twitter_bearer_token)
