import asyncio
import logging
from app.models.metric import AccountSnapshot
from app.platforms import instagram

logger = logging.getLogger("collector")

async def collect_all_metrics(access_token: str, account_id: str, token_identifier: str) -> AccountSnapshot:
    """
    Runs every Instagram fetch for one account concurrently and assembles a snapshot.

    Individual fetches already turn API failures into None/empty values. Anything
    that still escapes aborts the whole snapshot, which then only carries the error.
    """
    try:
        (
            account_details,
            account_insights,
            posts,
            top_posts,
            follower_demographics
        ) = await asyncio.gather(
            instagram.fetch_account_details(access_token, account_id),
            instagram.fetch_account_insights(access_token, account_id),
            instagram.fetch_instagram_posts(access_token, account_id),
            instagram.fetch_top_posts(access_token, account_id),
            instagram.fetch_follower_demographics(access_token, account_id)
        )
    except Exception as e:
        logger.error(
            f"Error collecting metrics for account {account_id} with token {token_identifier}: {e}",
            exc_info=True
        )
        return AccountSnapshot(
            accountId=account_id,
            token=access_token,
            tokenIdentifier=token_identifier,
            error=str(e) or "Unknown error occurred"
        )

    return AccountSnapshot(
        accountId=account_id,
        token=access_token,
        tokenIdentifier=token_identifier,
        accountDetails=account_details,
        accountInsights=account_insights,
        posts=posts,
        topPosts=top_posts,
        followerDemographics=follower_demographics
    )
