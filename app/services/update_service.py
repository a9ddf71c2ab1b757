import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field
from app.platforms import instagram
from app.services import token_service
from app.services.collector_service import collect_all_metrics
from app.services.metrics_service import save_metrics

logger = logging.getLogger("updater")

TOKEN_UPDATED = "updated"
TOKEN_SKIPPED = "skipped"
TOKEN_FAILED = "failed"

class UpdateSummary(BaseModel):
    started_at: datetime = Field(alias="startedAt")
    finished_at: Optional[datetime] = Field(None, alias="finishedAt")
    tokens: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

async def update_metrics_for_token(access_token: str, identifier: str) -> str:
    """
    Collect and store metrics for every business account behind one token.

    This is the error boundary for a token: whatever goes wrong is logged and
    reported as TOKEN_FAILED so the other tokens keep going.
    """
    try:
        logger.info(f"Processing token: {identifier}")
        account_ids = await instagram.get_instagram_business_account_ids(access_token)

        if not account_ids:
            logger.info(f"No Instagram business accounts found for token: {identifier}")
            return TOKEN_SKIPPED

        writes = []
        for account_id in account_ids:
            logger.info(f"Collecting metrics for account: {account_id} with token: {identifier}")
            snapshot = await collect_all_metrics(access_token, account_id, identifier)
            writes.append(asyncio.ensure_future(save_metrics(snapshot)))

        results = await asyncio.gather(*writes, return_exceptions=True)
        errors = [r for r in results if isinstance(r, Exception)]
        if errors:
            raise errors[0]

        logger.info(f"Completed metrics update for token: {identifier}")
        return TOKEN_UPDATED
    except Exception as e:
        logger.error(f"Error processing token {identifier}: {e}", exc_info=True)
        return TOKEN_FAILED

async def update_all_metrics() -> UpdateSummary:
    summary = UpdateSummary(startedAt=datetime.now(timezone.utc))
    logger.info(f"Starting metrics update at {summary.started_at.isoformat()}")

    tokens = await token_service.get_tokens()

    if not tokens:
        logger.info("No tokens found in database. Skipping metrics update.")
        summary.finished_at = datetime.now(timezone.utc)
        return summary

    # All tokens are processed in parallel
    outcomes = await asyncio.gather(*[
        update_metrics_for_token(access_token, identifier)
        for identifier, access_token in tokens.items()
    ])

    summary.tokens = len(outcomes)
    summary.succeeded = outcomes.count(TOKEN_UPDATED)
    summary.failed = outcomes.count(TOKEN_FAILED)
    summary.skipped = outcomes.count(TOKEN_SKIPPED)
    summary.finished_at = datetime.now(timezone.utc)
    logger.info(
        f"Metrics update completed at {summary.finished_at.isoformat()} "
        f"({summary.succeeded} updated, {summary.failed} failed, {summary.skipped} skipped)"
    )
    return summary
