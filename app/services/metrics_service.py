import logging
from datetime import datetime, timezone
from typing import List, Optional
from app.db import database
from app.models.metric import AccountSnapshot, Metric
from app.services import token_service
from app.utils.logger import mask_token

logger = logging.getLogger("metrics")

async def save_metrics(snapshot: AccountSnapshot) -> None:
    """
    Replace the stored snapshot for (accountId, token) and mark the token as used.

    Errors are not caught here; the caller decides what a failed write means.
    """
    await database.connect()

    fields = snapshot.stored_fields()
    fields["timestamp"] = datetime.now(timezone.utc)

    await Metric.find_one({"accountId": snapshot.account_id, "token": snapshot.token}).upsert(
        {"$set": fields},
        on_insert=Metric.model_validate({
            "accountId": snapshot.account_id,
            "token": snapshot.token,
            **fields
        })
    )
    logger.info(
        f"Metrics updated/inserted for accountId: {snapshot.account_id} "
        f"with token: {mask_token(snapshot.token)}"
    )

    if snapshot.token:
        await token_service.touch_token(snapshot.token)

async def get_latest_metrics(account_id: str) -> Optional[Metric]:
    await database.connect()
    return await Metric.find({"accountId": account_id}).sort("-timestamp").first_or_none()

async def get_all_latest_metrics() -> List[Metric]:
    """Newest snapshot of every account that has one."""
    await database.connect()
    account_ids = await Metric.get_motor_collection().distinct("accountId")

    all_metrics = []
    for account_id in account_ids:
        metric = await get_latest_metrics(account_id)
        if metric:
            all_metrics.append(metric)
    return all_metrics

async def count_metrics() -> int:
    await database.connect()
    return await Metric.find_all().count()
