import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from app import config
from app.db import ensure_db
from app.services import metrics_service, token_service
from app.services.scheduler_service import estimate_next_update, metrics_scheduler

logger = logging.getLogger("metrics")

router = APIRouter(prefix="/api", tags=["Metrics"], dependencies=[Depends(ensure_db)])

@router.get("/metrics")
async def get_all_metrics():
    """Latest snapshot for every account."""
    return await metrics_service.get_all_latest_metrics()

@router.get("/metrics/{accountId}")
async def get_account_metrics(accountId: str):
    logger.info(f"Fetching metrics for accountId: {accountId}")
    metric = await metrics_service.get_latest_metrics(accountId)
    if not metric:
        return JSONResponse(status_code=404, content={"error": "No metrics found for this accountId"})
    return metric

@router.get("/status")
async def get_status():
    tokens = await token_service.list_tokens()
    metrics_count = await metrics_service.count_metrics()

    next_update = metrics_scheduler.next_run_at
    if next_update is None:
        next_update = estimate_next_update(
            [t.last_updated for t in tokens], config.UPDATE_INTERVAL_SECONDS
        )

    return {
        "status": "running",
        "tokens": len(tokens),
        "tokenDetails": [
            {
                "id": str(t.id),
                "expiresIn": t.expires_in,
                "lastUpdated": t.last_updated
            }
            for t in tokens
        ],
        "metrics": metrics_count,
        "nextUpdate": next_update,
        "environment": "Vercel" if config.IS_SERVERLESS else "Server"
    }
