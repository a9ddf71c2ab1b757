"""
Update trigger - called by Vercel Cron (or any external scheduler) in
stateless deployments, and usable on demand in long-running ones.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import JSONResponse
from app import config
from app.services.scheduler_service import schedule_follow_up
from app.services.update_service import update_all_metrics

logger = logging.getLogger("cron")

router = APIRouter(prefix="/api", tags=["Cron"])

def verify_cron_secret(request: Request):
    """Without a CRON_SECRET the endpoint is open; with one, Vercel Cron or the bearer secret is required."""
    if not config.CRON_SECRET:
        return True

    # Vercel Cron Jobs include this header
    if request.headers.get("x-vercel-cron"):
        return True

    auth_header = request.headers.get("authorization")
    return auth_header == f"Bearer {config.CRON_SECRET}"

@router.post("/update")
@router.get("/update")  # GET also works for Vercel Cron
async def trigger_update(request: Request):
    """Run one full metrics update and report how it went."""
    if not verify_cron_secret(request):
        raise HTTPException(status_code=401, detail="Unauthorized")

    logger.info("Triggered metrics update via API endpoint")
    try:
        summary = await update_all_metrics()
    except Exception as e:
        logger.error(f"Error updating metrics via API: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    message = "Metrics updated successfully"
    if config.IS_SERVERLESS and config.SELF_UPDATE_URL:
        schedule_follow_up(config.SELF_UPDATE_URL, config.UPDATE_INTERVAL_SECONDS)
        message += f". Next update requested in {config.UPDATE_INTERVAL_SECONDS} seconds (best effort)."

    return {
        "success": True,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "summary": summary.model_dump(by_alias=True, mode="json")
    }
