import httpx
import logging
import time
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from pymongo.errors import PyMongoError
from app import config
from app.db import ensure_db, DatabaseError
from app.platforms import instagram
from app.services import token_service
from app.services.update_service import update_all_metrics, update_metrics_for_token

logger = logging.getLogger("auth")

router = APIRouter(tags=["Auth"], dependencies=[Depends(ensure_db)])

def _upstream_error(error: Exception):
    """Error payload from the Graph API when there is one, else the message."""
    response = getattr(error, "response", None)
    if response is not None:
        try:
            return response.json()
        except ValueError:
            return response.text
    return str(error)

@router.get("/connect")
async def connect_instagram():
    """
    Returns the Facebook OAuth dialog URL for granting Instagram insights access.
    """
    state = str(uuid.uuid4())
    url = await instagram.get_auth_url(
        config.CLIENT_ID, config.REDIRECT_URI, state, config.INSTAGRAM_SCOPES
    )
    return {"authUrl": url}

@router.get("/callback")
async def oauth_callback(code: Optional[str] = Query(None)):
    """
    Handle the OAuth redirection: exchange the code, store the token and
    collect metrics for it right away.
    """
    if not code:
        return JSONResponse(status_code=400, content={"success": False, "message": "No code provided"})

    try:
        token_data = await instagram.exchange_code(
            client_id=config.CLIENT_ID,
            client_secret=config.CLIENT_SECRET,
            redirect_uri=config.REDIRECT_URI,
            code=code
        )
    except (httpx.HTTPError, ValueError) as e:
        error = _upstream_error(e)
        logger.error(f"Error retrieving access token: {error}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Error retrieving access token",
                "error": error,
                "code": code
            }
        )

    try:
        if await token_service.save_token(token_data):
            await update_metrics_for_token(token_data.access_token, f"new_token_{int(time.time() * 1000)}")
            await update_all_metrics()
            logger.info("Metrics updated after adding new user.")
        else:
            logger.info("Token already exists in database, skipping save")
    except (PyMongoError, DatabaseError) as e:
        logger.error(f"MongoDB save error: {e}", exc_info=True)

    return RedirectResponse(url=config.POST_AUTH_REDIRECT_URL)
