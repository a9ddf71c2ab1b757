import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List
from pymongo.errors import PyMongoError
from app import config
from app.db import database, DatabaseError
from app.models.graph import OAuthToken
from app.models.token import Token
from app.utils.logger import mask_token

logger = logging.getLogger("tokens")

async def _read_token_map() -> Dict[str, str]:
    await database.connect()
    tokens = await Token.find_all().to_list()
    return {f"token_{index}": token.access_token for index, token in enumerate(tokens)}

async def get_tokens() -> Dict[str, str]:
    """
    All stored access tokens keyed by identifier (token_0, token_1, ...).

    A storage failure is retried once after a short delay. If that fails too
    an empty mapping is returned, which skips the update cycle.
    """
    try:
        token_map = await _read_token_map()
        logger.info(f"Retrieved {len(token_map)} tokens from MongoDB")
        return token_map
    except (PyMongoError, DatabaseError) as e:
        logger.error(f"Error retrieving tokens from MongoDB: {e}")

    logger.info(f"Retrying token retrieval after {config.TOKEN_RETRY_DELAY_SECONDS} seconds...")
    await asyncio.sleep(config.TOKEN_RETRY_DELAY_SECONDS)
    try:
        token_map = await _read_token_map()
        logger.info(f"Retrieved {len(token_map)} tokens from MongoDB on retry")
        return token_map
    except (PyMongoError, DatabaseError) as e:
        logger.error(f"Error retrieving tokens on retry: {e}")
        return {}

async def save_token(token_data: OAuthToken) -> bool:
    """Store a token unless the same access token is already known. Returns True if inserted."""
    await database.connect()
    existing = await Token.find_one({"access_token": token_data.access_token})
    if existing:
        return False

    token = Token(
        access_token=token_data.access_token,
        token_type=token_data.token_type,
        expires_in=token_data.expires_in
    )
    await token.insert()
    logger.info(f"Token {mask_token(token.access_token)} saved to database with ID: {token.id}")
    return True

async def touch_token(access_token: str):
    await Token.find_one({"access_token": access_token}).update(
        {"$set": {"last_updated": datetime.now(timezone.utc)}}
    )

async def list_tokens() -> List[Token]:
    await database.connect()
    return await Token.find_all().to_list()
