from datetime import datetime, timezone
from typing import Optional
from beanie import Document
from pydantic import Field

class Token(Document):
    # Field names match the OAuth token response so it can be stored as-is
    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "tokens"
        indexes = ["access_token"]
