from datetime import datetime, timezone
from typing import Optional
from beanie import Document
from pydantic import BaseModel, Field
from .graph import AccountDetails, CategorizedPosts, InsightsResponse, TopPosts

class AccountSnapshot(BaseModel):
    """One collection pass for an (account, token) pair, before it is stored."""
    account_id: str = Field(alias="accountId")
    token: str
    token_identifier: Optional[str] = Field(None, alias="tokenIdentifier")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    account_details: Optional[AccountDetails] = Field(None, alias="accountDetails")
    account_insights: Optional[InsightsResponse] = Field(None, alias="accountInsights")
    posts: Optional[CategorizedPosts] = None
    top_posts: Optional[TopPosts] = Field(None, alias="topPosts")
    follower_demographics: Optional[InsightsResponse] = Field(None, alias="followerDemographics")

    error: Optional[str] = None

    def stored_fields(self) -> dict:
        """Fields replaced on every upsert; the (accountId, token) key is not included."""
        return self.model_dump(
            by_alias=True,
            exclude={"account_id", "token", "token_identifier"}
        )

class Metric(Document):
    account_id: str = Field(alias="accountId")
    token: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    account_details: Optional[AccountDetails] = Field(None, alias="accountDetails")
    account_insights: Optional[InsightsResponse] = Field(None, alias="accountInsights")
    posts: Optional[CategorizedPosts] = None
    top_posts: Optional[TopPosts] = Field(None, alias="topPosts")
    follower_demographics: Optional[InsightsResponse] = Field(None, alias="followerDemographics")

    error: Optional[str] = None

    class Settings:
        name = "metrics"
        indexes = [
            [("accountId", 1), ("token", 1)],
            "timestamp"
        ]
