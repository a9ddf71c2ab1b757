"""
Records for the Instagram Graph API responses we consume.

Every field is optional because the Graph API omits fields it has no value
for (e.g. ``thumbnail_url`` on images). Unknown fields are kept so a stored
snapshot never loses what the API returned.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class GraphRecord(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class AccountDetails(GraphRecord):
    id: Optional[str] = None
    username: Optional[str] = None
    website: Optional[str] = None
    profile_picture_url: Optional[str] = None
    followers_count: Optional[int] = None
    follows_count: Optional[int] = None
    media_count: Optional[int] = None
    biography: Optional[str] = None


class InsightValue(GraphRecord):
    value: Optional[Any] = None
    end_time: Optional[str] = None


class InsightMetric(GraphRecord):
    id: Optional[str] = None
    name: Optional[str] = None
    period: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    values: List[InsightValue] = Field(default_factory=list)
    total_value: Optional[Dict[str, Any]] = None


class InsightsResponse(GraphRecord):
    """Account insights and follower demographics share this shape."""
    data: List[InsightMetric] = Field(default_factory=list)


class MediaChild(GraphRecord):
    id: Optional[str] = None
    media_type: Optional[str] = None
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class MediaChildren(GraphRecord):
    data: List[MediaChild] = Field(default_factory=list)


class MediaItem(GraphRecord):
    id: Optional[str] = None
    caption: Optional[str] = None
    media_type: Optional[str] = None
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    like_count: Optional[int] = None
    comments_count: Optional[int] = None
    children: Optional[MediaChildren] = None


class MediaList(GraphRecord):
    data: List[MediaItem] = Field(default_factory=list)


class PostInsights(GraphRecord):
    data: List[InsightMetric] = Field(default_factory=list)
    impressions_breakdown: List[InsightMetric] = Field(default_factory=list)


class CategorizedPost(GraphRecord):
    id: Optional[str] = None
    caption: Optional[str] = None
    media_type: Optional[str] = None
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    insights: PostInsights = Field(default_factory=PostInsights)
    # Only set for carousels, flattened from the API's {"data": [...]} wrapper
    children: Optional[List[MediaChild]] = None


class CategorizedPosts(GraphRecord):
    posts: List[CategorizedPost] = Field(default_factory=list)
    reels: List[CategorizedPost] = Field(default_factory=list)
    carousels: List[CategorizedPost] = Field(default_factory=list)


class TopPosts(GraphRecord):
    top_post_by_likes: Optional[MediaItem] = Field(None, alias="topPostByLikes")
    top_post_by_comments: Optional[MediaItem] = Field(None, alias="topPostByComments")
    max_likes: int = Field(0, alias="maxLikes")
    max_comments: int = Field(0, alias="maxComments")


class GraphUser(GraphRecord):
    id: Optional[str] = None


class InstagramBusinessAccount(GraphRecord):
    id: Optional[str] = None


class PageAccount(GraphRecord):
    id: Optional[str] = None
    instagram_business_account: Optional[InstagramBusinessAccount] = None


class PageAccounts(GraphRecord):
    data: List[PageAccount] = Field(default_factory=list)


class OAuthToken(GraphRecord):
    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
