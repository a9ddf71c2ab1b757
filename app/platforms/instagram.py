import httpx
import logging
import urllib.parse
from typing import List, Optional, Tuple
from app import config
from app.models.graph import (
    AccountDetails,
    CategorizedPost,
    CategorizedPosts,
    GraphUser,
    InsightsResponse,
    MediaChild,
    MediaItem,
    MediaList,
    OAuthToken,
    PageAccounts,
    PostInsights,
    TopPosts,
)

logger = logging.getLogger("instagram")

ACCOUNT_FIELDS = "username,website,profile_picture_url,followers_count,follows_count,media_count,biography"
ACCOUNT_INSIGHT_METRICS = "impressions,reach,follower_count"
POST_FIELDS = "id,caption,media_type,media_url,thumbnail_url,children{id,media_type,media_url,thumbnail_url}"
POST_INSIGHT_METRICS = "impressions,reach,saved,likes,comments,shares"
TOP_POST_FIELDS = "id,caption,media_type,media_url,thumbnail_url,like_count,comments_count"

# Errors that mean "this call failed" rather than a bug: transport/status
# failures, undecodable JSON and records that fail validation.
FETCH_ERRORS = (httpx.HTTPError, ValueError)


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)

async def _graph_get(client: httpx.AsyncClient, path: str, access_token: str, **params) -> dict:
    res = await client.get(
        f"{config.GRAPH_API_BASE}/{path}",
        params={**params, "access_token": access_token}
    )
    res.raise_for_status()
    return res.json()

def describe_error(error: Exception) -> str:
    """
    Loggable text for a failed Graph call. Request URLs carry the access
    token, so status errors are reduced to the status code and the Graph
    error message.
    """
    if isinstance(error, httpx.HTTPStatusError):
        message = f"Graph API returned {error.response.status_code}"
        try:
            graph_error = error.response.json().get("error") or {}
            if graph_error.get("message"):
                message += f": {graph_error['message']}"
        except (ValueError, AttributeError):
            pass
        return message
    return str(error)

async def get_auth_url(client_id: str, redirect_uri: str, state: str, scopes: list):
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "state": state,
        "response_type": "code",
        "scope": ",".join(scopes)
    }
    return f"https://www.facebook.com/{config.GRAPH_API_VERSION}/dialog/oauth?{urllib.parse.urlencode(params)}"

async def exchange_code(client_id: str, client_secret: str, redirect_uri: str, code: str) -> OAuthToken:
    async with _client() as client:
        res = await client.get(
            f"{config.GRAPH_API_BASE}/oauth/access_token",
            params={
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri,
                "code": code
            }
        )
        res.raise_for_status()
        return OAuthToken.model_validate(res.json())

async def get_instagram_business_account_ids(access_token: str) -> List[str]:
    """Every Instagram business account linked to the pages this token can see."""
    try:
        async with _client() as client:
            user = GraphUser.model_validate(await _graph_get(client, "me", access_token, fields="id"))
            pages = PageAccounts.model_validate(
                await _graph_get(client, f"{user.id}/accounts", access_token, fields="instagram_business_account")
            )
    except FETCH_ERRORS as e:
        logger.error(f"Error getting Instagram Business Account ID: {describe_error(e)}")
        return []

    account_ids = [
        page.instagram_business_account.id
        for page in pages.data
        if page.instagram_business_account and page.instagram_business_account.id
    ]
    if not account_ids:
        logger.warning("No Instagram Business Accounts found")
    return account_ids

async def fetch_account_details(access_token: str, account_id: str) -> Optional[AccountDetails]:
    try:
        async with _client() as client:
            data = await _graph_get(client, account_id, access_token, fields=ACCOUNT_FIELDS)
        return AccountDetails.model_validate(data)
    except FETCH_ERRORS as e:
        logger.error(f"Error fetching Instagram account details for {account_id}: {describe_error(e)}")
        return None

async def fetch_account_insights(access_token: str, account_id: str) -> Optional[InsightsResponse]:
    try:
        async with _client() as client:
            data = await _graph_get(
                client, f"{account_id}/insights", access_token,
                metric=ACCOUNT_INSIGHT_METRICS, period="day"
            )
        return InsightsResponse.model_validate(data)
    except FETCH_ERRORS as e:
        logger.error(f"Error fetching Instagram account insights for {account_id}: {describe_error(e)}")
        return None

async def fetch_follower_demographics(access_token: str, account_id: str) -> Optional[InsightsResponse]:
    try:
        async with _client() as client:
            data = await _graph_get(
                client, f"{account_id}/insights", access_token,
                metric="follower_demographics",
                period="lifetime",
                metric_type="total_value",
                breakdown="country"
            )
        return InsightsResponse.model_validate(data)
    except FETCH_ERRORS as e:
        logger.error(f"Error fetching follower demographics for {account_id}: {describe_error(e)}")
        return None

async def fetch_post_insights(client: httpx.AsyncClient, access_token: str, post_id: str) -> PostInsights:
    """Standard insights plus the impressions-by-surface breakdown, or an empty stub."""
    try:
        insights = await _graph_get(client, f"{post_id}/insights", access_token, metric=POST_INSIGHT_METRICS)
        breakdown = await _graph_get(
            client, f"{post_id}/insights", access_token,
            metric="impressions", breakdown="surface_type"
        )
        return PostInsights.model_validate({
            **insights,
            "impressions_breakdown": breakdown.get("data") or []
        })
    except FETCH_ERRORS as e:
        logger.error(f"Error fetching insights for post {post_id}: {describe_error(e)}")
        return PostInsights()

def categorize_post(post: MediaItem, insights: PostInsights) -> Tuple[str, CategorizedPost]:
    """
    Decide which bucket a post belongs to. First match wins:
    carousel albums with children, then videos with a thumbnail (reels),
    then everything else.
    """
    fields = post.model_dump(exclude={"children", "like_count", "comments_count"}, exclude_none=True)

    if post.media_type == "CAROUSEL_ALBUM" and post.children is not None:
        children = [
            MediaChild(
                id=child.id,
                media_type=child.media_type,
                media_url=child.media_url,
                thumbnail_url=child.thumbnail_url
            )
            for child in post.children.data
        ]
        return "carousels", CategorizedPost(**fields, insights=insights, children=children)

    if post.media_type == "VIDEO" and post.thumbnail_url:
        return "reels", CategorizedPost(**fields, insights=insights)

    return "posts", CategorizedPost(**fields, insights=insights)

async def fetch_instagram_posts(access_token: str, account_id: str) -> Optional[CategorizedPosts]:
    try:
        async with _client() as client:
            media = MediaList.model_validate(
                await _graph_get(client, f"{account_id}/media", access_token, fields=POST_FIELDS)
            )

            result = CategorizedPosts()
            # Insights are fetched one post at a time
            for post in media.data:
                insights = await fetch_post_insights(client, access_token, post.id)
                bucket, categorized = categorize_post(post, insights)
                getattr(result, bucket).append(categorized)
        return result
    except FETCH_ERRORS as e:
        logger.error(f"Error fetching Instagram posts for {account_id}: {describe_error(e)}")
        return None

def find_top_posts(posts: List[MediaItem]) -> TopPosts:
    """Most liked and most commented post. Ties keep the earlier post."""
    top = TopPosts()
    for post in posts:
        likes = post.like_count or 0
        comments = post.comments_count or 0
        if likes > top.max_likes:
            top.max_likes = likes
            top.top_post_by_likes = post
        if comments > top.max_comments:
            top.max_comments = comments
            top.top_post_by_comments = post
    return top

async def fetch_top_posts(access_token: str, account_id: str) -> TopPosts:
    try:
        async with _client() as client:
            media = MediaList.model_validate(
                await _graph_get(client, f"{account_id}/media", access_token, fields=TOP_POST_FIELDS)
            )
    except FETCH_ERRORS as e:
        logger.error(f"Error fetching top posts for {account_id}: {describe_error(e)}")
        return TopPosts()

    return find_top_posts(media.data)
