from unittest.mock import AsyncMock

import pytest

from app.models.graph import AccountDetails, CategorizedPosts, InsightsResponse, TopPosts
from app.platforms import instagram
from app.services.collector_service import collect_all_metrics


@pytest.fixture
def fetches(monkeypatch):
    mocks = {
        "fetch_account_details": AsyncMock(return_value=AccountDetails(username="acme")),
        "fetch_account_insights": AsyncMock(return_value=InsightsResponse()),
        "fetch_instagram_posts": AsyncMock(return_value=CategorizedPosts()),
        "fetch_top_posts": AsyncMock(return_value=TopPosts(maxLikes=4)),
        "fetch_follower_demographics": AsyncMock(return_value=None),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(instagram, name, mock)
    return mocks


@pytest.mark.asyncio
async def test_snapshot_combines_every_fetch(fetches):
    snapshot = await collect_all_metrics("tok", "ig1", "token_0")

    assert snapshot.account_id == "ig1"
    assert snapshot.token == "tok"
    assert snapshot.token_identifier == "token_0"
    assert snapshot.account_details.username == "acme"
    assert snapshot.top_posts.max_likes == 4
    assert snapshot.error is None
    for mock in fetches.values():
        mock.assert_awaited_once_with("tok", "ig1")


@pytest.mark.asyncio
async def test_failed_fetch_leaves_only_that_field_empty(fetches):
    snapshot = await collect_all_metrics("tok", "ig1", "token_0")

    assert snapshot.follower_demographics is None
    assert snapshot.posts is not None


@pytest.mark.asyncio
async def test_unexpected_exception_degrades_whole_snapshot(fetches):
    fetches["fetch_account_insights"].side_effect = RuntimeError("unexpected")

    snapshot = await collect_all_metrics("tok", "ig1", "token_0")

    assert snapshot.error == "unexpected"
    assert snapshot.account_id == "ig1"
    assert snapshot.account_details is None
    assert snapshot.posts is None
    assert snapshot.top_posts is None
