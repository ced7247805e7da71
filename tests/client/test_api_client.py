# mypy: ignore-errors
"""Tests for the rankings HTTP client, its cache and optimistic store."""

import json

import httpx
import pytest

from bellyfed.client import MemoryRankingCache, RankingsClient
from bellyfed.core.errors import (
    BellyfedError,
    ConflictError,
    NotFoundError,
    UploadError,
    ValidationError,
)

DISH_DETAILS = {"dishId": "dish-1", "slug": "nasi-lemak", "name": "Nasi Lemak"}
STATS = {"totalRankings": 1, "averageRank": 2.0, "ranks": {}, "tasteStatuses": {}}


def _server_ranking(**fields):
    ranking = {
        "rankingId": "ranking-1",
        "userId": "user-alice",
        "dishId": "dish-1",
        "restaurantId": "rest-1",
        "dishType": "Malaysian",
        "rank": 2,
        "tasteStatus": None,
        "notes": "",
        "photoUrls": [],
    }
    ranking.update(fields)
    return ranking


def _client(handler, cache=None) -> RankingsClient:
    return RankingsClient(
        "http://api.test",
        "token-123",
        cache=cache or MemoryRankingCache(),
        transport=httpx.MockTransport(handler),
    )


def test_get_my_ranking_uses_cache() -> None:
    """A second read within the TTL is served without a request."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        assert request.headers["Authorization"] == "Bearer token-123"
        return httpx.Response(
            200,
            json={"userRanking": _server_ranking(), "dishDetails": DISH_DETAILS, "rankingStats": STATS},
        )

    with _client(handler) as client:
        first = client.get_my_ranking("nasi-lemak")
        second = client.get_my_ranking("nasi-lemak")

    assert first == second
    assert len(calls) == 1


def test_get_my_ranking_unranked_is_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"userRanking": None, "dishDetails": DISH_DETAILS, "rankingStats": STATS},
        )

    with _client(handler) as client:
        assert client.get_my_ranking("nasi-lemak") is None
        assert client.cache.get("nasi-lemak") is None


def test_create_is_optimistic_and_caches_after_success() -> None:
    """The store shows the ranking while the request is in flight."""
    holder = {}

    def handler(request: httpx.Request) -> httpx.Response:
        client = holder["client"]
        assert client.store.state.for_dish("dish-1") is not None
        assert client.cache.get("nasi-lemak") is None
        return httpx.Response(
            201,
            json={"userRanking": _server_ranking(), "dishDetails": DISH_DETAILS, "rankingStats": STATS},
        )

    with _client(handler) as client:
        holder["client"] = client
        client.create_ranking(
            "nasi-lemak",
            {"dishId": "dish-1", "restaurantId": "rest-1", "rank": 2},
        )

        stored = client.store.state.for_dish("dish-1")
        assert stored["rankingId"] == "ranking-1"
        assert stored["dishSlug"] == "nasi-lemak"
        assert client.cache.get("nasi-lemak")["rankingId"] == "ranking-1"


def test_rejected_create_rolls_back() -> None:
    """A conflict leaves the store as it was and the cache untouched."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"error": "Ranking already exists for this dish"})

    with _client(handler) as client:
        with pytest.raises(ConflictError, match="already exists"):
            client.create_ranking(
                "nasi-lemak",
                {"dishId": "dish-1", "restaurantId": "rest-1", "rank": 2},
            )

        assert client.store.state.rankings == ()
        assert client.cache.get("nasi-lemak") is None


def test_delete_invalidates_cache_after_success() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(
                200,
                json={"userRanking": _server_ranking(), "dishDetails": DISH_DETAILS, "rankingStats": STATS},
            )
        return httpx.Response(
            200,
            json={"success": True, "dishDetails": DISH_DETAILS, "rankingStats": STATS},
        )

    with _client(handler) as client:
        client.get_my_ranking("nasi-lemak")
        assert client.cache.get("nasi-lemak") is not None

        client.delete_ranking("nasi-lemak")

        assert client.cache.get("nasi-lemak") is None
        assert client.store.state.for_dish("dish-1") is None


def test_failed_delete_keeps_cache_and_state() -> None:
    """A server error restores the optimistic removal and keeps the cache."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/rankings/my":
            return httpx.Response(
                200,
                json={
                    "rankings": [{**_server_ranking(), "dishSlug": "nasi-lemak"}],
                    "pagination": {"total": 1, "page": 1, "limit": 20, "pages": 1},
                },
            )
        if request.method == "GET":
            return httpx.Response(
                200,
                json={"userRanking": _server_ranking(), "dishDetails": DISH_DETAILS, "rankingStats": STATS},
            )
        return httpx.Response(500, json={"error": "Internal server error"})

    with _client(handler) as client:
        client.list_my_rankings()
        client.get_my_ranking("nasi-lemak")

        with pytest.raises(BellyfedError) as exc_info:
            client.delete_ranking("nasi-lemak")

        assert exc_info.value.status_code == 500
        assert client.store.state.for_dish("dish-1") is not None
        assert client.cache.get("nasi-lemak") is not None


def test_delete_of_missing_ranking_drops_local_copy() -> None:
    """A 404 on delete clears the stale cache entry and store row."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/rankings/my":
            return httpx.Response(
                200,
                json={
                    "rankings": [{**_server_ranking(), "dishSlug": "nasi-lemak"}],
                    "pagination": {"total": 1, "page": 1, "limit": 20, "pages": 1},
                },
            )
        if request.method == "GET":
            return httpx.Response(
                200,
                json={"userRanking": _server_ranking(), "dishDetails": DISH_DETAILS, "rankingStats": STATS},
            )
        return httpx.Response(404, json={"error": "Ranking not found"})

    with _client(handler) as client:
        client.list_my_rankings()
        client.get_my_ranking("nasi-lemak")

        with pytest.raises(NotFoundError, match="Ranking not found"):
            client.delete_ranking("nasi-lemak")

        assert client.cache.get("nasi-lemak") is None
        assert client.store.state.for_dish("dish-1") is None
        assert client.store.confirmed.for_dish("dish-1") is None


def test_update_refreshes_cache() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "userRanking": _server_ranking(rank=None, tasteStatus=body["tasteStatus"]),
                "dishDetails": DISH_DETAILS,
                "rankingStats": STATS,
            },
        )

    with _client(handler) as client:
        client.update_ranking("nasi-lemak", {"tasteStatus": "ACCEPTABLE"})

        assert client.cache.get("nasi-lemak")["tasteStatus"] == "ACCEPTABLE"
        assert client.store.state.for_dish("dish-1")["tasteStatus"] == "ACCEPTABLE"


def test_error_envelope_maps_to_typed_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "Invalid request", "details": "body.rank: bad"})

    with _client(handler) as client:
        with pytest.raises(ValidationError) as exc_info:
            client.get_global_rankings("nasi-lemak", page=1, limit=500)

    assert exc_info.value.details == "body.rank: bad"


def test_community_queries_send_paging() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json={})

    with _client(handler) as client:
        client.get_local_rankings("nasi-lemak", country="sg", page=2, limit=10)
        client.get_user_rankings("user-bob")

    assert seen[0].path == "/api/rankings/local/nasi-lemak"
    assert seen[0].params["country"] == "sg"
    assert seen[0].params["page"] == "2"
    assert seen[0].params["limit"] == "10"
    assert seen[1].path == "/api/rankings/user/user-bob"


def test_upload_photo_puts_to_presigned_url() -> None:
    """The photo goes to storage directly and its public URL is returned."""
    uploads = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/upload/ranking-photo":
            assert json.loads(request.content) == {"contentType": "image/jpeg"}
            return httpx.Response(
                200,
                json={
                    "uploadUrl": "https://storage.test/put/abc",
                    "photoUrl": "https://photos.bellyfed.com/rankings/user-alice/abc.jpg",
                    "expiresIn": 300,
                },
            )
        uploads.append(request)
        return httpx.Response(200)

    with _client(handler) as client:
        photo_url = client.upload_photo(b"\xff\xd8jpeg", "image/jpeg")

    assert photo_url == "https://photos.bellyfed.com/rankings/user-alice/abc.jpg"
    assert uploads[0].method == "PUT"
    assert uploads[0].content == b"\xff\xd8jpeg"
    assert "Authorization" not in uploads[0].headers


def test_upload_photo_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/upload/ranking-photo":
            return httpx.Response(
                200,
                json={"uploadUrl": "https://storage.test/put/abc", "photoUrl": "x", "expiresIn": 300},
            )
        return httpx.Response(403)

    with _client(handler) as client:
        with pytest.raises(UploadError):
            client.upload_photo(b"data", "image/jpeg")
