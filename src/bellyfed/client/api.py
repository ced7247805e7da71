"""HTTP client for the rankings API with cache and optimistic state."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import Any

import httpx

from bellyfed.core.errors import NotFoundError, UploadError, error_for_status

from .cache import MemoryRankingCache, RankingCache
from .state import AddRanking, DeleteRanking, RankingsStore, SetRankings, UpdateRanking

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class RankingsClient:
    """Talks to the rankings API on behalf of one signed-in user.

    Reads of the caller's ranking for a dish consult the per-dish cache
    first. Mutations update the store optimistically, and touch the cache
    only once the server has confirmed them.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        cache: RankingCache | None = None,
        store: RankingsStore | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.cache = cache or MemoryRankingCache()
        self.store = store or RankingsStore()
        self._transport = transport
        self._http = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def __enter__(self) -> RankingsClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a request and return its JSON body.

        Raises:
            BellyfedError: Subclass matching the HTTP status of an error reply.
            httpx.TimeoutException: If the call exceeds its timeout.
        """
        kwargs: dict[str, Any] = {"json": json, "params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = self._http.request(method, path, **kwargs)
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise error_for_status(
                response.status_code,
                body.get("error") or f"HTTP {response.status_code}",
                body.get("details"),
            )
        return response.json()

    def _known_dish_id(self, dish_slug: str) -> str | None:
        cached = self.cache.get(dish_slug)
        if cached is not None:
            return cached.get("dishId")
        for ranking in self.store.state.rankings:
            if ranking.get("dishSlug") == dish_slug:
                return ranking.get("dishId")
        return None

    # ------------------------------------------------------------------
    # Caller's rankings
    # ------------------------------------------------------------------

    def list_my_rankings(self, page: int = 1, limit: int | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page}
        if limit is not None:
            params["limit"] = limit
        body = self._request("GET", "/api/rankings/my", params=params)
        self.store.dispatch(SetRankings(tuple(body["rankings"])))
        return body

    def get_my_ranking(self, dish_slug: str, *, use_cache: bool = True) -> dict[str, Any] | None:
        """Return the caller's ranking for a dish, or None when unranked."""
        if use_cache:
            cached = self.cache.get(dish_slug)
            if cached is not None:
                return cached

        body = self._request("GET", f"/api/rankings/my/{dish_slug}")
        ranking = body.get("userRanking")
        if ranking is None:
            self.cache.invalidate(dish_slug)
        else:
            self.cache.set(dish_slug, ranking)
        return ranking

    def create_ranking(self, dish_slug: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a ranking; the store shows it before the server answers."""
        provisional = {**payload, "dishSlug": dish_slug}
        with self.store.optimistic(AddRanking(provisional)):
            body = self._request("POST", f"/api/rankings/my/{dish_slug}", json=payload)
            ranking = {**body["userRanking"], "dishSlug": dish_slug}
            self.store.dispatch(UpdateRanking(ranking))
        self.cache.set(dish_slug, body["userRanking"])
        return body

    def update_ranking(self, dish_slug: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Replace the caller's ranking for a dish."""
        dish_id = self._known_dish_id(dish_slug)
        guard = (
            self.store.optimistic(UpdateRanking({**payload, "dishId": dish_id}))
            if dish_id
            else nullcontext()
        )
        with guard:
            body = self._request("PUT", f"/api/rankings/my/{dish_slug}", json=payload)
            ranking = {**body["userRanking"], "dishSlug": dish_slug}
            if self.store.state.for_dish(ranking["dishId"]) is None:
                self.store.dispatch(AddRanking(ranking))
            else:
                self.store.dispatch(UpdateRanking(ranking))
        self.cache.set(dish_slug, body["userRanking"])
        return body

    def delete_ranking(self, dish_slug: str) -> dict[str, Any]:
        """Delete the caller's ranking; the cache entry goes once confirmed.

        A 404 means the server holds no such ranking, so the local copy is
        dropped before the error propagates.
        """
        dish_id = self._known_dish_id(dish_slug)
        guard = self.store.optimistic(DeleteRanking(dish_id)) if dish_id else nullcontext()
        try:
            with guard:
                body = self._request("DELETE", f"/api/rankings/my/{dish_slug}")
                self.store.dispatch(DeleteRanking(body["dishDetails"]["dishId"]))
        except NotFoundError:
            self.cache.invalidate(dish_slug)
            if dish_id:
                self.store.dispatch(DeleteRanking(dish_id))
            raise
        self.cache.invalidate(dish_slug)
        return body

    # ------------------------------------------------------------------
    # Community views
    # ------------------------------------------------------------------

    def get_local_rankings(
        self,
        dish_slug: str,
        country: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page}
        if country:
            params["country"] = country
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", f"/api/rankings/local/{dish_slug}", params=params)

    def get_global_rankings(self, dish_slug: str, page: int = 1, limit: int | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page}
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", f"/api/rankings/global/{dish_slug}", params=params)

    def get_user_rankings(self, user_id: str, page: int = 1, limit: int | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page}
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", f"/api/rankings/user/{user_id}", params=params)

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    def request_photo_upload(self, content_type: str) -> dict[str, Any]:
        """Return ``{uploadUrl, photoUrl, expiresIn}`` for a new photo."""
        return self._request(
            "POST",
            "/api/upload/ranking-photo",
            json={"contentType": content_type},
        )

    def upload_photo(
        self,
        data: bytes,
        content_type: str,
        *,
        timeout: float = 60.0,
    ) -> str:
        """Upload photo bytes straight to storage and return the public URL.

        Raises:
            UploadError: If storage rejects the upload or it times out.
        """
        slot = self.request_photo_upload(content_type)
        try:
            # Pre-signed URLs carry their own auth; no bearer header.
            with httpx.Client(transport=self._transport, timeout=timeout) as storage:
                response = storage.put(
                    slot["uploadUrl"],
                    content=data,
                    headers={"Content-Type": content_type},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Photo upload failed: %s", exc)
            raise UploadError("Photo upload failed") from exc
        return slot["photoUrl"]
