"""Async API client that keeps the signed-in user and tokens."""

import json
from typing import Any

import httpx

from app.client.storage import TOKENS_KEY, USER_KEY, MemoryStorage, TokenStorage
from app.core.logging import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    """Non-2xx response, carrying the server's error message and code."""

    def __init__(self, status: int | None, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code


def _error_from_response(response: httpx.Response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return ApiError(response.status_code, "Request failed")
    return ApiError(
        response.status_code,
        error.get("message") or "Request failed",
        error.get("code"),
    )


class AuthSession:
    """Signed-in state on top of an ``httpx.AsyncClient``.

    The client's ``base_url`` should point at the API root (``.../api``).
    User and tokens are kept as the JSON the server returns, mirrored
    into ``storage`` so a later session can ``load()`` them back.
    """

    def __init__(self, client: httpx.AsyncClient, storage: TokenStorage | None = None) -> None:
        self.client = client
        self.storage: TokenStorage = storage or MemoryStorage()
        self.user: dict[str, Any] | None = None
        self.tokens: dict[str, Any] | None = None
        self.is_loading = True

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user) and bool(self.tokens)

    # ========================================================================
    # Local state
    # ========================================================================

    def load(self) -> None:
        """Restore user and tokens from storage; corrupt data is discarded."""
        try:
            raw_tokens = self.storage.get(TOKENS_KEY)
            raw_user = self.storage.get(USER_KEY)
            if raw_tokens and raw_user:
                tokens = json.loads(raw_tokens)
                user = json.loads(raw_user)
                if not isinstance(tokens, dict) or not isinstance(user, dict):
                    raise ValueError("stored auth data is not an object")
                self.tokens = tokens
                self.user = user
        except ValueError as e:
            logger.warning("Discarding stored auth data", error=str(e))
            self._clear()
        finally:
            self.is_loading = False

    def _save(self, user: dict[str, Any], tokens: dict[str, Any]) -> None:
        self.storage.set(USER_KEY, json.dumps(user))
        self.storage.set(TOKENS_KEY, json.dumps(tokens))
        self.user = user
        self.tokens = tokens

    def _clear(self) -> None:
        self.storage.remove(USER_KEY)
        self.storage.remove(TOKENS_KEY)
        self.user = None
        self.tokens = None

    def update_user(self, **changes: Any) -> None:
        """Patch the cached user; the server is not contacted."""
        if self.user is None:
            return
        self.user = {**self.user, **changes}
        self.storage.set(USER_KEY, json.dumps(self.user))

    # ========================================================================
    # Requests
    # ========================================================================

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> dict[str, Any]:
        """Send one API call; a failed call raises ``ApiError``.

        A 401 is reported as is. Callers decide whether to ``refresh_token``.
        """
        headers = {"Content-Type": "application/json"}
        if authenticated and self.tokens and self.tokens.get("accessToken"):
            headers["Authorization"] = f"Bearer {self.tokens['accessToken']}"

        response = await self.client.request(
            method, path, json=json_body, params=params, headers=headers
        )
        if response.is_error:
            raise _error_from_response(response)
        return response.json()

    async def login(self, identifier: str, password: str) -> None:
        self.is_loading = True
        try:
            data = await self.request(
                "POST",
                "/auth/login",
                json_body={"identifier": identifier, "password": password},
                authenticated=False,
            )
            self._save(data["user"], data["tokens"])
        finally:
            self.is_loading = False

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> None:
        body = {"username": username, "email": email, "password": password}
        if first_name is not None:
            body["firstName"] = first_name
        if last_name is not None:
            body["lastName"] = last_name

        self.is_loading = True
        try:
            data = await self.request("POST", "/auth/register", json_body=body, authenticated=False)
            self._save(data["user"], data["tokens"])
        finally:
            self.is_loading = False

    async def logout(self) -> None:
        """Tell the server to drop the refresh token, then forget everything locally."""
        try:
            if self.tokens and self.tokens.get("refreshToken"):
                await self.request(
                    "POST",
                    "/auth/logout",
                    json_body={"refreshToken": self.tokens["refreshToken"]},
                )
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Logout request failed", error=str(e))
        finally:
            self._clear()

    async def refresh_token(self) -> None:
        try:
            if not self.tokens or not self.tokens.get("refreshToken"):
                raise ApiError(None, "No refresh token available", "NO_REFRESH_TOKEN")
            data = await self.request(
                "POST",
                "/auth/refresh",
                json_body={"refreshToken": self.tokens["refreshToken"]},
                authenticated=False,
            )
            self.tokens = {**self.tokens, **data["tokens"]}
            self.storage.set(TOKENS_KEY, json.dumps(self.tokens))
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Token refresh failed", error=str(e))
            self._clear()
            raise

    # ========================================================================
    # Roadmaps
    # ========================================================================

    async def list_roadmaps(
        self,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        difficulty: str | None = None,
        tags: list[str] | None = None,
        public: bool = False,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if difficulty:
            params["difficulty"] = difficulty
        if tags:
            params["tags"] = ",".join(tags)
        if public:
            params["public"] = "true"
        return await self.request("GET", "/roadmaps", params=params)

    async def get_roadmap(self, roadmap_id: int) -> dict[str, Any]:
        data = await self.request("GET", f"/roadmaps/{roadmap_id}")
        return data["roadmap"]

    async def save_roadmap(
        self, roadmap: dict[str, Any], roadmap_id: int | None = None
    ) -> dict[str, Any]:
        """Create a roadmap, or replace ``roadmap_id`` when given."""
        if roadmap_id is None:
            data = await self.request("POST", "/roadmaps", json_body=roadmap)
        else:
            data = await self.request("PUT", f"/roadmaps/{roadmap_id}", json_body=roadmap)
        return data["roadmap"]

    async def delete_roadmap(self, roadmap_id: int) -> None:
        await self.request("DELETE", f"/roadmaps/{roadmap_id}")

    async def toggle_step(
        self, roadmap_id: int, step_id: str, is_completed: bool
    ) -> dict[str, Any]:
        data = await self.request(
            "POST",
            f"/roadmaps/{roadmap_id}/steps/{step_id}/complete",
            json_body={"isCompleted": is_completed},
        )
        return data["progress"]

    async def toggle_like(self, roadmap_id: int) -> dict[str, Any]:
        return await self.request("POST", f"/roadmaps/{roadmap_id}/like")
