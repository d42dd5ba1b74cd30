"""Supabase implementation of StorageAdapter.

Talks to the project's PostgREST endpoint (`<supabase_url>/rest/v1`). Every
request is scoped to the user id the adapter was built for: reads and deletes
filter on `user_id`, writes stamp it on the row.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from sermonai_storage.codec import (
    profile_from_row,
    profile_to_row,
    project_from_row,
    project_to_row,
    prompt_from_row,
    prompt_to_row,
    series_from_row,
    series_to_row,
)
from sermonai_storage.errors import BackendUnavailableError, RemoteRequestError
from sermonai_storage.types import (
    CustomPrompt,
    SermonProject,
    SermonSeries,
    StorageConfig,
    StorageType,
    TheologicalProfile,
    default_profile,
)

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "sermon_projects"
SERIES_TABLE = "sermon_series"
PROFILES_TABLE = "theological_profiles"
CUSTOM_PROMPTS_TABLE = "custom_prompts"

# Supabase caps a response at 1000 rows unless the project raises max_rows.
PAGE_SIZE = 1000


class SupabaseStorageAdapter:
    """Cloud storage for one signed-in user.

    Failures are never masked: an unreachable endpoint raises
    BackendUnavailableError and a rejected or unreadable response raises
    RemoteRequestError. Only a missing profile row is answered with the
    default profile.
    """

    storage_type = StorageType.SUPABASE
    page_size = PAGE_SIZE

    def __init__(
        self,
        user_id: str,
        config: StorageConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        access_token: str | None = None,
    ):
        """Create the adapter (call `init()` before use).

        Args:
            user_id: Opaque id of the signed-in user; scopes every request.
            config: Storage configuration; `supabase_url` is required.
            transport: Optional httpx transport, mainly for tests.
            access_token: The user's bearer token. Defaults to
                `config.access_token`, then to the anon key.
        """
        if not config.supabase_url:
            raise ValueError("supabase_url is required for the Supabase adapter")
        if not user_id:
            raise ValueError("user_id is required for the Supabase adapter")

        self.user_id = user_id
        self._config = config
        self._transport = transport
        self._access_token = access_token or config.access_token
        self._client: httpx.AsyncClient | None = None
        self._open_lock = asyncio.Lock()

    def set_access_token(self, access_token: str | None) -> None:
        """Use a refreshed token for every following request."""
        self._access_token = access_token

    def _auth_header(self) -> dict[str, str]:
        token = self._access_token or self._config.supabase_key
        return {"Authorization": f"Bearer {token}"}

    async def init(self) -> None:
        """Create the HTTP client and check that the endpoint answers."""
        if self._client is not None:
            return

        async with self._open_lock:
            if self._client is not None:
                return

            base_url = f"{self._config.supabase_url.rstrip('/')}/rest/v1"
            self._client = httpx.AsyncClient(
                base_url=base_url,
                headers={"apikey": self._config.supabase_key, "Content-Type": "application/json"},
                timeout=self._config.request_timeout,
                transport=self._transport,
            )
            try:
                await self._select(PROFILES_TABLE, select="user_id", limit=1, order="user_id")
            except Exception:
                await self.close()
                raise

            logger.info("Connected to remote store %s for user %s", base_url, self.user_id)

    async def close(self) -> None:
        """Clean up resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_open(self) -> bool:
        """Whether the HTTP client is open."""
        return self._client is not None

    async def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            await self.init()
        assert self._client is not None
        return self._client

    # === Request primitives ===

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        client = await self._http()
        request_headers = {**self._auth_header(), **(headers or {})}
        try:
            response = await client.request(
                method, f"/{table}", params=params, json=json, headers=request_headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteRequestError(
                f"{method} {table} rejected", e.response.status_code, e.response.text
            ) from e
        except httpx.TransportError as e:
            raise BackendUnavailableError(f"{method} {table} failed: {e}") from e
        return response

    async def _select_page(self, table: str, params: dict[str, str]) -> list[dict]:
        response = await self._request("GET", table, params=params)
        try:
            rows = response.json()
        except ValueError as e:
            raise RemoteRequestError(
                f"GET {table} returned a non-JSON body", response.status_code, response.text
            ) from e
        if not isinstance(rows, list):
            raise RemoteRequestError(f"GET {table} returned a non-list body", response.status_code)
        return [row for row in rows if isinstance(row, dict)]

    async def _select(
        self,
        table: str,
        select: str = "*",
        limit: int | None = None,
        order: str = "id",
    ) -> list[dict]:
        """Fetch the user's rows of `table`.

        Without a `limit`, pages through the table `page_size` rows at a time
        until a short page comes back, so a server-side row cap never
        truncates a collection.
        """
        params = {"select": select, "user_id": f"eq.{self.user_id}", "order": f"{order}.asc"}
        if limit is not None:
            return await self._select_page(table, {**params, "limit": str(limit)})

        rows: list[dict] = []
        while True:
            page = await self._select_page(
                table, {**params, "limit": str(self.page_size), "offset": str(len(rows))}
            )
            rows.extend(page)
            if len(page) < self.page_size:
                return rows

    async def _upsert(self, table: str, row: dict, conflict_key: str = "id") -> None:
        await self._request(
            "POST",
            table,
            params={"on_conflict": conflict_key},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def _delete(self, table: str, entity_id: str) -> None:
        await self._request(
            "DELETE",
            table,
            params={"id": f"eq.{entity_id}", "user_id": f"eq.{self.user_id}"},
        )

    # === Sermon projects ===

    async def load_projects(self) -> list[SermonProject]:
        """Load every project the user owns, trashed ones included."""
        return [project_from_row(row) for row in await self._select(PROJECTS_TABLE)]

    async def save_project(self, project: SermonProject) -> None:
        """Insert or replace a project row keyed by its id."""
        await self._upsert(PROJECTS_TABLE, project_to_row(project, self.user_id))

    async def delete_project(self, project_id: str) -> None:
        """Delete a project row. Unknown ids are a no-op."""
        await self._delete(PROJECTS_TABLE, project_id)

    # === Series ===

    async def load_series(self) -> list[SermonSeries]:
        """Load every series the user owns."""
        return [series_from_row(row) for row in await self._select(SERIES_TABLE)]

    async def save_series(self, series: SermonSeries) -> None:
        """Insert or replace a series row keyed by its id."""
        await self._upsert(SERIES_TABLE, series_to_row(series, self.user_id))

    async def delete_series(self, series_id: str) -> None:
        await self._delete(SERIES_TABLE, series_id)

    # === Theological profile ===

    async def load_profile(self) -> TheologicalProfile:
        """Return the user's profile, or the default when no row exists."""
        rows = await self._select(PROFILES_TABLE, limit=1, order="user_id")
        if not rows:
            return default_profile()
        return profile_from_row(rows[0])

    async def save_profile(self, profile: TheologicalProfile) -> None:
        """Insert or replace the user's single profile row."""
        # One row per user: the user id is the conflict key.
        await self._upsert(PROFILES_TABLE, profile_to_row(profile, self.user_id), conflict_key="user_id")

    # === Custom prompts ===

    async def load_custom_prompts(self) -> list[CustomPrompt]:
        """Load every custom prompt the user owns."""
        return [prompt_from_row(row) for row in await self._select(CUSTOM_PROMPTS_TABLE)]

    async def save_custom_prompt(self, prompt: CustomPrompt) -> None:
        """Insert or replace a custom prompt row keyed by its id."""
        await self._upsert(CUSTOM_PROMPTS_TABLE, prompt_to_row(prompt, self.user_id))

    async def delete_custom_prompt(self, prompt_id: str) -> None:
        """Delete a custom prompt row. Unknown ids are a no-op."""
        await self._delete(CUSTOM_PROMPTS_TABLE, prompt_id)
