"""Storage manager: which backend serves requests, and switching between them.

States::

    UNINITIALIZED --initialize()--> LOCAL <--switch_to_supabase() / sign_in()--> REMOTE
                                          <--switch_to_local() / sign_out()---

The local adapter stays open for the manager's whole life, so signing out
falls back to it instantly and the merge can read it while the remote adapter
is being brought up.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from sermonai_storage.errors import NotInitializedError
from sermonai_storage.merge import merge_local_to_remote
from sermonai_storage.protocol import StorageAdapter
from sermonai_storage.sqlite import SQLiteStorageAdapter
from sermonai_storage.supabase import SupabaseStorageAdapter
from sermonai_storage.types import (
    ManagerState,
    MergeResult,
    StorageConfig,
    WorkspaceData,
)

logger = logging.getLogger(__name__)


class StorageManager:
    """Holds the current adapter and the retained local adapter.

    Construct one per application and pass it to whatever performs I/O.

    Example:
        manager = StorageManager(StorageConfig.from_env())
        await manager.initialize()
        data = await manager.load_all_data()

        result = await manager.sign_in(user_id)   # merge, then go remote
        ...
        manager.sign_out()                         # back to local
    """

    def __init__(
        self,
        config: StorageConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Create the manager (call `initialize()` before use).

        Args:
            config: Storage configuration for both backends.
            transport: Optional httpx transport handed to remote adapters.
        """
        self._config = config
        self._transport = transport
        self._local: SQLiteStorageAdapter | None = None
        self._remote: SupabaseStorageAdapter | None = None
        self._current: StorageAdapter | None = None

    @property
    def state(self) -> ManagerState:
        if self._current is None:
            return ManagerState.UNINITIALIZED
        if self._current is self._local:
            return ManagerState.LOCAL
        return ManagerState.REMOTE

    # === Lifecycle ===

    async def initialize(self) -> SQLiteStorageAdapter:
        """Open a fresh local adapter and route everything to it.

        Meant for application start. Calling it again replaces the local
        adapter; use the switch operations to change backends mid-session.
        """
        adapter = SQLiteStorageAdapter(self._config)
        await adapter.init()

        previous = self._local
        self._local = adapter
        self._current = adapter
        if previous is not None:
            await previous.close()

        logger.info("Storage initialized with local SQLite (offline persistence)")
        return adapter

    async def close(self) -> None:
        """Close every adapter this manager opened."""
        adapters = [a for a in (self._remote, self._local) if a is not None]
        self._remote = None
        self._local = None
        self._current = None
        await asyncio.gather(*(a.close() for a in adapters))

    async def _open_remote(self, user_id: str, access_token: str | None) -> SupabaseStorageAdapter:
        adapter = SupabaseStorageAdapter(
            user_id, self._config, transport=self._transport, access_token=access_token
        )
        await adapter.init()
        return adapter

    async def _make_current(self, remote: SupabaseStorageAdapter) -> None:
        # At most one remote adapter is retained.
        previous = self._remote
        self._remote = remote
        self._current = remote
        if previous is not None and previous is not remote:
            await previous.close()

    # === Switching ===

    async def switch_to_supabase(
        self, user_id: str, access_token: str | None = None
    ) -> SupabaseStorageAdapter:
        """Open a remote adapter for `user_id` and make it current.

        The local adapter is kept. The new adapter is returned so the caller
        can drive a merge before reading from it, and so a refreshed
        `access_token` can later be applied with `set_access_token()`.
        """
        self.get_local_adapter()
        adapter = await self._open_remote(user_id, access_token)
        await self._make_current(adapter)
        logger.info("Storage switched to Supabase for user %s", user_id)
        return adapter

    def switch_to_local(self) -> SQLiteStorageAdapter:
        """Route everything back to the retained local adapter."""
        local = self.get_local_adapter()
        self._current = local
        logger.info("Storage switched to local SQLite")
        return local

    async def sign_in(self, user_id: str, access_token: str | None = None) -> MergeResult:
        """Bring up the user's remote store, merge local data into it, then
        make it current.

        `access_token` is the bearer token the identity provider issued for
        `user_id`; without one, `config.access_token` and then the anon key
        are sent.

        If the remote store cannot be opened, or a collection cannot be
        loaded during the merge, the error propagates and the current
        adapter is left unchanged.
        """
        local = self.get_local_adapter()
        remote = await self._open_remote(user_id, access_token)
        try:
            result = await merge_local_to_remote(local, remote)
        except Exception:
            await remote.close()
            raise

        await self._make_current(remote)
        logger.info("Signed in as %s; storage switched to Supabase", user_id)
        return result

    def sign_out(self) -> SQLiteStorageAdapter:
        """Fall back to the local adapter. Nothing is copied back."""
        return self.switch_to_local()

    # === Accessors ===

    def get_adapter(self) -> StorageAdapter:
        """The adapter currently serving requests."""
        if self._current is None:
            raise NotInitializedError("Storage not initialized. Call initialize() first.")
        return self._current

    def get_local_adapter(self) -> SQLiteStorageAdapter:
        """The retained local adapter, whatever is current."""
        if self._local is None:
            raise NotInitializedError("Storage not initialized. Call initialize() first.")
        return self._local

    async def load_all_data(self) -> WorkspaceData:
        """Load the four collections of the current adapter concurrently."""
        adapter = self.get_adapter()
        projects, series, profile, custom_prompts = await asyncio.gather(
            adapter.load_projects(),
            adapter.load_series(),
            adapter.load_profile(),
            adapter.load_custom_prompts(),
        )
        return WorkspaceData(
            projects=projects,
            series=series,
            profile=profile,
            custom_prompts=custom_prompts,
        )
