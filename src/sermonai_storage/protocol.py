"""Protocol definition for StorageAdapter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sermonai_storage.types import (
        CustomPrompt,
        SermonProject,
        SermonSeries,
        StorageType,
        TheologicalProfile,
    )


@runtime_checkable
class StorageAdapter(Protocol):
    """Uniform persistence contract for the four user collections.

    Every backend (embedded SQLite, remote Supabase) implements the same
    method set so that the storage manager can swap them at runtime. All
    operations are coroutines and may raise the backend's own errors.

    Implementations must provide all methods marked with `...`.
    """

    storage_type: StorageType

    # === Lifecycle ===

    async def init(self) -> None:
        """Establish the backend connection.

        Idempotent: calling it again, or concurrently, reuses the
        connection that is already open.

        Raises:
            BackendUnavailableError: If the backend cannot be reached.
        """
        ...

    async def close(self) -> None:
        """Release the backend connection."""
        ...

    # === Sermon projects ===

    async def load_projects(self) -> list[SermonProject]:
        """Return every project, in no particular order."""
        ...

    async def save_project(self, project: SermonProject) -> None:
        """Insert or replace a project by id, as one whole record."""
        ...

    async def delete_project(self, project_id: str) -> None:
        """Remove a project by id. Deleting a missing id is a no-op."""
        ...

    # === Series ===

    async def load_series(self) -> list[SermonSeries]:
        """Return every series, in no particular order."""
        ...

    async def save_series(self, series: SermonSeries) -> None:
        """Insert or replace a series by id."""
        ...

    async def delete_series(self, series_id: str) -> None:
        """Remove a series by id. Deleting a missing id is a no-op."""
        ...

    # === Theological profile ===

    async def load_profile(self) -> TheologicalProfile:
        """Return the user's profile, or the default profile if none is stored."""
        ...

    async def save_profile(self, profile: TheologicalProfile) -> None:
        """Replace the user's profile."""
        ...

    # === Custom prompts ===

    async def load_custom_prompts(self) -> list[CustomPrompt]:
        """Return every custom prompt, in no particular order."""
        ...

    async def save_custom_prompt(self, prompt: CustomPrompt) -> None:
        """Insert or replace a custom prompt by id."""
        ...

    async def delete_custom_prompt(self, prompt_id: str) -> None:
        """Remove a custom prompt by id. Deleting a missing id is a no-op."""
        ...
