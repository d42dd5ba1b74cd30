"""sermonai-storage - Offline-first persistence for SermonAI with cloud merge.

Sermon projects, series, the theological profile and custom prompts are kept
in a local SQLite store while the user is anonymous. On sign-in the local data
is merged into the user's Supabase tables and the remote store takes over;
on sign-out the local store serves again.

Example usage:
    from sermonai_storage import StorageConfig, StorageManager, Workspace

    config = StorageConfig(
        db_path="~/.sermonai/sermonai.db",
        supabase_url="https://xyz.supabase.co",
        supabase_key="public-anon-key",
    )

    manager = StorageManager(config)
    await manager.initialize()

    workspace = Workspace(manager)
    project = await workspace.create_project(title="The God of all comfort")

    # After the identity provider signs the user in
    result = await manager.sign_in(user_id)
    if not result.ok:
        ...  # result.failures stayed local-only; retried next sign-in
"""

from sermonai_storage.errors import (
    BackendUnavailableError,
    NotFoundError,
    NotInitializedError,
    ProjectLockedError,
    RemoteRequestError,
    StorageError,
)
from sermonai_storage.manager import StorageManager
from sermonai_storage.merge import merge_local_to_remote
from sermonai_storage.protocol import StorageAdapter
from sermonai_storage.sqlite import SQLiteStorageAdapter
from sermonai_storage.supabase import SupabaseStorageAdapter
from sermonai_storage.types import (
    DEFAULT_PROFILE,
    AudienceContext,
    CustomPrompt,
    DraftOption,
    DraftVersion,
    EditorSettings,
    HermeneuticItem,
    ManagerState,
    MeditationEntry,
    MergeFailure,
    MergeResult,
    PreachingSettings,
    SermonProject,
    SermonSeries,
    StorageConfig,
    StorageType,
    TextAnalysisItem,
    TheologicalProfile,
    WorkspaceData,
    default_profile,
    new_project,
    now_ms,
)
from sermonai_storage.workspace import Workspace

__all__ = [
    # Main classes
    "StorageAdapter",
    "SQLiteStorageAdapter",
    "SupabaseStorageAdapter",
    "StorageManager",
    "Workspace",
    "merge_local_to_remote",
    # Configuration
    "StorageConfig",
    "StorageType",
    "ManagerState",
    # Data types
    "SermonProject",
    "SermonSeries",
    "TheologicalProfile",
    "CustomPrompt",
    "AudienceContext",
    "TextAnalysisItem",
    "HermeneuticItem",
    "MeditationEntry",
    "DraftOption",
    "DraftVersion",
    "PreachingSettings",
    "EditorSettings",
    "WorkspaceData",
    "MergeResult",
    "MergeFailure",
    "DEFAULT_PROFILE",
    "default_profile",
    "new_project",
    "now_ms",
    # Errors
    "StorageError",
    "NotInitializedError",
    "BackendUnavailableError",
    "RemoteRequestError",
    "NotFoundError",
    "ProjectLockedError",
]
