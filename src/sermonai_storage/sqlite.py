"""SQLite implementation of StorageAdapter."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import aiosqlite

from sermonai_storage.codec import (
    profile_from_record,
    profile_to_record,
    project_from_record,
    project_to_record,
    prompt_from_record,
    prompt_to_record,
    series_from_record,
    series_to_record,
)
from sermonai_storage.errors import BackendUnavailableError
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

SCHEMA_VERSION = 1

PROJECTS = "projects"
SERIES = "series"
CUSTOM_PROMPTS = "custom_prompts"
SETTINGS = "settings"
PARTITIONS = (PROJECTS, SERIES, CUSTOM_PROMPTS, SETTINGS)

# Key of the profile record in the settings partition.
PROFILE_KEY = "profile"


class SQLiteStorageAdapter:
    """Device-local, offline storage on a single SQLite file.

    Each collection is a partition (table) of JSON records keyed by entity id.
    The profile lives in the settings partition under a fixed key. Saves
    replace the whole record; deletes of unknown ids are no-ops.
    """

    storage_type = StorageType.SQLITE

    def __init__(self, config: StorageConfig):
        """Create the adapter (call `init()` before use, or let the first
        operation open the database)."""
        self._config = config
        self._conn: aiosqlite.Connection | None = None
        self._open_lock = asyncio.Lock()

    async def init(self) -> None:
        """Open the database, creating the partitions on first use."""
        if self._conn is not None:
            return

        async with self._open_lock:
            # A concurrent caller may have opened it while we waited.
            if self._conn is not None:
                return

            db_path = self._config.db_path
            try:
                if db_path != ":memory:":
                    path = Path(db_path).expanduser()
                    path.parent.mkdir(parents=True, exist_ok=True)
                    db_path = str(path)
                conn = await aiosqlite.connect(db_path)
            except (aiosqlite.Error, OSError) as e:
                raise BackendUnavailableError(f"Cannot open local database {db_path}: {e}") from e

            try:
                await self._upgrade(conn)
            except aiosqlite.Error as e:
                await conn.close()
                raise BackendUnavailableError(f"Cannot upgrade local database {db_path}: {e}") from e

            self._conn = conn
            logger.info("Local database opened at %s", db_path)

    async def _upgrade(self, conn: aiosqlite.Connection) -> None:
        """Create the partitions when the stored schema version is behind."""
        cursor = await conn.execute("PRAGMA user_version")
        row = await cursor.fetchone()
        current = row[0] if row else 0
        if current >= SCHEMA_VERSION:
            return

        logger.info("Upgrading local database from version %d to %d", current, SCHEMA_VERSION)
        for partition in PARTITIONS:
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {partition} (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
            """)
        await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await conn.commit()

    async def close(self) -> None:
        """Clean up resources."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def is_open(self) -> bool:
        """Whether the database connection is open."""
        return self._conn is not None

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.init()
        assert self._conn is not None
        return self._conn

    # === Partition primitives ===

    async def _get_all(self, partition: str) -> list[dict]:
        conn = await self._connection()
        cursor = await conn.execute(f"SELECT data FROM {partition}")
        rows = await cursor.fetchall()
        return [json.loads(row[0]) for row in rows]

    async def _get(self, partition: str, key: str) -> dict | None:
        conn = await self._connection()
        cursor = await conn.execute(f"SELECT data FROM {partition} WHERE id = ?", (key,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    async def _put(self, partition: str, key: str, record: dict) -> None:
        conn = await self._connection()
        await conn.execute(
            f"INSERT OR REPLACE INTO {partition} (id, data) VALUES (?, ?)",
            (key, json.dumps(record, ensure_ascii=False)),
        )
        await conn.commit()

    async def _delete(self, partition: str, key: str) -> None:
        conn = await self._connection()
        await conn.execute(f"DELETE FROM {partition} WHERE id = ?", (key,))
        await conn.commit()

    # === Sermon projects ===

    async def load_projects(self) -> list[SermonProject]:
        """Load every project, trashed ones included."""
        return [project_from_record(record) for record in await self._get_all(PROJECTS)]

    async def save_project(self, project: SermonProject) -> None:
        """Insert or replace a project keyed by its id."""
        await self._put(PROJECTS, project.id, project_to_record(project))

    async def delete_project(self, project_id: str) -> None:
        """Delete a project. Unknown ids are a no-op."""
        await self._delete(PROJECTS, project_id)

    # === Series ===

    async def load_series(self) -> list[SermonSeries]:
        """Load every series."""
        return [series_from_record(record) for record in await self._get_all(SERIES)]

    async def save_series(self, series: SermonSeries) -> None:
        """Insert or replace a series keyed by its id."""
        await self._put(SERIES, series.id, series_to_record(series))

    async def delete_series(self, series_id: str) -> None:
        await self._delete(SERIES, series_id)

    # === Theological profile ===

    async def load_profile(self) -> TheologicalProfile:
        """Return the stored profile, or the default when absent or unreadable.

        A missing profile is the normal first-run state. Failure to open the
        database still raises.
        """
        await self._connection()
        try:
            record = await self._get(SETTINGS, PROFILE_KEY)
        except (aiosqlite.Error, ValueError) as e:
            logger.warning("Stored profile unreadable, using default: %s", e)
            return default_profile()

        if record is None or not isinstance(record.get("value"), dict):
            return default_profile()
        return profile_from_record(record["value"])

    async def save_profile(self, profile: TheologicalProfile) -> None:
        """Store the profile under the fixed settings key."""
        await self._put(SETTINGS, PROFILE_KEY, {"id": PROFILE_KEY, "value": profile_to_record(profile)})

    # === Custom prompts ===

    async def load_custom_prompts(self) -> list[CustomPrompt]:
        """Load every custom prompt."""
        return [prompt_from_record(record) for record in await self._get_all(CUSTOM_PROMPTS)]

    async def save_custom_prompt(self, prompt: CustomPrompt) -> None:
        """Insert or replace a custom prompt keyed by its id."""
        await self._put(CUSTOM_PROMPTS, prompt.id, prompt_to_record(prompt))

    async def delete_custom_prompt(self, prompt_id: str) -> None:
        await self._delete(CUSTOM_PROMPTS, prompt_id)
