"""User-level actions on sermon data.

Every action goes through whichever adapter the storage manager currently
routes to, and every project or series mutation moves `last_modified`
forward so that the merge can tell which side is newer.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace

from sermonai_storage.errors import NotFoundError, ProjectLockedError
from sermonai_storage.manager import StorageManager
from sermonai_storage.protocol import StorageAdapter
from sermonai_storage.types import (
    CustomPrompt,
    SermonProject,
    SermonSeries,
    TheologicalProfile,
    new_project,
    now_ms,
)

logger = logging.getLogger(__name__)


def _next_timestamp(previous: int) -> int:
    """A timestamp strictly after `previous`, even if the clock has not moved."""
    return max(now_ms(), previous + 1)


class Workspace:
    """Create, edit, trash and restore a user's sermon data."""

    def __init__(self, manager: StorageManager):
        self._manager = manager

    @property
    def adapter(self) -> StorageAdapter:
        return self._manager.get_adapter()

    # === Sermon projects ===

    async def get_project(self, project_id: str) -> SermonProject:
        """Look up a project by id.

        Raises:
            NotFoundError: If no project has that id.
        """
        for project in await self.adapter.load_projects():
            if project.id == project_id:
                return project
        raise NotFoundError("projects", project_id)

    async def active_projects(self) -> list[SermonProject]:
        """Projects not in the trash, most recently modified first."""
        projects = [p for p in await self.adapter.load_projects() if not p.is_deleted]
        return sorted(projects, key=lambda p: p.last_modified, reverse=True)

    async def trashed_projects(self) -> list[SermonProject]:
        """Soft-deleted projects, most recently trashed first."""
        projects = [p for p in await self.adapter.load_projects() if p.is_deleted]
        return sorted(projects, key=lambda p: p.deleted_at or 0, reverse=True)

    async def create_project(self, **fields) -> SermonProject:
        """Create and store a project from the default template."""
        project = new_project(**fields)
        await self.adapter.save_project(project)
        return project

    async def update_project(self, project: SermonProject) -> SermonProject:
        """Store an edited project, stamping a new `last_modified`."""
        updated = replace(project, last_modified=_next_timestamp(project.last_modified))
        await self.adapter.save_project(updated)
        return updated

    async def toggle_lock(self, project_id: str) -> SermonProject:
        project = await self.get_project(project_id)
        return await self.update_project(replace(project, is_locked=not project.is_locked))

    async def soft_delete_project(self, project_id: str) -> SermonProject:
        """Move a project to the trash. It stays loadable until hard-deleted.

        Raises:
            NotFoundError: If no project has that id.
            ProjectLockedError: If the project is locked.
        """
        project = await self.get_project(project_id)
        if project.is_locked:
            raise ProjectLockedError(project_id)
        return await self.update_project(replace(project, is_deleted=True, deleted_at=now_ms()))

    async def restore_project(self, project_id: str) -> SermonProject:
        """Take a project out of the trash."""
        project = await self.get_project(project_id)
        return await self.update_project(replace(project, is_deleted=False, deleted_at=None))

    async def hard_delete_project(self, project_id: str) -> None:
        """Remove a project for good. Unknown ids are ignored.

        Raises:
            ProjectLockedError: If the project is locked.
        """
        try:
            project = await self.get_project(project_id)
        except NotFoundError:
            logger.debug("Hard delete of unknown project %s", project_id)
        else:
            if project.is_locked:
                raise ProjectLockedError(project_id)
        await self.adapter.delete_project(project_id)

    # === Series ===

    async def create_series(self, title: str, description: str = "") -> SermonSeries:
        series = SermonSeries(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            last_modified=now_ms(),
        )
        await self.adapter.save_series(series)
        return series

    async def update_series(self, series: SermonSeries) -> SermonSeries:
        updated = replace(series, last_modified=_next_timestamp(series.last_modified))
        await self.adapter.save_series(updated)
        return updated

    async def delete_series(self, series_id: str) -> None:
        """Delete a series. Projects that reference it keep their `series_id`."""
        await self.adapter.delete_series(series_id)

    # === Theological profile ===

    async def update_profile(self, profile: TheologicalProfile) -> TheologicalProfile:
        await self.adapter.save_profile(profile)
        return profile

    # === Custom prompts ===

    async def create_custom_prompt(self, title: str, content: str) -> CustomPrompt:
        prompt = CustomPrompt(id=str(uuid.uuid4()), title=title, content=content)
        await self.adapter.save_custom_prompt(prompt)
        return prompt

    async def delete_custom_prompt(self, prompt_id: str) -> None:
        await self.adapter.delete_custom_prompt(prompt_id)
