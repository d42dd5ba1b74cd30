"""Tests for the local to remote merge."""

import pytest

from sermonai_storage import (
    BackendUnavailableError,
    CustomPrompt,
    SermonProject,
    SermonSeries,
    TheologicalProfile,
    default_profile,
    merge_local_to_remote,
)
from sermonai_storage.supabase import PROFILES_TABLE, PROJECTS_TABLE


class TestProjectMerge:
    """Timestamp comparison for projects."""

    async def test_local_wins_when_newer(self, local, remote):
        await local.save_project(SermonProject(id="A", title="local", last_modified=200))
        await remote.save_project(SermonProject(id="A", title="remote", last_modified=100))

        result = await merge_local_to_remote(local, remote)

        (project,) = await remote.load_projects()
        assert project.last_modified == 200
        assert project.title == "local"
        assert result.pushed["projects"] == 1

    async def test_remote_wins_when_newer(self, local, remote):
        await local.save_project(SermonProject(id="B", title="local", last_modified=100))
        await remote.save_project(SermonProject(id="B", title="remote", last_modified=300))

        result = await merge_local_to_remote(local, remote)

        (project,) = await remote.load_projects()
        assert project.last_modified == 300
        assert project.title == "remote"
        assert result.pushed["projects"] == 0

    async def test_equal_timestamps_are_not_pushed(self, local, remote):
        await local.save_project(SermonProject(id="A", title="local", last_modified=100))
        await remote.save_project(SermonProject(id="A", title="remote", last_modified=100))

        await merge_local_to_remote(local, remote)

        assert (await remote.load_projects())[0].title == "remote"

    async def test_local_only_record_is_pushed(self, local, remote):
        await local.save_project(SermonProject(id="C", last_modified=50))

        await merge_local_to_remote(local, remote)

        assert await remote.load_projects() == [SermonProject(id="C", last_modified=50)]

    async def test_remote_only_record_is_preserved(self, local, remote):
        await remote.save_project(SermonProject(id="D", title="cloud", last_modified=10))

        await merge_local_to_remote(local, remote)

        assert await remote.load_projects() == [SermonProject(id="D", title="cloud", last_modified=10)]

    async def test_soft_deleted_projects_travel(self, local, remote, full_project):
        await local.save_project(full_project)

        await merge_local_to_remote(local, remote)

        assert await remote.load_projects() == [full_project]

    async def test_local_store_is_untouched(self, local, remote):
        await local.save_project(SermonProject(id="A", last_modified=1))
        await remote.save_project(SermonProject(id="Z", last_modified=1))

        await merge_local_to_remote(local, remote)

        assert [p.id for p in await local.load_projects()] == ["A"]


class TestOtherCollections:
    """Series, profile and custom prompt rules."""

    async def test_series_compare_timestamps(self, local, remote):
        await local.save_series(SermonSeries(id="s-new", title="local", last_modified=20))
        await local.save_series(SermonSeries(id="s-old", title="local", last_modified=20))
        await local.save_series(SermonSeries(id="s-only", title="local", last_modified=20))
        await remote.save_series(SermonSeries(id="s-new", title="remote", last_modified=10))
        await remote.save_series(SermonSeries(id="s-old", title="remote", last_modified=30))

        result = await merge_local_to_remote(local, remote)

        titles = {s.id: s.title for s in await remote.load_series()}
        assert titles == {"s-new": "local", "s-old": "remote", "s-only": "local"}
        assert result.pushed["series"] == 2

    async def test_default_profile_is_not_pushed(self, local, remote, fake_remote):
        await remote.save_profile(TheologicalProfile(denomination="Cloud", style="", avoidance=""))

        result = await merge_local_to_remote(local, remote)

        assert (await remote.load_profile()).denomination == "Cloud"
        assert result.pushed["profile"] == 0

    async def test_customized_profile_is_pushed(self, local, remote, fake_remote):
        profile = TheologicalProfile(denomination="Local", style="Narrative", avoidance="Jargon")
        await local.save_profile(profile)
        await remote.save_profile(TheologicalProfile(denomination="Cloud", style="", avoidance=""))

        result = await merge_local_to_remote(local, remote)

        assert await remote.load_profile() == profile
        assert len(fake_remote.rows(PROFILES_TABLE)) == 1
        assert result.pushed["profile"] == 1

    async def test_explicitly_saved_default_profile_is_not_pushed(self, local, remote):
        await local.save_profile(default_profile())

        result = await merge_local_to_remote(local, remote)

        assert result.pushed["profile"] == 0

    async def test_custom_prompts_pushed_only_when_absent(self, local, remote):
        await local.save_custom_prompt(CustomPrompt(id="c1", title="Shared", content="local edit"))
        await local.save_custom_prompt(CustomPrompt(id="c2", title="Local only", content="x"))
        await remote.save_custom_prompt(CustomPrompt(id="c1", title="Shared", content="remote"))

        result = await merge_local_to_remote(local, remote)

        contents = {p.id: p.content for p in await remote.load_custom_prompts()}
        assert contents == {"c1": "remote", "c2": "x"}
        assert result.pushed["custom_prompts"] == 1


class TestFailureHandling:
    """A failed push must not stop the rest of the merge."""

    async def test_failure_is_isolated(self, local, remote, fake_remote):
        for project_id in ("E", "F", "G"):
            await local.save_project(SermonProject(id=project_id, last_modified=10))
        fake_remote.fail_ids.add("E")

        result = await merge_local_to_remote(local, remote)

        assert sorted(p.id for p in await remote.load_projects()) == ["F", "G"]
        assert result.pushed["projects"] == 2
        assert not result.ok
        (failure,) = result.failures
        assert failure.collection == "projects"
        assert failure.entity_id == "E"

    async def test_failure_in_one_collection_spares_others(self, local, remote, fake_remote):
        await local.save_project(SermonProject(id="E", last_modified=10))
        await local.save_series(SermonSeries(id="s1", last_modified=10))
        await local.save_custom_prompt(CustomPrompt(id="c1"))
        fake_remote.fail_ids.add("E")

        result = await merge_local_to_remote(local, remote)

        assert [s.id for s in await remote.load_series()] == ["s1"]
        assert [p.id for p in await remote.load_custom_prompts()] == ["c1"]
        assert result.total_pushed == 2

    async def test_failed_record_is_retried_next_time(self, local, remote, fake_remote):
        await local.save_project(SermonProject(id="E", last_modified=10))
        fake_remote.fail_ids.add("E")
        await merge_local_to_remote(local, remote)

        fake_remote.fail_ids.clear()
        result = await merge_local_to_remote(local, remote)

        assert result.ok
        assert fake_remote.row(PROJECTS_TABLE, "E") is not None

    async def test_rerun_is_idempotent(self, local, remote):
        await local.save_project(SermonProject(id="A", last_modified=10))
        await local.save_custom_prompt(CustomPrompt(id="c1"))
        await merge_local_to_remote(local, remote)

        result = await merge_local_to_remote(local, remote)

        assert result.total_pushed == 0
        assert len(await remote.load_projects()) == 1

    async def test_unreachable_remote_aborts(self, local, remote, fake_remote):
        await local.save_project(SermonProject(id="A", last_modified=10))
        fake_remote.unreachable = True

        with pytest.raises(BackendUnavailableError):
            await merge_local_to_remote(local, remote)
