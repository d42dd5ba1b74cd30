"""Tests for configuration and entity helpers."""

from sermonai_storage import (
    DEFAULT_PROFILE,
    MergeFailure,
    MergeResult,
    StorageConfig,
    default_profile,
    new_project,
    now_ms,
)


class TestStorageConfig:
    """Tests for StorageConfig."""

    def test_defaults(self):
        config = StorageConfig()

        assert config.supabase_url is None
        assert config.request_timeout == 30.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SERMONAI_DB_PATH", "/tmp/sermons.db")
        monkeypatch.setenv("SUPABASE_URL", "https://xyz.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SUPABASE_REQUEST_TIMEOUT", "5")

        config = StorageConfig.from_env()

        assert config.db_path == "/tmp/sermons.db"
        assert config.supabase_url == "https://xyz.supabase.co"
        assert config.supabase_key == "anon"
        assert config.request_timeout == 5.0

    def test_from_env_without_remote(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SERMONAI_DB_PATH", raising=False)

        config = StorageConfig.from_env()

        assert config.supabase_url is None
        assert config.db_path == StorageConfig().db_path


class TestEntities:
    """Tests for entity factories."""

    def test_default_profile_is_fresh(self):
        profile = default_profile()
        profile.default_audience.description = "changed"

        assert default_profile() == DEFAULT_PROFILE
        assert DEFAULT_PROFILE.default_audience.description != "changed"

    def test_new_project(self):
        before = now_ms()
        project = new_project(title="Hope")

        assert project.title == "Hope"
        assert project.last_modified >= before
        assert project.is_deleted is False
        assert project.is_locked is False
        assert project.preaching_settings.speech_rate == "normal"

    def test_merge_result(self):
        result = MergeResult(pushed={"projects": 2, "series": 1})
        assert result.ok
        assert result.total_pushed == 3

        result.failures.append(MergeFailure("projects", "E", "boom"))
        assert not result.ok
