"""Type definitions for sermonai storage."""

from __future__ import annotations

import os
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class StorageType(Enum):
    """Backends an adapter can be."""

    SQLITE = "sqlite"
    SUPABASE = "supabase"


class ManagerState(Enum):
    """Which backend the storage manager is routing to."""

    UNINITIALIZED = "uninitialized"
    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class StorageConfig:
    """Configuration shared by the storage manager and its adapters.

    Attributes:
        db_path: Path to the local SQLite database file.
        supabase_url: Base URL of the Supabase project. None = local only.
        supabase_key: Anon (public) API key of the Supabase project.
        access_token: Bearer token of the signed-in user. Falls back to the
            anon key when unset.
        request_timeout: Seconds before a remote request is abandoned.
    """

    db_path: str = "~/.sermonai/sermonai.db"
    supabase_url: str | None = None
    supabase_key: str = ""
    access_token: str | None = None
    request_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Build a config from SERMONAI_DB_PATH, SUPABASE_URL, SUPABASE_ANON_KEY
        and SUPABASE_REQUEST_TIMEOUT."""
        return cls(
            db_path=os.environ.get("SERMONAI_DB_PATH", cls.db_path),
            supabase_url=os.environ.get("SUPABASE_URL") or None,
            supabase_key=os.environ.get("SUPABASE_ANON_KEY", ""),
            request_timeout=float(os.environ.get("SUPABASE_REQUEST_TIMEOUT", cls.request_timeout)),
        )


# === Sermon project parts ===


@dataclass
class AudienceContext:
    description: str = ""
    average_age: str | None = None
    spiritual_level: str | None = None
    current_situation: str | None = None


@dataclass
class TextAnalysisItem:
    verse_ref: str = ""
    primary_text: str = ""
    note: str = ""


@dataclass
class HermeneuticItem:
    id: str
    observation: str = ""
    interpretation: str = ""
    application: str = ""


@dataclass
class MeditationEntry:
    id: str
    date: int = 0
    prompt: str = ""
    content: str = ""
    is_private: bool = False


@dataclass
class DraftOption:
    length: str = "medium"  # short, medium, long
    tone: str = "warm"  # warm, authoritative, storytelling, academic
    audience_focus: str = ""


@dataclass
class DraftVersion:
    id: str
    timestamp: int = 0
    content: str = ""
    options: DraftOption = field(default_factory=DraftOption)


@dataclass
class PreachingSettings:
    speech_rate: str = "normal"  # slow, normal, fast
    target_time: int = 20


@dataclass
class EditorSettings:
    background_color: str = "#ffffff"
    font_size: int = 18
    line_height: float = 1.8


# === Collections ===


@dataclass
class SermonProject:
    """A sermon being composed.

    `last_modified` (epoch milliseconds) is the only conflict-resolution key
    and must move forward on every mutation.
    """

    id: str
    title: str = ""
    passage: str = ""
    theme: str = ""
    audience: str = ""
    audience_context: AudienceContext = field(default_factory=AudienceContext)
    sermon_goal: str = ""
    structure: str = ""
    historical_context: str = ""
    original_language: str = ""
    theological_themes: str = ""
    text_analysis: list[TextAnalysisItem] = field(default_factory=list)
    hermeneutics: list[HermeneuticItem] = field(default_factory=list)
    journal: str = ""
    meditation_entries: list[MeditationEntry] = field(default_factory=list)
    application_points: str = ""
    draft: str = ""
    draft_versions: list[DraftVersion] = field(default_factory=list)
    notes: str = ""
    preaching_settings: PreachingSettings = field(default_factory=PreachingSettings)
    editor_settings: EditorSettings = field(default_factory=EditorSettings)
    version: int = 1
    mode: str = "deep"  # deep, quick, manual
    status: str = "planning"
    last_modified: int = 0
    date: str | None = None
    series_id: str | None = None
    is_deleted: bool = False
    deleted_at: int | None = None
    is_locked: bool = False


@dataclass
class SermonSeries:
    id: str
    title: str = ""
    description: str = ""
    last_modified: int = 0


@dataclass
class TheologicalProfile:
    """Preaching preferences of the user; one per user."""

    denomination: str = ""
    style: str = ""
    avoidance: str = ""
    guardrail: str | None = None
    preferred_structure: str | None = None
    default_audience: AudienceContext | None = None


@dataclass
class CustomPrompt:
    id: str
    title: str = ""
    content: str = ""


def _default_audience() -> AudienceContext:
    return AudienceContext(
        description="직장, 사업, 가사 등으로 지쳐있는 성도들",
        average_age="30-60대",
        spiritual_level="영적 재충전이 간절한 예배자",
        current_situation="일주일의 치열한 삶을 마치고 주님 앞에 나아온 상태",
    )


def default_profile() -> TheologicalProfile:
    """A fresh copy of the baseline profile every user starts with."""
    return TheologicalProfile(
        denomination="대한예수교장로회 (합동)",
        style="전통적 삼대지 강해 설교",
        avoidance="지나치게 자극적인 예화, 세속적 성공주의",
        guardrail="성경 중심의 복음주의",
        preferred_structure="서론 - 본론 1, 2, 3 - 결론 및 기도",
        default_audience=_default_audience(),
    )


# Comparison baseline; never hand this instance out for mutation.
DEFAULT_PROFILE = default_profile()


def new_project(**overrides) -> SermonProject:
    """Create a project from the default template with a fresh id and timestamp.

    Args:
        **overrides: Field values replacing the template's.

    Returns:
        A new, unsaved SermonProject.
    """
    values = dict(
        id=str(uuid.uuid4()),
        title="금요기도회 설교: 회복과 소망",
        theme="영적 회복",
        audience="금요기도회 성도",
        audience_context=_default_audience(),
        sermon_goal="지친 심령이 말씀으로 회복되고 다시 일어설 용기를 얻기",
        last_modified=now_ms(),
    )
    values.update(overrides)
    return SermonProject(**values)


# === Results ===


@dataclass
class WorkspaceData:
    """Everything a user owns, as loaded from one adapter."""

    projects: list[SermonProject] = field(default_factory=list)
    series: list[SermonSeries] = field(default_factory=list)
    profile: TheologicalProfile = field(default_factory=default_profile)
    custom_prompts: list[CustomPrompt] = field(default_factory=list)


@dataclass
class MergeFailure:
    """A record whose push to the remote store failed.

    Attributes:
        collection: Name of the collection.
        entity_id: ID of the record that stayed local-only.
        error: Description of the error.
    """

    collection: str
    entity_id: str
    error: str


@dataclass
class MergeResult:
    """Result of a local to remote merge.

    Attributes:
        pushed: Records pushed, per collection name.
        failures: Records whose push failed.
    """

    pushed: dict[str, int] = field(default_factory=dict)
    failures: list[MergeFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def total_pushed(self) -> int:
        return sum(self.pushed.values())
