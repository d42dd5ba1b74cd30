"""Shared fixtures: temporary SQLite files and an in-memory PostgREST."""

import json
from collections import defaultdict

import httpx
import pytest

from sermonai_storage import (
    AudienceContext,
    DraftOption,
    DraftVersion,
    EditorSettings,
    HermeneuticItem,
    MeditationEntry,
    PreachingSettings,
    SermonProject,
    SQLiteStorageAdapter,
    StorageConfig,
    StorageManager,
    SupabaseStorageAdapter,
    TextAnalysisItem,
)

USER_ID = "user-1"


class FakePostgrest:
    """In-memory stand-in for a Supabase PostgREST endpoint.

    Understands the subset the Supabase adapter speaks: `eq.` filters,
    `order`, `limit` and `offset`, and upserts keyed by `on_conflict`.

    Attributes:
        tables: Rows per table, keyed by their conflict key.
        fail_ids: Row ids whose upsert answers HTTP 500.
        unreachable: When set, every request fails to connect.
        max_rows: Server-side cap on rows per response, like PostgREST's.
        requests: Every request received, in order.
    """

    def __init__(self):
        self.tables: dict[str, dict[str, dict]] = defaultdict(dict)
        self.fail_ids: set[str] = set()
        self.unreachable = False
        self.max_rows: int | None = None
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def seed(self, table: str, row: dict, key: str = "id") -> None:
        self.tables[table][row[key]] = row

    def rows(self, table: str) -> list[dict]:
        return list(self.tables[table].values())

    def row(self, table: str, key: str) -> dict | None:
        return self.tables[table].get(key)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        table = request.url.path.rsplit("/", 1)[-1]
        params = request.url.params
        filters = {
            column: value[len("eq."):]
            for column, value in params.multi_items()
            if value.startswith("eq.")
        }

        def matches(row: dict) -> bool:
            return all(str(row.get(column)) == value for column, value in filters.items())

        if request.method == "GET":
            rows = [row for row in self.tables[table].values() if matches(row)]
            if "order" in params:
                column = params["order"].split(".", 1)[0]
                rows.sort(key=lambda row: str(row.get(column)))
            offset = int(params.get("offset", 0))
            limit = int(params.get("limit", len(rows)))
            if self.max_rows is not None:
                limit = min(limit, self.max_rows)
            return httpx.Response(200, json=rows[offset:offset + limit])

        if request.method == "POST":
            row = json.loads(request.content)
            if row.get("id") in self.fail_ids:
                return httpx.Response(500, json={"message": "internal error"})
            key = params.get("on_conflict", "id")
            self.tables[table][row[key]] = row
            return httpx.Response(201)

        if request.method == "DELETE":
            for key, row in list(self.tables[table].items()):
                if matches(row):
                    del self.tables[table][key]
            return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def fake_remote():
    return FakePostgrest()


@pytest.fixture
def config(tmp_path):
    return StorageConfig(
        db_path=str(tmp_path / "sermonai.db"),
        supabase_url="https://example.supabase.co",
        supabase_key="anon-key",
    )


@pytest.fixture
async def local(config):
    adapter = SQLiteStorageAdapter(config)
    await adapter.init()
    yield adapter
    await adapter.close()


@pytest.fixture
async def remote(config, fake_remote):
    adapter = SupabaseStorageAdapter(USER_ID, config, transport=fake_remote.transport)
    await adapter.init()
    yield adapter
    await adapter.close()


@pytest.fixture
async def manager(config, fake_remote):
    storage = StorageManager(config, transport=fake_remote.transport)
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture
def full_project():
    """A project with every optional field populated."""
    return SermonProject(
        id="project-full",
        title="The God of all comfort",
        passage="2 Corinthians 1:3-7",
        theme="Restoration",
        audience="Friday prayer meeting",
        audience_context=AudienceContext(
            description="Tired after a long week",
            average_age="30-60",
            spiritual_level="Hungry for renewal",
            current_situation="Coming in from a hard week",
        ),
        sermon_goal="Find strength for tomorrow",
        structure="I. Intro\nII. Body\nIII. Close",
        historical_context="Written from Macedonia",
        original_language="paraklesis",
        theological_themes="Comfort in affliction",
        text_analysis=[TextAnalysisItem(verse_ref="1:3", primary_text="Blessed be God", note="doxology")],
        hermeneutics=[
            HermeneuticItem(id="h1", observation="obs", interpretation="int", application="app")
        ],
        journal="Morning reflections",
        meditation_entries=[
            MeditationEntry(id="m1", date=1700000000000, prompt="What comforts you?", content="...", is_private=True)
        ],
        application_points="Call one friend",
        draft="Brothers and sisters...",
        draft_versions=[
            DraftVersion(
                id="d1",
                timestamp=1700000000500,
                content="First draft",
                options=DraftOption(length="long", tone="storytelling", audience_focus="young adults"),
            )
        ],
        notes="Bring the story about the harbour",
        preaching_settings=PreachingSettings(speech_rate="fast", target_time=35),
        editor_settings=EditorSettings(background_color="#fdf6e3", font_size=22, line_height=2.0),
        version=3,
        mode="quick",
        status="drafting",
        last_modified=1700000001000,
        date="2026-10-18",
        series_id="series-1",
        is_deleted=True,
        deleted_at=1700000002000,
        is_locked=True,
    )
