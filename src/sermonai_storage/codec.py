"""Record codec between entities and backend shapes.

Two shapes exist for every collection:

- *record*: the application's camelCase JSON shape, stored as-is by the
  SQLite adapter (one JSON document per row).
- *row*: the snake_case shape of the Supabase tables, one column per field,
  structured fields in JSON columns, plus the owning `user_id`.

Nested objects (audience context, settings, sub-entity lists) are camelCase in
both shapes. Decoders never raise on a malformed payload: missing, null or
wrongly typed fields fall back to the entity's defaults so that one bad field
cannot block a whole load.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from sermonai_storage.types import (
    AudienceContext,
    CustomPrompt,
    DraftOption,
    DraftVersion,
    EditorSettings,
    HermeneuticItem,
    MeditationEntry,
    PreachingSettings,
    SermonProject,
    SermonSeries,
    TextAnalysisItem,
    TheologicalProfile,
)

logger = logging.getLogger(__name__)

KeyFn = Callable[[str], str]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _column(name: str) -> str:
    return name


# Plain text attributes of SermonProject, shared by both shapes.
_PROJECT_TEXT_FIELDS = (
    "title",
    "passage",
    "theme",
    "audience",
    "sermon_goal",
    "structure",
    "historical_context",
    "original_language",
    "theological_themes",
    "journal",
    "application_points",
    "draft",
    "notes",
    "mode",
    "status",
)


# === Lenient readers ===


def _str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _opt_int(value: Any) -> int | None:
    if value is None:
        return None
    return _int(value, 0)


def _float(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "t", "1"):
            return True
        if text in ("false", "f", "0"):
            return False
    return default


def _json(value: Any) -> Any:
    """Accept JSON columns delivered either decoded or as text."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("Ignoring undecodable JSON field: %.40r", value)
            return None
    return value


def _dict(value: Any) -> dict:
    value = _json(value)
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[dict]:
    value = _json(value)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


# === Nested objects (camelCase in both shapes) ===


def _audience_to_json(audience: AudienceContext) -> dict:
    data: dict[str, Any] = {"description": audience.description}
    for name in ("average_age", "spiritual_level", "current_situation"):
        value = getattr(audience, name)
        if value is not None:
            data[_camel(name)] = value
    return data


def _audience_from_json(value: Any) -> AudienceContext:
    data = _dict(value)
    return AudienceContext(
        description=_str(data.get("description")),
        average_age=_opt_str(data.get("averageAge")),
        spiritual_level=_opt_str(data.get("spiritualLevel")),
        current_situation=_opt_str(data.get("currentSituation")),
    )


def _text_analysis_from_json(data: dict) -> TextAnalysisItem:
    return TextAnalysisItem(
        verse_ref=_str(data.get("verseRef")),
        primary_text=_str(data.get("primaryText")),
        note=_str(data.get("note")),
    )


def _hermeneutic_from_json(data: dict) -> HermeneuticItem:
    return HermeneuticItem(
        id=_str(data.get("id")),
        observation=_str(data.get("observation")),
        interpretation=_str(data.get("interpretation")),
        application=_str(data.get("application")),
    )


def _meditation_from_json(data: dict) -> MeditationEntry:
    return MeditationEntry(
        id=_str(data.get("id")),
        date=_int(data.get("date"), 0),
        prompt=_str(data.get("prompt")),
        content=_str(data.get("content")),
        is_private=_bool(data.get("isPrivate")),
    )


def _draft_option_to_json(option: DraftOption) -> dict:
    return {
        "length": option.length,
        "tone": option.tone,
        "audienceFocus": option.audience_focus,
    }


def _draft_option_from_json(value: Any) -> DraftOption:
    data = _dict(value)
    default = DraftOption()
    return DraftOption(
        length=_str(data.get("length"), default.length),
        tone=_str(data.get("tone"), default.tone),
        audience_focus=_str(data.get("audienceFocus")),
    )


def _draft_version_to_json(version: DraftVersion) -> dict:
    return {
        "id": version.id,
        "timestamp": version.timestamp,
        "content": version.content,
        "options": _draft_option_to_json(version.options),
    }


def _draft_version_from_json(data: dict) -> DraftVersion:
    return DraftVersion(
        id=_str(data.get("id")),
        timestamp=_int(data.get("timestamp"), 0),
        content=_str(data.get("content")),
        options=_draft_option_from_json(data.get("options")),
    )


def _preaching_from_json(value: Any) -> PreachingSettings:
    data = _dict(value)
    default = PreachingSettings()
    return PreachingSettings(
        speech_rate=_str(data.get("speechRate"), default.speech_rate),
        target_time=_int(data.get("targetTime"), default.target_time),
    )


def _editor_from_json(value: Any) -> EditorSettings:
    data = _dict(value)
    default = EditorSettings()
    return EditorSettings(
        background_color=_str(data.get("backgroundColor"), default.background_color),
        font_size=_int(data.get("fontSize"), default.font_size),
        line_height=_float(data.get("lineHeight"), default.line_height),
    )


# === Sermon projects ===


def _encode_project(project: SermonProject, key: KeyFn) -> dict:
    data: dict[str, Any] = {"id": project.id}
    for name in _PROJECT_TEXT_FIELDS:
        data[key(name)] = getattr(project, name)
    data[key("audience_context")] = _audience_to_json(project.audience_context)
    data[key("text_analysis")] = [
        {"verseRef": item.verse_ref, "primaryText": item.primary_text, "note": item.note}
        for item in project.text_analysis
    ]
    data[key("hermeneutics")] = [
        {
            "id": item.id,
            "observation": item.observation,
            "interpretation": item.interpretation,
            "application": item.application,
        }
        for item in project.hermeneutics
    ]
    data[key("meditation_entries")] = [
        {
            "id": entry.id,
            "date": entry.date,
            "prompt": entry.prompt,
            "content": entry.content,
            "isPrivate": entry.is_private,
        }
        for entry in project.meditation_entries
    ]
    data[key("draft_versions")] = [_draft_version_to_json(v) for v in project.draft_versions]
    data[key("preaching_settings")] = {
        "speechRate": project.preaching_settings.speech_rate,
        "targetTime": project.preaching_settings.target_time,
    }
    data[key("editor_settings")] = {
        "backgroundColor": project.editor_settings.background_color,
        "fontSize": project.editor_settings.font_size,
        "lineHeight": project.editor_settings.line_height,
    }
    data[key("version")] = project.version
    data[key("last_modified")] = project.last_modified
    data[key("date")] = project.date
    data[key("series_id")] = project.series_id
    data[key("is_deleted")] = project.is_deleted
    data[key("deleted_at")] = project.deleted_at
    data[key("is_locked")] = project.is_locked
    return data


def _decode_project(data: dict, key: KeyFn) -> SermonProject:
    project = SermonProject(id=_str(data.get("id")))
    for name in _PROJECT_TEXT_FIELDS:
        setattr(project, name, _str(data.get(key(name)), getattr(project, name)))
    project.audience_context = _audience_from_json(data.get(key("audience_context")))
    project.text_analysis = [
        _text_analysis_from_json(item) for item in _list(data.get(key("text_analysis")))
    ]
    project.hermeneutics = [
        _hermeneutic_from_json(item) for item in _list(data.get(key("hermeneutics")))
    ]
    project.meditation_entries = [
        _meditation_from_json(item) for item in _list(data.get(key("meditation_entries")))
    ]
    project.draft_versions = [
        _draft_version_from_json(item) for item in _list(data.get(key("draft_versions")))
    ]
    project.preaching_settings = _preaching_from_json(data.get(key("preaching_settings")))
    project.editor_settings = _editor_from_json(data.get(key("editor_settings")))
    project.version = _int(data.get(key("version")), 1)
    project.last_modified = _int(data.get(key("last_modified")), 0)
    project.date = _opt_str(data.get(key("date")))
    project.series_id = _opt_str(data.get(key("series_id")))
    project.is_deleted = _bool(data.get(key("is_deleted")))
    project.deleted_at = _opt_int(data.get(key("deleted_at")))
    project.is_locked = _bool(data.get(key("is_locked")))
    return project


def project_to_record(project: SermonProject) -> dict:
    return _encode_project(project, _camel)


def project_from_record(record: dict) -> SermonProject:
    return _decode_project(record, _camel)


def project_to_row(project: SermonProject, user_id: str) -> dict:
    return {**_encode_project(project, _column), "user_id": user_id}


def project_from_row(row: dict) -> SermonProject:
    return _decode_project(row, _column)


# === Series ===


def _encode_series(series: SermonSeries, key: KeyFn) -> dict:
    return {
        "id": series.id,
        "title": series.title,
        "description": series.description,
        key("last_modified"): series.last_modified,
    }


def _decode_series(data: dict, key: KeyFn) -> SermonSeries:
    return SermonSeries(
        id=_str(data.get("id")),
        title=_str(data.get("title")),
        description=_str(data.get("description")),
        last_modified=_int(data.get(key("last_modified")), 0),
    )


def series_to_record(series: SermonSeries) -> dict:
    return _encode_series(series, _camel)


def series_from_record(record: dict) -> SermonSeries:
    return _decode_series(record, _camel)


def series_to_row(series: SermonSeries, user_id: str) -> dict:
    return {**_encode_series(series, _column), "user_id": user_id}


def series_from_row(row: dict) -> SermonSeries:
    return _decode_series(row, _column)


# === Theological profile ===


def _encode_profile(profile: TheologicalProfile, key: KeyFn) -> dict:
    return {
        "denomination": profile.denomination,
        "style": profile.style,
        "avoidance": profile.avoidance,
        "guardrail": profile.guardrail,
        key("preferred_structure"): profile.preferred_structure,
        key("default_audience"): (
            _audience_to_json(profile.default_audience)
            if profile.default_audience is not None
            else None
        ),
    }


def _decode_profile(data: dict, key: KeyFn) -> TheologicalProfile:
    audience = _json(data.get(key("default_audience")))
    return TheologicalProfile(
        denomination=_str(data.get("denomination")),
        style=_str(data.get("style")),
        avoidance=_str(data.get("avoidance")),
        guardrail=_opt_str(data.get("guardrail")),
        preferred_structure=_opt_str(data.get(key("preferred_structure"))),
        default_audience=_audience_from_json(audience) if isinstance(audience, dict) else None,
    )


def profile_to_record(profile: TheologicalProfile) -> dict:
    return _encode_profile(profile, _camel)


def profile_from_record(record: dict) -> TheologicalProfile:
    return _decode_profile(record, _camel)


def profile_to_row(profile: TheologicalProfile, user_id: str) -> dict:
    return {**_encode_profile(profile, _column), "user_id": user_id}


def profile_from_row(row: dict) -> TheologicalProfile:
    return _decode_profile(row, _column)


# === Custom prompts ===


def prompt_to_record(prompt: CustomPrompt) -> dict:
    return {"id": prompt.id, "title": prompt.title, "content": prompt.content}


def prompt_from_record(record: dict) -> CustomPrompt:
    return CustomPrompt(
        id=_str(record.get("id")),
        title=_str(record.get("title")),
        content=_str(record.get("content")),
    )


def prompt_to_row(prompt: CustomPrompt, user_id: str) -> dict:
    return {**prompt_to_record(prompt), "user_id": user_id}


def prompt_from_row(row: dict) -> CustomPrompt:
    return prompt_from_record(row)
