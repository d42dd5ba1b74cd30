"""One-way reconciliation of the local store into the remote store.

Run once when a user signs in, before the remote adapter becomes current, so
that nothing written while offline is lost. Only local records travel: remote
records are never deleted or pulled here.

Per collection:

- projects, series: push when absent remotely or strictly newer by
  `last_modified`.
- profile: push when the local profile differs from the baseline default.
- custom prompts: push when absent remotely; prompts present on both sides
  are left alone (they carry no timestamp).

A failed push is logged and recorded, and the loop moves on to the next
record. The merge is idempotent, so records that failed are retried on the
next sign-in.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable

from sermonai_storage.protocol import StorageAdapter
from sermonai_storage.types import DEFAULT_PROFILE, MergeFailure, MergeResult

logger = logging.getLogger(__name__)

PROJECTS = "projects"
SERIES = "series"
PROFILE = "profile"
CUSTOM_PROMPTS = "custom_prompts"


async def _push(result: MergeResult, collection: str, entity_id: str, write: Awaitable[None]) -> None:
    try:
        await write
    except Exception as e:
        logger.warning("Merge: push of %s/%s failed: %s", collection, entity_id, e)
        result.failures.append(MergeFailure(collection, entity_id, str(e)))
        return
    result.pushed[collection] += 1


def _newer_or_absent(local_items: list, remote_items: list) -> list:
    remote_by_id = {item.id: item for item in remote_items}
    pending = []
    for item in local_items:
        existing = remote_by_id.get(item.id)
        if existing is None or item.last_modified > existing.last_modified:
            pending.append(item)
    return pending


async def _merge_projects(local: StorageAdapter, remote: StorageAdapter, result: MergeResult) -> None:
    local_items, remote_items = await asyncio.gather(local.load_projects(), remote.load_projects())
    for project in _newer_or_absent(local_items, remote_items):
        await _push(result, PROJECTS, project.id, remote.save_project(project))


async def _merge_series(local: StorageAdapter, remote: StorageAdapter, result: MergeResult) -> None:
    local_items, remote_items = await asyncio.gather(local.load_series(), remote.load_series())
    for series in _newer_or_absent(local_items, remote_items):
        await _push(result, SERIES, series.id, remote.save_series(series))


async def _merge_profile(local: StorageAdapter, remote: StorageAdapter, result: MergeResult) -> None:
    profile = await local.load_profile()
    if profile != DEFAULT_PROFILE:
        await _push(result, PROFILE, PROFILE, remote.save_profile(profile))


async def _merge_custom_prompts(local: StorageAdapter, remote: StorageAdapter, result: MergeResult) -> None:
    local_items, remote_items = await asyncio.gather(
        local.load_custom_prompts(), remote.load_custom_prompts()
    )
    remote_ids = {prompt.id for prompt in remote_items}
    for prompt in local_items:
        if prompt.id not in remote_ids:
            await _push(result, CUSTOM_PROMPTS, prompt.id, remote.save_custom_prompt(prompt))


async def merge_local_to_remote(local: StorageAdapter, remote: StorageAdapter) -> MergeResult:
    """Push local-only and locally newer records to the remote store.

    Args:
        local: The embedded adapter holding the offline data.
        remote: The freshly opened remote adapter.

    Returns:
        MergeResult with push counts and per-record failures.

    Raises:
        Whatever a collection *load* raises; only individual pushes are
        tolerated.
    """
    result = MergeResult(pushed={PROJECTS: 0, SERIES: 0, PROFILE: 0, CUSTOM_PROMPTS: 0})
    outcomes = await asyncio.gather(
        _merge_projects(local, remote, result),
        _merge_series(local, remote, result),
        _merge_profile(local, remote, result),
        _merge_custom_prompts(local, remote, result),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    if result.failures:
        logger.warning(
            "Merge finished with %d failed push(es); %d record(s) pushed",
            len(result.failures),
            result.total_pushed,
        )
    else:
        logger.info("Merge finished; %d record(s) pushed", result.total_pushed)
    return result
