"""Persistence store for goals and tasks.

Each collection is one JSON array blob. Loading never fails on bad data:
an unreadable blob becomes an empty collection and an unreadable record
becomes an inert Unknown record that is written back unchanged on save.
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from habitflow.core import db_client
from habitflow.core.config import settings
from habitflow.core.errors import MalformedDataError, PersistenceError, classify_error_with_response
from habitflow.core.logging import span
from habitflow.domain.goal import Goal, UnknownGoal, goal_adapter
from habitflow.domain.task import Task, UnknownTask, task_adapter


logger = logging.getLogger(__name__)


def _decode_array(key: str, raw: str | None) -> list[Any]:
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedDataError(key, f"Blob {key} is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise MalformedDataError(key, f"Blob {key} is not a JSON array")
    return data


def _parse_records(
    key: str,
    raw: str | None,
    adapter: TypeAdapter,
    fallback: type[BaseModel],
) -> list[Any]:
    try:
        items = _decode_array(key, raw)
    except MalformedDataError as e:
        response = classify_error_with_response(e)
        logger.error(
            "Discarding unreadable collection",
            extra={"key": key, "code": response.code, "severity": response.severity.value, "error": str(e)},
        )
        return []

    records: list[Any] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object record", extra={"key": key, "index": index})
            continue
        try:
            records.append(adapter.validate_python(item))
            continue
        except ValidationError as e:
            logger.warning(
                "Keeping invalid record as unknown",
                extra={"key": key, "index": index, "record_id": item.get("id"), "error": str(e)},
            )
        try:
            records.append(fallback.model_validate(item))
        except ValidationError as e:
            logger.error("Skipping unreadable record", extra={"key": key, "index": index, "error": str(e)})
    return records


def _encode(records: Sequence[BaseModel]) -> str:
    return json.dumps([record.to_record() for record in records])


async def _write_with_retry(key: str, value: str) -> None:
    max_retries = max(1, settings.persist_max_retries)
    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            await db_client.set_blob(key=key, value=value)
            return
        except db_client.DatabaseError as e:
            last_error = e
            logger.warning(
                "Write failed on attempt %d/%d",
                attempt + 1,
                max_retries,
                extra={"key": key, "error": str(e)},
            )
            if attempt < max_retries - 1:
                await asyncio.sleep(settings.persist_retry_base_delay * 2**attempt)

    logger.error("Write failed after all retry attempts", extra={"key": key, "error": str(last_error)})
    raise PersistenceError(key, f"Failed to save {key} after {max_retries} attempts: {last_error}") from last_error


async def load_goals() -> list[Goal]:
    """Load all goals.

    Returns:
        Goals in stored order; empty when nothing was saved or the blob is unreadable
    """
    with span("storage_service.load_goals"):
        raw = await db_client.get_blob(key=settings.goals_key)
        goals = _parse_records(settings.goals_key, raw, goal_adapter, UnknownGoal)
        logger.info("Loaded goals", extra={"count": len(goals)})
        return goals


async def save_goals(goals: Sequence[Goal]) -> None:
    """Replace the stored goals.

    Raises:
        PersistenceError: If the write keeps failing after retries
    """
    with span("storage_service.save_goals"):
        await _write_with_retry(settings.goals_key, _encode(goals))


async def load_tasks() -> list[Task]:
    """Load all tasks.

    Returns:
        Tasks in stored order; empty when nothing was saved or the blob is unreadable
    """
    with span("storage_service.load_tasks"):
        raw = await db_client.get_blob(key=settings.tasks_key)
        tasks = _parse_records(settings.tasks_key, raw, task_adapter, UnknownTask)
        logger.info("Loaded tasks", extra={"count": len(tasks)})
        return tasks


async def save_tasks(tasks: Sequence[Task]) -> None:
    """Replace the stored tasks.

    Raises:
        PersistenceError: If the write keeps failing after retries
    """
    with span("storage_service.save_tasks"):
        await _write_with_retry(settings.tasks_key, _encode(tasks))
