"""Task tool endpoints."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import Request

from taskline.collection import TaskCollection
from taskline.constants import TASK_STATUSES
from taskline.dates import current_day, format_date, relative_label
from taskline.documents import is_completed, is_unchecked
from taskline.errors import TasklineError, success_response
from taskline.paths import validate_path
from taskline.payload import (
    _ensure_payload_dict,
    _optional_string,
    _parse_category_value,
    _parse_content_value,
    _parse_date_value,
    _parse_priority_value,
    _reject_unknown_fields,
    _require_task_id,
)
from taskline.router import task_router
from taskline.storage import REWRITE_OUT_OF_RANGE, REWRITE_STALE, RewriteResult
from taskline.task import Task

UPDATABLE_FIELDS = {"priority", "dueDate", "content", "category"}


@task_router.post("/tool:list_tasks")
def list_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List tasks, optionally filtered and grouped by priority."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(
        payload,
        {"status", "category", "priority", "project", "assignee", "path", "groupBy"},
    )

    status_filter = payload.get("status", "open")
    if status_filter not in TASK_STATUSES:
        raise TasklineError(
            "INVALID_STATUS",
            "status must be one of open, completed or all.",
            {"status": status_filter, "allowed": sorted(TASK_STATUSES)},
        )
    group_by = payload.get("groupBy")
    if group_by not in {None, "priority"}:
        raise TasklineError(
            "INVALID_GROUP",
            "groupBy must be 'priority' when provided.",
            {"groupBy": group_by},
        )

    category = (
        _parse_category_value(payload["category"]) if "category" in payload else None
    )
    priority = (
        _parse_priority_value(payload["priority"]) if "priority" in payload else None
    )

    collection = get_request_collection(request)
    tasks = collection.filter(
        category=category,
        priority=priority,
        project=_optional_string(payload, "project"),
        assignee=_optional_string(payload, "assignee"),
    )
    if status_filter == "open":
        tasks = [task for task in tasks if is_unchecked(task)]
    elif status_filter == "completed":
        tasks = [task for task in tasks if is_completed(task)]

    if "path" in payload:
        scope_root = validate_path(collection.root, payload["path"])
        tasks = [task for task in tasks if _is_within(task.path, scope_root)]

    data: dict[str, Any] = {
        "tasks": [_serialize_task(task, collection.root) for task in tasks]
    }
    if group_by == "priority":
        data["groups"] = [
            {
                "priority": priority_key.value,
                "label": priority_key.label,
                "color": priority_key.color,
                "ids": [task.id for task in grouped],
            }
            for priority_key, grouped in collection.group_by_priority(tasks).items()
        ]
    return success_response(data)


@task_router.post("/tool:list_due_tasks")
def list_due_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List open tasks that are due today or overdue."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, set())

    collection = get_request_collection(request)
    tasks = collection.due()
    return success_response(
        {"tasks": [_serialize_task(task, collection.root) for task in tasks]}
    )


@task_router.post("/tool:completion_summary")
def completion_summary(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Group completed tasks by completion date, newest first."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, set())

    collection = get_request_collection(request)
    days = [
        {
            "date": format_date(completed_on),
            "count": len(tasks),
            "tasks": [_serialize_task(task, collection.root) for task in tasks],
        }
        for completed_on, tasks in collection.group_by_completion_date()
    ]
    return success_response({"days": days})


@task_router.post("/tool:get_task")
def get_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Return a single task by id."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    task_id = _require_task_id(payload)

    collection = get_request_collection(request)
    task = collection.get(task_id)
    return success_response({"task": _serialize_task(task, collection.root)})


@task_router.post("/tool:complete_task")
def complete_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Stage a completion; it reaches disk on confirm_completion."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    task_id = _require_task_id(payload)

    collection = get_request_collection(request)
    task = collection.get(task_id)
    if task.is_completed:
        raise TasklineError(
            "TASK_COMPLETED",
            "Task is already completed.",
            {"id": task_id},
        )
    pending = collection.stage(task_id)
    return success_response({"task": _serialize_task(pending.task, collection.root)})


@task_router.post("/tool:undo_completion")
def undo_completion(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Cancel a staged completion before it is confirmed."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    task_id = _require_task_id(payload)

    collection = get_request_collection(request)
    cancelled = collection.cancel(task_id)
    task = collection.get(task_id)
    return success_response(
        {"task": _serialize_task(task, collection.root), "cancelled": cancelled}
    )


@task_router.post("/tool:confirm_completion")
def confirm_completion(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Write a staged completion to its document."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})
    task_id = _require_task_id(payload)

    collection = get_request_collection(request)
    task = collection.get(task_id)
    result = collection.confirm(task_id)
    if result is None:
        return success_response(
            {"task": _serialize_task(task, collection.root), "committed": False}
        )

    collection.reload()
    _raise_for_rewrite(result)
    return success_response(
        {"task": _serialize_task(task, collection.root), "committed": True}
    )


@task_router.post("/tool:update_task")
def update_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Edit priority, due date, content or category and commit the line."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id", "fields"})
    task_id = _require_task_id(payload)

    fields = payload.get("fields")
    if not isinstance(fields, dict):
        raise TasklineError(
            "INVALID_TYPE",
            "fields must be an object.",
            {"fields": str(fields)},
        )
    _reject_unknown_fields(fields, UPDATABLE_FIELDS)

    # Validate everything before the task is touched.
    priority = (
        _parse_priority_value(fields["priority"]) if "priority" in fields else None
    )
    due_date = (
        _parse_date_value("dueDate", fields["dueDate"]) if "dueDate" in fields else None
    )
    category = (
        _parse_category_value(fields["category"]) if "category" in fields else None
    )
    content = _parse_content_value(fields["content"]) if "content" in fields else None

    collection = get_request_collection(request)
    task = collection.get(task_id)
    if collection.is_staged(task_id):
        raise TasklineError(
            "TASK_PENDING_COMPLETION",
            "Task has a staged completion; confirm or undo it first.",
            {"id": task_id},
        )

    if priority is not None:
        task.set_priority(priority)
    if "dueDate" in fields:
        task.set_due_date(due_date)
    if category is not None:
        task.set_category(category)
    if content is not None:
        task.set_content(content)

    result = task.commit(check_modified=collection.check_modified)
    collection.reload()
    _raise_for_rewrite(result)
    return success_response({"task": _serialize_task(task, collection.root)})


@task_router.post("/tool:reload_tasks")
def reload_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Rescan the tasks root."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, set())

    collection = get_request_collection(request).reload()
    return success_response({"count": len(collection)})


def get_request_collection(request: Request) -> TaskCollection:
    """Return the app-wide collection, scanning the root on first use."""
    state = request.app.state
    collection = getattr(state, "collection", None)
    if collection is not None:
        return collection

    config = getattr(state, "config", None)
    if config is not None and hasattr(config, "tasks_root"):
        tasks_root = Path(config.tasks_root)
    else:
        tasks_root = Path(state.tasks_root)
    strict_writes = bool(getattr(config, "strict_writes", False))

    if not tasks_root.is_dir():
        raise TasklineError(
            "FILE_NOT_FOUND",
            "Tasks root does not exist.",
            {"path": str(tasks_root)},
        )

    collection = TaskCollection(tasks_root, check_modified=strict_writes).reload()
    state.collection = collection
    return collection


def _raise_for_rewrite(result: RewriteResult) -> None:
    if result.ok:
        return
    if result.reason == REWRITE_OUT_OF_RANGE:
        raise TasklineError(
            "LINE_OUT_OF_RANGE",
            "Task line no longer exists in its document; reload tasks.",
            {"path": str(result.path), "line": result.line},
        )
    if result.reason == REWRITE_STALE:
        raise TasklineError(
            "STALE_DOCUMENT",
            "Document changed since it was scanned; reload tasks.",
            {"path": str(result.path), "line": result.line},
        )
    raise TasklineError(
        "WRITE_FAILED",
        "Task line was not written.",
        {"path": str(result.path), "line": result.line, "reason": result.reason},
    )


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True


def _serialize_task(task: Task, tasks_root: Path) -> dict[str, Any]:
    today = current_day()
    try:
        relative_path = task.path.relative_to(tasks_root).as_posix()
    except ValueError:
        relative_path = task.path.as_posix()

    due_date = task.due_date
    completion_date = task.completion_date
    modified_date = task.modified_date
    return {
        "id": task.id,
        "path": relative_path,
        "line": task.line,
        "content": task.content,
        "rawContent": task.raw_content,
        "priority": task.priority.value,
        "priorityLabel": task.priority.label,
        "priorityColor": task.priority.color,
        "category": task.category.value,
        "categoryLabel": task.category.label,
        "categoryGlyph": task.category.glyph,
        "dueDate": format_date(due_date) if due_date else None,
        "dueLabel": relative_label(due_date, today) if due_date else None,
        "completionDate": format_date(completion_date) if completion_date else None,
        "modifiedDate": modified_date.isoformat() if modified_date else None,
        "projects": list(task.projects),
        "assignees": list(task.assignees),
        "state": task.state.value,
        "isCompleted": task.is_completed,
        "isPendingCompletion": task.is_pending_completion,
        "isDue": task.is_due,
        "isOverdue": task.is_overdue,
    }
