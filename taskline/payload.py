"""Payload validation helpers for tool endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from taskline.dates import parse_date
from taskline.encoding import contains_markup
from taskline.errors import TasklineError
from taskline.taxonomy import Category, Priority, parse_category, parse_priority


def _ensure_payload_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise TasklineError(
            "INVALID_TYPE",
            "Payload must be an object.",
            {"type": type(payload).__name__},
        )
    return payload


def _reject_unknown_fields(payload: dict[str, Any], allowed_fields: set[str]) -> None:
    unknown_fields = sorted(set(payload) - allowed_fields)
    if unknown_fields:
        raise TasklineError(
            "UNKNOWN_FIELD",
            "Unknown fields are not allowed.",
            {"fields": unknown_fields},
        )


def _require_task_id(payload: dict[str, Any]) -> str:
    if "id" not in payload:
        raise TasklineError(
            "MISSING_ID",
            "id is required.",
            {"fields": ["id"]},
        )
    task_id = payload["id"]
    if not isinstance(task_id, str) or not task_id.strip():
        raise TasklineError(
            "INVALID_TYPE",
            "id must be a non-empty string.",
            {"id": str(task_id)},
        )
    return task_id


def _optional_string(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TasklineError(
            "INVALID_TYPE",
            f"{key} must be a string.",
            {key: str(value), "type": type(value).__name__},
        )
    return value.strip() or None


def _parse_priority_value(value: Any) -> Priority:
    if value is not None and not isinstance(value, str):
        raise TasklineError(
            "INVALID_TYPE",
            "priority must be a string.",
            {"priority": str(value)},
        )
    try:
        return parse_priority(value)
    except ValueError as exc:
        raise TasklineError(
            "INVALID_PRIORITY",
            "priority must be one of p1, p2, p3, p4 or none.",
            {"priority": value},
        ) from exc


def _parse_category_value(value: Any) -> Category:
    if value is not None and not isinstance(value, str):
        raise TasklineError(
            "INVALID_TYPE",
            "category must be a string.",
            {"category": str(value)},
        )
    try:
        return parse_category(value)
    except ValueError as exc:
        raise TasklineError(
            "INVALID_CATEGORY",
            "category must be a known category name or glyph.",
            {"category": value, "allowed": [category.value for category in Category]},
        ) from exc


def _parse_date_value(key: str, value: Any) -> date | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TasklineError(
            "INVALID_TYPE",
            f"{key} must be a string or null.",
            {key: str(value)},
        )
    if not value.strip():
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise TasklineError(
            "INVALID_DATE",
            f"{key} must be a YYYY-MM-DD date.",
            {key: value},
        )
    return parsed


def _parse_content_value(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TasklineError(
            "INVALID_TYPE",
            "content must be a non-empty string.",
            {"content": str(value)},
        )
    if contains_markup(value):
        raise TasklineError(
            "INVALID_CONTENT",
            "content must not contain task markup such as tags or priorities.",
            {"content": value},
        )
    return value
