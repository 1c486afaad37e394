"""Decode and encode single checkbox task lines.

A task line looks like::

    - [ ] 💾 Fix bug {p1} -> 2024-03-01 #infra @[[Alice]] ✅ 2024-03-02

Every token after the checkbox is optional and may appear in any order when
read. Encoding always writes tokens in one fixed order, with braced priority
codes and ISO dates.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from taskline.constants import (
    COMPLETION_DATE_SENTINEL,
    COMPLETION_MARKER,
    DONE_CHECKBOX,
    DUE_MARKER,
    OPEN_CHECKBOX,
)
from taskline.dates import format_date, parse_date
from taskline.taxonomy import CATEGORY_INFO, Category, Priority

CHECKBOX_PATTERN = re.compile(r"^(?P<indent>\s*)- \[(?P<mark>[ xX])\](?=\s|$)")
_DATE_TEXT = r"\d{4}-\d{2}-\d{2}|\d{2}-\d{2}-\d{4}"
ASSIGNEE_PATTERN = re.compile(r"@\[\[(?P<name>[^\[\]]+)\]\]")
COMPLETION_PATTERN = re.compile(
    re.escape(COMPLETION_MARKER) + r"\s*(?P<date>" + _DATE_TEXT + r")(?=\s|$)"
)
DUE_PATTERN = re.compile(
    re.escape(DUE_MARKER) + r"\s*(?P<date>" + _DATE_TEXT + r")(?=\s|$)"
)
PRIORITY_PATTERN = re.compile(
    r"\{(?P<braced>[pP][1-4])\}|!!(?P<bang>[1-4])(?=\s|$)"
)
PROJECT_PATTERN = re.compile(r"(?<!\S)#(?P<tag>[^\s#]+)")
CATEGORY_PATTERNS: dict[Category, re.Pattern[str]] = {
    category: re.compile(re.escape(info.glyph.rstrip("\ufe0f")) + "\ufe0f?")
    for category, info in CATEGORY_INFO.items()
}


@dataclass(frozen=True)
class TaskFields:
    """Structured content of one task line."""

    content: str = ""
    priority: Priority = Priority.NONE
    category: Category = Category.NONE
    due_date: date | None = None
    completion_date: date | None = None
    projects: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()
    indent: str = ""


def is_task_line(line: str) -> bool:
    """Return True when the line starts with a checked or unchecked checkbox."""
    return CHECKBOX_PATTERN.match(line) is not None


def decode_line(raw_line: str) -> TaskFields:
    match = CHECKBOX_PATTERN.match(raw_line)
    if match is None:
        raise ValueError(f"Not a task line: {raw_line!r}")

    checked = match.group("mark").lower() == "x"
    body = raw_line[match.end():]

    assignees: list[str] = []

    def _take_assignee(found: re.Match[str]) -> str:
        assignees.append(found.group("name").strip())
        return " "

    body = ASSIGNEE_PATTERN.sub(_take_assignee, body)

    completion_date, body = _take_date(COMPLETION_PATTERN, body)
    due_date, body = _take_date(DUE_PATTERN, body)

    priority = Priority.NONE

    def _take_priority(found: re.Match[str]) -> str:
        nonlocal priority
        if found.group("braced"):
            priority = Priority(found.group("braced").lower())
        else:
            priority = Priority(f"p{found.group('bang')}")
        return " "

    body = PRIORITY_PATTERN.sub(_take_priority, body)

    # Last match in declared enum order wins; every glyph is stripped.
    # Glyphs go before projects so a glyph glued to a tag still delimits it.
    category = Category.NONE
    for candidate, pattern in CATEGORY_PATTERNS.items():
        if pattern.search(body) is None:
            continue
        category = candidate
        body = pattern.sub(" ", body)

    projects: list[str] = []

    def _take_project(found: re.Match[str]) -> str:
        projects.append(found.group("tag"))
        return " "

    body = PROJECT_PATTERN.sub(_take_project, body)

    if checked and completion_date is None:
        completion_date = COMPLETION_DATE_SENTINEL

    return TaskFields(
        content=" ".join(body.split()),
        priority=priority,
        category=category,
        due_date=due_date,
        completion_date=completion_date,
        projects=tuple(projects),
        assignees=tuple(assignees),
        indent=match.group("indent"),
    )


def contains_markup(text: str) -> bool:
    """Return True when ``text`` would decode to anything besides content."""
    plain = " ".join(text.split())
    return decode_line(f"{OPEN_CHECKBOX} {text}") != TaskFields(content=plain)


def _take_date(pattern: re.Pattern[str], body: str) -> tuple[date | None, str]:
    """Strip every valid date token matching ``pattern``; the last one wins.

    Tokens whose date does not parse are left in place as plain text.
    """
    found_date: date | None = None

    def _replace(found: re.Match[str]) -> str:
        nonlocal found_date
        parsed = parse_date(found.group("date"))
        if parsed is None:
            return found.group(0)
        found_date = parsed
        return " "

    stripped = pattern.sub(_replace, body)
    return found_date, stripped


def encode_line(fields: TaskFields, *, include_category: bool = True) -> str:
    completed = fields.completion_date is not None
    parts = [DONE_CHECKBOX if completed else OPEN_CHECKBOX]

    if include_category and fields.category is not Category.NONE:
        parts.append(fields.category.glyph)
    if fields.content:
        parts.append(fields.content)
    if fields.priority is not Priority.NONE:
        parts.append(f"{{{fields.priority.value}}}")
    if fields.due_date is not None:
        parts.append(f"{DUE_MARKER} {format_date(fields.due_date)}")
    parts.extend(f"#{project}" for project in fields.projects)
    parts.extend(f"@[[{assignee}]]" for assignee in fields.assignees)
    if completed and fields.completion_date != COMPLETION_DATE_SENTINEL:
        parts.append(f"{COMPLETION_MARKER} {format_date(fields.completion_date)}")

    return fields.indent + " ".join(parts)
