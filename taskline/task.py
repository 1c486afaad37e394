"""Task records, completion state derivation and the commit operation."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Callable

from taskline.dates import current_day
from taskline.encoding import TaskFields, decode_line, encode_line
from taskline.storage import RewriteResult, rewrite_line
from taskline.taxonomy import Category, Priority


class TaskState(str, Enum):
    TODO = "todo"
    PENDING_COMPLETION = "pending_completion"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TaskRecord:
    """Immutable snapshot of one task and where it lives on disk."""

    path: Path
    line: int
    raw_content: str
    fields: TaskFields
    modified_date: datetime | None = None
    pending_completion: bool = False

    @property
    def id(self) -> str:
        return task_id(self.path, self.line)


def task_id(path: Path, line: int) -> str:
    return f"{path}:{line}"


def derive_state(record: TaskRecord) -> TaskState:
    if record.fields.completion_date is not None:
        return TaskState.COMPLETED
    if record.pending_completion:
        return TaskState.PENDING_COMPLETION
    return TaskState.TODO


def complete_record(record: TaskRecord) -> TaskRecord:
    if derive_state(record) is not TaskState.TODO:
        return record
    return replace(record, pending_completion=True)


def uncomplete_record(record: TaskRecord) -> TaskRecord:
    if derive_state(record) is not TaskState.PENDING_COMPLETION:
        return record
    return replace(record, pending_completion=False)


def stamp_completion(record: TaskRecord, today: date) -> TaskRecord:
    """Turn a pending completion into a completed record dated ``today``."""
    if derive_state(record) is not TaskState.PENDING_COMPLETION:
        return record
    return replace(
        record,
        fields=replace(record.fields, completion_date=today),
        pending_completion=False,
    )


def with_priority(record: TaskRecord, priority: Priority) -> TaskRecord:
    return replace(record, fields=replace(record.fields, priority=priority))


def with_due_date(record: TaskRecord, due_date: date | None) -> TaskRecord:
    return replace(record, fields=replace(record.fields, due_date=due_date))


def with_content(record: TaskRecord, content: str) -> TaskRecord:
    return replace(record, fields=replace(record.fields, content=" ".join(content.split())))


def with_category(record: TaskRecord, category: Category) -> TaskRecord:
    return replace(record, fields=replace(record.fields, category=category))


def is_due(record: TaskRecord, today: date | None = None) -> bool:
    due_date = record.fields.due_date
    if due_date is None:
        return False
    return due_date <= (today if today is not None else current_day())


def is_overdue(record: TaskRecord, today: date | None = None) -> bool:
    due_date = record.fields.due_date
    if due_date is None:
        return False
    return due_date < (today if today is not None else current_day())


Writer = Callable[..., RewriteResult]


class Task:
    """In-memory owner of a task record.

    Setters only touch memory; ``commit`` re-encodes the record and writes the
    line back to its document.
    """

    def __init__(self, record: TaskRecord) -> None:
        self._id = record.id
        self._record = record

    @classmethod
    def from_line(
        cls,
        path: Path,
        line: int,
        raw_content: str,
        modified_date: datetime | None = None,
    ) -> "Task":
        record = TaskRecord(
            path=path,
            line=line,
            raw_content=raw_content,
            fields=decode_line(raw_content),
            modified_date=modified_date,
        )
        return cls(record)

    def __repr__(self) -> str:
        return f"Task({self._id!r}, {self.state.value}, {self.content!r})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def record(self) -> TaskRecord:
        return self._record

    @property
    def path(self) -> Path:
        return self._record.path

    @property
    def line(self) -> int:
        return self._record.line

    @property
    def raw_content(self) -> str:
        return self._record.raw_content

    @property
    def fields(self) -> TaskFields:
        return self._record.fields

    @property
    def content(self) -> str:
        return self._record.fields.content

    @property
    def priority(self) -> Priority:
        return self._record.fields.priority

    @property
    def category(self) -> Category:
        return self._record.fields.category

    @property
    def due_date(self) -> date | None:
        return self._record.fields.due_date

    @property
    def completion_date(self) -> date | None:
        return self._record.fields.completion_date

    @property
    def modified_date(self) -> datetime | None:
        return self._record.modified_date

    @property
    def projects(self) -> tuple[str, ...]:
        return self._record.fields.projects

    @property
    def assignees(self) -> tuple[str, ...]:
        return self._record.fields.assignees

    @property
    def state(self) -> TaskState:
        return derive_state(self._record)

    @property
    def is_completed(self) -> bool:
        return self.state is TaskState.COMPLETED

    @property
    def is_pending_completion(self) -> bool:
        return self.state is TaskState.PENDING_COMPLETION

    @property
    def is_due(self) -> bool:
        return is_due(self._record)

    @property
    def is_overdue(self) -> bool:
        return is_overdue(self._record)

    def complete(self) -> None:
        self._record = complete_record(self._record)

    def uncomplete(self) -> None:
        self._record = uncomplete_record(self._record)

    def set_priority(self, priority: Priority) -> None:
        self._record = with_priority(self._record, priority)

    def set_due_date(self, due_date: date | None) -> None:
        self._record = with_due_date(self._record, due_date)

    def set_content(self, content: str) -> None:
        self._record = with_content(self._record, content)

    def set_category(self, category: Category) -> None:
        self._record = with_category(self._record, category)

    def commit(
        self,
        today: date | None = None,
        *,
        writer: Writer = rewrite_line,
        check_modified: bool = False,
    ) -> RewriteResult:
        """Persist the task to its document line.

        A pending completion is stamped with the current day. The in-memory
        record only advances when the write succeeded, and then holds the
        fields decoded from the written line.
        """
        stamped = stamp_completion(
            self._record, today if today is not None else current_day()
        )
        new_line = encode_line(stamped.fields)
        expected_mtime = self._record.modified_date if check_modified else None
        result = writer(
            self._record.path,
            self._record.line,
            new_line,
            expected_mtime=expected_mtime,
        )
        if result.ok:
            self._record = replace(
                stamped,
                raw_content=new_line,
                fields=decode_line(new_line),
                modified_date=result.modified_date,
            )
        return result


class PendingCompletion:
    """Two-phase completion handle.

    Exactly one of ``cancel`` or ``confirm`` takes effect; whichever runs
    second is a no-op.
    """

    def __init__(self, task: Task, *, check_modified: bool = False) -> None:
        self.task = task
        self._check_modified = check_modified
        self._lock = threading.Lock()
        self._settled = False
        self.result: RewriteResult | None = None
        task.complete()

    @property
    def settled(self) -> bool:
        return self._settled

    def cancel(self) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            self.task.uncomplete()
            return True

    def confirm(self, today: date | None = None) -> RewriteResult | None:
        with self._lock:
            if self._settled:
                return None
            self._settled = True
            self.result = self.task.commit(today, check_modified=self._check_modified)
            return self.result


def stage_completion(task: Task, *, check_modified: bool = False) -> PendingCompletion:
    return PendingCompletion(task, check_modified=check_modified)
