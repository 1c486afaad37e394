"""Document discovery and task extraction."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable

from taskline.constants import ALLOWED_DOCUMENT_EXTENSIONS
from taskline.dates import current_day
from taskline.encoding import is_task_line
from taskline.storage import (
    document_modified_date,
    line_text,
    read_document,
    split_document_lines,
)
from taskline.task import Task, TaskState, is_due

TaskPredicate = Callable[[Task], bool]


def discover_documents(root: Path) -> list[Path]:
    """Walk ``root`` depth-first and return every task document.

    Symlinked files and directories are skipped, so link cycles cannot recurse.
    """
    documents: list[Path] = []
    for current, dirnames, filenames in os.walk(root, followlinks=False):
        dir_path = Path(current)
        dirnames[:] = sorted(
            [name for name in dirnames if not (dir_path / name).is_symlink()]
        )

        for filename in sorted(filenames):
            file_path = dir_path / filename
            if file_path.is_symlink():
                continue
            if file_path.suffix.lower() not in ALLOWED_DOCUMENT_EXTENSIONS:
                continue
            documents.append(file_path)

    return documents


def extract_tasks(document: Path) -> list[Task]:
    """Build a Task for every checkbox line of ``document`` in file order."""
    modified_date = document_modified_date(document)
    tasks: list[Task] = []
    for line_number, line in enumerate(
        split_document_lines(read_document(document)), start=1
    ):
        text = line_text(line)
        if not is_task_line(text):
            continue
        tasks.append(Task.from_line(document, line_number, text, modified_date))
    return tasks


def query_tasks(root: Path, predicate: TaskPredicate | None = None) -> list[Task]:
    tasks: list[Task] = []
    for document in discover_documents(root):
        for task in extract_tasks(document):
            if predicate is None or predicate(task):
                tasks.append(task)
    return tasks


def is_unchecked(task: Task) -> bool:
    return task.state is not TaskState.COMPLETED


def is_completed(task: Task) -> bool:
    return task.state is TaskState.COMPLETED


def is_due_today(task: Task) -> bool:
    return is_unchecked(task) and is_due(task.record, current_day())


def all_of(predicates: Iterable[TaskPredicate]) -> TaskPredicate:
    checks = list(predicates)

    def _matches(task: Task) -> bool:
        return all(check(task) for check in checks)

    return _matches
