"""In-memory task collection keyed by task id."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from datetime import date
from pathlib import Path
from typing import Iterator

from taskline.constants import COMPLETION_DATE_SENTINEL
from taskline.documents import TaskPredicate, all_of, is_due_today, query_tasks
from taskline.errors import TaskNotFoundError
from taskline.storage import RewriteResult
from taskline.task import PendingCompletion, Task, stage_completion
from taskline.taxonomy import Category, Priority

logger = logging.getLogger(__name__)


class TaskCollection:
    """Scanned tasks under one root plus their staged completions."""

    def __init__(
        self,
        root: Path,
        predicate: TaskPredicate | None = None,
        *,
        check_modified: bool = False,
    ) -> None:
        self.root = Path(root)
        self.predicate = predicate
        self.check_modified = check_modified
        self._tasks: OrderedDict[str, Task] = OrderedDict()
        self._pending: dict[str, PendingCompletion] = {}
        self._lock = threading.RLock()

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def reload(self) -> "TaskCollection":
        """Rescan the root; staged completions keep their in-memory state."""
        with self._lock:
            scanned = query_tasks(self.root, self.predicate)
            tasks: OrderedDict[str, Task] = OrderedDict()
            for task in scanned:
                pending = self._pending.get(task.id)
                if pending is not None and pending.task.raw_content != task.raw_content:
                    logger.warning(
                        "Dropping staged completion for %s; line changed on disk",
                        task.id,
                    )
                    del self._pending[task.id]
                    pending = None
                tasks[task.id] = pending.task if pending is not None else task
            for task_id in [key for key in self._pending if key not in tasks]:
                del self._pending[task_id]
            self._tasks = tasks
        return self

    def get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            logger.warning("Task not found: %s", task_id)
            raise TaskNotFoundError(task_id)
        return task

    def filter(
        self,
        *,
        category: Category | None = None,
        priority: Priority | None = None,
        project: str | None = None,
        assignee: str | None = None,
        due_only: bool = False,
    ) -> list[Task]:
        checks = []
        if category is not None:
            checks.append(lambda task: task.category is category)
        if priority is not None:
            checks.append(lambda task: task.priority is priority)
        if project:
            checks.append(lambda task: project in task.projects)
        if assignee:
            checks.append(lambda task: assignee in task.assignees)
        if due_only:
            checks.append(is_due_today)
        matches = all_of(checks)
        return [task for task in self if matches(task)]

    def due(self) -> list[Task]:
        return self.filter(due_only=True)

    def group_by_priority(
        self, tasks: list[Task] | None = None
    ) -> dict[Priority, list[Task]]:
        groups: dict[Priority, list[Task]] = {priority: [] for priority in Priority}
        for task in tasks if tasks is not None else self:
            groups[task.priority].append(task)
        return groups

    def group_by_completion_date(
        self, tasks: list[Task] | None = None
    ) -> list[tuple[date, list[Task]]]:
        """Completed tasks grouped by completion day, newest first."""
        groups: dict[date, list[Task]] = {}
        for task in tasks if tasks is not None else self:
            if not task.is_completed:
                continue
            completed_on = task.completion_date or COMPLETION_DATE_SENTINEL
            groups.setdefault(completed_on, []).append(task)
        return sorted(groups.items(), key=lambda item: item[0], reverse=True)

    def stage(self, task_id: str) -> PendingCompletion:
        with self._lock:
            existing = self._pending.get(task_id)
            if existing is not None and not existing.settled:
                return existing
            task = self.get(task_id)
            pending = stage_completion(task, check_modified=self.check_modified)
            self._pending[task_id] = pending
            return pending

    def cancel(self, task_id: str) -> bool:
        with self._lock:
            pending = self._pending.pop(task_id, None)
            if pending is None:
                self.get(task_id)
                return False
            return pending.cancel()

    def confirm(self, task_id: str, today: date | None = None) -> RewriteResult | None:
        with self._lock:
            pending = self._pending.pop(task_id, None)
            if pending is None:
                self.get(task_id)
                return None
            return pending.confirm(today)

    def is_staged(self, task_id: str) -> bool:
        pending = self._pending.get(task_id)
        return pending is not None and not pending.settled
