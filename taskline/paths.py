"""Scope checks for the ``path`` filter of task listings."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from taskline.errors import TasklineError


def validate_path(tasks_root: Path, raw_path: str) -> Path:
    """Resolve a listing scope relative to ``tasks_root``.

    The scope may name a folder or a single document. It must stay under the
    root without passing through a symlink, since discovery never follows one.
    """
    if not isinstance(raw_path, str):
        raise TasklineError(
            "INVALID_TYPE",
            "path filter must be a string relative to the tasks root.",
            {"path": str(raw_path), "type": type(raw_path).__name__},
        )

    scope = PurePosixPath(raw_path.replace("\\", "/"))

    if scope.is_absolute():
        raise TasklineError(
            "ABSOLUTE_PATH",
            "path filter must be relative to the tasks root.",
            {"path": raw_path},
        )

    if ".." in scope.parts:
        raise TasklineError(
            "PATH_TRAVERSAL",
            "path filter cannot leave the tasks root.",
            {"path": raw_path},
        )

    if _contains_symlink(tasks_root, scope):
        raise TasklineError(
            "PATH_SYMLINK",
            "path filter cannot pass through a symlink; its tasks are never scanned.",
            {"path": raw_path},
        )

    return tasks_root.joinpath(*scope.parts)


def _contains_symlink(tasks_root: Path, scope: PurePosixPath) -> bool:
    current = tasks_root
    for segment in scope.parts:
        current = current / segment
        if current.is_symlink():
            return True
    return False
