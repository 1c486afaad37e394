"""Whole-document read and single-line rewrite primitives."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from taskline.utils import _atomic_write

logger = logging.getLogger(__name__)

REWRITE_WRITTEN = "written"
REWRITE_OUT_OF_RANGE = "out_of_range"
REWRITE_STALE = "stale"


@dataclass(frozen=True)
class RewriteResult:
    """Outcome of a single-line rewrite."""

    ok: bool
    reason: str
    path: Path
    line: int
    modified_date: datetime | None = None


def document_modified_date(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def read_document(path: Path) -> str:
    # newline="" keeps CRLF documents intact through a rewrite.
    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


def split_document_lines(content: str) -> list[str]:
    """Split on ``\\n`` only, keeping each line's terminator."""
    pieces = content.split("\n")
    lines = [piece + "\n" for piece in pieces[:-1]]
    if pieces[-1]:
        lines.append(pieces[-1])
    return lines


def line_text(line: str) -> str:
    return line.rstrip("\r\n")


def rewrite_line(
    path: Path,
    line_number: int,
    new_text: str,
    *,
    expected_mtime: datetime | None = None,
) -> RewriteResult:
    """Replace one 1-based line of ``path`` with ``new_text``.

    Reads the whole document and writes it back. Out-of-range line numbers and
    documents modified since ``expected_mtime`` are logged and skipped.
    Filesystem errors propagate.
    """
    path = Path(path)
    if expected_mtime is not None:
        current_mtime = document_modified_date(path)
        if current_mtime != expected_mtime:
            logger.warning(
                "Document %s changed since it was scanned (%s != %s); skipping write",
                path,
                current_mtime.isoformat(),
                expected_mtime.isoformat(),
            )
            return RewriteResult(False, REWRITE_STALE, path, line_number, current_mtime)

    lines = split_document_lines(read_document(path))
    if line_number < 1 or line_number > len(lines):
        logger.warning(
            "Line number %s is out of bounds for file %s (%s lines)",
            line_number,
            path,
            len(lines),
        )
        return RewriteResult(False, REWRITE_OUT_OF_RANGE, path, line_number)

    current = lines[line_number - 1]
    ending = current[len(line_text(current)):]
    lines[line_number - 1] = line_text(new_text) + ending
    _atomic_write(path, "".join(lines))
    logger.info("Line %s replaced in %s", line_number, path)
    return RewriteResult(
        True, REWRITE_WRITTEN, path, line_number, document_modified_date(path)
    )
