"""Shared constants for the task line format and service."""

from __future__ import annotations

from datetime import date

ALLOWED_DOCUMENT_EXTENSIONS = {".md", ".markdown"}
DATE_FORMAT = "%Y-%m-%d"
LEGACY_DATE_FORMAT = "%d-%m-%Y"
# Completion date assumed for checked lines that carry no completion token.
COMPLETION_DATE_SENTINEL = date(2000, 1, 1)
DUE_MARKER = "->"
COMPLETION_MARKER = "✅"
OPEN_CHECKBOX = "- [ ]"
DONE_CHECKBOX = "- [x]"
TASK_STATUSES = {"open", "completed", "all"}
