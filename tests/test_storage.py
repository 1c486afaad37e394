import logging
from datetime import timedelta

import pytest

from taskline.storage import (
    REWRITE_OUT_OF_RANGE,
    REWRITE_STALE,
    REWRITE_WRITTEN,
    document_modified_date,
    rewrite_line,
    split_document_lines,
)


def test_split_document_lines_keeps_terminators():
    assert split_document_lines("a\nb\r\nc") == ["a\n", "b\r\n", "c"]
    assert split_document_lines("a\n") == ["a\n"]
    assert split_document_lines("") == []


def test_rewrite_line_replaces_only_target(tmp_path):
    doc = tmp_path / "todo.md"
    doc.write_text("# Title\n- [ ] one\n- [ ] two\n", encoding="utf-8")

    result = rewrite_line(doc, 2, "- [x] one")

    assert result.ok is True
    assert result.reason == REWRITE_WRITTEN
    assert result.modified_date == document_modified_date(doc)
    assert doc.read_text(encoding="utf-8") == "# Title\n- [x] one\n- [ ] two\n"


def test_rewrite_line_preserves_crlf_and_missing_final_newline(tmp_path):
    doc = tmp_path / "todo.md"
    doc.write_bytes(b"- [ ] one\r\n- [ ] two")

    rewrite_line(doc, 1, "- [x] one")
    rewrite_line(doc, 2, "- [x] two")

    assert doc.read_bytes() == b"- [x] one\r\n- [x] two"


def test_rewrite_line_out_of_range_skips_write(tmp_path, caplog):
    doc = tmp_path / "todo.md"
    doc.write_text("- [ ] one\n- [ ] two\n", encoding="utf-8")
    before = doc.read_bytes()

    with caplog.at_level(logging.WARNING, logger="taskline.storage"):
        result = rewrite_line(doc, 3, "- [x] three")

    assert result.ok is False
    assert result.reason == REWRITE_OUT_OF_RANGE
    assert doc.read_bytes() == before
    assert "out of bounds" in caplog.text


def test_rewrite_line_rejects_zero(tmp_path):
    doc = tmp_path / "todo.md"
    doc.write_text("- [ ] one\n", encoding="utf-8")

    assert rewrite_line(doc, 0, "x").reason == REWRITE_OUT_OF_RANGE


def test_rewrite_line_stale_document_is_skipped(tmp_path):
    doc = tmp_path / "todo.md"
    doc.write_text("- [ ] one\n", encoding="utf-8")
    scanned_at = document_modified_date(doc) - timedelta(seconds=5)

    result = rewrite_line(doc, 1, "- [x] one", expected_mtime=scanned_at)

    assert result.ok is False
    assert result.reason == REWRITE_STALE
    assert doc.read_text(encoding="utf-8") == "- [ ] one\n"


def test_rewrite_line_matching_mtime_writes(tmp_path):
    doc = tmp_path / "todo.md"
    doc.write_text("- [ ] one\n", encoding="utf-8")

    result = rewrite_line(
        doc, 1, "- [x] one", expected_mtime=document_modified_date(doc)
    )

    assert result.ok is True


def test_rewrite_line_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        rewrite_line(tmp_path / "missing.md", 1, "- [ ] x")
