import os
import time
from datetime import date, timedelta

import pytest

from taskline.collection import TaskCollection
from taskline.documents import is_unchecked
from taskline.errors import TaskNotFoundError
from taskline.taxonomy import Category, Priority


def _seed(root):
    today = date.today()
    (root / "work.md").write_text(
        "- [ ] 💾 Fix login {p1} #web @[[Alice]]\n"
        f"- [ ] 📚 Read paper {{p3}} -> {today:%Y-%m-%d} #research\n"
        "- [ ] 💾 Refactor {p1} #web\n"
        "- [x] Send invoice ✅ 2024-03-02\n"
        "- [x] Ship v1 ✅ 2024-03-05\n"
        "- [x] Legacy done\n",
        encoding="utf-8",
    )
    (root / "home.md").write_text(
        f"- [ ] 👔 Laundry -> {today - timedelta(days=1):%Y-%m-%d} @[[Bob]]\n"
        "- [ ] Stretch ✅ 2024-03-05\n",
        encoding="utf-8",
    )
    return root


def _collection(tmp_path, predicate=None):
    return TaskCollection(_seed(tmp_path), predicate).reload()


def test_reload_and_get(tmp_path):
    collection = _collection(tmp_path)

    assert len(collection) == 8
    task = collection.get(f"{tmp_path / 'work.md'}:1")
    assert task.content == "Fix login"
    assert f"{tmp_path / 'home.md'}:2" in collection


def test_get_unknown_id_raises_and_logs(tmp_path, caplog):
    collection = _collection(tmp_path)

    with pytest.raises(TaskNotFoundError) as excinfo:
        collection.get("nowhere.md:1")

    assert excinfo.value.error.code == "TASK_NOT_FOUND"
    assert "Task not found" in caplog.text


def test_predicate_limits_collection(tmp_path):
    collection = _collection(tmp_path, is_unchecked)

    assert [task.content for task in collection] == [
        "Laundry",
        "Fix login",
        "Read paper",
        "Refactor",
    ]


def test_filter_combines_criteria(tmp_path):
    collection = _collection(tmp_path)

    coding = collection.filter(category=Category.CODING)
    urgent_web = collection.filter(priority=Priority.P1, project="web")
    alice = collection.filter(assignee="Alice")

    assert [task.content for task in coding] == ["Fix login", "Refactor"]
    assert [task.content for task in urgent_web] == ["Fix login", "Refactor"]
    assert [task.content for task in alice] == ["Fix login"]


def test_due_lists_open_due_tasks(tmp_path):
    collection = _collection(tmp_path)

    assert [task.content for task in collection.due()] == ["Laundry", "Read paper"]


def test_group_by_priority_has_every_level(tmp_path):
    collection = _collection(tmp_path, is_unchecked)

    groups = collection.group_by_priority()

    assert list(groups) == list(Priority)
    assert [task.content for task in groups[Priority.P1]] == ["Fix login", "Refactor"]
    assert [task.content for task in groups[Priority.NONE]] == ["Laundry"]
    assert groups[Priority.P2] == []


def test_group_by_completion_date_newest_first(tmp_path):
    collection = _collection(tmp_path)

    groups = collection.group_by_completion_date()

    assert [day for day, _tasks in groups] == [
        date(2024, 3, 5),
        date(2024, 3, 2),
        date(2000, 1, 1),
    ]
    assert sorted(task.content for task in groups[0][1]) == ["Ship v1", "Stretch"]
    assert [task.content for task in groups[2][1]] == ["Legacy done"]


def test_stage_cancel_leaves_document_untouched(tmp_path):
    collection = _collection(tmp_path)
    doc = tmp_path / "work.md"
    before = doc.read_bytes()
    task_id = f"{doc}:3"

    pending = collection.stage(task_id)
    assert collection.stage(task_id) is pending
    assert collection.is_staged(task_id) is True

    assert collection.cancel(task_id) is True
    assert collection.confirm(task_id) is None
    assert collection.get(task_id).is_pending_completion is False
    assert doc.read_bytes() == before


def test_stage_confirm_commits_line(tmp_path):
    collection = _collection(tmp_path)
    doc = tmp_path / "work.md"
    task_id = f"{doc}:3"

    collection.stage(task_id)
    result = collection.confirm(task_id, date(2024, 4, 1))
    collection.reload()

    assert result.ok is True
    assert collection.cancel(task_id) is False
    assert doc.read_text(encoding="utf-8").splitlines()[2] == (
        "- [x] 💾 Refactor {p1} #web ✅ 2024-04-01"
    )
    assert collection.get(task_id).is_completed is True


def test_reload_keeps_staged_task_object(tmp_path):
    collection = _collection(tmp_path)
    task_id = f"{tmp_path / 'work.md'}:1"

    pending = collection.stage(task_id)
    collection.reload()

    assert collection.get(task_id) is pending.task
    assert collection.get(task_id).is_pending_completion is True


def test_reload_drops_staged_completion_when_line_changed(tmp_path, caplog):
    collection = _collection(tmp_path)
    doc = tmp_path / "work.md"
    task_id = f"{doc}:1"

    collection.stage(task_id)
    lines = doc.read_text(encoding="utf-8").splitlines(keepends=True)
    lines.insert(0, "- [ ] Inserted above\n")
    doc.write_text("".join(lines), encoding="utf-8")

    with caplog.at_level("WARNING"):
        collection.reload()

    task = collection.get(task_id)
    assert task.content == "Inserted above"
    assert task.is_pending_completion is False
    assert collection.is_staged(task_id) is False
    assert "line changed on disk" in caplog.text


def test_reload_forgets_staged_completion_for_vanished_line(tmp_path):
    collection = _collection(tmp_path)
    doc = tmp_path / "home.md"
    task_id = f"{doc}:2"

    collection.stage(task_id)
    doc.write_text("- [ ] Only one left\n", encoding="utf-8")
    collection.reload()

    assert task_id not in collection
    assert collection.is_staged(task_id) is False


def test_stage_unknown_id_raises(tmp_path):
    collection = _collection(tmp_path)

    with pytest.raises(TaskNotFoundError):
        collection.stage("missing.md:4")
    with pytest.raises(TaskNotFoundError):
        collection.cancel("missing.md:4")


def test_strict_collection_refuses_stale_writes(tmp_path):
    _seed(tmp_path)
    doc = tmp_path / "work.md"
    scanned_at = time.time() - 100
    os.utime(doc, (scanned_at, scanned_at))
    collection = TaskCollection(tmp_path, check_modified=True).reload()
    first_id = f"{doc}:1"
    third_id = f"{doc}:3"

    collection.stage(first_id)
    assert collection.confirm(first_id, date(2024, 4, 1)).ok is True

    # Another task scanned before the first write now holds a stale mtime.
    collection.stage(third_id)
    stale = collection.confirm(third_id, date(2024, 4, 1))

    assert stale.ok is False
    assert stale.reason == "stale"
    assert doc.read_text(encoding="utf-8").splitlines()[2] == "- [ ] 💾 Refactor {p1} #web"
