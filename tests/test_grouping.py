# tests/test_grouping.py
# PURPOSE: derived task views (grouping buckets, subtask progress).

from datetime import UTC, datetime

import pytest

from taskflow.client.grouping import (
    due_bucket,
    format_day,
    group_tasks,
    parse_datetime,
    priority_label,
    subtask_progress,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


def _task(id, **fields):
    return {"id": id, "title": f"t{id}", "categories": [], "subtasks": [], **fields}


def test_group_none_puts_everything_in_one_bucket():
    tasks = [_task(1), _task(2)]
    assert group_tasks(tasks) == {"All Tasks": tasks}
    assert group_tasks(None, "priority") == {"All Tasks": []}


def test_group_by_category_uses_first_category():
    tasks = [
        _task(1, categories=[{"id": 1, "name": "Work"}, {"id": 2, "name": "Health"}]),
        _task(2),
        _task(3, categories=[{"id": 1, "name": "Work"}]),
    ]
    groups = group_tasks(tasks, "category")
    assert list(groups) == ["Work", "Uncategorized"]
    assert [t["id"] for t in groups["Work"]] == [1, 3]


def test_group_by_priority_labels():
    tasks = [_task(1, priority="HIGH"), _task(2, priority="NONE"), _task(3), _task(4, priority="HIGH")]
    groups = group_tasks(tasks, "priority")
    assert {k: [t["id"] for t in v] for k, v in groups.items()} == {"High": [1, 4], "None": [2, 3]}
    assert priority_label("urgent") == "Urgent"
    assert priority_label(None) == "None"


def test_group_by_due_date_buckets():
    tasks = [
        _task(1, dueDate="2026-10-17T10:00:00Z"),
        _task(2, dueDate="2026-10-18T23:00:00Z"),
        _task(3, dueDate="2026-10-19T05:00:00Z"),
        _task(4, dueDate="2026-10-25T09:00:00Z"),
        _task(5, dueDate=None),
    ]
    groups = group_tasks(tasks, "dueDate", now=NOW)
    assert list(groups) == ["Overdue", "Today", "Tomorrow", "October 25, 2026", "No Due Date"]


def test_unknown_group_by_raises():
    with pytest.raises(ValueError):
        group_tasks([_task(1)], "colour")


def test_due_bucket_and_parsing():
    assert due_bucket(None, NOW) == "No Due Date"
    assert parse_datetime("2026-10-18T12:00:00Z") == NOW
    # naive values are read as UTC
    assert parse_datetime(datetime(2026, 10, 18, 12, 0)) == NOW
    assert format_day(datetime(2026, 3, 5)) == "March 5, 2026"


def test_subtask_progress():
    assert subtask_progress(_task(1)) is None
    parent = _task(
        1,
        subtasks=[
            {"id": 2, "completedAt": "2026-10-18T09:00:00Z"},
            {"id": 3, "completedAt": None},
            {"id": 4, "completedAt": None},
            {"id": 5, "completedAt": "2026-10-18T10:00:00Z"},
        ],
    )
    assert subtask_progress(parent) == {"completed": 2, "total": 4, "percentage": 50.0}
