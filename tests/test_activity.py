# tests/test_activity.py
# PURPOSE: /user/activity (change summary + task stats) and the stats helpers.

from datetime import datetime, timedelta

import pytest

from taskflow.db_models import TaskDB, TaskHistoryDB, UserDB, now_utc
from taskflow.store.activity import activity_summary, completion_rate, task_stats, today_window


@pytest.mark.parametrize(
    "completed,total,expected",
    [(0, 0, 0), (0, 5, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (1, 200, 1), (1, 201, 0), (5, 5, 100)],
)
def test_completion_rate_rounds_half_up(completed, total, expected):
    assert completion_rate(completed, total) == expected


def test_today_window_utc():
    start, end = today_window(datetime(2026, 10, 18, 15, 30), "UTC")
    assert start == datetime(2026, 10, 18)
    assert end == datetime(2026, 10, 19)


def _user(db, email="stats@example.com"):
    user = UserDB(email=email)
    db.add(user)
    db.commit()
    return user


def test_task_stats_counts(db):
    now = datetime(2026, 10, 18, 12, 0)
    user = _user(db)
    db.add_all(
        [
            TaskDB(user_id=user.id, title="overdue", due_date=now - timedelta(days=1)),
            TaskDB(user_id=user.id, title="due later today", due_date=now + timedelta(hours=3)),
            TaskDB(user_id=user.id, title="earlier today", due_date=now - timedelta(hours=2)),
            TaskDB(user_id=user.id, title="tomorrow", due_date=now + timedelta(days=1)),
            TaskDB(user_id=user.id, title="done today", due_date=now, completed_at=now),
            TaskDB(user_id=user.id, title="no date"),
        ]
    )
    db.commit()

    stats = task_stats(db, owner_id=user.id, now=now, tz_name="UTC")
    assert stats == {
        "total_tasks": 6,
        "completed_tasks": 1,
        # "earlier today" is both overdue and due today
        "overdue_tasks": 2,
        "tasks_due_today": 2,
        "completion_rate": 17,
    }


def test_task_stats_empty(db):
    user = _user(db)
    assert task_stats(db, owner_id=user.id, tz_name="UTC")["completion_rate"] == 0


def test_activity_summary_window_and_buckets(db):
    now = datetime(2026, 10, 18, 12, 0)
    user = _user(db)

    def entry(kind, at, title="t"):
        return TaskHistoryDB(
            user_id=user.id, task_title=title, change_type=kind, change_data={}, created_at=at
        )

    db.add_all(
        [
            entry("CREATED", now - timedelta(days=1)),
            entry("UPDATED", now - timedelta(days=1, hours=1)),
            entry("COMPLETED", now - timedelta(hours=1)),
            entry("DELETED", now - timedelta(minutes=5), title="gone"),
            # outside a 7 day window
            entry("CREATED", now - timedelta(days=8)),
        ]
    )
    db.commit()

    summary = activity_summary(db, owner_id=user.id, days=7, now=now)
    assert summary["total_changes"] == 4
    assert summary["summary_by_day"] == {
        "2026-10-17": {"CREATED": 1, "UPDATED": 1, "COMPLETED": 0, "DELETED": 0},
        "2026-10-18": {"CREATED": 0, "UPDATED": 0, "COMPLETED": 1, "DELETED": 1},
    }
    recent = summary["recent_activity"]
    assert [r["change_type"] for r in recent] == ["DELETED", "COMPLETED", "CREATED", "UPDATED"]
    assert recent[0]["task_title"] == "gone"

    assert activity_summary(db, owner_id=user.id, days=30, now=now)["total_changes"] == 5


def test_recent_activity_is_capped(db):
    user = _user(db)
    now = now_utc()
    db.add_all(
        TaskHistoryDB(
            user_id=user.id, task_title=f"t{i}", change_type="CREATED", change_data={},
            created_at=now - timedelta(minutes=i),
        )
        for i in range(15)
    )
    db.commit()
    summary = activity_summary(db, owner_id=user.id, days=1)
    assert summary["total_changes"] == 15
    assert len(summary["recent_activity"]) == 10
    assert summary["recent_activity"][0]["task_title"] == "t0"


# --- endpoint ---


def test_activity_endpoint_shape(client, auth):
    r = client.post("/api/v1/tasks", json={"title": "Tracked"}, headers=auth)
    task_id = r.json()["data"]["task"]["id"]
    client.patch(f"/api/v1/tasks/{task_id}", json={"completedAt": "2026-10-18T08:00:00Z"}, headers=auth)
    client.post("/api/v1/tasks", json={"title": "Gone"}, headers=auth)
    gone_id = client.get("/api/v1/tasks?q=Gone", headers=auth).json()["data"]["tasks"][0]["id"]
    client.delete(f"/api/v1/tasks/{gone_id}", headers=auth)

    r = client.get("/api/v1/user/activity", headers=auth)
    assert r.status_code == 200
    body = r.json()
    # plain object, no envelope
    assert set(body) == {"activity", "stats"}
    assert body["stats"] == {
        "totalTasks": 1,
        "completedTasks": 1,
        "overdueTasks": 0,
        "tasksDueToday": 0,
        "completionRate": 100,
    }
    activity = body["activity"]
    assert activity["totalChanges"] == 4
    kinds = [e["changeType"] for e in activity["recentActivity"]]
    assert sorted(kinds) == ["COMPLETED", "CREATED", "CREATED", "DELETED"]
    # the DELETED entry outlives its task
    deleted = next(e for e in activity["recentActivity"] if e["changeType"] == "DELETED")
    assert (deleted["taskId"], deleted["taskTitle"]) == (None, "Gone")


@pytest.mark.parametrize("days", ["0", "91", "abc", "-3"])
def test_activity_days_validation(client, auth, days):
    r = client.get(f"/api/v1/user/activity?days={days}", headers=auth)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid days parameter. Must be a number between 1 and 90."


def test_activity_requires_auth(client):
    assert client.get("/api/v1/user/activity").status_code == 401
