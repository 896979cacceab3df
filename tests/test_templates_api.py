# tests/test_templates_api.py
# PURPOSE: template CRUD, starter templates, and creating tasks from a template.

from taskflow.db_models import TaskHistoryDB


def _create_template(client, headers, name="Water plants", **extra):
    r = client.post("/api/v1/templates", json={"name": name, **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["template"]


def _category_id(client, headers, name):
    r = client.get("/api/v1/categories", headers=headers)
    return next(c["id"] for c in r.json()["data"]["categories"] if c["name"] == name)


def test_new_user_has_starter_templates(client, auth):
    r = client.get("/api/v1/templates", headers=auth)
    assert r.status_code == 200
    templates = r.json()["data"]["templates"]
    assert [t["name"] for t in templates] == [
        "Family Call",
        "Pay Bills",
        "Project Deadline",
        "Quick Task",
        "Study Session",
        "Weekly Review",
        "Work Meeting",
        "Workout Session",
    ]
    by_name = {t["name"]: t for t in templates}
    meeting = by_name["Work Meeting"]
    assert meeting["isRecurring"] is True
    assert meeting["recurrence"]["frequency"] == "WEEKLY"
    assert meeting["recurrence"]["daysOfWeek"] == [1]
    assert by_name["Pay Bills"]["recurrence"]["dayOfMonth"] == 1
    assert by_name["Quick Task"]["isRecurring"] is False
    assert by_name["Quick Task"]["recurrence"] is None


def test_create_template_with_categories_and_rule(client, auth):
    health = _category_id(client, auth, "Health")
    t = _create_template(
        client,
        auth,
        "Stretch",
        priority="high",
        emotion="confident",
        estimatedDuration=10,
        categoryIds=[health],
        isRecurring=True,
        recurrence={"frequency": "daily", "interval": 2},
    )
    assert (t["priority"], t["emotion"], t["estimatedDuration"]) == ("HIGH", "CONFIDENT", 10)
    assert t["categoryIds"] == [health]
    assert t["categories"][0]["name"] == "Health"
    assert t["recurrence"]["frequency"] == "DAILY"
    assert t["recurrence"]["interval"] == 2

    r = client.get(f"/api/v1/templates/{t['id']}", headers=auth)
    assert r.status_code == 200
    assert r.json()["data"]["template"]["name"] == "Stretch"


def test_template_validation(client, auth):
    r = client.post(
        "/api/v1/templates",
        json={"name": "Bad", "recurrence": {"frequency": "daily", "interval": 0}},
        headers=auth,
    )
    assert r.status_code == 400
    assert "recurrence.interval" in r.json()["errors"]

    r = client.post(
        "/api/v1/templates",
        json={"name": "Bad", "recurrence": {"frequency": "weekly", "daysOfWeek": [7]}},
        headers=auth,
    )
    assert r.status_code == 400

    r = client.post("/api/v1/templates", json={"name": "quick task"}, headers=auth)
    assert r.status_code == 409
    assert r.json()["error"] == "A template with this name already exists"


def test_template_categories_must_be_owned(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    alices = _category_id(client, alice, "Work")

    r = client.post("/api/v1/templates", json={"name": "Mine", "categoryIds": [alices]}, headers=bob)
    assert r.status_code == 400
    assert "categoryIds" in r.json()["errors"]


def test_other_users_template_is_forbidden(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    t = _create_template(client, alice)

    assert client.get(f"/api/v1/templates/{t['id']}", headers=bob).status_code == 403
    assert client.patch(f"/api/v1/templates/{t['id']}", json={"name": "x"}, headers=bob).status_code == 403
    assert client.delete(f"/api/v1/templates/{t['id']}", headers=bob).status_code == 403
    assert client.post(f"/api/v1/templates/{t['id']}/tasks", headers=bob).status_code == 403
    assert client.get("/api/v1/templates/999999", headers=alice).status_code == 404


def test_patch_and_put_template(client, auth):
    t = _create_template(
        client, auth, description="Weekly", priority="LOW", recurrence={"frequency": "weekly"}
    )

    r = client.patch(f"/api/v1/templates/{t['id']}", json={"name": "Water the plants"}, headers=auth)
    assert r.status_code == 200
    patched = r.json()["data"]["template"]
    assert (patched["name"], patched["description"], patched["priority"]) == (
        "Water the plants",
        "Weekly",
        "LOW",
    )
    assert patched["recurrence"]["frequency"] == "WEEKLY"

    r = client.put(f"/api/v1/templates/{t['id']}", json={"name": "Plants"}, headers=auth)
    assert r.status_code == 200
    put = r.json()["data"]["template"]
    assert (put["description"], put["priority"], put["recurrence"]) == (None, "NONE", None)

    r = client.patch(f"/api/v1/templates/{t['id']}", json={"name": None}, headers=auth)
    assert r.status_code == 400


def test_create_task_from_template(client, auth, db):
    work = _category_id(client, auth, "Work")
    t = _create_template(
        client,
        auth,
        "Standup notes",
        description="Yesterday / today / blockers",
        priority="MEDIUM",
        estimatedDuration=15,
        categoryIds=[work],
    )

    r = client.post(
        f"/api/v1/templates/{t['id']}/tasks",
        json={"dueDate": "2026-10-19T09:00:00Z"},
        headers=auth,
    )
    assert r.status_code == 201, r.text
    assert r.headers["Location"].startswith("/api/v1/tasks/")
    task = r.json()["data"]["task"]
    assert task["title"] == "Standup notes"
    assert task["description"] == "Yesterday / today / blockers"
    assert (task["priority"], task["estimatedDuration"]) == ("MEDIUM", 15)
    assert [c["id"] for c in task["categories"]] == [work]
    assert task["dueDate"].startswith("2026-10-19T09:00:00")
    assert task["recurringTaskId"] is None

    entry = db.query(TaskHistoryDB).filter_by(task_id=task["id"]).one()
    assert entry.change_type == "CREATED"
    assert entry.change_data["source"] == "template"
    assert entry.change_data["template_id"] == t["id"]

    # no body: the template alone
    r = client.post(f"/api/v1/templates/{t['id']}/tasks", headers=auth)
    assert r.status_code == 201
    assert r.json()["data"]["task"]["dueDate"] is None

    r = client.post(f"/api/v1/templates/{t['id']}/tasks", json={"title": "Retro notes"}, headers=auth)
    assert r.json()["data"]["task"]["title"] == "Retro notes"


def test_delete_template(client, auth):
    t = _create_template(client, auth)
    r = client.delete(f"/api/v1/templates/{t['id']}", headers=auth)
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Template deleted successfully"
    assert client.get(f"/api/v1/templates/{t['id']}", headers=auth).status_code == 404
