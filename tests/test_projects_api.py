# tests/test_projects_api.py
# PURPOSE: project CRUD, name uniqueness, ownership and cascade delete.

from taskflow.db_models import GoalDB, ProjectDB, TaskDB, TaskHistoryDB


def _create_project(client, headers, name="Home", **extra):
    r = client.post("/api/v1/projects", json={"name": name, **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["project"]


def _create_task(client, headers, title, **extra):
    r = client.post("/api/v1/tasks", json={"title": title, **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["task"]


def test_create_and_get_project(client, auth):
    p = _create_project(client, auth, "Thesis", dueDate="2026-06-30T17:00:00Z", color="#8E44AD")
    assert p["status"] == "ACTIVE"
    assert p["goalCount"] == 0
    assert p["taskCount"] == 0
    assert p["dueDate"].startswith("2026-06-30T17:00:00")

    r = client.get(f"/api/v1/projects/{p['id']}", headers=auth)
    assert r.status_code == 200
    detail = r.json()["data"]["project"]
    assert detail["name"] == "Thesis"
    assert detail["goals"] == []
    assert detail["tasks"] == []


def test_list_projects_newest_first_and_status_filter(client, auth):
    _create_project(client, auth, "One")
    _create_project(client, auth, "Two", status="ARCHIVED")

    r = client.get("/api/v1/projects", headers=auth)
    assert [p["name"] for p in r.json()["data"]["projects"]] == ["Two", "One"]

    r = client.get("/api/v1/projects?status=ARCHIVED", headers=auth)
    assert [p["name"] for p in r.json()["data"]["projects"]] == ["Two"]


def test_project_name_unique_per_user_case_insensitive(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    _create_project(client, alice, "Garden")

    r = client.post("/api/v1/projects", json={"name": "garden"}, headers=alice)
    assert r.status_code == 409
    assert r.json()["error"] == "A project with this name already exists"

    # other users may reuse the name
    _create_project(client, bob, "Garden")


def test_patch_is_partial_put_replaces(client, auth):
    p = _create_project(client, auth, "Kitchen", description="tiles", color="#fff")

    r = client.patch(f"/api/v1/projects/{p['id']}", json={"status": "COMPLETED"}, headers=auth)
    assert r.status_code == 200
    data = r.json()["data"]["project"]
    assert (data["status"], data["description"], data["color"]) == ("COMPLETED", "tiles", "#fff")

    r = client.put(f"/api/v1/projects/{p['id']}", json={"name": "Kitchen v2"}, headers=auth)
    data = r.json()["data"]["project"]
    assert data["name"] == "Kitchen v2"
    assert data["description"] is None
    assert data["status"] == "ACTIVE"


def test_patch_rename_to_taken_name_conflicts(client, auth):
    _create_project(client, auth, "A")
    b = _create_project(client, auth, "B")
    r = client.patch(f"/api/v1/projects/{b['id']}", json={"name": "a"}, headers=auth)
    assert r.status_code == 409
    # renaming to its own name (other case) is fine
    r = client.patch(f"/api/v1/projects/{b['id']}", json={"name": "b"}, headers=auth)
    assert r.status_code == 200


def test_other_users_project_is_forbidden(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    p = _create_project(client, alice, "Private")

    assert client.get(f"/api/v1/projects/{p['id']}", headers=bob).status_code == 403
    assert client.patch(f"/api/v1/projects/{p['id']}", json={"name": "x"}, headers=bob).status_code == 403
    assert client.delete(f"/api/v1/projects/{p['id']}", headers=bob).status_code == 403
    assert client.get("/api/v1/projects", headers=bob).json()["data"]["projects"] == []


def test_missing_project_is_404(client, auth):
    r = client.get("/api/v1/projects/999", headers=auth)
    assert r.status_code == 404
    assert r.json() == {"error": "Project not found", "success": False}


def test_delete_project_with_tasks_needs_cascade(client, auth, db):
    p = _create_project(client, auth, "Move")
    _create_task(client, auth, "Pack", projectId=p["id"])
    _create_task(client, auth, "Ship", projectId=p["id"])

    r = client.delete(f"/api/v1/projects/{p['id']}", headers=auth)
    assert r.status_code == 400
    assert r.json()["error"] == (
        "Cannot delete project with 2 associated tasks. Set cascade=true to delete tasks as well."
    )
    assert db.get(ProjectDB, p["id"]) is not None
    assert db.query(TaskDB).count() == 2

    # anything other than "true" keeps cascade off
    assert client.delete(f"/api/v1/projects/{p['id']}?cascade=yes", headers=auth).status_code == 400
    # the flag is matched exactly
    assert client.delete(f"/api/v1/projects/{p['id']}?cascade=TRUE", headers=auth).status_code == 400


def test_cascade_delete_removes_tasks_subtasks_and_goals(client, auth, db):
    p = _create_project(client, auth, "Move")
    parent = _create_task(client, auth, "Pack", projectId=p["id"])
    # the subtask belongs to no project; it goes with its parent and is counted
    _create_task(client, auth, "Pack books", parentId=parent["id"])
    outside = _create_task(client, auth, "Unrelated")
    client.post("/api/v1/goals", json={"name": "Done by May", "projectId": p["id"]}, headers=auth)

    r = client.delete(f"/api/v1/projects/{p['id']}?cascade=true", headers=auth)
    assert r.status_code == 200
    assert r.json()["data"] == {"message": "Project deleted successfully", "tasksDeleted": 2}

    db.expire_all()
    assert db.get(ProjectDB, p["id"]) is None
    assert db.query(GoalDB).count() == 0
    assert [t.id for t in db.query(TaskDB)] == [outside["id"]]
    # deletion is journaled
    deleted = db.query(TaskHistoryDB).filter(TaskHistoryDB.change_type == "DELETED").all()
    assert sorted(h.task_title for h in deleted) == ["Pack", "Pack books"]


def test_delete_empty_project(client, auth):
    p = _create_project(client, auth, "Empty")
    r = client.delete(f"/api/v1/projects/{p['id']}", headers=auth)
    assert r.status_code == 200
    assert r.json()["data"]["tasksDeleted"] == 0
    assert client.get(f"/api/v1/projects/{p['id']}", headers=auth).status_code == 404


def test_project_counts_follow_goals_and_tasks(client, auth):
    p = _create_project(client, auth, "Counted")
    _create_task(client, auth, "t1", projectId=p["id"])
    client.post("/api/v1/goals", json={"name": "g1", "projectId": p["id"]}, headers=auth)

    data = client.get(f"/api/v1/projects/{p['id']}", headers=auth).json()["data"]["project"]
    assert data["taskCount"] == 1
    assert data["goalCount"] == 1
    assert [g["name"] for g in data["goals"]] == ["g1"]
    assert [t["title"] for t in data["tasks"]] == ["t1"]
