# tests/test_categories_api.py
# PURPOSE: category CRUD, per-user uniqueness, task counts and unlinking.


def _create_category(client, headers, name, **extra):
    r = client.post("/api/v1/categories", json={"name": name, **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["category"]


def test_new_user_has_starter_categories(client, auth):
    r = client.get("/api/v1/categories", headers=auth)
    assert r.status_code == 200
    data = r.json()["data"]["categories"]
    # alphabetical
    assert [c["name"] for c in data] == ["Health", "Learning", "Personal", "Shopping", "Work"]
    assert all(c["taskCount"] == 0 for c in data)


def test_create_category_default_color(client, auth):
    c = _create_category(client, auth, "Errands")
    assert c["color"] == "#3b82f6"
    assert c["taskCount"] == 0


def test_category_name_rules(client, auth):
    r = client.post("/api/v1/categories", json={"name": "x" * 31}, headers=auth)
    assert r.status_code == 400
    assert "name" in r.json()["errors"]

    r = client.post("/api/v1/categories", json={"name": "work"}, headers=auth)
    assert r.status_code == 409
    assert r.json()["error"] == "A category with this name already exists"


def test_same_name_allowed_for_other_user(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    _create_category(client, alice, "Errands")
    _create_category(client, bob, "Errands")


def test_patch_and_put_category(client, auth):
    c = _create_category(client, auth, "Errands", color="#000000")

    r = client.patch(f"/api/v1/categories/{c['id']}", json={"color": "#ffffff"}, headers=auth)
    assert r.status_code == 200
    c = r.json()["data"]["category"]
    assert (c["name"], c["color"]) == ("Errands", "#ffffff")

    r = client.put(f"/api/v1/categories/{c['id']}", json={"name": "Chores"}, headers=auth)
    c = r.json()["data"]["category"]
    assert (c["name"], c["color"]) == ("Chores", "#3b82f6")

    r = client.patch(f"/api/v1/categories/{c['id']}", json={"name": "Work"}, headers=auth)
    assert r.status_code == 409


def test_task_count_and_delete_unlinks_tasks(client, auth):
    c = _create_category(client, auth, "Errands")
    r = client.post("/api/v1/tasks", json={"title": "Post office", "categoryIds": [c["id"]]}, headers=auth)
    task_id = r.json()["data"]["task"]["id"]

    r = client.get(f"/api/v1/categories/{c['id']}", headers=auth)
    assert r.json()["data"]["category"]["taskCount"] == 1

    r = client.delete(f"/api/v1/categories/{c['id']}", headers=auth)
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Category deleted successfully"

    task = client.get(f"/api/v1/tasks/{task_id}", headers=auth).json()["data"]["task"]
    assert task["categories"] == []


def test_other_users_category_is_forbidden(client, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    c = _create_category(client, alice, "Mine")
    assert client.get(f"/api/v1/categories/{c['id']}", headers=bob).status_code == 403
    assert client.delete(f"/api/v1/categories/{c['id']}", headers=bob).status_code == 403
    assert client.get("/api/v1/categories/9999", headers=bob).status_code == 404
