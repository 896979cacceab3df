# tests/test_user_api.py
# PURPOSE: profile, password change, settings and account deletion.

from conftest import login, signup

from taskflow.db_models import (
    CategoryDB,
    GoalDB,
    ProjectDB,
    TaskDB,
    TaskHistoryDB,
    UserDB,
    UserSettingsDB,
    VerificationTokenDB,
    task_categories,
)


def test_update_profile(client, auth):
    r = client.put("/api/v1/user/update-profile", json={"name": "Renamed", "email": "New@Example.com"}, headers=auth)
    assert r.status_code == 200
    data = r.json()["data"]["user"]
    assert (data["name"], data["email"]) == ("Renamed", "new@example.com")

    # token keeps working: it names the user id, not the email
    assert client.get("/api/v1/auth/me", headers=auth).json()["data"]["user"]["email"] == "new@example.com"
    login(client, "new@example.com")


def test_update_profile_email_in_use(client, make_user):
    make_user("taken@example.com")
    me = make_user("me@example.com")
    r = client.put("/api/v1/user/update-profile", json={"email": "taken@example.com"}, headers=me)
    assert r.status_code == 409
    assert r.json()["error"] == "Email is already in use"


def test_change_password(client, auth):
    r = client.put(
        "/api/v1/user/change-password",
        json={"currentPassword": "wrong-password", "newPassword": "another-pass"},
        headers=auth,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Current password is incorrect"

    r = client.put(
        "/api/v1/user/change-password",
        json={"currentPassword": "password123", "newPassword": "another-pass"},
        headers=auth,
    )
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Password updated successfully"
    login(client, "user@example.com", "another-pass")


def test_change_password_validates_new_length(client, auth):
    r = client.put(
        "/api/v1/user/change-password",
        json={"currentPassword": "password123", "newPassword": "short"},
        headers=auth,
    )
    assert r.status_code == 400
    assert "newPassword" in r.json()["errors"]


def test_settings_defaults_and_updates(client, auth):
    r = client.get("/api/v1/user/settings", headers=auth)
    assert r.status_code == 200
    data = r.json()["data"]["settings"]
    assert data["theme"] == "light"
    assert data["defaultPomodoroTime"] == 25
    assert data["tasksPerPage"] == 10
    assert data["enableEmotionalTags"] is True

    r = client.patch(
        "/api/v1/user/settings",
        json={"theme": "dark", "preferredWorkingHours": {"start": "09:00", "end": "17:00"}},
        headers=auth,
    )
    data = r.json()["data"]["settings"]
    assert data["theme"] == "dark"
    assert data["preferredWorkingHours"] == {"start": "09:00", "end": "17:00"}
    assert data["defaultPomodoroTime"] == 25

    # PUT resets what it omits
    r = client.put("/api/v1/user/settings", json={"defaultPomodoroTime": 50}, headers=auth)
    data = r.json()["data"]["settings"]
    assert (data["theme"], data["defaultPomodoroTime"]) == ("light", 50)
    assert data["preferredWorkingHours"] is None


def test_settings_validation(client, auth):
    r = client.patch("/api/v1/user/settings", json={"theme": "neon"}, headers=auth)
    assert r.status_code == 400
    r = client.patch("/api/v1/user/settings", json={"defaultPomodoroTime": 0}, headers=auth)
    assert r.status_code == 400


def test_delete_account_removes_everything_owned(client, make_user, db):
    other = make_user("other@example.com")
    client.post("/api/v1/tasks", json={"title": "other's"}, headers=other)

    me = make_user("leaving@example.com")
    me_id = client.get("/api/v1/auth/me", headers=me).json()["data"]["user"]["id"]
    p = client.post("/api/v1/projects", json={"name": "P"}, headers=me).json()["data"]["project"]
    client.post("/api/v1/goals", json={"name": "G", "projectId": p["id"]}, headers=me)
    cat = client.get("/api/v1/categories", headers=me).json()["data"]["categories"][0]
    parent = client.post(
        "/api/v1/tasks", json={"title": "parent", "projectId": p["id"], "categoryIds": [cat["id"]]}, headers=me
    ).json()["data"]["task"]
    client.post("/api/v1/tasks", json={"title": "child", "parentId": parent["id"]}, headers=me)
    client.post("/api/v1/auth/forgot-password", json={"email": "leaving@example.com"})

    r = client.delete("/api/v1/user", headers=me)
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Account deleted successfully"

    assert db.get(UserDB, me_id) is None
    for model in (ProjectDB, CategoryDB, TaskDB, TaskHistoryDB):
        assert db.query(model).filter(model.user_id == me_id).count() == 0
    assert db.query(GoalDB).count() == 0
    assert db.query(UserSettingsDB).filter(UserSettingsDB.user_id == me_id).count() == 0
    assert db.query(VerificationTokenDB).count() == 0
    remaining_links = db.execute(task_categories.select()).all()
    assert remaining_links == []

    # the other account is untouched
    assert client.get("/api/v1/tasks", headers=other).headers["X-Total-Count"] == "1"
    # and the deleted user's token no longer works
    assert client.get("/api/v1/auth/me", headers=me).status_code == 401


def test_deleted_email_can_sign_up_again(client, auth):
    client.delete("/api/v1/user", headers=auth)
    signup(client, "user@example.com")
