# tests/test_password_reset.py
# PURPOSE: forgot-password / reset-password token lifecycle.

import logging
from datetime import timedelta

from conftest import login, signup

from taskflow.db_models import VerificationTokenDB, now_utc
from taskflow.mailer import LoggingMailer, get_mailer, password_reset_message
from taskflow.main import app
from taskflow.routers.auth import RESET_REQUESTED

NEW_PASSWORD = "brand-new-pass"


def _forgot(client, email):
    return client.post("/api/v1/auth/forgot-password", json={"email": email})


def _token_for(db, email):
    db.expire_all()
    return db.query(VerificationTokenDB).filter(VerificationTokenDB.identifier == email).one()


def test_forgot_password_same_answer_for_unknown_email(client, outbox, db):
    r = _forgot(client, "nobody@example.com")
    assert r.status_code == 200
    assert r.json() == {"data": {"message": RESET_REQUESTED}, "success": True}
    assert outbox.messages == []
    assert db.query(VerificationTokenDB).count() == 0


def test_forgot_password_mails_a_link(client, outbox, db):
    signup(client, "reset@example.com")
    r = _forgot(client, "reset@example.com")
    assert r.json()["data"]["message"] == RESET_REQUESTED

    token = _token_for(db, "reset@example.com").token
    assert len(outbox.messages) == 1
    message = outbox.messages[0]
    assert message.to == "reset@example.com"
    assert f"reset-password?token={token}" in message.body


def test_new_request_replaces_old_token(client, db):
    signup(client, "twice@example.com")
    _forgot(client, "twice@example.com")
    first = _token_for(db, "twice@example.com").token
    _forgot(client, "twice@example.com")
    second = _token_for(db, "twice@example.com").token
    assert first != second

    r = client.post("/api/v1/auth/reset-password", json={"token": first, "password": NEW_PASSWORD})
    assert r.status_code == 400


def test_reset_password_then_token_is_spent(client, db):
    signup(client, "spent@example.com")
    _forgot(client, "spent@example.com")
    token = _token_for(db, "spent@example.com").token

    r = client.post("/api/v1/auth/reset-password", json={"token": token, "password": NEW_PASSWORD})
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Password has been reset successfully"

    # new password works, old one does not
    login(client, "spent@example.com", NEW_PASSWORD)
    old = client.post("/api/v1/auth/login", data={"username": "spent@example.com", "password": "password123"})
    assert old.status_code == 401

    # single use
    again = client.post("/api/v1/auth/reset-password", json={"token": token, "password": NEW_PASSWORD})
    assert again.status_code == 400
    assert again.json()["error"] == "Invalid or expired token"


def test_expired_token_is_rejected_and_removed(client, db):
    signup(client, "late@example.com")
    _forgot(client, "late@example.com")
    row = _token_for(db, "late@example.com")
    row.expires = now_utc() - timedelta(minutes=1)
    db.commit()

    r = client.post("/api/v1/auth/reset-password", json={"token": row.token, "password": NEW_PASSWORD})
    assert r.status_code == 400
    assert r.json()["error"] == "Token has expired. Please request a new password reset"
    db.expire_all()
    assert db.query(VerificationTokenDB).count() == 0


def test_reset_password_validates_length(client):
    r = client.post("/api/v1/auth/reset-password", json={"token": "abc", "password": "short"})
    assert r.status_code == 400
    assert "password" in r.json()["errors"]


def test_mail_failure_does_not_change_the_answer(client):
    class BrokenMailer:
        def send(self, message):
            raise RuntimeError("smtp down")

    signup(client, "broken@example.com")
    app.dependency_overrides[get_mailer] = BrokenMailer
    r = _forgot(client, "broken@example.com")
    assert r.status_code == 200
    assert r.json()["data"]["message"] == RESET_REQUESTED


def test_default_mailer_keeps_the_token_out_of_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="taskflow.mailer")
    LoggingMailer().send(password_reset_message("reader@example.com", "live-token-123"))

    assert "mail_queued" in caplog.text
    assert "reader@example.com" in caplog.text
    assert "live-token-123" not in caplog.text
