"""
tests/test_auth.py
"""
from __future__ import annotations

import pytest

from workjournal.journal import (
    AdminCapability,
    CredentialVerifier,
    StaticCredentialVerifier,
    app,
)


# ───────────────────────── helpers ────────────────────────────────────
def _login(client, email: str, password: str, follow=False):
    """POST /login with the given credentials and return the response."""
    return client.post(
        "/login",
        data={"email": email, "password": password},
        follow_redirects=follow,
    )


def _is_admin(client) -> bool:
    with client.session_transaction() as sess:
        return bool(sess.get("is_admin"))


# ───────────────────────── tests ──────────────────────────────────────
def test_successful_login(client):
    rv = _login(client, "sam@buildui.com", "password")
    assert rv.status_code == 303
    assert rv.headers["Location"].endswith("/")
    assert _is_admin(client)


@pytest.mark.parametrize("email,password", [
    ("sam@buildui.com", "wrong"),
    ("someone@else.com", "password"),
    ("SAM@buildui.com", "password"),   # comparison is literal
    ("sam@buildui.com", "password "),
    ("", ""),
])
def test_failed_login_changes_nothing(client, email, password):
    rv = _login(client, email, password)
    assert rv.status_code == 200           # just the login form again
    assert b'name="password"' in rv.data
    assert not _is_admin(client)


def test_login_page_reports_signed_in(admin_client):
    rv = admin_client.get("/login")
    assert rv.status_code == 200
    assert b"You're signed in!" in rv.data


def test_logout_by_post_clears_session(admin_client):
    rv = admin_client.post("/", data={"_action": "logout"})
    assert rv.status_code == 303
    assert not _is_admin(admin_client)


def test_logout_link_clears_session(admin_client):
    rv = admin_client.get("/logout")
    assert rv.status_code == 303
    assert not _is_admin(admin_client)


def test_session_cookie_is_signed(client):
    _login(client, "sam@buildui.com", "password")
    cookie = client.get_cookie(app.config.get("SESSION_COOKIE_NAME", "session"))
    assert cookie is not None
    assert cookie.http_only

    # tampering with the signature drops the session
    client.set_cookie(cookie.key, cookie.value[:-2] + "xx")
    assert not _is_admin(client)


def test_credentials_come_from_config(client, monkeypatch):
    monkeypatch.setitem(app.config, "ADMIN_EMAIL", "me@example.org")
    monkeypatch.setitem(app.config, "ADMIN_PASSWORD", "hunter2")

    _login(client, "sam@buildui.com", "password")
    assert not _is_admin(client)
    _login(client, "me@example.org", "hunter2")
    assert _is_admin(client)


def test_custom_verifier_can_replace_the_literal_pair(client, monkeypatch):
    class OnlyAlice(CredentialVerifier):
        def verify(self, email, password):
            return AdminCapability(subject=email) if email == "alice" else None

    monkeypatch.setitem(app.extensions, "credential_verifier", OnlyAlice())

    _login(client, "sam@buildui.com", "password")
    assert not _is_admin(client)
    _login(client, "alice", "anything")
    assert _is_admin(client)


def test_static_verifier_returns_capability():
    v = StaticCredentialVerifier("a@b.c", "pw")
    assert v.verify("a@b.c", "pw") == AdminCapability(subject="a@b.c")
    assert v.verify("a@b.c", "nope") is None
    assert v.verify("ä@b.c", "pw") is None   # non-ASCII input is fine
