from blooddb.config import settings
from blooddb.models.user import User
from blooddb.services.credentials import CredentialStore
from blooddb.services.sessions import MemorySessionStore


def _user(**overrides) -> dict:
    payload = {
        "username": "alice",
        "email": "a@x.com",
        "password": "Secret1",
        "full_name": "Alice A",
        "phone": "1234567890",
    }
    payload.update(overrides)
    return payload


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_register_login_check_logout_flow(client):
    register_response = client.post("/api/auth/register", json=_user())
    assert register_response.status_code == 201
    user_id = register_response.json()["user_id"]
    assert isinstance(user_id, int)

    login_response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Secret1"})
    assert login_response.status_code == 200
    body = login_response.json()
    assert body["user"]["username"] == "alice"
    assert body["user"]["user_id"] == user_id
    assert "password_hash" not in body["user"]
    token = login_response.cookies.get(settings.session_cookie_name)
    assert token

    check_response = client.get("/api/auth/check")
    assert check_response.status_code == 200
    assert check_response.json()["authenticated"] is True
    assert check_response.json()["identity"]["username"] == "alice"

    logout_response = client.post("/api/auth/logout")
    assert logout_response.status_code == 200

    check_response = client.get("/api/auth/check")
    assert check_response.json() == {"authenticated": False, "identity": None}

    # The old token is dead server-side, not just dropped by the client.
    client.cookies.set(settings.session_cookie_name, token)
    assert client.get("/api/auth/check").json()["authenticated"] is False


def test_session_cookie_is_http_only(client):
    client.post("/api/auth/register", json=_user())
    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Secret1"})
    set_cookie = response.headers["set-cookie"].lower()
    assert f"{settings.session_cookie_name}=" in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie


def test_login_updates_last_login(client, db_session):
    client.post("/api/auth/register", json=_user())
    user = db_session.query(User).filter(User.email == "a@x.com").first()
    assert user.last_login is None

    client.post("/api/auth/login", json={"email": "a@x.com", "password": "Secret1"})
    db_session.refresh(user)
    assert user.last_login is not None


def test_invalid_credentials_message_is_identical(client):
    client.post("/api/auth/register", json=_user())

    wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Wrong99"})
    unknown_email = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "Secret1"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["error"] == "InvalidCredentials"
    assert settings.session_cookie_name not in wrong_password.cookies


def test_duplicate_email_and_username_conflict(client):
    assert client.post("/api/auth/register", json=_user()).status_code == 201

    same_email = client.post("/api/auth/register", json=_user(username="alice2"))
    same_username = client.post("/api/auth/register", json=_user(email="other@x.com"))

    assert same_email.status_code == 400
    assert same_email.json()["error"] == "Conflict"
    assert same_username.status_code == 400
    assert same_username.json()["error"] == "Conflict"


def test_conflict_detected_at_write_time_when_precheck_races(client, db_session, monkeypatch):
    # Both registrations pass the pre-check, as two concurrent requests would.
    monkeypatch.setattr(CredentialStore, "username_or_email_taken", lambda self, username, email: False)

    first = client.post("/api/auth/register", json=_user())
    second = client.post("/api/auth/register", json=_user(username="alice2"))

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json()["error"] == "Conflict"
    assert db_session.query(User).filter(User.email == "a@x.com").count() == 1


def test_registration_validation_error(client):
    response = client.post("/api/auth/register", json=_user(username="x", phone="123"))
    assert response.status_code == 400
    payload = response.json()
    assert payload["error"] == "ValidationError"
    assert len(payload["details"]["errors"]) == 2


def test_malformed_body_is_a_validation_error(client):
    response = client.post("/api/auth/register", json={"username": "alice", "email": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"
    assert "Secret1" not in response.text


def test_password_never_echoed(client):
    response = client.post("/api/auth/register", json=_user())
    assert "Secret1" not in response.text
    assert "pbkdf2" not in response.text


def test_logout_without_session_still_succeeds(client):
    response = client.post("/api/auth/logout")
    assert response.status_code == 200


def test_malformed_login_email_fails_like_any_bad_login(client):
    client.post("/api/auth/register", json=_user())
    malformed = client.post("/api/auth/login", json={"email": "not-an-email", "password": "Secret1"})
    wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Wrong99"})

    assert malformed.status_code == 401
    assert malformed.json() == wrong_password.json()


def test_login_matches_domain_case_insensitively(client):
    client.post("/api/auth/register", json=_user())
    response = client.post("/api/auth/login", json={"email": "a@X.COM", "password": "Secret1"})
    assert response.status_code == 200


def test_hashing_failure_during_registration_is_generic_500(client, db_session, monkeypatch):
    def broken_hash(password):
        raise ValueError("backend exploded while hashing Secret1")

    monkeypatch.setattr("blooddb.services.auth.hash_password", broken_hash)
    response = client.post("/api/auth/register", json=_user())

    assert response.status_code == 500
    assert response.json() == {
        "statusCode": 500,
        "message": "Server error. Please try again.",
        "error": "InternalServerError",
    }
    assert "exploded" not in response.text
    assert "Secret1" not in response.text
    assert db_session.query(User).count() == 0


def test_logout_destroy_fault_is_generic_500(client, monkeypatch):
    client.post("/api/auth/register", json=_user())
    client.post("/api/auth/login", json={"email": "a@x.com", "password": "Secret1"})

    def broken_delete(self, token):
        raise RuntimeError("session store unreachable at 10.0.0.5")

    monkeypatch.setattr(MemorySessionStore, "delete", broken_delete)
    response = client.post("/api/auth/logout")

    assert response.status_code == 500
    assert response.json()["message"] == "Server error. Please try again."
    assert "unreachable" not in response.text


def test_cross_site_cookie_is_secure_and_samesite_none(client, monkeypatch):
    monkeypatch.setattr(settings, "cookie_cross_site", True)
    client.post("/api/auth/register", json=_user())
    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Secret1"})

    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=none" in set_cookie
    assert "secure" in set_cookie


def test_guard_rejection_uses_unauthenticated_error_name(client):
    response = client.get("/api/donors/my")
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthenticated"
