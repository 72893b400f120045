"""API tests for /api/accounts — registration, login, self-service and admin routes."""

import uuid

from sqlalchemy import delete, func, select, update

from boardgame_event.models import Account, AccountStatus, Session
from tests.conftest import TEST_PASSWORD, bearer, login

_EMAIL = "spieler@example.com"


async def _session_count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(Session))).scalar_one()


class TestRegister:
    async def test_register(self, client):
        response = await client.post(
            "/api/accounts/register", json={"email": "Neu@Example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["account"]["email"] == "neu@example.com"
        assert body["account"]["role"] == "account_owner"
        assert body["account"]["status"] == "active"
        assert "createdAt" in body["account"]
        assert "passwordHash" not in body["account"]
        assert body["message"]

    async def test_register_does_not_log_in(self, client, session_factory):
        await client.post(
            "/api/accounts/register", json={"email": _EMAIL, "password": TEST_PASSWORD}
        )
        assert await _session_count(session_factory) == 0

    async def test_duplicate_email(self, client, register_and_login):
        await register_and_login(_EMAIL)
        response = await client.post(
            "/api/accounts/register", json={"email": _EMAIL.upper(), "password": TEST_PASSWORD}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "EMAIL_EXISTS"

    async def test_weak_password(self, client):
        response = await client.post(
            "/api/accounts/register", json={"email": _EMAIL, "password": "abcdefgh"}
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "PASSWORD_MISSING_NUMBER",
            "message": "Das Passwort muss mindestens eine Zahl enthalten.",
        }

    async def test_missing_fields(self, client):
        response = await client.post("/api/accounts/register", json={"email": _EMAIL})

        assert response.status_code == 400
        assert response.json()["error"] == "MISSING_FIELDS"

    async def test_wrong_body_type(self, client):
        response = await client.post(
            "/api/accounts/register", json={"email": ["a"], "password": 1}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestLogin:
    async def test_login_returns_token_and_account(self, client, register_and_login):
        await register_and_login(_EMAIL)
        response = await client.post(
            "/api/accounts/login",
            json={"email": _EMAIL, "password": TEST_PASSWORD},
            headers={"User-Agent": "pytest-browser"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token"]
        assert body["account"]["email"] == _EMAIL

        sessions = await client.get("/api/sessions", headers=bearer(body["token"]))
        current = [s for s in sessions.json()["sessions"] if s["isCurrent"]]
        assert current[0]["userAgent"] == "pytest-browser"
        assert current[0]["ipAddress"] == "127.0.0.1"

    async def test_wrong_password(self, client, register_and_login):
        await register_and_login(_EMAIL)
        response = await client.post(
            "/api/accounts/login", json={"email": _EMAIL, "password": "falsch123"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_CREDENTIALS"

    async def test_missing_fields(self, client):
        response = await client.post("/api/accounts/login", json={"password": TEST_PASSWORD})
        assert response.status_code == 400
        assert response.json()["error"] == "MISSING_FIELDS"


class TestCurrentAccount:
    async def test_me(self, client, register_and_login):
        token = await register_and_login(_EMAIL)
        response = await client.get("/api/accounts/me", headers=bearer(token))

        assert response.status_code == 200
        assert response.json()["account"]["email"] == _EMAIL

    async def test_me_without_token(self, client):
        response = await client.get("/api/accounts/me")

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    async def test_me_with_wrong_scheme(self, client, register_and_login):
        token = await register_and_login(_EMAIL)
        response = await client.get(
            "/api/accounts/me", headers={"Authorization": f"bearer {token}"}
        )
        assert response.status_code == 401

    async def test_logout_kills_only_that_session(self, client, register_and_login):
        first = await register_and_login(_EMAIL)
        second = await login(client, _EMAIL)

        response = await client.post("/api/accounts/logout", headers=bearer(first))
        assert response.status_code == 200

        assert (await client.get("/api/accounts/me", headers=bearer(first))).status_code == 401
        assert (await client.get("/api/accounts/me", headers=bearer(second))).status_code == 200

    async def test_event_token_is_not_an_account_token(
        self, client, services, register_and_login,
    ):
        await register_and_login(_EMAIL)
        event_token = services.event_tokens.sign(str(uuid.uuid4()))

        response = await client.get("/api/accounts/me", headers=bearer(event_token))
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"


class TestChangePassword:
    async def test_other_sessions_are_fenced(self, client, register_and_login):
        current = await register_and_login(_EMAIL)
        other_device = await login(client, _EMAIL)

        response = await client.patch(
            "/api/accounts/me/password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "neuesPw456"},
            headers=bearer(current),
        )

        assert response.status_code == 200
        assert (await client.get("/api/accounts/me", headers=bearer(current))).status_code == 200
        assert (
            await client.get("/api/accounts/me", headers=bearer(other_device))
        ).status_code == 401
        assert await login(client, _EMAIL, "neuesPw456")

    async def test_wrong_current_password_keeps_sessions(self, client, register_and_login):
        current = await register_and_login(_EMAIL)
        other_device = await login(client, _EMAIL)

        response = await client.patch(
            "/api/accounts/me/password",
            json={"currentPassword": "falsch123", "newPassword": "neuesPw456"},
            headers=bearer(current),
        )

        assert response.status_code == 401
        assert response.json()["error"] == "WRONG_PASSWORD"
        assert (
            await client.get("/api/accounts/me", headers=bearer(other_device))
        ).status_code == 200

    async def test_missing_fields(self, client, register_and_login):
        token = await register_and_login(_EMAIL)
        response = await client.patch(
            "/api/accounts/me/password",
            json={"currentPassword": TEST_PASSWORD},
            headers=bearer(token),
        )
        assert response.json()["error"] == "MISSING_FIELDS"


class TestDeactivate:
    async def test_deactivation_blocks_login(self, client, register_and_login, session_factory):
        token = await register_and_login(_EMAIL)

        response = await client.post(
            "/api/accounts/me/deactivate",
            json={"password": TEST_PASSWORD},
            headers=bearer(token),
        )
        assert response.status_code == 200
        assert await _session_count(session_factory) == 0

        response = await client.post(
            "/api/accounts/login", json={"email": _EMAIL, "password": TEST_PASSWORD}
        )
        assert response.status_code == 403
        assert response.json()["error"] == "ACCOUNT_DEACTIVATED"
        assert await _session_count(session_factory) == 0

    async def test_wrong_password(self, client, register_and_login):
        token = await register_and_login(_EMAIL)
        response = await client.post(
            "/api/accounts/me/deactivate",
            json={"password": "falsch123"},
            headers=bearer(token),
        )

        assert response.status_code == 401
        assert (await client.get("/api/accounts/me", headers=bearer(token))).status_code == 200


async def _set_status(session_factory, email: str, status: AccountStatus) -> None:
    """Change the status in the database, leaving sessions untouched."""
    async with session_factory() as session:
        await session.execute(update(Account).where(Account.email == email).values(status=status))
        await session.commit()


class TestAccountStateBehindSession:
    async def test_deactivated_account_with_live_session(
        self, client, register_and_login, session_factory,
    ):
        token = await register_and_login(_EMAIL)
        await _set_status(session_factory, _EMAIL, AccountStatus.DEACTIVATED)
        assert await _session_count(session_factory) == 1

        response = await client.get("/api/accounts/me", headers=bearer(token))

        assert response.status_code == 403
        assert response.json()["error"] == "ACCOUNT_DEACTIVATED"

    async def test_session_outlives_its_account(
        self, client, register_and_login, session_factory,
    ):
        """SQLite runs without foreign keys here, so the session row stays."""
        token = await register_and_login(_EMAIL)
        async with session_factory() as session:
            await session.execute(delete(Account).where(Account.email == _EMAIL))
            await session.commit()
        assert await _session_count(session_factory) == 1

        response = await client.get("/api/accounts/me", headers=bearer(token))

        assert response.status_code == 401
        assert response.json()["error"] == "ACCOUNT_NOT_FOUND"


class TestWhoAmI:
    """Optional account resolution never answers with an error."""

    async def test_anonymous(self, client):
        response = await client.get("/api/accounts/whoami")

        assert response.status_code == 200
        assert response.json() == {"authenticated": False, "account": None}

    async def test_invalid_token(self, client):
        response = await client.get("/api/accounts/whoami", headers=bearer("not-a-jwt"))

        assert response.status_code == 200
        assert response.json()["authenticated"] is False

    async def test_deactivated_account(self, client, register_and_login, session_factory):
        token = await register_and_login(_EMAIL)
        await _set_status(session_factory, _EMAIL, AccountStatus.DEACTIVATED)

        response = await client.get("/api/accounts/whoami", headers=bearer(token))

        assert response.status_code == 200
        assert response.json() == {"authenticated": False, "account": None}

    async def test_signed_in(self, client, register_and_login):
        token = await register_and_login(_EMAIL)
        response = await client.get("/api/accounts/whoami", headers=bearer(token))

        assert response.status_code == 200
        body = response.json()
        assert body["authenticated"] is True
        assert body["account"]["email"] == _EMAIL

    async def test_logged_out_session(self, client, register_and_login):
        token = await register_and_login(_EMAIL)
        await client.post("/api/accounts/logout", headers=bearer(token))

        response = await client.get("/api/accounts/whoami", headers=bearer(token))
        assert response.json()["authenticated"] is False


class TestAdminGate:
    async def test_non_admin_is_rejected(self, client, register_and_login):
        token = await register_and_login(_EMAIL)
        response = await client.get("/api/accounts", headers=bearer(token))

        assert response.status_code == 403
        assert response.json()["error"] == "NOT_AUTHORIZED"

    async def test_handler_not_invoked_for_non_admin(self, client, register_and_login, services):
        calls = []
        original = services.accounts.set_role

        async def spy(*args, **kwargs):
            calls.append(args)
            return await original(*args, **kwargs)

        services.accounts.set_role = spy
        token = await register_and_login(_EMAIL)
        me = (await client.get("/api/accounts/me", headers=bearer(token))).json()["account"]

        response = await client.patch(
            f"/api/accounts/{me['id']}/role", json={"role": "admin"}, headers=bearer(token)
        )
        assert response.status_code == 403
        assert calls == []

    async def test_anonymous_is_rejected(self, client):
        response = await client.get("/api/accounts")
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"


class TestAdminActions:
    async def _admin_and_user(self, register_and_login, make_admin, client):
        admin_token = await register_and_login("admin@example.com")
        await make_admin("admin@example.com")
        user_token = await register_and_login(_EMAIL)
        user = (await client.get("/api/accounts/me", headers=bearer(user_token))).json()
        return admin_token, user_token, user["account"]["id"]

    async def test_list_accounts(self, client, register_and_login, make_admin):
        admin_token, _, _ = await self._admin_and_user(register_and_login, make_admin, client)
        response = await client.get("/api/accounts", headers=bearer(admin_token))

        assert response.status_code == 200
        emails = {a["email"] for a in response.json()["accounts"]}
        assert emails == {"admin@example.com", _EMAIL}

    async def test_promote(self, client, register_and_login, make_admin):
        admin_token, user_token, user_id = await self._admin_and_user(
            register_and_login, make_admin, client
        )
        response = await client.post(
            f"/api/accounts/{user_id}/promote", headers=bearer(admin_token)
        )

        assert response.status_code == 200
        assert response.json()["account"]["role"] == "admin"
        assert (await client.get("/api/accounts", headers=bearer(user_token))).status_code == 200

    async def test_set_role_rejects_unknown_role(self, client, register_and_login, make_admin):
        admin_token, _, user_id = await self._admin_and_user(
            register_and_login, make_admin, client
        )
        response = await client.patch(
            f"/api/accounts/{user_id}/role", json={"role": "superuser"}, headers=bearer(admin_token)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_deactivating_user_ends_sessions(self, client, register_and_login, make_admin):
        admin_token, user_token, user_id = await self._admin_and_user(
            register_and_login, make_admin, client
        )
        response = await client.patch(
            f"/api/accounts/{user_id}/status",
            json={"status": "deactivated"},
            headers=bearer(admin_token),
        )

        assert response.status_code == 200
        assert response.json()["account"]["status"] == "deactivated"
        assert (await client.get("/api/accounts/me", headers=bearer(user_token))).status_code == 401

    async def test_admin_cannot_deactivate_self(self, client, register_and_login, make_admin):
        admin_token, _, _ = await self._admin_and_user(register_and_login, make_admin, client)
        me = (await client.get("/api/accounts/me", headers=bearer(admin_token))).json()

        response = await client.patch(
            f"/api/accounts/{me['account']['id']}/status",
            json={"status": "deactivated"},
            headers=bearer(admin_token),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "SELF_DEACTIVATION"

    async def test_reset_password_ends_sessions(self, client, register_and_login, make_admin):
        admin_token, user_token, user_id = await self._admin_and_user(
            register_and_login, make_admin, client
        )
        response = await client.patch(
            f"/api/accounts/{user_id}/password",
            json={"newPassword": "zuruecksetzen1"},
            headers=bearer(admin_token),
        )

        assert response.status_code == 200
        assert (await client.get("/api/accounts/me", headers=bearer(user_token))).status_code == 401
        assert await login(client, _EMAIL, "zuruecksetzen1")

    async def test_force_logout(self, client, register_and_login, make_admin):
        admin_token, user_token, user_id = await self._admin_and_user(
            register_and_login, make_admin, client
        )
        response = await client.delete(
            f"/api/accounts/{user_id}/sessions", headers=bearer(admin_token)
        )

        assert response.status_code == 200
        assert (await client.get("/api/accounts/me", headers=bearer(user_token))).status_code == 401
        assert (await client.get("/api/accounts/me", headers=bearer(admin_token))).status_code == 200

    async def test_force_logout_unknown_account(self, client, register_and_login, make_admin):
        admin_token, _, _ = await self._admin_and_user(register_and_login, make_admin, client)
        response = await client.delete(
            f"/api/accounts/{uuid.uuid4()}/sessions", headers=bearer(admin_token)
        )
        assert response.status_code == 404
        assert response.json()["error"] == "ACCOUNT_NOT_FOUND"
