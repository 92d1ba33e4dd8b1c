"""
Voyage Backend - User Service API Tests
========================================

What:  End-to-end tests of /api/auth and /api/users through the ASGI app on
       the SQLite test database.

What we test:
    ✅ Login: header + body token, 400 on missing fields, 401 on bad credentials
    ✅ Register: 201, 400 on missing/invalid fields and weak passwords, 409 duplicate
    ✅ Admin endpoints: 401 without token, 403 for users, 200 for admins
    ✅ Self-service profile rules (oldPassword pairing and check)
    ✅ Roles: catalogue, promotion, demotion, stored role wins over token claim
"""

import pytest
import pytest_asyncio

from voyage.database import async_session_factory
from voyage.models.user import User
from voyage.security import hash_password

VALID_PASSWORD = "SecretP@ssword1337"

NEW_USER = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane.doe@mail.com",
    "password": VALID_PASSWORD,
}


async def _insert_user(email: str, role: str = "user", password: str = VALID_PASSWORD) -> int:
    async with async_session_factory() as session:
        user = User(
            first_name="Test",
            last_name=role.capitalize(),
            email=email,
            password_hash=hash_password(password),
            role=role,
        )
        session.add(user)
        await session.commit()
        return user.id


async def _login(client, email: str, password: str = VALID_PASSWORD) -> dict:
    response = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": response.headers["authorization"]}


@pytest_asyncio.fixture
async def admin_auth(test_client):
    await _insert_user("admin@mail.com", role="admin")
    return await _login(test_client, "admin@mail.com")


@pytest_asyncio.fixture
async def user_auth(test_client):
    await _insert_user("john.smith@mail.com")
    return await _login(test_client, "john.smith@mail.com")


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_token_in_header_and_body(self, test_client):
        await _insert_user("john.smith@mail.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "john.smith@mail.com", "password": VALID_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert response.headers["authorization"] == f"Bearer {body['token']}"
        assert body["tokenType"] == "Bearer"
        assert body["expiresIn"] > 0
        assert body["user"]["email"] == "john.smith@mail.com"
        assert "passwordHash" not in body["user"]

    @pytest.mark.asyncio
    async def test_login_email_is_case_insensitive(self, test_client):
        await _insert_user("john.smith@mail.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "John.Smith@Mail.com", "password": VALID_PASSWORD}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["email", "password"])
    async def test_missing_field_is_400(self, test_client, missing):
        body = {"email": "john.smith@mail.com", "password": VALID_PASSWORD}
        del body[missing]
        response = await test_client.post("/api/auth/login", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["details"][0]["field"] == missing

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, test_client):
        await _insert_user("john.smith@mail.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "john.smith@mail.com", "password": "invalid"}
        )
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_unknown_user_is_401_with_same_message(self, test_client):
        await _insert_user("john.smith@mail.com")
        unknown = await test_client.post(
            "/api/auth/login", json={"email": "wrong@mail.com", "password": VALID_PASSWORD}
        )
        wrong = await test_client.post(
            "/api/auth/login", json={"email": "john.smith@mail.com", "password": "invalid"}
        )
        assert unknown.status_code == 401
        assert unknown.json()["message"] == wrong.json()["message"]


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_creates_user(self, test_client):
        response = await test_client.post("/api/auth/register", json=NEW_USER)

        assert response.status_code == 201
        body = response.json()
        assert isinstance(body["id"], int)
        assert body["firstName"] == "Jane"
        assert body["lastName"] == "Doe"
        assert body["email"] == "jane.doe@mail.com"
        assert body["role"] == "user"
        assert body["isAdmin"] is False
        assert "password" not in body

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["email", "password", "firstName", "lastName"])
    async def test_missing_field_is_400(self, test_client, missing):
        body = {k: v for k, v in NEW_USER.items() if k != missing}
        response = await test_client.post("/api/auth/register", json=body)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_email_is_400(self, test_client):
        response = await test_client.post(
            "/api/auth/register", json={**NEW_USER, "email": "invalidemail"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "password",
        ["Pw@1", "SecretP@ssword", "SECRETP@SSWORD1337", "secretp@ssword1337", "SecretPassword1337"],
    )
    async def test_weak_password_is_400(self, test_client, password):
        response = await test_client.post("/api/auth/register", json={**NEW_USER, "password": password})
        assert response.status_code == 400
        assert "Password must contain" in response.json()["details"][0]["message"]

    @pytest.mark.asyncio
    async def test_duplicate_email_is_409(self, test_client):
        first = await test_client.post("/api/auth/register", json=NEW_USER)
        assert first.status_code == 201

        response = await test_client.post(
            "/api/auth/register", json={**NEW_USER, "email": "Jane.Doe@mail.com"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_register_cannot_choose_role(self, test_client):
        response = await test_client.post("/api/auth/register", json={**NEW_USER, "role": "admin"})
        assert response.status_code == 201
        assert response.json()["role"] == "user"


class TestAdminUsers:

    @pytest.mark.asyncio
    async def test_list_users(self, test_client, admin_auth):
        await test_client.post("/api/auth/register", json=NEW_USER)
        response = await test_client.get("/api/users", headers=admin_auth)

        assert response.status_code == 200
        emails = {user["email"] for user in response.json()}
        assert {"admin@mail.com", "jane.doe@mail.com"} <= emails
        assert all({"id", "firstName", "lastName", "email"} <= set(u) for u in response.json())

    @pytest.mark.asyncio
    async def test_list_users_without_token_is_401(self, test_client):
        response = await test_client.get("/api/users")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_users_as_user_is_403(self, test_client, user_auth):
        response = await test_client.get("/api/users", headers=user_auth)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_roles(self, test_client, admin_auth):
        response = await test_client.get("/api/users/roles", headers=admin_auth)
        assert response.status_code == 200
        assert response.json() == [{"id": 1, "name": "user"}, {"id": 2, "name": "admin"}]

    @pytest.mark.asyncio
    async def test_roles_with_invalid_token_is_401(self, test_client):
        response = await test_client.get("/api/users/roles", headers={"Authorization": "invalidtoken"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_creates_user_with_role(self, test_client, admin_auth):
        response = await test_client.post(
            "/api/users", json={**NEW_USER, "role": "admin"}, headers=admin_auth
        )
        assert response.status_code == 201
        assert response.json()["isAdmin"] is True

    @pytest.mark.asyncio
    async def test_get_update_delete_user(self, test_client, admin_auth):
        created = (await test_client.post("/api/auth/register", json=NEW_USER)).json()
        url = f"/api/users/{created['id']}"

        response = await test_client.get(url, headers=admin_auth)
        assert response.status_code == 200
        assert response.json()["email"] == "jane.doe@mail.com"

        # Administrators set passwords without oldPassword
        response = await test_client.patch(
            url, json={"lastName": "Smith", "password": "N3wP@ssword!"}, headers=admin_auth
        )
        assert response.status_code == 200
        assert response.json()["lastName"] == "Smith"
        await _login(test_client, "jane.doe@mail.com", "N3wP@ssword!")

        response = await test_client.put(url, json={"firstName": "Janet"}, headers=admin_auth)
        assert response.status_code == 200
        assert response.json()["firstName"] == "Janet"

        response = await test_client.delete(url, headers=admin_auth)
        assert response.status_code == 204

        response = await test_client.get(url, headers=admin_auth)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, test_client, admin_auth):
        response = await test_client.get("/api/users/9999", headers=admin_auth)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_update_with_invalid_email_is_400(self, test_client, admin_auth):
        created = (await test_client.post("/api/auth/register", json=NEW_USER)).json()
        response = await test_client.patch(
            f"/api/users/{created['id']}", json={"email": "invalidemail"}, headers=admin_auth
        )
        assert response.status_code == 400


class TestRoles:

    @pytest.mark.asyncio
    async def test_promote_and_demote(self, test_client, admin_auth):
        created = (await test_client.post("/api/auth/register", json=NEW_USER)).json()
        url = f"/api/users/{created['id']}/role"

        response = await test_client.put(url, json={"role": "admin"}, headers=admin_auth)
        assert response.status_code == 200
        assert response.json() == {"id": created["id"], "role": "admin"}

        response = await test_client.delete(url, headers=admin_auth)
        assert response.status_code == 200
        assert response.json()["role"] == "user"

    @pytest.mark.asyncio
    async def test_unknown_role_is_400(self, test_client, admin_auth):
        created = (await test_client.post("/api/auth/register", json=NEW_USER)).json()
        response = await test_client.put(
            f"/api/users/{created['id']}/role", json={"role": "superuser"}, headers=admin_auth
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_role_of_unknown_user_is_404(self, test_client, admin_auth):
        response = await test_client.put("/api/users/9999/role", json={"role": "admin"}, headers=admin_auth)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_demoted_admin_loses_access_with_old_token(self, test_client, admin_auth):
        other_admin_id = await _insert_user("second.admin@mail.com", role="admin")
        second = await _login(test_client, "second.admin@mail.com")

        response = await test_client.delete(f"/api/users/{other_admin_id}/role", headers=admin_auth)
        assert response.status_code == 200

        # The token still says "admin", the stored role does not
        response = await test_client.get("/api/users", headers=second)
        assert response.status_code == 403


class TestSelfService:

    @pytest.mark.asyncio
    async def test_get_me(self, test_client, user_auth):
        response = await test_client.get("/api/users/me", headers=user_auth)
        assert response.status_code == 200
        assert response.json()["email"] == "john.smith@mail.com"

    @pytest.mark.asyncio
    async def test_update_names_and_email(self, test_client, user_auth):
        response = await test_client.patch(
            "/api/users/me",
            json={"firstName": "Johnny", "email": "johnny@mail.com"},
            headers=user_auth,
        )
        assert response.status_code == 200
        assert response.json()["firstName"] == "Johnny"
        assert response.json()["email"] == "johnny@mail.com"

    @pytest.mark.asyncio
    async def test_change_password(self, test_client, user_auth):
        response = await test_client.patch(
            "/api/users/me",
            json={"password": "N3wP@ssword!", "oldPassword": VALID_PASSWORD},
            headers=user_auth,
        )
        assert response.status_code == 200
        await _login(test_client, "john.smith@mail.com", "N3wP@ssword!")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"password": "N3wP@ssword!"}, {"oldPassword": VALID_PASSWORD}],
    )
    async def test_password_without_its_pair_is_400(self, test_client, user_auth, body):
        response = await test_client.patch("/api/users/me", json=body, headers=user_auth)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_wrong_old_password_is_401(self, test_client, user_auth):
        response = await test_client.patch(
            "/api/users/me",
            json={"password": "N3wP@ssword!", "oldPassword": "Wr0ngP@ssword"},
            headers=user_auth,
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_weak_new_password_is_400(self, test_client, user_auth):
        response = await test_client.patch(
            "/api/users/me",
            json={"password": "weak", "oldPassword": VALID_PASSWORD},
            headers=user_auth,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_taken_email_is_409(self, test_client, user_auth):
        await test_client.post("/api/auth/register", json=NEW_USER)
        response = await test_client.patch(
            "/api/users/me", json={"email": "jane.doe@mail.com"}, headers=user_auth
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_me_invalidates_token(self, test_client, user_auth):
        response = await test_client.delete("/api/users/me", headers=user_auth)
        assert response.status_code == 204

        response = await test_client.get("/api/users/me", headers=user_auth)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_without_token_is_401(self, test_client):
        response = await test_client.get("/api/users/me")
        assert response.status_code == 401
