"""Integration tests for registration, login and the session cookie."""

from httpx import AsyncClient


class TestRegister:
    async def test_register_logs_in(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/register", json={"username": "bob", "password": "secret1"}
        )

        assert response.status_code == 201
        assert response.json()["username"] == "bob"
        assert "password_hash" not in response.json()

        me = await client.get("/api/user")
        assert me.status_code == 200
        assert me.json()["username"] == "bob"

    async def test_duplicate_username(self, logged_in_client: AsyncClient) -> None:
        response = await logged_in_client.post(
            "/api/register", json={"username": "alice", "password": "another1"}
        )

        assert response.status_code == 409

    async def test_short_password(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/register", json={"username": "carol", "password": "123"}
        )

        assert response.status_code == 400

    async def test_long_password(self, client: AsyncClient) -> None:
        password = "p" * 100

        response = await client.post(
            "/api/register", json={"username": "longpw", "password": password}
        )
        assert response.status_code == 201

        await client.post("/api/logout")
        login = await client.post(
            "/api/login", json={"username": "longpw", "password": password}
        )
        assert login.status_code == 200

    async def test_multibyte_password(self, client: AsyncClient) -> None:
        # 30 characters, 120 UTF-8 bytes
        password = "\U0001F512" * 30

        response = await client.post(
            "/api/register", json={"username": "emoji", "password": password}
        )
        assert response.status_code == 201

        await client.post("/api/logout")
        login = await client.post(
            "/api/login", json={"username": "emoji", "password": password}
        )
        wrong = await client.post(
            "/api/login", json={"username": "emoji", "password": password[:-1]}
        )
        assert login.status_code == 200
        assert wrong.status_code == 401


class TestLogin:
    async def test_login_after_logout(self, logged_in_client: AsyncClient) -> None:
        await logged_in_client.post("/api/logout")
        assert (await logged_in_client.get("/api/user")).status_code == 401

        response = await logged_in_client.post(
            "/api/login", json={"username": "alice", "password": "wonderland"}
        )

        assert response.status_code == 200
        assert (await logged_in_client.get("/api/user")).json()["username"] == "alice"

    async def test_wrong_password(self, logged_in_client: AsyncClient) -> None:
        response = await logged_in_client.post(
            "/api/login", json={"username": "alice", "password": "looking-glass"}
        )

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid username or password"}

    async def test_unknown_user(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/login", json={"username": "nobody", "password": "whatever"}
        )

        assert response.status_code == 401


class TestCurrentUser:
    async def test_anonymous_is_401(self, client: AsyncClient) -> None:
        response = await client.get("/api/user")

        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated"}

    async def test_logout(self, logged_in_client: AsyncClient) -> None:
        response = await logged_in_client.post("/api/logout")

        assert response.status_code == 200
        assert (await logged_in_client.get("/api/user")).status_code == 401


class TestIdentityProvider:
    async def test_missing_headers(self, client: AsyncClient) -> None:
        response = await client.get("/api/auth/replit")

        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated with Replit"}

    async def test_creates_then_reuses_user(self, client: AsyncClient) -> None:
        headers = {"X-Replit-User-Id": "42", "X-Replit-User-Name": "dana"}

        first = await client.get("/api/auth/replit", headers=headers)
        await client.post("/api/logout")
        second = await client.get("/api/auth/replit", headers=headers)

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert (await client.get("/api/user")).json()["username"] == "dana"

    async def test_overlong_name_rejected(self, client: AsyncClient) -> None:
        headers = {"X-Replit-User-Id": "43", "X-Replit-User-Name": "x" * 51}

        response = await client.get("/api/auth/replit", headers=headers)

        assert response.status_code == 400
        assert (await client.get("/api/user")).status_code == 401
