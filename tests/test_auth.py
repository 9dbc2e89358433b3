"""
Login, the admin guard and the login rate limiter.
"""
import pytest
from jose import jwt

from storefront.core.security import create_access_token, decode_token
from storefront.models.user import User
from tests.conftest import ADMIN_PASSWORD


@pytest.mark.asyncio
async def test_login_issues_a_decodable_token(client, settings, admin_user):
    r = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})

    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["tokenType"] == "Bearer"
    assert data["expiresIn"] == settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert data["user"]["username"] == "admin"
    assert "passwordHash" not in data["user"]
    claims = decode_token(data["token"], settings)
    assert claims["sub"] == str(admin_user.id)
    assert claims["type"] == "access"
    assert claims["email"] == "admin@simpleshop.com"


@pytest.mark.asyncio
async def test_login_accepts_email(client, admin_user):
    r = await client.post(
        "/api/auth/login", json={"username": "admin@simpleshop.com", "password": ADMIN_PASSWORD}
    )
    assert r.status_code == 200, r.text


@pytest.mark.asyncio
async def test_login_rejects_bad_password_and_inactive_user(client, sessions, admin_user):
    r = await client.post("/api/auth/login", json={"username": "admin", "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid username or password"

    async with sessions() as s:
        (await s.get(User, admin_user.id)).is_active = False
        await s.commit()
    r = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_login_validation(client):
    r = await client.post("/api/auth/login", json={"username": "ab", "password": "123"})

    assert r.status_code == 400
    fields = {d["field"] for d in r.json()["data"]}
    assert fields == {"username", "password"}


@pytest.mark.asyncio
async def test_admin_routes_require_a_valid_token(client, settings):
    r = await client.get("/api/admin/orders")
    assert r.status_code == 401
    assert r.json()["success"] is False
    assert r.headers["WWW-Authenticate"] == "Bearer"

    forged = jwt.encode({"sub": "1", "type": "access"}, "not-the-secret", algorithm="HS256")
    r = await client.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401

    settings_expired = settings.model_copy(update={"JWT_ACCESS_TOKEN_EXPIRE_MINUTES": -1})
    expired = create_access_token({"sub": "1"}, settings_expired)
    r = await client.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_public_routes_need_no_token(client):
    assert (await client.get("/api/products")).status_code == 200
    assert (await client.get("/api/categories")).status_code == 200
    assert (await client.get("/health")).status_code == 200


@pytest.mark.asyncio
async def test_me_and_logout(client, admin_headers):
    r = await client.get("/api/auth/me", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["username"] == "admin"

    r = await client.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json()["message"] == "Logout successful"
    assert r.json()["data"] is None


@pytest.mark.asyncio
async def test_login_rate_limit_per_username(client, settings, admin_user, fake_redis):
    bad = {"username": "admin", "password": "wrong-password"}
    for _ in range(settings.RATE_LIMIT_MAX_ATTEMPTS):
        assert (await client.post("/api/auth/login", json=bad)).status_code == 401

    r = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})

    assert r.status_code == 429
    assert r.headers["Retry-After"] == str(settings.RATE_LIMIT_WINDOW_SECONDS)
    assert r.json()["success"] is False
    assert await fake_redis.zcard("ratelimit:login:admin") >= settings.RATE_LIMIT_MAX_ATTEMPTS

    # Another username has its own window
    r = await client.post("/api/auth/login", json={"username": "someone", "password": "whatever"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_rate_limit_window_slides(client, settings, admin_user, fake_redis):
    bad = {"username": "admin", "password": "wrong-password"}
    for _ in range(settings.RATE_LIMIT_MAX_ATTEMPTS):
        await client.post("/api/auth/login", json=bad)

    # Age every recorded attempt past the window
    for key in await fake_redis.keys("ratelimit:*"):
        members = await fake_redis.zrange(key, 0, -1, withscores=True)
        await fake_redis.zadd(key, {m: s - settings.RATE_LIMIT_WINDOW_SECONDS - 1 for m, s in members})

    r = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
