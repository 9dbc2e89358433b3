"""
Shared fixtures: the app runs in-process against a temporary SQLite file
with fakeredis standing in for Redis. Every test gets a fresh database.
"""
import fakeredis.aioredis
import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event

from storefront.core.config import Settings
from storefront.db.seed import seed_admin
from storefront.main import create_app

ADMIN_PASSWORD = "admin123"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        JWT_SECRET_KEY="test-secret",
        ADMIN_USERNAME="admin",
        ADMIN_EMAIL="admin@simpleshop.com",
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        RATE_LIMIT_MAX_ATTEMPTS=3,
        RATE_LIMIT_WINDOW_SECONDS=60,
        METRICS_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


def _serialize_sqlite_writers(engine) -> None:
    # The sqlite3 driver defers locking to the first write; taking the lock
    # at BEGIN makes concurrent transactions run one after another.
    @event.listens_for(engine.sync_engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@pytest_asyncio.fixture
async def app(settings, fake_redis):
    application = create_app(settings, redis_client=fake_redis)
    async with application.router.lifespan_context(application):
        engine = application.state.engine
        _serialize_sqlite_writers(engine)
        # Pooled connections predate the listeners
        await engine.dispose()
        yield application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def sessions(app):
    """Session factory for setup and assertions. Keep sessions short: a
    session left inside a transaction holds the SQLite write lock."""
    return app.state.sessionmaker


@pytest_asyncio.fixture
async def admin_user(app, settings):
    async with app.state.sessionmaker() as session:
        return await seed_admin(session, settings)


@pytest_asyncio.fixture
async def admin_headers(client, admin_user) -> dict[str, str]:
    r = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['data']['token']}"}
