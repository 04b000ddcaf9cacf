"""Shared fixtures: settings are taken from the environment, so set it before importing the app."""

import os

os.environ.setdefault("VOUCHER_API_TOKEN", "test-token")
os.environ.setdefault("VOUCHER_AUTH_USERNAME", "admin")
os.environ.setdefault("VOUCHER_AUTH_PASSWORD", "test-password")
os.environ.setdefault("VOUCHER_DB_PATH", ":memory:")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from voucher_api.database import close_database, get_db, init_database  # noqa: E402
from voucher_api.main import app  # noqa: E402
from voucher_api.vouchers.repository import VoucherRepository  # noqa: E402

TEST_TOKEN = os.environ["VOUCHER_API_TOKEN"]


@pytest.fixture
async def db():
    """Fresh in-memory database for each test."""
    await init_database(":memory:")
    yield get_db()
    await close_database()


@pytest.fixture
def repo(db) -> VoucherRepository:
    return VoucherRepository(db)


@pytest.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_TOKEN}"}


def make_csv(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")
