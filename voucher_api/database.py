import aiosqlite
import structlog

from voucher_api.config import settings

logger = structlog.get_logger()

_db: aiosqlite.Connection | None = None

DDL_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS vouchers (
        id TEXT PRIMARY KEY,
        voucher_code TEXT NOT NULL UNIQUE,
        discount_percent INTEGER NOT NULL
            CHECK (discount_percent >= 0 AND discount_percent <= 100),
        expiry_date TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_vouchers_expiry_date ON vouchers (expiry_date)",
    "CREATE INDEX IF NOT EXISTS idx_vouchers_discount_percent ON vouchers (discount_percent)",
]


async def init_database(db_path: str | None = None) -> None:
    global _db
    path = db_path or settings.db_path
    _db = await aiosqlite.connect(path)
    _db.row_factory = aiosqlite.Row
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")

    for ddl in DDL_STATEMENTS:
        await _db.execute(ddl)
    await _db.commit()

    logger.info("database_initialized", path=path)


async def close_database() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("database_closed")


def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _db


async def check_health() -> None:
    db = get_db()
    cursor = await db.execute("SELECT 1")
    await cursor.close()
