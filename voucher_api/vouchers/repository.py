from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite
import structlog

from voucher_api.exceptions import ConflictError
from voucher_api.vouchers.bulk.base import VoucherStore
from voucher_api.vouchers.models import SortField, SortOrder
from voucher_api.vouchers.schemas import VoucherListQuery

logger = structlog.get_logger()

_COLUMNS = "id, voucher_code, discount_percent, expiry_date, created_at, updated_at"

_SORT_COLUMNS = {
    SortField.expiry_date: "expiry_date",
    SortField.discount_percent: "discount_percent",
}


def to_db_timestamp(value: datetime) -> str:
    """Normalize a datetime to ISO-8601 UTC text. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def _like_pattern(search: str) -> str:
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _is_unique_violation(exc: aiosqlite.IntegrityError) -> bool:
    return "UNIQUE" in str(exc).upper()


class VoucherRepository(VoucherStore):
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get_by_id(self, voucher_id: str) -> dict | None:
        cursor = await self._db.execute(
            f"SELECT {_COLUMNS} FROM vouchers WHERE id = ?",
            (voucher_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    async def get_by_code(self, voucher_code: str) -> dict | None:
        cursor = await self._db.execute(
            f"SELECT {_COLUMNS} FROM vouchers WHERE voucher_code = ?",
            (voucher_code,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    async def list_filtered(self, query: VoucherListQuery) -> list[dict]:
        where_clause, params = self._search_clause(query.search)
        sort_column = _SORT_COLUMNS[query.sort_by]
        direction = "DESC" if query.sort_order == SortOrder.desc else "ASC"

        cursor = await self._db.execute(
            f"""
            SELECT {_COLUMNS}
            FROM vouchers
            {where_clause}
            ORDER BY {sort_column} {direction}, created_at ASC, id ASC
            LIMIT ? OFFSET ?
            """,
            [*params, query.limit, query.offset],
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def count(self, search: str | None = None) -> int:
        where_clause, params = self._search_clause(search)
        cursor = await self._db.execute(
            f"SELECT COUNT(*) AS total FROM vouchers {where_clause}",
            params,
        )
        row = await cursor.fetchone()
        return int(row["total"]) if row else 0

    async def list_all(self) -> list[dict]:
        cursor = await self._db.execute(
            f"SELECT {_COLUMNS} FROM vouchers ORDER BY created_at ASC, id ASC"
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def create(
        self, voucher_code: str, discount_percent: int, expiry_date: datetime
    ) -> dict:
        voucher_id = str(uuid4())
        now = to_db_timestamp(datetime.now(UTC))

        try:
            await self._db.execute(
                f"""
                INSERT INTO vouchers ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    voucher_id,
                    voucher_code,
                    discount_percent,
                    to_db_timestamp(expiry_date),
                    now,
                    now,
                ),
            )
        except aiosqlite.IntegrityError as exc:
            await self._db.rollback()
            if _is_unique_violation(exc):
                raise ConflictError(
                    f"voucher with code {voucher_code} already exists"
                ) from exc
            raise
        await self._db.commit()

        logger.debug("voucher_inserted", voucher_id=voucher_id, voucher_code=voucher_code)
        return {
            "id": voucher_id,
            "voucher_code": voucher_code,
            "discount_percent": discount_percent,
            "expiry_date": to_db_timestamp(expiry_date),
            "created_at": now,
            "updated_at": now,
        }

    async def update(
        self,
        voucher_id: str,
        voucher_code: str,
        discount_percent: int,
        expiry_date: datetime,
    ) -> dict | None:
        now = to_db_timestamp(datetime.now(UTC))

        try:
            await self._db.execute(
                """
                UPDATE vouchers
                SET voucher_code = ?, discount_percent = ?, expiry_date = ?, updated_at = ?
                WHERE id = ?
                """,
                (voucher_code, discount_percent, to_db_timestamp(expiry_date), now, voucher_id),
            )
        except aiosqlite.IntegrityError as exc:
            await self._db.rollback()
            if _is_unique_violation(exc):
                raise ConflictError(
                    f"voucher with code {voucher_code} already exists"
                ) from exc
            raise
        await self._db.commit()

        return await self.get_by_id(voucher_id)

    async def delete(self, voucher_id: str) -> None:
        await self._db.execute("DELETE FROM vouchers WHERE id = ?", (voucher_id,))
        await self._db.commit()

    @staticmethod
    def _search_clause(search: str | None) -> tuple[str, list]:
        if not search:
            return "", []
        return "WHERE voucher_code LIKE ? ESCAPE '\\'", [_like_pattern(search)]
