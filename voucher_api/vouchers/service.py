from datetime import UTC, datetime
from uuid import UUID

import structlog

from voucher_api.exceptions import ConflictError, NotFoundError, ValidationError
from voucher_api.vouchers.models import DATE_FORMAT, SortOrder
from voucher_api.vouchers.repository import VoucherRepository
from voucher_api.vouchers.schemas import (
    VoucherCreate,
    VoucherListQuery,
    VoucherListResponse,
    VoucherResponse,
    VoucherUpdate,
)

logger = structlog.get_logger()


def parse_voucher_id(voucher_id: str) -> str:
    try:
        return str(UUID(voucher_id))
    except ValueError:
        raise ValidationError("Invalid voucher id") from None


def parse_expiry_date(value: str) -> datetime:
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        raise ValidationError(
            f"Invalid expiry_date '{value}'. Use YYYY-MM-DD."
        ) from None


class VoucherService:
    def __init__(self, repo: VoucherRepository) -> None:
        self._repo = repo

    async def create(self, data: VoucherCreate) -> VoucherResponse:
        existing = await self._repo.get_by_code(data.voucher_code)
        if existing is not None:
            raise ConflictError(f"voucher with code {data.voucher_code} already exists")

        expiry_date = parse_expiry_date(data.expiry_date)
        row = await self._repo.create(data.voucher_code, data.discount_percent, expiry_date)

        logger.info("voucher_created", voucher_id=row["id"], voucher_code=data.voucher_code)
        return self.to_response(row)

    async def list_vouchers(self, query: VoucherListQuery) -> VoucherListResponse:
        if query.sort_order not in (SortOrder.asc, SortOrder.desc):
            query = query.model_copy(update={"sort_order": SortOrder.asc.value})

        rows = await self._repo.list_filtered(query)
        total = await self._repo.count(query.search)
        return VoucherListResponse(
            vouchers=[self.to_response(row) for row in rows],
            total=total,
            page=query.page,
            limit=query.limit,
        )

    async def get_by_id(self, voucher_id: str) -> VoucherResponse:
        row = await self._get_existing(voucher_id)
        return self.to_response(row)

    async def update(self, voucher_id: str, data: VoucherUpdate) -> VoucherResponse:
        existing = await self._get_existing(voucher_id)

        expiry_date = parse_expiry_date(data.expiry_date)
        row = await self._repo.update(
            existing["id"], data.voucher_code, data.discount_percent, expiry_date
        )
        if row is None:
            raise NotFoundError("Voucher", voucher_id)

        logger.info("voucher_updated", voucher_id=existing["id"])
        return self.to_response(row)

    async def delete(self, voucher_id: str) -> None:
        existing = await self._get_existing(voucher_id)
        await self._repo.delete(existing["id"])
        logger.info("voucher_deleted", voucher_id=existing["id"])

    async def _get_existing(self, voucher_id: str) -> dict:
        row = await self._repo.get_by_id(parse_voucher_id(voucher_id))
        if row is None:
            raise NotFoundError("Voucher", voucher_id)
        return row

    @staticmethod
    def to_response(row: dict) -> VoucherResponse:
        return VoucherResponse(
            id=row["id"],
            voucher_code=row["voucher_code"],
            discount_percent=row["discount_percent"],
            expiry_date=row["expiry_date"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
