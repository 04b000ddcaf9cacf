from datetime import datetime

from pydantic import BaseModel, Field

from voucher_api.vouchers.models import MAX_CODE_LENGTH, MAX_DISCOUNT, MIN_DISCOUNT, SortField


class VoucherCreate(BaseModel):
    voucher_code: str = Field(min_length=1, max_length=MAX_CODE_LENGTH)
    discount_percent: int = Field(ge=MIN_DISCOUNT, le=MAX_DISCOUNT)
    expiry_date: str


class VoucherUpdate(BaseModel):
    voucher_code: str = Field(min_length=1, max_length=MAX_CODE_LENGTH)
    discount_percent: int = Field(ge=MIN_DISCOUNT, le=MAX_DISCOUNT)
    expiry_date: str


class VoucherResponse(BaseModel):
    id: str
    voucher_code: str
    discount_percent: int
    expiry_date: datetime
    created_at: datetime
    updated_at: datetime


class VoucherListQuery(BaseModel):
    search: str | None = None
    sort_by: SortField = SortField.expiry_date
    sort_order: str = "asc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class VoucherListResponse(BaseModel):
    vouchers: list[VoucherResponse]
    total: int
    page: int
    limit: int
