from typing import Annotated

import aiosqlite
from fastapi import Depends

from voucher_api.auth import verify_token
from voucher_api.database import get_db
from voucher_api.vouchers.bulk.service import BulkVoucherService
from voucher_api.vouchers.repository import VoucherRepository
from voucher_api.vouchers.service import VoucherService

DBConn = Annotated[aiosqlite.Connection, Depends(get_db)]
APIToken = Annotated[str, Depends(verify_token)]


def get_voucher_repo(db: DBConn) -> VoucherRepository:
    return VoucherRepository(db)


VoucherRepoDep = Annotated[VoucherRepository, Depends(get_voucher_repo)]


def get_voucher_service(repo: VoucherRepoDep) -> VoucherService:
    return VoucherService(repo)


def get_bulk_service(repo: VoucherRepoDep) -> BulkVoucherService:
    return BulkVoucherService(repo)


VoucherServiceDep = Annotated[VoucherService, Depends(get_voucher_service)]
BulkServiceDep = Annotated[BulkVoucherService, Depends(get_bulk_service)]
