from fastapi import APIRouter, Response, UploadFile

from voucher_api.config import settings
from voucher_api.dependencies import APIToken, BulkServiceDep, VoucherServiceDep
from voucher_api.exceptions import ValidationError
from voucher_api.vouchers.bulk.schemas import CSVUploadResponse
from voucher_api.vouchers.models import SortField
from voucher_api.vouchers.schemas import (
    VoucherCreate,
    VoucherListQuery,
    VoucherListResponse,
    VoucherResponse,
    VoucherUpdate,
)

router = APIRouter()


@router.post("/", status_code=201, response_model=VoucherResponse)
async def create_voucher(
    data: VoucherCreate,
    service: VoucherServiceDep,
    _token: APIToken,
) -> VoucherResponse:
    return await service.create(data)


@router.get("/", response_model=VoucherListResponse)
async def list_vouchers(
    service: VoucherServiceDep,
    _token: APIToken,
    search: str | None = None,
    sort_by: SortField = SortField.expiry_date,
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
) -> VoucherListResponse:
    try:
        query = VoucherListQuery(
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
    except ValueError as exc:
        raise ValidationError(f"Invalid list query: {exc}") from None
    return await service.list_vouchers(query)


@router.get("/export")
async def export_vouchers(
    service: BulkServiceDep,
    _token: APIToken,
) -> Response:
    content = await service.export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=vouchers.csv"},
    )


@router.post("/upload-csv", response_model=CSVUploadResponse)
async def upload_csv(
    file: UploadFile,
    service: BulkServiceDep,
    _token: APIToken,
) -> CSVUploadResponse:
    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise ValidationError(f"CSV file exceeds {settings.max_upload_bytes} bytes")
    return await service.import_csv(content, file.filename or "upload.csv")


@router.get("/{voucher_id}", response_model=VoucherResponse)
async def get_voucher(
    voucher_id: str,
    service: VoucherServiceDep,
    _token: APIToken,
) -> VoucherResponse:
    return await service.get_by_id(voucher_id)


@router.put("/{voucher_id}", response_model=VoucherResponse)
async def update_voucher(
    voucher_id: str,
    data: VoucherUpdate,
    service: VoucherServiceDep,
    _token: APIToken,
) -> VoucherResponse:
    return await service.update(voucher_id, data)


@router.delete("/{voucher_id}", status_code=204)
async def delete_voucher(
    voucher_id: str,
    service: VoucherServiceDep,
    _token: APIToken,
) -> None:
    await service.delete(voucher_id)
