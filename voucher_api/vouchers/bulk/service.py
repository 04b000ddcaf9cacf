import structlog

from voucher_api.exceptions import AppError, ConflictError
from voucher_api.vouchers.bulk.base import VoucherStore
from voucher_api.vouchers.bulk.csv_exporter import VoucherCSVExporter
from voucher_api.vouchers.bulk.csv_importer import ParsedVoucher, VoucherCSVImporter, failed_row
from voucher_api.vouchers.bulk.schemas import CSVUploadResponse, FailedRow

logger = structlog.get_logger()

DUPLICATE_CODE = "voucher_code already exists"
PERSIST_FAILED = "Failed to save to database (Possibly duplicate voucher_code)"


class BulkVoucherService:
    def __init__(self, store: VoucherStore) -> None:
        self._store = store

    async def import_csv(
        self, file_content: bytes, filename: str = "upload.csv"
    ) -> CSVUploadResponse:
        """Import vouchers from CSV content, one independently committed row at a time."""
        importer = VoucherCSVImporter()
        rows = importer.parse(file_content)

        success_count = 0
        failed_rows: list[FailedRow] = []

        for item in rows:
            if isinstance(item, ParsedVoucher):
                failure = await self._persist(item, filename)
                if failure is None:
                    success_count += 1
                    continue
                item = failure

            failed_rows.append(item)
            logger.warning(
                "csv_row_failed",
                filename=filename,
                row=item.row_number,
                voucher_code=item.voucher_code,
                reason=item.reason,
            )

        logger.info(
            "csv_import_completed",
            filename=filename,
            success_count=success_count,
            failed_count=len(failed_rows),
        )
        return CSVUploadResponse(success_count=success_count, failed_rows=failed_rows)

    async def export_csv(self) -> bytes:
        """Render every stored voucher as CSV."""
        try:
            vouchers = await self._store.list_all()
        except Exception as exc:
            logger.error("csv_export_failed", error=str(exc))
            raise AppError(f"Failed to export vouchers: {exc}", code="EXPORT_FAILED") from exc

        content = VoucherCSVExporter().render(vouchers)
        logger.info("csv_export_completed", rows=len(vouchers), size=len(content))
        return content

    async def _persist(self, voucher: ParsedVoucher, filename: str) -> FailedRow | None:
        try:
            await self._store.create(
                voucher.voucher_code, voucher.discount_percent, voucher.expiry_date
            )
        except ConflictError:
            return failed_row(voucher.row_number, voucher.voucher_code, DUPLICATE_CODE)
        except Exception as exc:
            logger.debug(
                "csv_row_persist_error",
                filename=filename,
                row=voucher.row_number,
                error=str(exc),
            )
            return failed_row(voucher.row_number, voucher.voucher_code, PERSIST_FAILED)
        return None
