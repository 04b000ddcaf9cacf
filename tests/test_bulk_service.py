"""Tests for CSV import persistence and CSV export."""

import csv
import io
from datetime import UTC, datetime

import pytest
from conftest import make_csv

from voucher_api.exceptions import AppError, ConflictError, ValidationError
from voucher_api.vouchers.bulk.base import VoucherStore
from voucher_api.vouchers.bulk.csv_exporter import EXPORT_HEADER, format_timestamp
from voucher_api.vouchers.bulk.csv_importer import DATE_FORMAT_INVALID, REQUIRED_FIELD_EMPTY
from voucher_api.vouchers.bulk.service import DUPLICATE_CODE, PERSIST_FAILED, BulkVoucherService

HEADER = "voucher_code,discount_percent,expiry_date"


class FlakyStore(VoucherStore):
    """In-memory store whose inserts fail for selected codes."""

    def __init__(self, failing_codes: set[str] | None = None, fail_scan: bool = False) -> None:
        self.created: list[dict] = []
        self._failing_codes = failing_codes or set()
        self._fail_scan = fail_scan

    async def get_by_code(self, voucher_code: str) -> dict | None:
        return next((v for v in self.created if v["voucher_code"] == voucher_code), None)

    async def create(self, voucher_code, discount_percent, expiry_date) -> dict:
        if voucher_code in self._failing_codes:
            raise RuntimeError("database is locked")
        if await self.get_by_code(voucher_code) is not None:
            raise ConflictError(f"voucher with code {voucher_code} already exists")
        row = {
            "voucher_code": voucher_code,
            "discount_percent": discount_percent,
            "expiry_date": expiry_date,
        }
        self.created.append(row)
        return row

    async def list_all(self) -> list[dict]:
        if self._fail_scan:
            raise RuntimeError("disk I/O error")
        return list(self.created)


def read_export(content: bytes) -> list[list[str]]:
    return list(csv.reader(io.StringIO(content.decode("utf-8"), newline="")))


class TestImport:
    async def test_all_valid_rows_are_persisted(self, repo):
        service = BulkVoucherService(repo)
        content = make_csv(HEADER, "A1,10,2024-01-15", "A2,0,2024-01-16", "A3,100,2024-01-17")

        result = await service.import_csv(content)

        assert result.success_count == 3
        assert result.failed_count == 0
        assert result.failed_rows == []
        assert len(await repo.list_all()) == 3

    async def test_bad_row_does_not_abort_later_rows(self, repo):
        service = BulkVoucherService(repo)
        content = make_csv(HEADER, "A1,10,2024-01-15", "A2,,2024-01-16", "A3,30,2024-01-17")

        result = await service.import_csv(content)

        assert result.success_count == 2
        assert result.failed_count == 1
        assert result.failed_rows[0].row_number == 3
        assert result.failed_rows[0].reason == REQUIRED_FIELD_EMPTY
        assert await repo.get_by_code("A2") is None
        assert await repo.get_by_code("A3") is not None

    async def test_existing_code_fails_and_keeps_stored_record(self, repo):
        await repo.create("DUP", 50, datetime(2030, 1, 1, tzinfo=UTC))
        service = BulkVoucherService(repo)

        result = await service.import_csv(make_csv(HEADER, "DUP,10,2024-02-01", "NEW,5,2024-02-01"))

        assert result.success_count == 1
        assert result.failed_rows[0].voucher_code == "DUP"
        assert result.failed_rows[0].reason == DUPLICATE_CODE
        existing = await repo.get_by_code("DUP")
        assert existing["discount_percent"] == 50
        assert existing["expiry_date"].startswith("2030-01-01")

    async def test_duplicate_within_same_file(self, repo):
        service = BulkVoucherService(repo)

        result = await service.import_csv(make_csv(HEADER, "A1,10,2024-01-15", "A1,20,2024-01-16"))

        assert result.success_count == 1
        assert [(r.row_number, r.reason) for r in result.failed_rows] == [(3, DUPLICATE_CODE)]

    async def test_failures_are_reported_in_encounter_order(self, repo):
        service = BulkVoucherService(repo)
        content = make_csv(
            HEADER,
            "A1,10,2024-01-15",
            "A2,10,15/01/2024",
            "A1,10,2024-01-15",
            ",10,2024-01-15",
            "A5,101,2024-01-15",
            "A6,10,2024-01-15 10:30:00",
        )

        result = await service.import_csv(content)

        assert result.success_count == 2
        assert [r.row_number for r in result.failed_rows] == [3, 4, 5, 6]
        assert result.failed_rows[0].reason == DATE_FORMAT_INVALID
        assert result.failed_rows[1].reason == DUPLICATE_CODE

    async def test_generic_store_error_is_row_failure(self):
        store = FlakyStore(failing_codes={"BROKEN"})
        service = BulkVoucherService(store)

        result = await service.import_csv(
            make_csv(HEADER, "BROKEN,10,2024-01-15", "OK,10,2024-01-15")
        )

        assert result.success_count == 1
        assert result.failed_rows[0].reason == PERSIST_FAILED
        assert result.failed_rows[0].voucher_code == "BROKEN"
        assert [v["voucher_code"] for v in store.created] == ["OK"]

    async def test_failed_rows_cause_no_persistence_calls(self):
        store = FlakyStore()
        service = BulkVoucherService(store)

        await service.import_csv(make_csv(HEADER, "A1,abc,2024-01-15", "A2,10,nope", "A3,10"))

        assert store.created == []

    async def test_missing_header_column_processes_no_rows(self, repo):
        service = BulkVoucherService(repo)

        with pytest.raises(ValidationError, match="expiry_date"):
            await service.import_csv(make_csv("voucher_code,discount_percent", "A1,10"))

        assert await repo.count() == 0

    async def test_empty_file_is_fatal(self, repo):
        with pytest.raises(ValidationError):
            await BulkVoucherService(repo).import_csv(b"")


class TestExport:
    async def test_header_is_always_first(self, repo):
        content = await BulkVoucherService(repo).export_csv()

        assert content == b"ID,Voucher Code,Discount Percent,Expiry Date,Created At,Updated At\n"

    async def test_import_then_export_round_trip(self, repo):
        service = BulkVoucherService(repo)
        await service.import_csv(
            make_csv(HEADER, "A1,10,2024-01-15", "A2,0,2024-01-15 10:30:00", "A3,100,2025-06-30")
        )

        rows = read_export(await service.export_csv())

        assert rows[0] == EXPORT_HEADER
        by_code = {row[1]: row for row in rows[1:]}
        assert by_code["A1"][2:4] == ["10", "2024-01-15 00:00:00"]
        assert by_code["A2"][2:4] == ["0", "2024-01-15 10:30:00"]
        assert by_code["A3"][2:4] == ["100", "2025-06-30 00:00:00"]

    async def test_export_row_fields(self, repo):
        created = await repo.create("A1", 25, datetime(2024, 1, 15, tzinfo=UTC))

        rows = read_export(await BulkVoucherService(repo).export_csv())

        assert len(rows) == 2
        assert rows[1][0] == created["id"]
        assert rows[1][4] == format_timestamp(created["created_at"])
        assert rows[1][5] == format_timestamp(created["updated_at"])

    async def test_code_with_comma_is_quoted(self, repo):
        service = BulkVoucherService(repo)
        await service.import_csv(make_csv(HEADER, '"A,B",10,2024-01-15'))

        content = (await service.export_csv()).decode("utf-8")

        assert ',"A,B",10,2024-01-15 00:00:00,' in content
        assert read_export(content.encode())[1][1] == "A,B"

    async def test_code_with_quote_is_escaped(self, repo):
        await repo.create('SAY"HI', 10, datetime(2024, 1, 15, tzinfo=UTC))

        content = (await BulkVoucherService(repo).export_csv()).decode("utf-8")

        assert ',"SAY""HI",' in content

    @pytest.mark.parametrize("code", ["A\rB", "A\nB", "A\r\nB"])
    async def test_code_with_line_break_stays_one_record(self, repo, code):
        created = await repo.create(code, 10, datetime(2024, 1, 15, tzinfo=UTC))

        content = await BulkVoucherService(repo).export_csv()
        rows = read_export(content)

        assert len(rows) == 2
        assert rows[1][:4] == [created["id"], code, "10", "2024-01-15 00:00:00"]
        assert content.endswith(b"\n")

    async def test_lines_end_with_lf(self, repo):
        await repo.create("A1", 10, datetime(2024, 1, 15, tzinfo=UTC))

        content = await BulkVoucherService(repo).export_csv()

        assert b"\r\n" not in content
        assert content.endswith(b"\n")
        assert content.count(b"\n") == 2

    async def test_scan_failure_is_fatal(self):
        service = BulkVoucherService(FlakyStore(fail_scan=True))

        with pytest.raises(AppError) as exc_info:
            await service.export_csv()

        assert exc_info.value.code == "EXPORT_FAILED"


def test_format_timestamp_converts_to_utc():
    assert format_timestamp("2024-01-15T12:00:00+02:00") == "2024-01-15 10:00:00"
    assert format_timestamp(datetime(2024, 1, 15, 8, 5, 9)) == "2024-01-15 08:05:09"
