import csv
import io
import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from voucher_api.exceptions import ValidationError
from voucher_api.vouchers.bulk.schemas import FailedRow
from voucher_api.vouchers.models import (
    DATE_FORMAT,
    DATETIME_FORMAT,
    MAX_CODE_LENGTH,
    MAX_DISCOUNT,
    MIN_DISCOUNT,
)

logger = structlog.get_logger()

VOUCHER_CODE = "voucher_code"
DISCOUNT_PERCENT = "discount_percent"
EXPIRY_DATE = "expiry_date"
REQUIRED_HEADERS = (VOUCHER_CODE, DISCOUNT_PERCENT, EXPIRY_DATE)

EXPIRY_DATE_FORMATS = [DATE_FORMAT, DATETIME_FORMAT]

ROW_FORMAT_INVALID = "csv row format is not valid"
REQUIRED_FIELD_EMPTY = "voucher_code, discount_percent, or expiry_date are empty."
CODE_TOO_LONG = f"voucher_code must be at most {MAX_CODE_LENGTH} characters."
DISCOUNT_OUT_OF_RANGE = (
    f"Discount percent must be between {MIN_DISCOUNT} and {MAX_DISCOUNT}."
)
DATE_FORMAT_INVALID = (
    "expiry_date format is not valid. Use YYYY-MM-DD or YYYY-MM-DD HH:MM:SS."
)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ParsedVoucher:
    row_number: int
    voucher_code: str
    discount_percent: int
    expiry_date: datetime


class RowError(ValueError):
    """A problem confined to a single data row."""

    def __init__(self, reason: str, voucher_code: str | None = None) -> None:
        self.reason = reason
        self.voucher_code = voucher_code
        super().__init__(reason)


def failed_row(row_number: int, voucher_code: str | None, reason: str) -> FailedRow:
    return FailedRow(row_number=row_number, voucher_code=voucher_code or None, reason=reason)


class VoucherCSVImporter:
    def parse(self, file_content: bytes) -> Iterator[ParsedVoucher | FailedRow]:
        """Validate the header and return a lazy iterator over the data rows.

        Header problems raise ValidationError here, before any row is read.
        Each data row then yields either a ParsedVoucher or a FailedRow, in
        input order. Rows are numbered from 2 (the header is row 1).
        """
        text = self._decode_content(file_content)
        reader = csv.reader(io.StringIO(text, newline=""), strict=True)

        header = self._read_header(reader)
        column_map = self._map_columns(header)
        logger.info("csv_columns_detected", mapping=column_map, columns=len(header))

        return self._iter_rows(reader, column_map, len(header))

    def _decode_content(self, file_content: bytes) -> str:
        try:
            text = file_content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ValidationError(f"csv file must be UTF-8 encoded: {exc}") from None
        if not text.strip():
            raise ValidationError("csv file is empty")
        return text

    def _read_header(self, reader: Iterator[list[str]]) -> list[str]:
        try:
            for header in reader:
                if header:
                    return header
        except csv.Error as exc:
            raise ValidationError(f"failed to read csv headers: {exc}") from None
        raise ValidationError("csv file is empty")

    def _map_columns(self, header: list[str]) -> dict[str, int]:
        """Map normalized column names to indices. A repeated name keeps its last index."""
        column_map = {name.strip().lower(): index for index, name in enumerate(header)}
        for required in REQUIRED_HEADERS:
            if required not in column_map:
                raise ValidationError(f"header '{required}' not found in the csv header")
        return column_map

    def _iter_rows(
        self, reader: Iterator[list[str]], column_map: dict[str, int], field_count: int
    ) -> Iterator[ParsedVoucher | FailedRow]:
        row_number = 1
        while True:
            try:
                record = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                row_number += 1
                logger.debug("csv_row_unreadable", row=row_number, error=str(exc))
                yield failed_row(row_number, None, ROW_FORMAT_INVALID)
                continue

            # blank lines carry no record
            if not record:
                continue
            row_number += 1

            if len(record) != field_count:
                yield failed_row(row_number, None, ROW_FORMAT_INVALID)
                continue

            try:
                yield self._parse_row(record, column_map, row_number)
            except RowError as exc:
                yield failed_row(row_number, exc.voucher_code, exc.reason)

    def _parse_row(
        self, record: list[str], column_map: dict[str, int], row_number: int
    ) -> ParsedVoucher:
        voucher_code = record[column_map[VOUCHER_CODE]].strip()
        discount_raw = record[column_map[DISCOUNT_PERCENT]].strip()
        expiry_raw = record[column_map[EXPIRY_DATE]].strip()

        if not voucher_code or not discount_raw or not expiry_raw:
            raise RowError(REQUIRED_FIELD_EMPTY, voucher_code)
        if len(voucher_code) > MAX_CODE_LENGTH:
            raise RowError(CODE_TOO_LONG, voucher_code)

        return ParsedVoucher(
            row_number=row_number,
            voucher_code=voucher_code,
            discount_percent=self._parse_discount(discount_raw, voucher_code),
            expiry_date=self._parse_expiry_date(expiry_raw, voucher_code),
        )

    def _parse_discount(self, raw: str, voucher_code: str) -> int:
        if not _INTEGER_RE.fullmatch(raw):
            raise RowError(
                f"Discount percent must be a number: invalid integer {raw!r}", voucher_code
            )
        value = int(raw)
        if value < MIN_DISCOUNT or value > MAX_DISCOUNT:
            raise RowError(DISCOUNT_OUT_OF_RANGE, voucher_code)
        return value

    def _parse_expiry_date(self, raw: str, voucher_code: str) -> datetime:
        for fmt in EXPIRY_DATE_FORMATS:
            try:
                return datetime.strptime(raw, fmt).replace(tzinfo=UTC)
            except ValueError:
                continue
        raise RowError(DATE_FORMAT_INVALID, voucher_code)
