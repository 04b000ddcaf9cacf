import csv
import io
from collections.abc import Iterable
from datetime import UTC, datetime

from voucher_api.vouchers.models import DATETIME_FORMAT

EXPORT_HEADER = [
    "ID",
    "Voucher Code",
    "Discount Percent",
    "Expiry Date",
    "Created At",
    "Updated At",
]


def format_timestamp(value: str | datetime) -> str:
    """Render a stored timestamp as YYYY-MM-DD HH:MM:SS in UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(DATETIME_FORMAT)


class VoucherCSVExporter:
    def render(self, vouchers: Iterable[dict]) -> bytes:
        """Render voucher rows as UTF-8 CSV with a fixed header and LF line endings."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        # minimal quoting only covers "\n" here, so rows carrying "\r" are fully quoted
        quote_all_writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_ALL)
        writer.writerow(EXPORT_HEADER)
        for voucher in vouchers:
            record = self._to_record(voucher)
            if any("\r" in field or "\n" in field for field in record):
                quote_all_writer.writerow(record)
            else:
                writer.writerow(record)
        return buffer.getvalue().encode("utf-8")

    @staticmethod
    def _to_record(voucher: dict) -> list[str]:
        return [
            str(voucher["id"]),
            voucher["voucher_code"],
            str(int(voucher["discount_percent"])),
            format_timestamp(voucher["expiry_date"]),
            format_timestamp(voucher["created_at"]),
            format_timestamp(voucher["updated_at"]),
        ]
