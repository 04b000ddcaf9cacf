from voucher_api.vouchers.bulk.base import VoucherStore
from voucher_api.vouchers.bulk.csv_exporter import VoucherCSVExporter
from voucher_api.vouchers.bulk.csv_importer import VoucherCSVImporter
from voucher_api.vouchers.bulk.service import BulkVoucherService

__all__ = ["BulkVoucherService", "VoucherCSVExporter", "VoucherCSVImporter", "VoucherStore"]
