from enum import StrEnum

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_CODE_LENGTH = 255
MIN_DISCOUNT = 0
MAX_DISCOUNT = 100


class SortField(StrEnum):
    expiry_date = "expiry_date"
    discount_percent = "discount_percent"


class SortOrder(StrEnum):
    asc = "asc"
    desc = "desc"
