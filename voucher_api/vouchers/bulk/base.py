from abc import ABC, abstractmethod
from datetime import datetime


class VoucherStore(ABC):
    """Persistence operations the bulk importer and exporter depend on."""

    @abstractmethod
    async def get_by_code(self, voucher_code: str) -> dict | None: ...

    @abstractmethod
    async def create(
        self, voucher_code: str, discount_percent: int, expiry_date: datetime
    ) -> dict:
        """Insert one voucher and commit.

        Raises ConflictError when the code is already taken.
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[dict]:
        """Return every stored voucher, oldest first."""
        ...
