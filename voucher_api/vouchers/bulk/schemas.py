from pydantic import BaseModel, ConfigDict, computed_field


class FailedRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_number: int
    voucher_code: str | None = None
    reason: str


class CSVUploadResponse(BaseModel):
    success_count: int
    failed_rows: list[FailedRow]

    @computed_field
    @property
    def failed_count(self) -> int:
        return len(self.failed_rows)
