from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "VOUCHER_", "env_file": ".env", "env_file_encoding": "utf-8"}

    api_token: str = Field(min_length=1)
    auth_username: str = Field(default="admin")
    auth_password: str = Field(min_length=1)
    db_path: str = Field(default="vouchers.db")
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", pattern=r"^(console|json)$")
    cors_origins: str = Field(default="http://localhost:3000")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
