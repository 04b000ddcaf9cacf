import hmac

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, Field

from voucher_api.config import settings
from voucher_api.exceptions import UnauthorizedError

logger = structlog.get_logger()

router = APIRouter()


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest) -> TokenResponse:
    username_ok = hmac.compare_digest(data.username.encode(), settings.auth_username.encode())
    password_ok = hmac.compare_digest(data.password.encode(), settings.auth_password.encode())
    if not (username_ok and password_ok):
        logger.warning("login_rejected", username=data.username)
        raise UnauthorizedError("Invalid credentials")

    logger.info("login_succeeded", username=data.username)
    return TokenResponse(access_token=settings.api_token)
