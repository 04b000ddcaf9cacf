import hmac

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from voucher_api.config import settings
from voucher_api.exceptions import UnauthorizedError

_bearer = HTTPBearer(auto_error=False)


async def verify_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),  # noqa: B008
) -> str:
    if credentials is None:
        raise UnauthorizedError("Authorization header is missing")
    if not hmac.compare_digest(credentials.credentials.encode(), settings.api_token.encode()):
        raise UnauthorizedError("Invalid token")
    return credentials.credentials
