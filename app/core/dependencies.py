from fastapi import Request, HTTPException, status, Depends

from .config import Settings
from . import security
from app.utils import Mailer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


async def get_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token not provided",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
        token: str = Depends(get_bearer_token),
        settings: Settings = Depends(get_settings)
) -> int:
    """Id of the caller. Tokens are not revoked on password change or account removal."""
    user_id = security.decode_session_token(token, settings)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )
    return user_id
