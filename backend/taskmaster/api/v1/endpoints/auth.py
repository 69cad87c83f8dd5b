import logging

from fastapi import APIRouter, HTTPException, Request, status

from taskmaster.api.deps import SessionDep
from taskmaster.core.config import settings
from taskmaster.core.rate_limit import limiter
from taskmaster.core.security import create_access_token
from taskmaster.schemas.user import DevLoginRequest, Token
from taskmaster.services import users as users_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/dev-login", response_model=Token)
@limiter.limit("10/minute")
async def dev_login(request: Request, login_in: DevLoginRequest, session: SessionDep) -> Token:
    """Sign in with just an email. Only available when DEV_LOGIN_ENABLED is set."""
    if not settings.DEV_LOGIN_ENABLED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    user = await users_service.get_or_create_user(session, login_in.email)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    logger.info("Development login for user %s", user.id)
    return Token(access_token=create_access_token(subject=user.id))
