from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.config import settings
from taskmaster.core.security import decode_access_token
from taskmaster.db.session import SessionFactory, get_session, get_session_factory
from taskmaster.models.user import User
from taskmaster.schemas.user import TokenPayload
from taskmaster.services.analytics_queries import SqlAnalyticsRepository
from taskmaster.services.analytics_service import AnalyticsService

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory)]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/dev-login", auto_error=False)

_credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Not authenticated",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    session: SessionDep,
) -> User:
    if not token:
        raise _credentials_exception

    try:
        payload = decode_access_token(token)
        token_data = TokenPayload(**payload)
    except JWTError as exc:
        raise _credentials_exception from exc

    if not token_data.sub or not token_data.sub.isdigit():
        raise _credentials_exception

    result = await session.exec(select(User).where(User.id == int(token_data.sub)))
    user = result.one_or_none()
    if not user:
        raise _credentials_exception
    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


CurrentUser = Annotated[User, Depends(get_current_active_user)]


def get_analytics_service(session_factory: SessionFactoryDep) -> AnalyticsService:
    return AnalyticsService(SqlAnalyticsRepository(session_factory))
