import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.clock import utcnow
from taskmaster.models.user import User
from taskmaster.schemas.user import UserUpdate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.exec(select(User).where(User.email == normalize_email(email)))
    return result.one_or_none()


async def get_or_create_user(session: AsyncSession, email: str) -> User:
    """Find a user by email or create one named after the mailbox."""
    normalized = normalize_email(email)
    user = await get_user_by_email(session, normalized)
    if user is not None:
        return user

    user = User(email=normalized, name=normalized.split("@")[0] or normalized)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        # Concurrent sign-in for the same email won the insert
        await session.rollback()
        existing = await get_user_by_email(session, normalized)
        if existing is None:
            raise
        return existing
    await session.refresh(user)
    logger.info("Created user %s", user.id)
    return user


async def update_user(session: AsyncSession, user: User, user_in: UserUpdate) -> User:
    for field, value in user_in.model_dump(exclude_unset=True).items():
        if value is None and field == "week_starts_on":
            continue
        setattr(user, field, value)
    user.updated_at = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user
