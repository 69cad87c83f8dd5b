from fastapi import APIRouter

from taskmaster.api.deps import CurrentUser, SessionDep
from taskmaster.models.user import User
from taskmaster.schemas.user import UserRead, UserUpdate
from taskmaster.services import users as users_service

router = APIRouter()


@router.get("/me", response_model=UserRead)
async def read_users_me(current_user: CurrentUser) -> User:
    return current_user


@router.patch("/me", response_model=UserRead)
async def update_users_me(user_in: UserUpdate, session: SessionDep, current_user: CurrentUser) -> User:
    return await users_service.update_user(session, current_user, user_in)
