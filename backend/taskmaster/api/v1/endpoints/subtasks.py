from fastapi import APIRouter, HTTPException, Response, status

from taskmaster.api.deps import CurrentUser, SessionDep
from taskmaster.models.task import Subtask
from taskmaster.schemas.subtask import SubtaskRead, SubtaskUpdate
from taskmaster.schemas.task import TaskCompletionToggle
from taskmaster.services import subtasks as subtasks_service

router = APIRouter()

SUBTASK_NOT_FOUND = "Subtask not found"


@router.patch("/{subtask_id}", response_model=SubtaskRead)
async def update_subtask(
    subtask_id: int,
    subtask_in: SubtaskUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> Subtask:
    subtask = await subtasks_service.update_subtask(
        session,
        user_id=current_user.id,
        subtask_id=subtask_id,
        subtask_in=subtask_in,
    )
    if subtask is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SUBTASK_NOT_FOUND)
    return subtask


@router.post("/{subtask_id}/toggle", response_model=TaskCompletionToggle)
async def toggle_subtask_complete(
    subtask_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> TaskCompletionToggle:
    is_completed = await subtasks_service.toggle_subtask_complete(
        session,
        user_id=current_user.id,
        subtask_id=subtask_id,
    )
    if is_completed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SUBTASK_NOT_FOUND)
    return TaskCompletionToggle(is_completed=is_completed)


@router.delete("/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subtask(subtask_id: int, session: SessionDep, current_user: CurrentUser) -> Response:
    deleted = await subtasks_service.delete_subtask(session, user_id=current_user.id, subtask_id=subtask_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SUBTASK_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
