from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from taskmaster.api.deps import CurrentUser, SessionDep
from taskmaster.models.task import Subtask, Task, TaskStatus
from taskmaster.schemas.subtask import SubtaskCreate, SubtaskRead, SubtaskReorderRequest
from taskmaster.schemas.task import (
    TaskCompletionToggle,
    TaskCreate,
    TaskRead,
    TaskReorderRequest,
    TaskStatsResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskmaster.services import subtasks as subtasks_service
from taskmaster.services import tasks as tasks_service

router = APIRouter()

TASK_NOT_FOUND = "Task not found"


@router.get("/", response_model=List[TaskRead])
async def list_tasks(
    session: SessionDep,
    current_user: CurrentUser,
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
) -> List[Task]:
    return await tasks_service.list_tasks(session, user_id=current_user.id, status=status_filter)


@router.get("/stats", response_model=TaskStatsResponse)
async def read_task_stats(session: SessionDep, current_user: CurrentUser) -> TaskStatsResponse:
    return await tasks_service.get_task_stats(session, user_id=current_user.id)


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(task_in: TaskCreate, session: SessionDep, current_user: CurrentUser) -> Task:
    return await tasks_service.create_task(session, user_id=current_user.id, task_in=task_in)


@router.post("/reorder", status_code=status.HTTP_204_NO_CONTENT)
async def reorder_tasks(reorder_in: TaskReorderRequest, session: SessionDep, current_user: CurrentUser) -> Response:
    reordered = await tasks_service.reorder_tasks(session, user_id=current_user.id, items=reorder_in.items)
    if not reordered:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="One or more tasks not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{task_id}", response_model=TaskRead)
async def read_task(task_id: int, session: SessionDep, current_user: CurrentUser) -> Task:
    task = await tasks_service.get_task(session, user_id=current_user.id, task_id=task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return task


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(task_id: int, task_in: TaskUpdate, session: SessionDep, current_user: CurrentUser) -> Task:
    task = await tasks_service.update_task(session, user_id=current_user.id, task_id=task_id, task_in=task_in)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, session: SessionDep, current_user: CurrentUser) -> Response:
    deleted = await tasks_service.delete_task(session, user_id=current_user.id, task_id=task_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/toggle", response_model=TaskCompletionToggle)
async def toggle_task_complete(task_id: int, session: SessionDep, current_user: CurrentUser) -> TaskCompletionToggle:
    is_completed = await tasks_service.toggle_task_complete(session, user_id=current_user.id, task_id=task_id)
    if is_completed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return TaskCompletionToggle(is_completed=is_completed)


@router.put("/{task_id}/status", response_model=TaskRead)
async def update_task_status(
    task_id: int,
    status_in: TaskStatusUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> Task:
    task = await tasks_service.update_task_status(
        session,
        user_id=current_user.id,
        task_id=task_id,
        status=status_in.status,
    )
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return task


@router.post("/{task_id}/subtasks", response_model=SubtaskRead, status_code=status.HTTP_201_CREATED)
async def create_subtask(
    task_id: int,
    subtask_in: SubtaskCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> Subtask:
    subtask = await subtasks_service.create_subtask(
        session,
        user_id=current_user.id,
        task_id=task_id,
        subtask_in=subtask_in,
    )
    if subtask is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return subtask


@router.post("/{task_id}/subtasks/reorder", status_code=status.HTTP_204_NO_CONTENT)
async def reorder_subtasks(
    task_id: int,
    reorder_in: SubtaskReorderRequest,
    session: SessionDep,
    current_user: CurrentUser,
) -> Response:
    try:
        await subtasks_service.reorder_subtasks(session, user_id=current_user.id, items=reorder_in.items)
    except subtasks_service.SubtaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except subtasks_service.SubtaskAccessError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
