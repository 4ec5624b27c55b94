from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..config import settings
from ..models.task import TaskCreateRequest, TaskListResponse, TaskUpdateRequest
from ..services.task_service import TaskService
from ..storage.task_store import TaskStore

router = APIRouter(prefix="/api")


@lru_cache(maxsize=1)
def get_task_service() -> TaskService:
    """进程内唯一的任务服务实例（首次访问时初始化）"""
    store = TaskStore(settings.db_file, strict_writes=settings.strict_writes)
    return TaskService(store)


@router.get(
    "/tasks",
    response_model=TaskListResponse,
    summary="查询任务列表",
    description="返回全部任务，按创建顺序排列"
)
def list_tasks(service: TaskService = Depends(get_task_service)):
    """查询全部任务"""
    return TaskListResponse(data=service.list_tasks())


@router.post(
    "/tasks",
    response_model=TaskListResponse,
    status_code=201,
    summary="创建任务",
    description="创建新任务并返回更新后的完整任务列表"
)
def create_task(
    request: Optional[TaskCreateRequest] = Body(None),
    service: TaskService = Depends(get_task_service)
):
    """
    创建任务

    - **title**: 任务标题（必填）
    - **description**: 任务描述（可选）
    """
    request = request or TaskCreateRequest()
    tasks = service.create_task(request.title, request.description)
    return TaskListResponse(data=tasks)


@router.put(
    "/tasks/{task_id:int}",
    response_model=TaskListResponse,
    summary="更新任务",
    description="部分更新任务，未提供的字段保持不变"
)
def update_task(
    task_id: int,
    request: Optional[TaskUpdateRequest] = Body(None),
    service: TaskService = Depends(get_task_service)
):
    """
    更新任务

    - **task_id**: 任务ID
    - **title** / **description** / **completed**: 任意组合
    """
    request = request or TaskUpdateRequest()
    tasks = service.update_task(task_id, request.supplied_fields())
    return TaskListResponse(data=tasks)


@router.post(
    "/tasks/{task_id:int}/toggle",
    response_model=TaskListResponse,
    summary="切换完成状态"
)
def toggle_task(task_id: int, service: TaskService = Depends(get_task_service)):
    return TaskListResponse(data=service.toggle_task(task_id))


@router.delete(
    "/tasks/{task_id:int}",
    response_model=TaskListResponse,
    summary="删除任务",
    description="删除任务并返回剩余的完整任务列表"
)
def delete_task(task_id: int, service: TaskService = Depends(get_task_service)):
    """删除任务"""
    return TaskListResponse(data=service.delete_task(task_id))
