"""
/tasks 任务 CRUD 接口

端点：
- POST   /tasks             — 新建任务，201 + 任务 JSON（Location 头给出文件名）
- GET    /tasks             — 列出存储目录下所有文件名
- GET    /tasks/{filename}  — 以文本形式返回文件原文
- PUT    /tasks/{filename}  — 局部更新，缺省字段保持原值
- DELETE /tasks/{filename}  — 删除任务文件

状态码沿用既有 HTTP 接口约定：列表成功返回 201，查看单个任务失败时仍为 200，
仅通过响应文本区分。所有存储异常在此捕获并转换为响应，不会冒泡。
"""

import structlog
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from app.observability.metrics import record_store_error, record_store_success
from app.tasks import (
    CreateTask,
    SerializationError,
    Task,
    TaskFileStore,
    TaskStoreError,
    TotalTasks,
    UpdateTask,
    get_task_store,
)

router = APIRouter(prefix="/tasks", tags=["任务"])
log = structlog.get_logger()


def _task_response(status_code: int, task: Task, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=task.model_dump(), headers=headers)


def _fail(operation: str, err: TaskStoreError, **fields) -> None:
    """失败统一出口：记错误日志 + 计数"""
    log.error(f"{operation} 失败", error_type=err.error_type, error=str(err), **fields)
    record_store_error(operation, err.error_type)


@router.post("")
async def create_task(payload: CreateTask, store: TaskFileStore = Depends(get_task_store)) -> JSONResponse:
    """新建任务：生成 UUID 文件名，写入 JSON，回显任务（响应体不含 ID）"""
    task = Task(name=payload.name, priority=payload.priority, details=payload.details)

    try:
        filename = await store.create(task)
    except SerializationError as e:
        _fail("create", e)
        return _task_response(status.HTTP_500_INTERNAL_SERVER_ERROR, Task.empty())
    except TaskStoreError as e:
        _fail("create", e)
        return _task_response(status.HTTP_500_INTERNAL_SERVER_ERROR, task)

    log.info("任务已创建", filename=filename)
    record_store_success("create")
    return _task_response(status.HTTP_201_CREATED, task, headers={"Location": f"/tasks/{filename}"})


@router.get("")
async def list_tasks(store: TaskFileStore = Depends(get_task_store)) -> JSONResponse:
    """列出全部任务文件名，顺序取决于文件系统"""
    try:
        filenames = await store.list_filenames()
    except TaskStoreError as e:
        _fail("list", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=TotalTasks(task_ids=[]).model_dump(),
        )

    record_store_success("list")
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=TotalTasks(task_ids=filenames).model_dump(),
    )


@router.get("/{filename}", response_class=PlainTextResponse)
async def show_task(filename: str, store: TaskFileStore = Depends(get_task_store)) -> str:
    """返回 "Task <filename>:\\n<文件原文>"，失败时返回提示文本"""
    try:
        content = await store.read_raw(filename)
    except TaskStoreError as e:
        _fail("show", e, filename=filename)
        return f"Failed to show task {filename}"

    log.info("任务已读取", filename=filename)
    record_store_success("show")
    return f"Task {filename}:\n{content}"


@router.put("/{filename}")
async def update_task(
    filename: str,
    payload: UpdateTask,
    store: TaskFileStore = Depends(get_task_store),
) -> JSONResponse:
    """
    局部更新：读 → 合并 → 整文件重写，文件名与 ID 保持不变。
    读取/解析失败回显空任务，写回失败回显合并后的任务。
    """
    async with store.lock(filename):
        try:
            existing = await store.load(filename)
        except TaskStoreError as e:
            _fail("update", e, filename=filename)
            return _task_response(status.HTTP_500_INTERNAL_SERVER_ERROR, Task.empty())

        merged = payload.apply_to(existing)

        try:
            await store.save(filename, merged)
        except TaskStoreError as e:
            _fail("update", e, filename=filename)
            return _task_response(status.HTTP_500_INTERNAL_SERVER_ERROR, merged)

    log.info("任务已更新", filename=filename, fields=sorted(payload.model_dump(exclude_none=True)))
    record_store_success("update")
    return _task_response(status.HTTP_200_OK, merged)


@router.delete("/{filename}")
async def delete_task(filename: str, store: TaskFileStore = Depends(get_task_store)) -> Response:
    """删除任务文件，重复删除返回 500"""
    async with store.lock(filename):
        try:
            await store.remove(filename)
        except TaskStoreError as e:
            _fail("delete", e, filename=filename)
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    log.info("任务已删除", filename=filename)
    record_store_success("delete")
    return Response(status_code=status.HTTP_200_OK)
