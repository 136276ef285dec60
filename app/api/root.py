"""
首页：欢迎语 + 待办任务数量
"""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.observability.metrics import record_store_error, record_store_success
from app.tasks import TaskFileStore, TaskStoreError, get_task_store

router = APIRouter(tags=["首页"])
log = structlog.get_logger()

WELCOME_TEMPLATE = (
    "Welcome to Your Virtual To-Do List!\n"
    "Total number of tasks to complete: {count}\n"
    "Let's get organized!!"
)
DEGRADED_TEXT = "Failed to read tasks directory"


@router.get("/", response_class=PlainTextResponse)
async def root(store: TaskFileStore = Depends(get_task_store)) -> str:
    """统计存储目录条目数（不过滤非任务文件），目录不可读时降级为提示文本"""
    try:
        count = await store.count()
    except TaskStoreError as e:
        log.error("任务目录读取失败", tasks_dir=str(store.tasks_dir), error=str(e))
        record_store_error("count", e.error_type)
        return DEGRADED_TEXT

    record_store_success("count")
    return WELCOME_TEMPLATE.format(count=count)
