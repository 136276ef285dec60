"""
健康检查接口：探活 + 存储目录状态
"""

import structlog
from fastapi import APIRouter, Depends

from app.tasks import TaskFileStore, TaskStoreError, get_task_store

router = APIRouter(tags=["健康检查"])
log = structlog.get_logger()


@router.get("/health")
async def health_check(store: TaskFileStore = Depends(get_task_store)):
    """健康检查：校验存储目录可列举"""
    result = {"status": "ok", "tasks_dir": str(store.tasks_dir), "task_count": None}

    try:
        result["task_count"] = await store.count()
    except TaskStoreError as e:
        result["status"] = "degraded"
        log.error("存储目录健康检查失败", error=str(e))

    return result
