"""
任务模块：基于本地文件的任务 CRUD

每个任务落盘为存储目录下的一个 <uuid>.json 文件，
供 app.api.tasks 路由和 app.api.root 首页统计使用。
"""

from app.tasks.errors import (
    DeserializationError,
    DirectoryReadError,
    FileOpenError,
    FileRemoveError,
    FileWriteError,
    SerializationError,
    TaskStoreError,
)
from app.tasks.schemas import CreateTask, Task, TotalTasks, UpdateTask
from app.tasks.store import TaskFileStore, get_task_store

__all__ = [
    "CreateTask",
    "DeserializationError",
    "DirectoryReadError",
    "FileOpenError",
    "FileRemoveError",
    "FileWriteError",
    "SerializationError",
    "Task",
    "TaskFileStore",
    "TaskStoreError",
    "TotalTasks",
    "UpdateTask",
    "get_task_store",
]
