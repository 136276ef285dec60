"""
任务存储异常体系

所有异常在路由层统一捕获、记日志、转换为尽力而为的 HTTP 响应，不会冒泡到进程。
error_type 作为日志字段和 Prometheus label 使用。
"""

from pathlib import Path


class TaskStoreError(Exception):
    """任务存储异常基类"""

    error_type = "task_store"

    def __init__(self, message: str, path: str | Path | None = None, cause: BaseException | None = None):
        self.path = str(path) if path is not None else None
        self.cause = cause
        detail = f"{message}: {path}" if path is not None else message
        if cause is not None:
            detail = f"{detail} ({cause})"
        super().__init__(detail)


class DirectoryReadError(TaskStoreError):
    """存储目录无法列举（不存在、无权限、遍历中途出错）"""

    error_type = "directory_read"


class SerializationError(TaskStoreError):
    error_type = "serialization"


class DeserializationError(TaskStoreError):
    """文件内容不是合法 JSON，或缺少必需字段"""

    error_type = "deserialization"


class FileOpenError(TaskStoreError):
    """任务文件无法打开或读取"""

    error_type = "file_open"


class FileWriteError(TaskStoreError):
    error_type = "file_write"


class FileRemoveError(TaskStoreError):
    error_type = "file_remove"
