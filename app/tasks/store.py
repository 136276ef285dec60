"""
任务文件存储层

存储目录下每个任务一个文件：<uuid4>.json，内容为 Task 的紧凑 JSON。
目录本身需预先存在，服务不会自动创建。

并发说明：
- 阻塞的文件 I/O 统一通过 asyncio.to_thread 放到线程池，协程只在文件操作处挂起
- update / delete 通过 lock(filename) 做同文件互斥，仅限本进程内有效，多进程部署无此保证
- save() 先写临时文件再 os.replace，避免写到一半留下截断文件
"""

import asyncio
import contextlib
import os
import uuid
import weakref
from pathlib import Path

import structlog
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from app.config import get_settings
from app.tasks.errors import (
    DeserializationError,
    DirectoryReadError,
    FileOpenError,
    FileRemoveError,
    FileWriteError,
    SerializationError,
    TaskStoreError,
)
from app.tasks.schemas import Task

log = structlog.get_logger()

TASK_FILE_SUFFIX = ".json"


def generate_task_id() -> str:
    """随机 128 位 UUID4，不检查与已有文件是否冲突"""
    return str(uuid.uuid4())


def task_filename(task_id: str) -> str:
    return f"{task_id}{TASK_FILE_SUFFIX}"


def serialize_task(task: Task) -> bytes:
    try:
        return task.model_dump_json().encode("utf-8")
    except (PydanticSerializationError, UnicodeEncodeError) as e:
        raise SerializationError("任务序列化失败", cause=e) from e


def deserialize_task(data: str | bytes) -> Task:
    """解析落盘内容，非法 JSON 或缺字段时抛 DeserializationError"""
    try:
        return Task.model_validate_json(data)
    except ValidationError as e:
        raise DeserializationError("任务反序列化失败", cause=e) from e


class TaskFileStore:
    """单个存储目录上的任务 CRUD"""

    def __init__(self, tasks_dir: str | Path):
        self.tasks_dir = Path(tasks_dir)
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    # ── 内部工具 ──

    def _resolve(self, filename: str, error_cls: type[TaskStoreError]) -> Path:
        """文件名只允许单级路径，防止通过 .. 等逃逸出存储目录"""
        if (
            not filename
            or filename in (".", "..")
            or "\x00" in filename
            or Path(filename).name != filename
            or "\\" in filename
        ):
            raise error_cls("非法任务文件名", filename)
        return self.tasks_dir / filename

    def lock(self, filename: str) -> asyncio.Lock:
        """同一文件名共享一把锁，无人持有时自动回收"""
        lock = self._locks.get(filename)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[filename] = lock
        return lock

    # ── 目录级操作 ──

    async def count(self) -> int:
        """目录条目数，不过滤非任务文件"""

        def _count() -> int:
            try:
                return len(os.listdir(self.tasks_dir))
            except OSError as e:
                raise DirectoryReadError("无法读取任务目录", self.tasks_dir, e) from e

        return await asyncio.to_thread(_count)

    async def list_filenames(self) -> list[str]:
        """列出目录下所有条目的文件名，不过滤、不排序，顺序取决于文件系统"""

        def _list() -> list[str]:
            try:
                with os.scandir(self.tasks_dir) as entries:
                    names = [entry.name for entry in entries]
                # 无法按 UTF-8 解码的文件名视为整个目录读取失败，不跳过
                for name in names:
                    name.encode("utf-8")
                return names
            except (OSError, UnicodeEncodeError) as e:
                raise DirectoryReadError("无法读取任务目录", self.tasks_dir, e) from e

        return await asyncio.to_thread(_list)

    # ── 单文件操作 ──

    async def create(self, task: Task) -> str:
        """
        新建任务文件，返回文件名。
        create-or-truncate 语义：极小概率的 UUID 冲突会直接覆盖旧文件。
        """
        filename = task_filename(generate_task_id())
        path = self._resolve(filename, FileWriteError)
        data = serialize_task(task)

        def _write() -> None:
            try:
                with open(path, "wb") as f:
                    f.write(data)
            except OSError as e:
                raise FileWriteError("任务文件写入失败", path, e) from e

        await asyncio.to_thread(_write)
        return filename

    async def read_raw(self, filename: str) -> str:
        """读取文件原文（不解析，不做换行符转换）"""
        path = self._resolve(filename, FileOpenError)

        def _read() -> str:
            try:
                return path.read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise FileOpenError("任务文件读取失败", path, e) from e

        return await asyncio.to_thread(_read)

    async def load(self, filename: str) -> Task:
        raw = await self.read_raw(filename)
        return deserialize_task(raw)

    async def save(self, filename: str, task: Task) -> None:
        """整文件重写：先写同目录临时文件，再原子替换目标文件"""
        path = self._resolve(filename, FileWriteError)
        data = serialize_task(task)
        tmp_path = path.with_name(f".{filename}.{uuid.uuid4().hex}.tmp")

        def _write() -> None:
            try:
                with open(tmp_path, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except OSError as e:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
                raise FileWriteError("任务文件重写失败", path, e) from e

        await asyncio.to_thread(_write)

    async def remove(self, filename: str) -> None:
        path = self._resolve(filename, FileRemoveError)

        def _remove() -> None:
            try:
                path.unlink()
            except OSError as e:
                raise FileRemoveError("任务文件删除失败", path, e) from e

        await asyncio.to_thread(_remove)


_task_store: TaskFileStore | None = None


def get_task_store() -> TaskFileStore:
    """FastAPI 依赖：进程内共享的任务存储（测试中通过 dependency_overrides 替换）"""
    global _task_store
    if _task_store is None:
        _task_store = TaskFileStore(get_settings().TASKS_DIR)
        log.info("任务存储就绪", tasks_dir=str(_task_store.tasks_dir))
    return _task_store
