"""
任务数据模型

落盘格式：每个任务一个扁平 JSON 对象，仅含 name / priority / details 三个键。
任务 ID 不属于记录本身，只作为文件名主干存在。
"""

from pydantic import BaseModel


class Task(BaseModel):
    """单个任务（落盘记录 + 响应体），反序列化时三个字段缺一不可"""

    name: str
    priority: str  # 不做枚举校验，原样存储
    details: str

    @classmethod
    def empty(cls) -> "Task":
        """失败响应里回显的空任务"""
        return cls(name="", priority="", details="")


class CreateTask(BaseModel):
    """POST /tasks 请求体，三个字段均必填"""

    name: str
    priority: str
    details: str


class UpdateTask(BaseModel):
    """PUT /tasks/{filename} 请求体，缺省字段保持原值（局部更新）"""

    name: str | None = None
    priority: str | None = None
    details: str | None = None

    def apply_to(self, task: Task) -> Task:
        """把显式提供的字段合并到已有任务上，返回合并后的新对象"""
        return task.model_copy(update=self.model_dump(exclude_none=True))


class TotalTasks(BaseModel):
    """GET /tasks 响应体"""

    task_ids: list[str]
