"""数据模型 -- TaskStatus 状态机 + Task 快照 + Outcome

Task 是服务端任务状态的只读快照，每次轮询整体替换，不做合并。
"""

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import CheckerError, MalformedResponse


class TaskStatus(StrEnum):
    """任务状态 -- 服务端定义的状态词表

    未知状态字符串统一映射为 OTHER，视为"仍在运行"。OTHER 的值固定为
    "other"，TaskStatus("validating").value 不是 "validating"；
    原始字符串只保留在 Task.status 中。
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    EXPORTED = "exported"
    FAILED = "failed"

    # 服务端未公开的中间状态
    OTHER = "other"

    @classmethod
    def _missing_(cls, value: object) -> "TaskStatus":
        return cls.OTHER


TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.EXPORTED,
    TaskStatus.FAILED,
}


def is_terminal(status: TaskStatus | str) -> bool:
    """判断状态是否为终态（exported / failed）"""
    return TaskStatus(status) in TERMINAL_STATES


class Task(BaseModel):
    """远端核验任务快照

    字段名与服务端 JSON 保持一致。created_at / updated_at 仅作展示，不做解析。
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    task_id: str = Field(description="服务端分配的任务 ID")
    user_id: str = Field(description="提交账户 ID")
    status: str = Field(description="服务端原始状态字符串")
    total: int = Field(default=0, ge=0, description="号码总数")
    success: int = Field(default=0, ge=0, description="已成功核验数")
    failure: int = Field(default=0, ge=0, description="核验失败数")
    result_url: str | None = Field(default=None, description="结果文件地址，仅 exported 时存在")
    created_at: str = Field(default="", description="创建时间")
    updated_at: str = Field(default="", description="更新时间")

    @field_validator("result_url", mode="before")
    @classmethod
    def _blank_url_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _null_time_to_blank(cls, value: object) -> object:
        # 仅作展示，null 视为空字符串
        return "" if value is None else value

    @property
    def state(self) -> TaskStatus:
        """状态机视角下的状态"""
        return TaskStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @classmethod
    def from_response(cls, body: bytes) -> "Task":
        """从原始响应体解析 Task

        Raises:
            MalformedResponse: JSON 非法或不符合 Task 结构
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise MalformedResponse(
                f"响应体无法解析为 Task: {e.error_count()} 处错误 -- {e.errors()[0]['msg']}",
                body=body,
            ) from e


class Completed(BaseModel):
    """任务完成（可能没有可下载的结果文件）"""

    model_config = ConfigDict(frozen=True)

    task: Task = Field(description="终态任务快照")
    artifact_path: Path | None = Field(default=None, description="结果文件落盘路径")
    bytes_written: int = Field(default=0, ge=0, description="写入字节数")

    @property
    def has_artifact(self) -> bool:
        return self.artifact_path is not None


class Failed(BaseModel):
    """任务失败，error 为第一个遇到的错误"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: CheckerError = Field(description="失败原因")
    task: Task | None = Field(default=None, description="失败时最后已知的任务快照")

    @property
    def reason(self) -> str:
        return str(self.error)


Outcome = Completed | Failed
