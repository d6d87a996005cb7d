"""checknumber 异常体系

所有异常均派生自 CheckerError。recoverable 仅作为外部重试策略的提示，
客户端内部不做任何重试。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Task

# 错误消息中响应体的最大预览长度
BODY_PREVIEW_LENGTH = 200


def _preview(body: bytes) -> str:
    """截断响应体用于错误消息"""
    return body[:BODY_PREVIEW_LENGTH].decode("utf-8", errors="replace")


class CheckerError(Exception):
    """checknumber 包基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过外部重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class TransportError(CheckerError):
    """网络层失败（连接失败、超时、DNS 解析失败、重定向过多、解码失败等）

    非 2xx 响应不属于此类，由上层组件自行判定。
    """

    def __init__(self, url: str, original_error: Exception) -> None:
        """
        Args:
            url: 请求地址
            original_error: 原始 httpx 异常
        """
        super().__init__(
            f"请求失败: {url} -- {type(original_error).__name__}: {original_error}",
            recoverable=True,
        )
        self.url = url
        self.original_error = original_error


class RemoteRejected(CheckerError):
    """服务端返回非 2xx 状态码（提交或状态查询）"""

    def __init__(self, status_code: int, body: bytes = b"") -> None:
        super().__init__(
            f"服务端拒绝请求: HTTP {status_code} {_preview(body)}".rstrip(),
            recoverable=status_code >= 500 or status_code == 429,
        )
        self.status_code = status_code
        self.body = body


class MalformedResponse(CheckerError):
    """响应体无法解析为 Task 结构（JSON 错误或字段缺失）"""

    def __init__(self, message: str, body: bytes = b"") -> None:
        super().__init__(message, recoverable=False)
        self.body = body


class StatusCheckFailed(CheckerError):
    """状态查询失败的公共基类

    具体类型为 StatusRejected（非 2xx）或 StatusMalformed（响应体解析失败）。
    """

    task_id: str = ""


class StatusRejected(StatusCheckFailed, RemoteRejected):
    """状态查询返回非 2xx"""

    def __init__(self, status_code: int, body: bytes = b"", task_id: str = "") -> None:
        super().__init__(status_code, body)
        self.task_id = task_id


class StatusMalformed(StatusCheckFailed, MalformedResponse):
    """状态查询响应体解析失败"""

    def __init__(self, message: str, body: bytes = b"", task_id: str = "") -> None:
        super().__init__(message, body)
        self.task_id = task_id


class RemoteTaskFailed(CheckerError):
    """服务端报告任务终态为 failed，不可重试"""

    def __init__(self, task: "Task") -> None:
        super().__init__(
            f"远端任务失败: task_id={task.task_id} "
            f"(success={task.success}, failure={task.failure}, total={task.total})",
            recoverable=False,
        )
        self.task = task


class DownloadFailed(CheckerError):
    """结果文件下载返回非 2xx"""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(
            f"结果下载失败: HTTP {status_code} {url}",
            recoverable=status_code >= 500,
        )
        self.url = url
        self.status_code = status_code


class Cancelled(CheckerError):
    """调用方设定的截止时间已到，任务生命周期被中止"""

    def __init__(self, deadline_s: float | None = None) -> None:
        message = "任务已取消"
        if deadline_s is not None:
            message = f"任务已取消: 超过截止时间 {deadline_s}s"
        super().__init__(message, recoverable=True)
        self.deadline_s = deadline_s
