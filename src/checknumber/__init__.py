"""checknumber -- checknumber.ai 批量号码核验客户端

公开接口导出。
"""

# 核心组件
from .client import JobClient

# 配置
from .config import DEFAULT_BASE_URL, CheckerConfig, load_checker_config

# 异常
from .exceptions import (
    Cancelled,
    CheckerError,
    DownloadFailed,
    MalformedResponse,
    RemoteRejected,
    RemoteTaskFailed,
    StatusCheckFailed,
    StatusMalformed,
    StatusRejected,
    TransportError,
)
from .fetcher import ResultFetcher
from .inputs import parse_numbers, read_numbers, serialize_batch

# 数据模型
from .models import TERMINAL_STATES, Completed, Failed, Outcome, Task, TaskStatus, is_terminal
from .poller import StatusPoller
from .submitter import JobSubmitter
from .transport import BinaryResponse, HttpResult, Transport

__all__ = [
    "Task",
    "TaskStatus",
    "TERMINAL_STATES",
    "is_terminal",
    "Completed",
    "Failed",
    "Outcome",
    "JobClient",
    "JobSubmitter",
    "StatusPoller",
    "ResultFetcher",
    "Transport",
    "HttpResult",
    "BinaryResponse",
    "parse_numbers",
    "read_numbers",
    "serialize_batch",
    "CheckerConfig",
    "load_checker_config",
    "DEFAULT_BASE_URL",
    "CheckerError",
    "TransportError",
    "RemoteRejected",
    "MalformedResponse",
    "StatusCheckFailed",
    "StatusRejected",
    "StatusMalformed",
    "RemoteTaskFailed",
    "DownloadFailed",
    "Cancelled",
]
