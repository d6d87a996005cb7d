"""StatusPoller -- 任务状态轮询与状态机

状态机: queued / processing / 其他未知状态 -> 继续轮询
        exported -> 成功返回
        failed   -> 抛出 RemoteTaskFailed

固定间隔轮询，不做指数退避；循环次数不设上限，截止时间由调用方控制。
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from .config import DEFAULT_BASE_URL, DEFAULT_POLL_INTERVAL_S
from .exceptions import MalformedResponse, RemoteTaskFailed, StatusMalformed, StatusRejected
from .models import Task, TaskStatus
from .transport import Transport

log = structlog.get_logger()

SleepFunc = Callable[[float], Awaitable[None]]


def _counters_regressed(previous: Task, current: Task) -> bool:
    """计数器应单调不减，回退时返回 True"""
    return (
        current.total < previous.total
        or current.success < previous.success
        or current.failure < previous.failure
    )


class StatusPoller:
    """任务状态轮询器"""

    def __init__(
        self,
        transport: Transport,
        base_url: str = DEFAULT_BASE_URL,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """
        Args:
            transport: HTTP 传输层
            base_url: 任务接口基础 URL
            sleep: 轮询间隔的挂起函数（测试时可注入）
        """
        self._transport = transport
        self._base_url = base_url.rstrip("/")
        self._sleep = sleep

    def status_url(self, task_id: str) -> str:
        return f"{self._base_url}/{task_id}"

    async def check(self, task_id: str, user_id: str) -> Task:
        """查询一次任务状态

        GET {base_url}/{task_id}?user_id={user_id}，服务端状态不变时
        重复查询返回相同的 Task。

        Raises:
            TransportError: 网络失败
            StatusRejected: 非 2xx 响应
            StatusMalformed: 响应体不符合 Task 结构
        """
        result = await self._transport.get(
            self.status_url(task_id),
            params={"user_id": user_id},
        )

        if not result.is_success:
            log.error(
                "status_check_rejected",
                task_id=task_id,
                status_code=result.status_code,
            )
            raise StatusRejected(result.status_code, result.body, task_id=task_id)

        try:
            return Task.from_response(result.body)
        except MalformedResponse as e:
            log.error("status_check_malformed", task_id=task_id, error=str(e))
            raise StatusMalformed(str(e), body=result.body, task_id=task_id) from e

    async def poll_until_terminal(
        self,
        task_id: str,
        user_id: str,
        interval: float = DEFAULT_POLL_INTERVAL_S,
    ) -> Task:
        """轮询直到任务进入终态

        每轮先查询，非终态则挂起 interval 秒后再查询。任何查询错误立即抛出，
        不做静默重试。

        Args:
            task_id: 任务 ID
            user_id: 提交账户 ID
            interval: 轮询间隔（秒）

        Returns:
            status == exported 的 Task

        Raises:
            ValueError: interval 为负数
            RemoteTaskFailed: 服务端报告任务失败
            StatusCheckFailed: 状态查询失败（StatusRejected / StatusMalformed）
            TransportError: 网络失败
        """
        if interval < 0:
            raise ValueError(f"轮询间隔不能为负数: {interval}")

        previous: Task | None = None
        polls = 0

        while True:
            task = await self.check(task_id, user_id)
            polls += 1

            log.info(
                "task_status",
                task_id=task_id,
                status=task.status,
                success=task.success,
                total=task.total,
                poll=polls,
            )

            if previous is not None and _counters_regressed(previous, task):
                log.warning(
                    "task_counters_regressed",
                    task_id=task_id,
                    previous=(previous.total, previous.success, previous.failure),
                    current=(task.total, task.success, task.failure),
                )

            state = task.state
            if state is TaskStatus.FAILED:
                log.error("task_failed", task_id=task_id, polls=polls)
                raise RemoteTaskFailed(task)

            if state is TaskStatus.EXPORTED:
                log.info(
                    "task_exported",
                    task_id=task_id,
                    result_url=task.result_url,
                    polls=polls,
                )
                return task

            if state is TaskStatus.OTHER:
                log.debug("task_status_unrecognized", task_id=task_id, status=task.status)

            previous = task
            await self._sleep(interval)
