"""JobClient -- 任务生命周期编排

提交 -> 轮询至终态 -> 下载结果（如有），严格顺序执行，
第一个错误即终止并返回 Failed。
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from os import PathLike
from pathlib import Path

import structlog

from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_DOWNLOAD_TIMEOUT_S,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_TIMEOUT_S,
    CheckerConfig,
)
from .exceptions import Cancelled, CheckerError
from .fetcher import ResultFetcher
from .models import Completed, Failed, Outcome, Task
from .poller import SleepFunc, StatusPoller
from .submitter import JobSubmitter
from .transport import Transport

log = structlog.get_logger()


class JobClient:
    """checknumber 任务客户端

    单个 JobClient 内共享 Transport 连接池；各阶段不并发执行。
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        download_timeout_s: float = DEFAULT_DOWNLOAD_TIMEOUT_S,
        transport: Transport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """初始化任务客户端

        Args:
            api_key: 服务 API key
            base_url: 任务接口基础 URL
            timeout_s: 接口调用超时（秒）
            download_timeout_s: 结果下载超时（秒）
            transport: 外部注入的 Transport；为 None 时按上述参数创建
            sleep: 轮询间隔的挂起函数
        """
        self._transport = transport or Transport(
            api_key,
            timeout_s=timeout_s,
            download_timeout_s=download_timeout_s,
        )
        self._submitter = JobSubmitter(self._transport, base_url)
        self._poller = StatusPoller(self._transport, base_url, sleep=sleep)
        self._fetcher = ResultFetcher(self._transport)

    @classmethod
    def from_config(cls, config: CheckerConfig, **kwargs) -> "JobClient":
        """从 CheckerConfig 构造"""
        return cls(
            api_key=config.api_key.get_secret_value(),
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            download_timeout_s=config.download_timeout_s,
            **kwargs,
        )

    async def __aenter__(self) -> "JobClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def check(self, task_id: str, user_id: str) -> Task:
        """查询一次任务状态（不轮询）"""
        return await self._poller.check(task_id, user_id)

    async def run(
        self,
        batch: Sequence[str],
        interval: float = DEFAULT_POLL_INTERVAL_S,
        output: str | PathLike = DEFAULT_OUTPUT_PATH,
        deadline_s: float | None = None,
        download: bool = True,
    ) -> Outcome:
        """提交号码批次并等待结果

        Args:
            batch: 号码序列
            interval: 轮询间隔（秒）
            output: 结果文件保存路径（默认 whatsapp_results.xlsx）
            deadline_s: 整体截止时间（秒）；None 表示不限制
            download: False 时任务完成后不下载结果文件，result_url 保留在 task 上

        Returns:
            Completed(task, artifact_path) 或 Failed(error)

        Raises:
            ValueError: 批次为空或包含空号码
        """
        return await self._drive(
            lambda: self._submitter.submit(batch),
            interval,
            output if download else None,
            deadline_s,
        )

    async def run_text(
        self,
        text: str,
        interval: float = DEFAULT_POLL_INTERVAL_S,
        output: str | PathLike = DEFAULT_OUTPUT_PATH,
        deadline_s: float | None = None,
        download: bool = True,
    ) -> Outcome:
        """原样上传号码文本并等待结果"""
        return await self._drive(
            lambda: self._submitter.submit_text(text),
            interval,
            output if download else None,
            deadline_s,
        )

    async def run_file(
        self,
        path: str | PathLike,
        interval: float = DEFAULT_POLL_INTERVAL_S,
        output: str | PathLike = DEFAULT_OUTPUT_PATH,
        deadline_s: float | None = None,
        download: bool = True,
    ) -> Outcome:
        """原样上传本地号码文件并等待结果

        Raises:
            FileNotFoundError: 文件不存在
        """
        return await self._drive(
            lambda: self._submitter.submit_file(path),
            interval,
            output if download else None,
            deadline_s,
        )

    async def _drive(
        self,
        submit: Callable[[], Awaitable[Task]],
        interval: float,
        output: str | PathLike | None,
        deadline_s: float | None,
    ) -> Outcome:
        try:
            async with asyncio.timeout(deadline_s):
                return await self._lifecycle(submit, interval, output)
        except TimeoutError:
            error = Cancelled(deadline_s)
            log.warning("job_cancelled", deadline_s=deadline_s, reason=str(error))
            return Failed(error=error)

    async def _lifecycle(
        self,
        submit: Callable[[], Awaitable[Task]],
        interval: float,
        output: str | PathLike | None,
    ) -> Outcome:
        try:
            task = await submit()
        except CheckerError as e:
            log.error("job_failed", stage="submit", error=str(e), error_type=type(e).__name__)
            return Failed(error=e)

        # 提交之后的日志统一带上 task_id / user_id
        with structlog.contextvars.bound_contextvars(task_id=task.task_id, user_id=task.user_id):
            return await self._follow(task, interval, output)

    async def _follow(
        self,
        task: Task,
        interval: float,
        output: str | PathLike | None,
    ) -> Outcome:
        """轮询至终态，并按需下载结果文件

        output 为 None 表示调用方关闭了下载。
        """
        try:
            task = await self._poller.poll_until_terminal(task.task_id, task.user_id, interval)
        except CheckerError as e:
            log.error("job_failed", stage="poll", error=str(e), error_type=type(e).__name__)
            return Failed(error=e, task=getattr(e, "task", task))

        if not task.result_url:
            # exported 但没有结果地址：视为完成，不是错误
            log.warning("task_exported_without_result")
            return Completed(task=task)

        if output is None:
            log.info("artifact_download_skipped", result_url=task.result_url)
            return Completed(task=task)

        try:
            written = await self._fetcher.fetch(task.result_url, output)
        except CheckerError as e:
            log.error("job_failed", stage="download", error=str(e), error_type=type(e).__name__)
            return Failed(error=e, task=task)

        log.info("job_completed", artifact_path=str(output), bytes_written=written)
        return Completed(task=task, artifact_path=Path(output), bytes_written=written)
