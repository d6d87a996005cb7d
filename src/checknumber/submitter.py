"""JobSubmitter -- 提交号码批次，创建远端任务

提交失败即终止，不做重试，由调用方决定后续处理。
"""

from collections.abc import Sequence
from os import PathLike
from pathlib import Path

import structlog

from .config import DEFAULT_BASE_URL
from .exceptions import MalformedResponse, RemoteRejected
from .inputs import serialize_batch
from .models import Task
from .transport import Transport

log = structlog.get_logger()

DEFAULT_UPLOAD_FILENAME = "input.txt"


class JobSubmitter:
    """任务提交器

    三种输入形式（号码序列 / 文本 / 本地文件）最终都以 multipart 文件上传。
    """

    def __init__(self, transport: Transport, base_url: str = DEFAULT_BASE_URL) -> None:
        self._transport = transport
        self._base_url = base_url.rstrip("/")

    async def submit(self, batch: Sequence[str]) -> Task:
        """提交号码批次

        Args:
            batch: 号码序列，按换行拼接后上传

        Returns:
            服务端返回的初始 Task（初始状态不一定是 queued）

        Raises:
            ValueError: 批次为空或包含空号码
            TransportError: 网络失败
            RemoteRejected: 服务端返回非 2xx
            MalformedResponse: 响应体不符合 Task 结构
        """
        content = serialize_batch(batch)
        return await self._upload(content, DEFAULT_UPLOAD_FILENAME)

    async def submit_text(self, text: str, filename: str = DEFAULT_UPLOAD_FILENAME) -> Task:
        """原样上传号码文本（每行一个号码）"""
        if not text.strip():
            raise ValueError("号码文本为空")
        return await self._upload(text.encode("utf-8"), filename)

    async def submit_file(self, path: str | PathLike) -> Task:
        """原样上传本地号码文件，文件名取 basename

        Raises:
            FileNotFoundError: 文件不存在（此时不发起任何请求）
        """
        path = Path(path)
        content = path.read_bytes()
        return await self._upload(content, path.name)

    async def _upload(self, content: bytes, filename: str) -> Task:
        log.debug("task_submit_start", filename=filename, size=len(content))

        result = await self._transport.upload(self._base_url, content, filename)

        if not result.is_success:
            log.error(
                "task_submit_rejected",
                status_code=result.status_code,
                body=result.body[:200].decode("utf-8", errors="replace"),
            )
            raise RemoteRejected(result.status_code, result.body)

        try:
            task = Task.from_response(result.body)
        except MalformedResponse as e:
            log.error("task_submit_malformed", error=str(e))
            raise

        log.info(
            "task_submitted",
            task_id=task.task_id,
            status=task.status,
            total=task.total,
        )
        return task
