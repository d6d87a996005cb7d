"""ResultFetcher -- 结果文件下载

结果文件按字节流原样写入目标，不解析内容。写入路径时先写 .part 临时文件，
成功后再重命名，失败时删除临时文件。
"""

import os
from pathlib import Path
from typing import BinaryIO

import structlog

from .exceptions import DownloadFailed
from .transport import BinaryResponse, Transport

log = structlog.get_logger()

Sink = str | os.PathLike | BinaryIO


class ResultFetcher:
    """结果文件下载器"""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def fetch(self, result_url: str, sink: Sink) -> int:
        """下载结果文件并写入 sink

        Args:
            result_url: 结果文件地址（外部托管，不附加 API key）
            sink: 文件路径或可写的二进制流（流不会被关闭）

        Returns:
            写入的字节数

        Raises:
            DownloadFailed: 非 2xx 响应（此时不会创建或写入 sink）
            TransportError: 网络失败或读取中断
        """
        async with self._transport.get_binary(result_url) as response:
            if not response.is_success:
                log.error(
                    "artifact_download_rejected",
                    url=result_url,
                    status_code=response.status_code,
                )
                raise DownloadFailed(result_url, response.status_code)

            if isinstance(sink, (str, os.PathLike)):
                written = await self._write_path(Path(sink), response)
            else:
                written = await self._write_stream(sink, response)

        log.info("artifact_downloaded", url=result_url, bytes_written=written)
        return written

    @staticmethod
    async def _write_stream(stream: BinaryIO, response: BinaryResponse) -> int:
        written = 0
        async for chunk in response.iter_bytes():
            stream.write(chunk)
            written += len(chunk)
        return written

    async def _write_path(self, path: Path, response: BinaryResponse) -> int:
        path.parent.mkdir(parents=True, exist_ok=True)
        part_path = path.with_name(path.name + ".part")
        try:
            with part_path.open("wb") as f:
                written = await self._write_stream(f, response)
            part_path.replace(path)
        except BaseException:
            part_path.unlink(missing_ok=True)
            raise
        return written
