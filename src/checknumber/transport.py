"""Transport -- 单次 HTTP 交换封装

所有上层组件通过此处访问网络。httpx.RequestError（连接失败、超时、
重定向过多、内容解码失败）统一包装为 TransportError；
非 2xx 状态码作为数据返回，由调用方判定。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import NamedTuple

import httpx
import structlog

from .config import DEFAULT_DOWNLOAD_TIMEOUT_S, DEFAULT_TIMEOUT_S
from .exceptions import TransportError

log = structlog.get_logger()

API_KEY_HEADER = "X-API-Key"

# 下载分块大小
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class HttpResult(NamedTuple):
    """一次完整读取的 HTTP 响应"""

    status_code: int
    body: bytes

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class BinaryResponse:
    """流式读取的 HTTP 响应，用于大文件直接落盘"""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def is_success(self) -> bool:
        return self._response.is_success

    def iter_bytes(self, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes(chunk_size)


class Transport:
    """checknumber 服务 HTTP 传输层

    持有一个 httpx.AsyncClient，在同一 JobClient 的多次调用间复用连接池。
    """

    def __init__(
        self,
        api_key: str,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        download_timeout_s: float = DEFAULT_DOWNLOAD_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """初始化传输层

        Args:
            api_key: 服务 API key，仅附加在服务接口请求上
            timeout_s: 接口调用超时（秒）
            download_timeout_s: 结果下载超时（秒）
            client: 外部注入的 httpx.AsyncClient；为 None 时内部创建并负责关闭
        """
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._download_timeout_s = download_timeout_s
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """关闭内部创建的 httpx 客户端（外部注入的不关闭）"""
        if self._owns_client:
            await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: self._api_key}

    async def upload(
        self,
        url: str,
        content: bytes,
        filename: str = "input.txt",
    ) -> HttpResult:
        """multipart POST，表单字段 file 携带输入文件

        Raises:
            TransportError: 连接失败、超时、重定向过多或响应解码失败
        """
        files = {"file": (filename, content, "text/plain")}
        try:
            response = await self._client.post(
                url,
                files=files,
                headers=self._auth_headers(),
                timeout=self._timeout_s,
            )
        except httpx.RequestError as e:
            log.error("http_upload_failed", url=url, error=str(e), error_type=type(e).__name__)
            raise TransportError(url, e) from e
        return HttpResult(response.status_code, response.content)

    async def get(
        self,
        url: str,
        params: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> HttpResult:
        """GET 请求

        Args:
            url: 请求地址
            params: 查询参数
            authenticated: 是否附加 X-API-Key（外部托管的结果地址不附加）

        Raises:
            TransportError: 连接失败、超时、重定向过多或响应解码失败
        """
        headers = self._auth_headers() if authenticated else {}
        try:
            response = await self._client.get(
                url,
                params=params,
                headers=headers,
                timeout=self._timeout_s,
            )
        except httpx.RequestError as e:
            log.error("http_get_failed", url=url, error=str(e), error_type=type(e).__name__)
            raise TransportError(url, e) from e
        return HttpResult(response.status_code, response.content)

    @asynccontextmanager
    async def get_binary(self, url: str) -> AsyncIterator[BinaryResponse]:
        """流式 GET，用于下载结果文件

        结果地址由外部托管，不附加 API key。读取过程中的网络错误同样
        包装为 TransportError。

        Raises:
            TransportError: 连接失败、超时、读取中断或内容解码失败
        """
        try:
            async with self._client.stream(
                "GET",
                url,
                timeout=self._download_timeout_s,
            ) as response:
                yield BinaryResponse(response)
        except httpx.RequestError as e:
            log.error("http_download_failed", url=url, error=str(e), error_type=type(e).__name__)
            raise TransportError(url, e) from e
