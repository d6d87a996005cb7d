"""ResultFetcher 单元测试"""

import io

import httpx
import pytest
from checknumber.exceptions import DownloadFailed, TransportError
from checknumber.fetcher import ResultFetcher
from checknumber.transport import Transport

ARTIFACT = b"PK\x03\x04" + bytes(range(256)) * 600


@pytest.fixture
def fetcher(transport) -> ResultFetcher:
    return ResultFetcher(transport)


class TestFetch:
    async def test_fetch_to_path(self, fetcher, fake_service, artifact_url, tmp_path):
        """结果原样落盘，返回写入字节数"""
        fake_service.artifacts[artifact_url] = httpx.Response(200, content=ARTIFACT)
        target = tmp_path / "nested" / "results.xlsx"

        written = await fetcher.fetch(artifact_url, target)

        assert written == len(ARTIFACT)
        assert target.read_bytes() == ARTIFACT
        assert not (tmp_path / "nested" / "results.xlsx.part").exists()

    async def test_fetch_to_str_path(self, fetcher, fake_service, artifact_url, tmp_path):
        fake_service.artifacts[artifact_url] = httpx.Response(200, content=b"abc")
        target = tmp_path / "r.xlsx"

        assert await fetcher.fetch(artifact_url, str(target)) == 3
        assert target.read_bytes() == b"abc"

    async def test_fetch_to_stream(self, fetcher, fake_service, artifact_url):
        """写入流且不关闭"""
        fake_service.artifacts[artifact_url] = httpx.Response(200, content=ARTIFACT)
        sink = io.BytesIO()

        written = await fetcher.fetch(artifact_url, sink)

        assert written == len(ARTIFACT)
        assert sink.getvalue() == ARTIFACT
        assert sink.closed is False

    async def test_no_api_key_sent(self, fetcher, fake_service, artifact_url):
        fake_service.artifacts[artifact_url] = httpx.Response(200, content=b"x")
        await fetcher.fetch(artifact_url, io.BytesIO())
        assert "X-API-Key" not in fake_service.download_requests[0].headers

    @pytest.mark.parametrize("status_code", [403, 404, 500])
    async def test_non_2xx(self, fetcher, fake_service, artifact_url, tmp_path, status_code):
        """非 2xx 抛出 DownloadFailed，不创建目标文件"""
        fake_service.artifacts[artifact_url] = httpx.Response(status_code, content=b"denied")
        target = tmp_path / "r.xlsx"

        with pytest.raises(DownloadFailed) as exc_info:
            await fetcher.fetch(artifact_url, target)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.url == artifact_url
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    async def test_existing_file_replaced(self, fetcher, fake_service, artifact_url, tmp_path):
        target = tmp_path / "r.xlsx"
        target.write_bytes(b"old content")
        fake_service.artifacts[artifact_url] = httpx.Response(200, content=b"new")

        await fetcher.fetch(artifact_url, target)

        assert target.read_bytes() == b"new"

    async def test_interrupted_download_removes_partial(self, artifact_url, tmp_path):
        """读取中断时删除临时文件"""

        class BrokenStream(httpx.AsyncByteStream):
            async def __aiter__(self):
                yield b"partial"
                raise httpx.ReadError("connection reset")

        def handler(request):
            return httpx.Response(200, stream=BrokenStream())

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with client:
            fetcher = ResultFetcher(Transport("k", client=client))
            with pytest.raises(TransportError):
                await fetcher.fetch(artifact_url, tmp_path / "r.xlsx")

        assert list(tmp_path.iterdir()) == []
