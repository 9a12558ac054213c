"""Tests for the HTTP client service."""

import asyncio
import json
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from stealth_grid.models import AppConfig
from stealth_grid.services.errors import DownloadError
from stealth_grid.services.http_client import HttpClientService


def make_client(handler: httpx.MockTransport | None = None, **kwargs: object) -> HttpClientService:
    transport = handler or httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    return HttpClientService("https://api.example.test/", "secret-key", transport=transport, **kwargs)  # type: ignore[arg-type]


class TestJsonRequests:
    """Tests for JSON requests."""

    @pytest.mark.asyncio
    async def test_post_sends_key_and_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"ok": True}})

        async with make_client(httpx.MockTransport(handler)) as client:
            result = await client.post_json("/central-data/graphql", {"query": "q"})

        assert result == {"data": {"ok": True}}
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.example.test/central-data/graphql"
        assert request.headers["x-api-key"] == "secret-key"
        assert json.loads(request.content) == {"query": "q"}

    @pytest.mark.asyncio
    async def test_get_decodes_json(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"files": []}))

        async with make_client(transport) as client:
            assert await client.get_json("/file-download/list/1") == {"files": []}

    @pytest.mark.asyncio
    async def test_error_status_raises_and_logs(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "unauthorized"}))

        async with make_client(transport) as client:
            with patch("stealth_grid.services.http_client.log") as mock_logger:
                with pytest.raises(httpx.HTTPStatusError):
                    await client.get_json("/file-download/list/1")

        assert mock_logger.warning.called
        _, kwargs = mock_logger.warning.call_args
        assert kwargs["error_type"] == "HTTPStatusError"

    @pytest.mark.asyncio
    async def test_connection_failure_propagates(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with make_client(httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.ConnectError):
                await client.post_json("/central-data/graphql", {})

    @pytest.mark.asyncio
    async def test_non_json_body_raises_value_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html></html>"))

        async with make_client(transport) as client:
            with pytest.raises(ValueError):
                await client.get_json("/file-download/list/1")


class TestDownloads:
    """Tests for streamed downloads."""

    @pytest.mark.asyncio
    async def test_download_writes_file(self) -> None:
        body = b"x" * 200_000
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=body))

        with tempfile.TemporaryDirectory() as temp_dir:
            destination = Path(temp_dir) / "1.zip"
            async with make_client(transport) as client:
                written = await client.download_file("/file-download/events/grid/series/1", destination)

            assert written == len(body)
            assert destination.read_bytes() == body

    @pytest.mark.asyncio
    async def test_failed_download_removes_partial_file(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        with tempfile.TemporaryDirectory() as temp_dir:
            destination = Path(temp_dir) / "1.zip"
            async with make_client(transport) as client:
                with pytest.raises(httpx.HTTPStatusError):
                    await client.download_file("/file-download/events/grid/series/1", destination)

            assert not destination.exists()
            assert not destination.with_name("1.zip.part").exists()

    @pytest.mark.asyncio
    async def test_short_body_raises_download_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-length": "10"}, content=b"12345")

        with tempfile.TemporaryDirectory() as temp_dir:
            destination = Path(temp_dir) / "1.zip"
            async with make_client(httpx.MockTransport(handler)) as client:
                with pytest.raises(DownloadError) as exc_info:
                    await client.download_file("/file-download/events/grid/series/1", destination)

            assert exc_info.value.total_bytes == 10
            assert exc_info.value.bytes_downloaded == 5
            assert not destination.exists()
            assert not destination.with_name("1.zip.part").exists()

    @pytest.mark.asyncio
    async def test_failed_retry_keeps_earlier_download(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        with tempfile.TemporaryDirectory() as temp_dir:
            destination = Path(temp_dir) / "2600.zip"
            destination.write_bytes(b"earlier complete archive")

            async with make_client(transport) as client:
                with pytest.raises(httpx.HTTPStatusError):
                    await client.download_file("/file-download/events/grid/series/2600", destination)

            assert destination.read_bytes() == b"earlier complete archive"
            assert not (Path(temp_dir) / "2600.zip.part").exists()

    @pytest.mark.asyncio
    async def test_successful_retry_replaces_earlier_download(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"new archive"))

        with tempfile.TemporaryDirectory() as temp_dir:
            destination = Path(temp_dir) / "2600.zip"
            destination.write_bytes(b"old archive")

            async with make_client(transport) as client:
                await client.download_file("/file-download/events/grid/series/2600", destination)

            assert destination.read_bytes() == b"new archive"
            assert sorted(p.name for p in Path(temp_dir).iterdir()) == ["2600.zip"]

    @pytest.mark.asyncio
    async def test_cancelled_download_removes_partial_file(self) -> None:
        first_chunk_sent = asyncio.Event()

        async def slow_body() -> AsyncIterator[bytes]:
            yield b"x" * 1024
            first_chunk_sent.set()
            await asyncio.sleep(30)
            yield b"x" * 1024

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-length": "2048"}, content=slow_body())

        with tempfile.TemporaryDirectory() as temp_dir:
            destination = Path(temp_dir) / "2600.zip"
            async with make_client(httpx.MockTransport(handler)) as client:
                task = asyncio.create_task(
                    client.download_file("/file-download/events/grid/series/2600", destination, chunk_size=512)
                )
                await asyncio.wait_for(first_chunk_sent.wait(), timeout=5)
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

            assert list(Path(temp_dir).iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_directory_raises_os_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"data"))

        with tempfile.TemporaryDirectory() as temp_dir:
            destination = Path(temp_dir) / "missing" / "1.zip"
            async with make_client(transport) as client:
                with pytest.raises(OSError):
                    await client.download_file("/file-download/events/grid/series/1", destination)


def test_from_config_uses_settings() -> None:
    config = AppConfig(
        api_key="abc",
        download_directory=Path("/tmp"),
        api_url="https://grid.example.test",
        request_timeout=12.5,
    )

    client = HttpClientService.from_config(config)

    assert client.base_url == "https://grid.example.test"
    assert client.timeout == 12.5
