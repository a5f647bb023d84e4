"""链接检测与串行检测流程的单元测试"""

import asyncio
import socket

import pytest
from aiohttp import web
from aiohttp import test_utils

from models.link_model import LinkStatus
from validator.validator import LinkValidator


async def _ok(request):
    return web.Response(text="proxies: []")


async def _not_found(request):
    return web.Response(status=404)


async def _start_http_server():
    app = web.Application()
    app.router.add_get('/sub.yaml', _ok)
    app.router.add_get('/missing.txt', _not_found)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


async def _start_silent_server():
    """接受连接但从不响应的 TCP 服务。"""
    async def handle(reader, writer):
        await reader.read()
        writer.close()

    server = await asyncio.start_server(handle, '127.0.0.1', 0)
    port = server.sockets[0].getsockname()[1]
    return server, f"http://127.0.0.1:{port}/sub.txt"


def _closed_port_url():
    sock = socket.socket()
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/sub.txt"


class TestValidateLink:
    """validate_link 测试"""

    @pytest.mark.asyncio
    async def test_reachable_link_is_active(self):
        server = await _start_http_server()
        try:
            status, ping = await LinkValidator().validate_link(str(server.make_url('/sub.yaml')))
        finally:
            await server.close()
        assert status == LinkStatus.ACTIVE
        assert 0 <= ping < 6000

    @pytest.mark.asyncio
    async def test_any_http_response_counts_as_active(self):
        server = await _start_http_server()
        try:
            status, _ = await LinkValidator().validate_link(str(server.make_url('/missing.txt')))
        finally:
            await server.close()
        assert status == LinkStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_silent_target_times_out(self):
        server, url = await _start_silent_server()
        loop = asyncio.get_event_loop()
        try:
            start = loop.time()
            status, ping = await LinkValidator(timeout=0.5).validate_link(url)
            elapsed = loop.time() - start
        finally:
            server.close()
            await server.wait_closed()
        assert (status, ping) == (LinkStatus.EXPIRED, 9999)
        assert 0.45 <= elapsed < 3

    @pytest.mark.asyncio
    async def test_connection_refused_is_expired(self):
        assert await LinkValidator().validate_link(_closed_port_url()) == (LinkStatus.EXPIRED, 9999)

    @pytest.mark.asyncio
    async def test_invalid_url_is_expired(self):
        assert await LinkValidator().validate_link("not a url") == (LinkStatus.EXPIRED, 9999)

    def test_default_timeout(self):
        assert LinkValidator().timeout == 6


class TestRunValidation:
    """run_validation 测试"""

    @pytest.mark.asyncio
    async def test_sequential_in_input_order(self, link_factory):
        links = [link_factory(f"https://x.test/{i}.txt") for i in range(3)]
        events = []
        in_flight = 0

        async def probe(url):
            nonlocal in_flight
            in_flight += 1
            assert in_flight == 1
            events.append(("probe", url))
            await asyncio.sleep(0.01)
            in_flight -= 1
            return LinkStatus.ACTIVE, 42

        def on_result(link, status, ping):
            events.append(("result", link.url))

        await LinkValidator().run_validation(links, on_result, probe=probe)

        assert events == [
            ("probe", "https://x.test/0.txt"), ("result", "https://x.test/0.txt"),
            ("probe", "https://x.test/1.txt"), ("result", "https://x.test/1.txt"),
            ("probe", "https://x.test/2.txt"), ("result", "https://x.test/2.txt"),
        ]

    @pytest.mark.asyncio
    async def test_failing_probe_does_not_abort_run(self, link_factory):
        links = [link_factory(f"https://x.test/{i}.txt") for i in range(3)]
        results = {}

        async def probe(url):
            if url.endswith("1.txt"):
                raise RuntimeError("boom")
            return LinkStatus.ACTIVE, 120

        def on_result(link, status, ping):
            results[link.url] = (status, ping)

        await LinkValidator().run_validation(links, on_result, probe=probe)

        assert results == {
            "https://x.test/0.txt": (LinkStatus.ACTIVE, 120),
            "https://x.test/1.txt": (LinkStatus.EXPIRED, 9999),
            "https://x.test/2.txt": (LinkStatus.ACTIVE, 120),
        }

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        calls = []
        await LinkValidator().run_validation([], lambda *args: calls.append(args))
        assert calls == []
