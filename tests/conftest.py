"""Shared pytest fixtures."""
import gzip
import http.server
import threading
import time

import pytest
import requests

from cdn_speedtest.servers import TestTarget


class FakeRaw:
    """Stands in for the urllib3 response behind a streamed requests.Response."""

    def __init__(self, chunks, error=None):
        self.chunks = list(chunks)
        self.error = error
        self.decode_flags = []

    def read1(self, amt=None, decode_content=None):
        self.decode_flags.append(decode_content)
        if self.chunks:
            return self.chunks.pop(0)
        if self.error is not None:
            raise self.error
        return b''


class FakeResponse:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(self, status_code=200, chunks=(), headers=None, error=None):
        self.status_code = status_code
        self.headers = headers or {}
        self.raw = FakeRaw(chunks, error)
        self.closed = False

    def close(self):
        self.closed = True


class FakeGet:
    """Replacement for requests.get / Session.get routing by URL."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        return route

    @property
    def urls(self):
        return [url for url, _ in self.calls]


class FakeSession:
    def __init__(self, routes):
        self.get = FakeGet(routes)
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_get(monkeypatch):
    """Patch requests.get; call the fixture with a {url: response | exception} mapping."""
    def install(routes):
        getter = FakeGet(routes)
        monkeypatch.setattr(requests, 'get', getter)
        return getter
    return install


@pytest.fixture
def catalog():
    return {
        'p1': [
            TestTarget('T1', 'http://p1.example/10', 10),
            TestTarget('T2', 'http://p1.example/100', 100),
        ],
        'p2': [
            TestTarget('P2 Small', 'http://p2.example/10', 10),
        ],
    }


GZIP_PAYLOAD = gzip.compress(b'\0' * 1_000_000)
DRIP_BYTES = 30
DRIP_INTERVAL = 0.1


class _LocalHandler(http.server.BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == '/gzip':
            # Compressed regardless of Accept-Encoding
            self._send(200, GZIP_PAYLOAD, {'Content-Encoding': 'gzip'})
        elif self.path == '/drip':
            self.send_response(200)
            self.send_header('Content-Length', str(DRIP_BYTES))
            self.end_headers()
            try:
                for _ in range(DRIP_BYTES):
                    self.wfile.write(b'x')
                    self.wfile.flush()
                    time.sleep(DRIP_INTERVAL)
            except (BrokenPipeError, ConnectionResetError):
                pass
        elif self.path == '/bad-redirect':
            self._send(302, b'', {'Location': 'http://[::1'})
        else:
            self._send(200, b'x' * 1000)

    def _send(self, status, body, headers=None):
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def local_server(monkeypatch):
    """Serve test files on 127.0.0.1; yields the base URL."""
    monkeypatch.setenv('NO_PROXY', '127.0.0.1,localhost')
    monkeypatch.setenv('no_proxy', '127.0.0.1,localhost')
    server = http.server.ThreadingHTTPServer(('127.0.0.1', 0), _LocalHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f'http://127.0.0.1:{server.server_address[1]}'
    finally:
        server.shutdown()
        server.server_close()
