"""
HTTP listener for capture submissions.

A FastAPI app served by an embedded uvicorn server. The socket is bound before
the server task starts so port conflicts surface synchronously from bind().
"""

from __future__ import annotations

import asyncio
import contextlib
import errno
import json
import math
import socket
from collections.abc import Iterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from debug_capture.exceptions import ListenerError, ListenerStartupError, PortInUseError
from debug_capture.schemas.records import CaptureRecord
from debug_capture.services.log_writer import DurableLogWriter

__all__ = ['CaptureListener', 'create_app']

_STARTUP_POLL_SECONDS = 0.01


def _reject_constant(name: str) -> float:
    # JSON has no NaN or Infinity
    raise ValueError(f'Invalid JSON constant: {name}')


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f'Number out of range: {text}')
    return value


def create_app(writer: DurableLogWriter) -> FastAPI:
    """
    Build the capture app with routes bound to the given writer.

    Args:
        writer: Log writer receiving accepted records

    Returns:
        FastAPI application
    """
    app = FastAPI(title='debug-capture', docs_url=None, redoc_url=None, openapi_url=None)

    # Instrumented browser code posts cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=['*'],
        allow_methods=['POST', 'GET', 'OPTIONS'],
        allow_headers=['Content-Type'],
    )

    @app.post('/log')
    async def capture(request: Request) -> JSONResponse:
        try:
            body = json.loads(await request.body(), parse_constant=_reject_constant, parse_float=_parse_finite_float)
        except (ValueError, RecursionError):
            return JSONResponse({'error': 'Invalid JSON'}, status_code=400)

        if body is None:
            return JSONResponse({'error': 'Invalid JSON'}, status_code=400)

        await writer.append(CaptureRecord.from_submission(body))
        return JSONResponse({'success': True})

    @app.get('/health')
    async def health() -> PlainTextResponse:
        return PlainTextResponse('OK')

    return app


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the host process."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class CaptureListener:
    """Binds a port and serves the capture app until shut down."""

    def __init__(self, app: FastAPI, host: str) -> None:
        self.app = app
        self.host = host
        self._socket: socket.socket | None = None
        self._server: _EmbeddedServer | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def port(self) -> int | None:
        if self._socket is None:
            return None
        return self._socket.getsockname()[1]

    def bind(self, port: int) -> int:
        """
        Bind the listening socket.

        Args:
            port: Port to bind (0 lets the OS choose)

        Returns:
            The port actually bound

        Raises:
            PortInUseError: If the port is taken
            ListenerError: If already bound, or the address cannot be bound
        """
        if self._socket is not None:
            raise ListenerError(f'Listener already bound to port {self.port}')

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, port))
        except OSError as e:
            sock.close()
            if e.errno == errno.EADDRINUSE:
                raise PortInUseError(self.host, port, e) from e
            raise ListenerError(f'Cannot bind {self.host}:{port}: {e.strerror or e}') from e
        except OverflowError as e:
            sock.close()
            raise ListenerError(f'Invalid port {port}: must be 0-65535') from e

        self._socket = sock
        return sock.getsockname()[1]

    async def serve(self) -> None:
        """
        Start serving on the bound socket and wait until requests are accepted.

        Raises:
            ListenerStartupError: If the server exits during startup
        """
        if self._socket is None:
            raise ListenerError('bind() must be called before serve()')

        config = uvicorn.Config(
            self.app,
            lifespan='off',
            access_log=False,  # stdout belongs to the MCP stdio transport
            log_level='warning',
        )
        server = _EmbeddedServer(config)
        task = asyncio.create_task(server.serve(sockets=[self._socket]), name='debug-capture-listener')
        self._server = server
        self._task = task

        while not server.started:
            if task.done():
                self._server = None
                self._task = None
                self._close_socket()
                exc = task.exception()
                raise ListenerStartupError(f'Listener exited during startup: {exc}') from exc
            await asyncio.sleep(_STARTUP_POLL_SECONDS)

    async def shutdown(self) -> None:
        """Stop serving and release the socket. Safe to call when not serving."""
        server, task = self._server, self._task
        self._server = None
        self._task = None
        try:
            if server is not None and task is not None:
                server.should_exit = True
                await task
        finally:
            self._close_socket()

    def _close_socket(self) -> None:
        sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()
