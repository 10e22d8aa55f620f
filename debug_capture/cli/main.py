#!/usr/bin/env python3
"""
Command-line interface for debug-capture.

Runs the capture listener in the foreground and reads, clears or inspects the
debug log of the current directory.
"""

from __future__ import annotations

import asyncio
import json
import signal
from typing import Any

import httpx
import typer

from debug_capture.cli.logger import CLILogger
from debug_capture.config import settings
from debug_capture.exceptions import DebugCaptureError
from debug_capture.schemas.operations import RunningStatus
from debug_capture.services.controller import CaptureController
from debug_capture.snippets import generate_snippet

app = typer.Typer(
    name='debug-capture',
    help='Capture runtime debug data from instrumented code',
    add_completion=False,
)

_HTTP_TIMEOUT_SECONDS = 5.0


def _controller(verbose: bool = False) -> CaptureController:
    return CaptureController.from_settings(settings, logger=CLILogger(verbose=verbose))


def _target_port(port: int | None, controller: CaptureController) -> int:
    """Explicit port, else the persisted one."""
    if port is not None:
        return port
    persisted = controller.port_store.load()
    if persisted is None:
        typer.secho('Error: No port given and no previous session found.', fg=typer.colors.RED, err=True)
        typer.echo('Pass --port or start a session with: debug-capture serve', err=True)
        raise typer.Exit(1)
    return persisted


@app.command()
def serve(
    port: int | None = typer.Option(None, '--port', '-p', help='Port to bind (default: previous port or auto)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Run the capture listener until interrupted (Ctrl+C)."""
    asyncio.run(_serve_async(port, verbose))


async def _serve_async(port: int | None, verbose: bool) -> None:
    """Async implementation of serve command."""
    controller = _controller(verbose)

    try:
        result = await controller.start(port)
    except DebugCaptureError as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.secho(f'✓ Capturing on {result.url}', fg=typer.colors.GREEN)
    typer.echo(f'  Log file: {controller.log_file}')
    typer.echo()
    typer.echo('Instrument code with:')
    typer.secho(generate_snippet(result.url), fg=typer.colors.CYAN)
    typer.echo()
    typer.echo('Press Ctrl+C to stop.')

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await controller.stop()
        typer.echo(f'Stopped. Logs preserved in {controller.log_file}')


@app.command()
def read(
    tail: int | None = typer.Option(None, '--tail', '-n', help='Only the last N records'),
    as_json: bool = typer.Option(False, '--json', help='Print records as NDJSON'),
) -> None:
    """Print captured records."""
    asyncio.run(_read_async(tail, as_json))


async def _read_async(tail: int | None, as_json: bool) -> None:
    """Async implementation of read command."""
    controller = _controller()
    result = await controller.read_logs(tail)

    if result.error:
        await controller.logger.warning(result.error)

    if as_json:
        for entry in result.entries:
            typer.echo(entry.model_dump_json())
        return

    if not result.entries:
        typer.echo(f'No log entries found in {result.log_file}')
        return

    for entry in result.entries:
        timestamp = entry.timestamp.isoformat(timespec='milliseconds')
        typer.secho(f'{timestamp}  {entry.label}', fg=typer.colors.CYAN, nl=False)
        typer.echo(f'  {json.dumps(entry.data, ensure_ascii=False)}')

    typer.echo()
    typer.echo(f'{result.count} record(s)', nl=False)
    if result.skipped_lines:
        typer.echo(f', {result.skipped_lines} malformed line(s) skipped', nl=False)
    typer.echo()


@app.command()
def clear() -> None:
    """Truncate the debug log."""
    controller = _controller()
    asyncio.run(controller.clear_logs())
    typer.secho(f'✓ Cleared {controller.log_file}', fg=typer.colors.GREEN)


@app.command()
def status() -> None:
    """Show the port of the previous session (or the running one)."""
    controller = _controller()
    current = controller.status()

    if isinstance(current, RunningStatus):
        typer.echo(f'Running on {current.url}')
    elif current.persisted_port is not None:
        typer.echo(f'Not running in this process. Previous session used port {current.persisted_port}.')
        typer.echo(f'  URL: {controller.url_for(current.persisted_port)}')
    else:
        typer.echo('No debug session configured. Start one with: debug-capture serve')


@app.command()
def snippet(
    port: int | None = typer.Option(None, '--port', '-p', help='Port (default: previous session port)'),
) -> None:
    """Print the instrumentation snippet for the listener."""
    controller = _controller()
    typer.echo(generate_snippet(controller.url_for(_target_port(port, controller))))


@app.command()
def send(
    label: str = typer.Argument(..., help='Record label'),
    data: str | None = typer.Argument(None, help='JSON payload (default: none)'),
    port: int | None = typer.Option(None, '--port', '-p', help='Listener port (default: previous session port)'),
) -> None:
    """Post one record to a running listener."""
    controller = _controller()
    url = controller.url_for(_target_port(port, controller))

    body: dict[str, Any] = {'label': label}
    if data is not None:
        try:
            body['data'] = json.loads(data)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f'DATA is not valid JSON: {e}') from e

    try:
        response = httpx.post(f'{url}/log', json=body, timeout=_HTTP_TIMEOUT_SECONDS)
    except httpx.HTTPError as e:
        typer.secho(f'Error: Cannot reach listener at {url}: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if response.status_code != 200:
        typer.secho(f'Error: {response.status_code} {response.text}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.secho(f'✓ Sent [{label}] to {url}', fg=typer.colors.GREEN)


def main() -> None:
    app()


if __name__ == '__main__':
    main()
