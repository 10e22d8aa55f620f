"""
Debug Capture MCP Server.

Provides tools for capturing runtime data from instrumented code: a local
HTTP listener receives records and appends them to .debug-capture/debug.log.

Setup:
    claude mcp add --transport stdio debug-capture -- uv run "$REPO_ROOT/mcp-server.py"

Example:
    # Start capturing and get the instrumentation snippet
    debug_start()

    # Read the last 20 captured records
    debug_read(tail=20)
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from typing import Any

import attrs
from mcp.server.fastmcp import Context, FastMCP

from debug_capture.config import settings
from debug_capture.exceptions import ListenerError
from debug_capture.mcp.utils import DualLogger
from debug_capture.protocols import StderrLogger
from debug_capture.schemas.tools import (
    ActiveStatusToolResult,
    InactiveStatusToolResult,
    ReadToolResult,
    StartToolResult,
    ToolMessage,
    status_tool_result,
)
from debug_capture.services.controller import CaptureController
from debug_capture.snippets import generate_snippet

# ==============================================================================
# Server State (immutable)
# ==============================================================================


@attrs.define(frozen=True)
class ServerState:
    """
    Immutable server state initialized at startup.

    The controller itself is mutable (Stopped/Running); the reference is not.
    """

    controller: CaptureController


# ==============================================================================
# Lifespan Management
# ==============================================================================


@contextlib.asynccontextmanager
async def lifespan(mcp_server: FastMCP) -> AsyncIterator[None]:
    """
    Manage server lifecycle and state initialization.

    Builds the capture controller from settings and stops it on shutdown so
    buffered records reach the log file.
    """
    controller = CaptureController.from_settings(settings, logger=StderrLogger('MCP Server'))
    state = ServerState(controller=controller)

    # Register tools with closure over state
    register_tools(mcp_server, state)

    await controller.logger.info(f'Log file: {controller.log_file.resolve()}')
    await controller.logger.info(f'Port file: {controller.port_store.port_file.resolve()}')

    try:
        yield  # Setup successful; application active
    finally:
        await controller.stop()


# ==============================================================================
# Server Setup
# ==============================================================================

server = FastMCP('debug-capture', lifespan=lifespan)


WORKFLOW_PROMPT = """\
You are debugging runtime behavior by instrumenting code to capture execution data.

Workflow:
1. Call `debug_status` first if resuming, then `debug_start`. Save the returned snippet:
   it contains the correct port.
2. Insert the snippet at suspected problem areas. Replace `LABEL_HERE` with a
   descriptive name and `{{YOUR_DATA}}` with the variables to capture.
3. Ask the user to reproduce the issue.
4. Call `debug_read` and compare expected vs actual values.
5. Call `debug_stop` and remove ALL instrumentation.

Rules:
- Always use the snippet from `debug_start`; never hardcode ports.
- Search for existing `localhost:<port>/log` calls before adding new ones.

Labels should say where and when: "auth-middleware", "pre-db-query",
"post-parse", "error-caught".

When reading logs, check timestamp order, compare pre/post values, look for
labels that never appear, and inspect captured error data.

Instrumentation template:
{snippet}
"""


@server.prompt()
def debug_workflow() -> str:
    """Runtime debugging workflow: instrument, capture, analyze, clean up."""
    return WORKFLOW_PROMPT.format(snippet=generate_snippet('http://localhost:PORT'))


# ==============================================================================
# Tool Registration (Closure Pattern)
# ==============================================================================


def register_tools(mcp_server: FastMCP, state: ServerState) -> None:
    """
    Register MCP tools with closure over server state.

    Args:
        mcp_server: Server to register tools on
        state: Server state containing the controller
    """
    controller = state.controller

    @mcp_server.tool()
    async def debug_start(
        port: int | None = None,
        ctx: Context[Any, Any, Any] | None = None,
    ) -> StartToolResult:
        """
        Start debug server to capture runtime data.

        ALWAYS use the returned snippet - it has the correct port baked in.
        Calling this while already running returns the existing server.

        Args:
            port: Specific port to use (optional). If not provided, reuses the
                previous session's port or auto-selects a free one.

        Returns:
            Port, URL and a ready-to-use instrumentation snippet

        Examples:
            # Reuse previous port or auto-select
            result = await debug_start()

            # Pin a port
            result = await debug_start(port=9229)
        """
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')
        logger = DualLogger(ctx)

        try:
            result = await controller.start(port)
        except ListenerError as e:
            await logger.error(str(e))
            raise ValueError(str(e)) from e

        await logger.info(f'Capturing on {result.url}')
        return StartToolResult.from_start(result)

    @mcp_server.tool()
    async def debug_stop(ctx: Context[Any, Any, Any] | None = None) -> ToolMessage:
        """
        Stop debug server and flush logs to disk.

        Call this when debugging is complete, then remove all instrumentation.
        """
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')
        logger = DualLogger(ctx)

        if not controller.is_running:
            return ToolMessage(message='Debug server is not running.')

        await controller.stop()
        await logger.info('Debug server stopped')
        return ToolMessage(message=f'Debug server stopped. Logs preserved in {controller.log_file}')

    @mcp_server.tool()
    async def debug_read(
        tail: int | None = None,
        ctx: Context[Any, Any, Any] | None = None,
    ) -> ReadToolResult:
        """
        Read captured logs.

        Args:
            tail: Return only the last N entries. If not provided, returns all entries.

        Returns:
            Entries as {timestamp, label, data} in capture order, with count
        """
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')
        logger = DualLogger(ctx)

        result = await controller.read_logs(tail)
        if result.error:
            await logger.warning(result.error)
        if result.skipped_lines:
            await logger.warning(f'Skipped {result.skipped_lines} malformed line(s) in {result.log_file}')

        return ReadToolResult.from_read(result)

    @mcp_server.tool()
    async def debug_clear(ctx: Context[Any, Any, Any] | None = None) -> ToolMessage:
        """Clear the debug log file. Use to start a fresh capture session."""
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')

        await controller.clear_logs()
        return ToolMessage(message='Debug log cleared.')

    @mcp_server.tool()
    async def debug_status(
        ctx: Context[Any, Any, Any] | None = None,
    ) -> ActiveStatusToolResult | InactiveStatusToolResult:
        """
        Check server state. Call this first when resuming.

        Returns:
            {active, port, url, snippet} if running, or {active, persisted_port, hint}
            with the port of the previous session
        """
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')

        return status_tool_result(controller.status())


# ==============================================================================
# Server Entry Point
# ==============================================================================


def main() -> None:
    """Run the MCP server."""
    server.run()


if __name__ == '__main__':
    main()
