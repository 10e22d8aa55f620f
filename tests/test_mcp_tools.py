"""Tests for the MCP tool layer and instrumentation snippets."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
import pytest
from mcp import ClientSession
from mcp.server.fastmcp import FastMCP
from mcp.shared.memory import create_connected_server_and_client_session
from mcp.types import CallToolResult, TextContent

from debug_capture.mcp.server import ServerState, debug_workflow, register_tools
from debug_capture.schemas.operations import LogReadResult, RunningStatus, StartResult, StoppedStatus
from debug_capture.schemas.records import CaptureRecord
from debug_capture.schemas.tools import (
    ActiveStatusToolResult,
    InactiveStatusToolResult,
    ReadToolResult,
    StartToolResult,
    status_tool_result,
)
from debug_capture.services.controller import CaptureController
from debug_capture.snippets import generate_snippet


def test_snippet_targets_log_route() -> None:
    snippet = generate_snippet('http://localhost:61750')

    assert 'fetch("http://localhost:61750/log"' in snippet
    assert '"Content-Type": "application/json"' in snippet
    assert 'label: "LABEL_HERE"' in snippet
    assert 'data: {YOUR_DATA}' in snippet


def test_start_tool_result_includes_snippet() -> None:
    result = StartToolResult.from_start(StartResult(port=61750, url='http://localhost:61750'))

    assert result.port == 61750
    assert 'http://localhost:61750/log' in result.snippet
    assert '61750' in result.message


def test_status_while_running_includes_snippet() -> None:
    result = status_tool_result(RunningStatus(port=4000, url='http://localhost:4000'))

    assert isinstance(result, ActiveStatusToolResult)
    assert result.active is True
    assert 'http://localhost:4000/log' in result.snippet


def test_status_while_stopped_hints_at_previous_port() -> None:
    result = status_tool_result(StoppedStatus(persisted_port=4000))

    assert isinstance(result, InactiveStatusToolResult)
    assert result.active is False
    assert result.persisted_port == 4000
    assert '4000' in result.hint


def test_status_without_history_suggests_start() -> None:
    result = status_tool_result(StoppedStatus(persisted_port=None))

    assert isinstance(result, InactiveStatusToolResult)
    assert result.persisted_port is None
    assert 'debug_start' in result.hint


def test_read_tool_result_explains_empty_log() -> None:
    result = ReadToolResult.from_read(LogReadResult(entries=[], log_file='debug.log'))

    assert result.count == 0
    assert result.message is not None


def test_read_tool_result_serializes_entries() -> None:
    entry = CaptureRecord.from_submission({'label': 'a', 'data': {'x': 1}})

    result = ReadToolResult.from_read(LogReadResult(entries=[entry], skipped_lines=2, log_file='debug.log'))
    dumped = result.model_dump(mode='json')

    assert dumped['count'] == 1
    assert dumped['skipped_lines'] == 2
    assert dumped['message'] is None
    assert set(dumped['entries'][0]) == {'timestamp', 'label', 'data'}


@pytest.mark.asyncio
async def test_register_tools_exposes_five_operations(log_file: Path, port_file: Path) -> None:
    mcp_server = FastMCP('debug-capture-test')
    register_tools(mcp_server, ServerState(controller=CaptureController(log_file, port_file)))

    tools = await mcp_server.list_tools()

    assert {tool.name for tool in tools} == {
        'debug_start',
        'debug_stop',
        'debug_read',
        'debug_clear',
        'debug_status',
    }


def test_workflow_prompt_embeds_snippet() -> None:
    prompt = debug_workflow()

    assert 'debug_start' in prompt
    assert '{YOUR_DATA}' in prompt
    assert 'http://localhost:PORT/log' in prompt


# ==============================================================================
# Tool calls over an in-memory MCP session
# ==============================================================================


@asynccontextmanager
async def tool_client(controller: CaptureController) -> AsyncIterator[ClientSession]:
    mcp_server = FastMCP('debug-capture-test')
    register_tools(mcp_server, ServerState(controller=controller))
    async with create_connected_server_and_client_session(mcp_server._mcp_server) as client:
        yield client


def tool_text(result: CallToolResult) -> str:
    [content] = result.content
    assert isinstance(content, TextContent)
    return content.text


async def call_json(client: ClientSession, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
    result = await client.call_tool(name, arguments or {})
    assert not result.isError, tool_text(result)
    return json.loads(tool_text(result))


@pytest.mark.asyncio
async def test_status_tool_when_never_started(controller: CaptureController) -> None:
    async with tool_client(controller) as client:
        status = await call_json(client, 'debug_status')

    assert status['active'] is False
    assert status['persisted_port'] is None
    assert 'debug_start' in status['hint']


@pytest.mark.asyncio
async def test_start_tool_returns_port_and_snippet(controller: CaptureController) -> None:
    async with tool_client(controller) as client:
        started = await call_json(client, 'debug_start')
        status = await call_json(client, 'debug_status')

    assert controller.is_running
    assert started['url'] == f'http://127.0.0.1:{started["port"]}'
    assert f'{started["url"]}/log' in started['snippet']
    assert status == {
        'active': True,
        'port': started['port'],
        'url': started['url'],
        'snippet': started['snippet'],
    }


@pytest.mark.asyncio
async def test_start_tool_on_occupied_port_is_tool_error(controller: CaptureController, occupied_port: int) -> None:
    async with tool_client(controller) as client:
        result = await client.call_tool('debug_start', {'port': occupied_port})

    assert result.isError
    assert str(occupied_port) in tool_text(result)
    assert not controller.is_running


@pytest.mark.asyncio
async def test_start_tool_on_invalid_port_is_tool_error(controller: CaptureController) -> None:
    async with tool_client(controller) as client:
        result = await client.call_tool('debug_start', {'port': 70000})

    assert result.isError
    assert 'Invalid port 70000' in tool_text(result)
    assert not controller.is_running


@pytest.mark.asyncio
async def test_stop_tool_when_not_running(controller: CaptureController) -> None:
    async with tool_client(controller) as client:
        stopped = await call_json(client, 'debug_stop')

    assert stopped == {'message': 'Debug server is not running.'}


@pytest.mark.asyncio
async def test_stop_tool_reports_log_location(controller: CaptureController, log_file: Path) -> None:
    async with tool_client(controller) as client:
        started = await call_json(client, 'debug_start')
        stopped = await call_json(client, 'debug_stop')
        status = await call_json(client, 'debug_status')

    assert not controller.is_running
    assert str(log_file) in stopped['message']
    assert status['active'] is False
    assert status['persisted_port'] == started['port']


@pytest.mark.asyncio
async def test_read_tool_on_empty_log_explains_why(controller: CaptureController) -> None:
    async with tool_client(controller) as client:
        read = await call_json(client, 'debug_read')

    assert read['entries'] == []
    assert read['count'] == 0
    assert read['message']


@pytest.mark.asyncio
async def test_read_tool_returns_captured_records(controller: CaptureController) -> None:
    async with tool_client(controller) as client:
        started = await call_json(client, 'debug_start')
        async with httpx.AsyncClient() as http:
            for i in range(3):
                response = await http.post(f'{started["url"]}/log', json={'label': f'step-{i}', 'data': {'i': i}})
                assert response.status_code == 200

        read = await call_json(client, 'debug_read', {'tail': 2})

    assert read['count'] == 2
    assert [entry['label'] for entry in read['entries']] == ['step-1', 'step-2']
    assert read['entries'][1]['data'] == {'i': 2}
    assert read['message'] is None


@pytest.mark.asyncio
async def test_clear_tool_empties_log(controller: CaptureController, log_file: Path) -> None:
    async with tool_client(controller) as client:
        started = await call_json(client, 'debug_start')
        async with httpx.AsyncClient() as http:
            await http.post(f'{started["url"]}/log', json={'label': 'before-clear'})

        cleared = await call_json(client, 'debug_clear')
        read = await call_json(client, 'debug_read')

    assert cleared == {'message': 'Debug log cleared.'}
    assert read['count'] == 0
    assert log_file.read_text(encoding='utf-8') == ''
