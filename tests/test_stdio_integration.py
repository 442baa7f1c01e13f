"""
test_stdio_integration.py

Integration tests for the dev-skills MCP server over stdio transport.

These tests spawn the actual server process and communicate with it using
the MCP protocol over stdin/stdout, validating the full stack including:
- Server startup and initialization
- Tool discovery and schema validation
- Tool invocation against a temporary skills directory
- Not-found and usage-guidance responses
- Server shutdown and cleanup

The server is pointed at a temporary skills directory through SKILLS_DIR,
so the bundled library does not affect the results.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from conftest import CONTROLLER_MD, STORE_FILES, write_store


class MCPStdioClient:
    """
    Minimal MCP client for stdio integration testing.

    Implements the MCP protocol over stdin/stdout to communicate with
    a spawned server process. Handles JSON-RPC message framing and
    request/response correlation.
    """

    def __init__(
        self,
        command: list[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ):
        """
        Initialize client but don't start the server yet.

        Args:
            command: Command and arguments to spawn the server
            cwd: Working directory for the server process
            env: Environment for the server process
        """
        self.command = command
        self.cwd = cwd
        self.env = env
        self.process: subprocess.Popen | None = None
        self.request_id = 0

    def start(self) -> None:
        """Start the server process."""
        self.process = subprocess.Popen(
            self.command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=self.cwd,
            env=self.env,
            text=True,
            encoding="utf-8",
            bufsize=1,
        )
        # Give server a moment to initialize
        time.sleep(0.5)

    def stop(self) -> None:
        """Stop the server process gracefully."""
        if self.process:
            try:
                self.process.terminate()
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()
            finally:
                self.process = None

    def _next_request_id(self) -> int:
        self.request_id += 1
        return self.request_id

    def _send_request(
        self, method: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        Send a JSON-RPC request and wait for response.

        Raises:
            RuntimeError: If server is not running or communication fails
            ValueError: If server returns an error response or isError flag is set
        """
        if not self.process or not self.process.stdin or not self.process.stdout:
            raise RuntimeError("Server not running")

        request_id = self._next_request_id()
        request: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
        }
        if params:
            request["params"] = params

        self.process.stdin.write(json.dumps(request) + "\n")
        self.process.stdin.flush()

        # Skip server-initiated notifications until our response arrives
        while True:
            response_line = self.process.stdout.readline()
            if not response_line:
                stderr_output = self.process.stderr.read() if self.process.stderr else ""
                raise RuntimeError(f"No response from server. stderr: {stderr_output}")
            response = json.loads(response_line)
            if response.get("id") == request_id:
                break

        if "error" in response:
            error = response["error"]
            raise ValueError(f"Server error: {error.get('message', error)}")

        result = response.get("result", {})

        if isinstance(result, dict) and result.get("isError"):
            error_msg = "Tool execution error"
            if "content" in result and result["content"]:
                content = result["content"][0]
                if content.get("type") == "text":
                    error_msg = content.get("text", error_msg)
            raise ValueError(error_msg)

        return result

    def initialize(self) -> dict[str, Any]:
        """Send MCP initialize request and initialized notification."""
        result = self._send_request(
            "initialize",
            {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {
                    "name": "test-client",
                    "version": "1.0.0",
                },
            },
        )

        if self.process and self.process.stdin:
            notification = {
                "jsonrpc": "2.0",
                "method": "notifications/initialized",
            }
            self.process.stdin.write(json.dumps(notification) + "\n")
            self.process.stdin.flush()
            time.sleep(0.1)

        return result

    def list_tools(self) -> list[dict[str, Any]]:
        result = self._send_request("tools/list")
        return result.get("tools", [])

    def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        result = self._send_request(
            "tools/call",
            {
                "name": name,
                "arguments": arguments or {},
            },
        )
        return result.get("content", [])

    def call_text(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """Call a tool and return the text of its first content item."""
        content = self.call_tool(name, arguments)
        assert content, f"{name} returned no content"
        assert content[0]["type"] == "text"
        return content[0]["text"]


@pytest.fixture
def repo_root() -> Path:
    """Get the repository root directory."""
    return Path(__file__).resolve().parents[1]


@pytest.fixture
def mcp_client(repo_root: Path, tmp_path: Path) -> Iterator[MCPStdioClient]:
    """
    Create and start an MCP stdio client connected to the server.

    Yields the client and ensures cleanup on teardown.
    """
    skills_dir = write_store(tmp_path / "skills", STORE_FILES)
    env = dict(os.environ)
    env["SKILLS_DIR"] = str(skills_dir)
    env["LOG_FILE"] = str(tmp_path / "logs" / "server.log")
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in [str(repo_root), env.get("PYTHONPATH", "")] if p
    )

    client = MCPStdioClient(
        command=[sys.executable, "-m", "dev_skills"],
        cwd=repo_root,
        env=env,
    )

    try:
        client.start()
        yield client
    finally:
        client.stop()


def test_server_starts_and_initializes(mcp_client: MCPStdioClient) -> None:
    result = mcp_client.initialize()

    assert "protocolVersion" in result
    assert "capabilities" in result
    assert "serverInfo" in result
    assert result["serverInfo"]["name"] == "dev-skills"


def test_list_tools_returns_expected_tools(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    tools = mcp_client.list_tools()

    tool_names = {tool["name"] for tool in tools}
    expected_tools = {
        "skill_server_info",
        "list_skills",
        "get_skill",
        "scaffold",
        "check_standards",
    }
    assert expected_tools.issubset(tool_names), (
        f"Missing tools: {expected_tools - tool_names}"
    )


def test_tool_schemas_are_valid(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    tools = {tool["name"]: tool for tool in mcp_client.list_tools()}

    for tool in tools.values():
        assert "description" in tool
        schema = tool["inputSchema"]
        assert schema["type"] == "object"
        assert "properties" in schema

    assert set(tools["scaffold"]["inputSchema"].get("required", [])) == {"category", "name"}
    assert set(tools["check_standards"]["inputSchema"].get("required", [])) == {"skill_id"}
    assert not tools["get_skill"]["inputSchema"].get("required")


def test_skill_server_info(mcp_client: MCPStdioClient, tmp_path: Path) -> None:
    mcp_client.initialize()
    result = mcp_client.call_tool("skill_server_info")

    assert len(result) > 0
    data = json.loads(result[0]["text"])
    assert data["name"] == "dev-skills"
    assert Path(data["skills_dir"]) == (tmp_path / "skills").resolve()
    assert data["transport"] == "stdio"


def test_list_skills(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    text = mcp_client.call_text("list_skills")
    assert "## backend-patterns" in text
    assert 'get_skill("backend-patterns/controller")' in text

    filtered = mcp_client.call_text("list_skills", {"category": "nope"})
    assert filtered.startswith('Category "nope" not found.')


def test_get_skill_by_id_and_search(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    assert mcp_client.call_text("get_skill", {"id": "backend-patterns/controller"}) == (
        CONTROLLER_MD
    )

    results = mcp_client.call_text("get_skill", {"search": "prisma"})
    assert "database-patterns/prisma-schema" in results


def test_get_skill_not_found_and_usage(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    missing = mcp_client.call_text("get_skill", {"id": "backend-patterns"})
    assert "backend-patterns (category)" in missing

    usage = mcp_client.call_text("get_skill")
    assert usage.startswith("Please provide either:")


def test_check_standards(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    text = mcp_client.call_text(
        "check_standards",
        {"skill_id": "backend-patterns/controller", "code": "x = 1"},
    )
    assert "- [ ] Keep one controller per resource" in text
    assert "x = 1" in text


def test_scaffold(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    text = mcp_client.call_text(
        "scaffold",
        {"category": "backend-patterns", "name": "userAuth", "variables": {"port": "3001"}},
    )
    assert "## user-auth.controller.ts" in text
    assert "// user-auth on 3001" in text

    missing = mcp_client.call_text("scaffold", {"category": "database-patterns", "name": "x"})
    assert missing.startswith('No templates found for category "database-patterns".')


def test_invalid_tool_name_raises_error(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    with pytest.raises(ValueError):
        mcp_client.call_tool("nonexistent_tool")


def test_missing_required_parameter_raises_error(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    with pytest.raises(ValueError):
        mcp_client.call_tool("check_standards", {})


def test_sequential_requests(mcp_client: MCPStdioClient) -> None:
    mcp_client.initialize()
    for _ in range(3):
        text = mcp_client.call_text("get_skill", {"id": "database-patterns"})
        assert text.startswith("# Database Patterns")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
