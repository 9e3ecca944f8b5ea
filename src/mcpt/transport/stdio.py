"""StdioTransport — talks JSON-RPC to an MCP server spawned as a subprocess.

Every :meth:`StdioTransport.execute` call owns a fresh child process:

1. spawn the command with piped stdin/stdout, buffering stderr in memory;
2. ``initialize`` request/response, then the ``notifications/initialized``
   notification;
3. write the caller's request and read exactly one response line;
4. close stdin, give the child ``timeout`` seconds to exit, then kill it.

Only the request id counter survives between calls.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any

from pydantic import ValidationError

from mcpt import __version__
from mcpt.errors import (
    InitializationError,
    MalformedResponseError,
    MCPError,
    NoResponseError,
    ProcessExitError,
    RPCError,
    TransportError,
    TransportSetupError,
)
from mcpt.protocol.models import (
    INITIALIZE,
    INITIALIZED,
    PROTOCOL_VERSION,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
)
from mcpt.utils.telemetry import ATTR_EXIT_CODE, ATTR_METHOD, ATTR_REQUEST_ID, ATTR_TRANSPORT, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

# Large tools/list payloads arrive as a single line.
_STREAM_LIMIT = 64 * 1024 * 1024


class _ChildProcess:
    """A spawned server plus the task draining its stderr."""

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self.process = process
        self._stderr = bytearray()
        self._stderr_task = asyncio.create_task(self._drain_stderr())

    async def _drain_stderr(self) -> None:
        if self.process.stderr is None:
            return
        while chunk := await self.process.stderr.read(4096):
            self._stderr.extend(chunk)

    @property
    def stderr_text(self) -> str:
        return self._stderr.decode(errors="replace").strip()

    async def write_line(self, data: bytes) -> None:
        if self.process.stdin is None:
            msg = "stdin pipe is not available"
            raise TransportError(msg)
        try:
            self.process.stdin.write(data)
            await self.process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise TransportError(f"error writing to stdin: {exc}") from exc

    async def read_line(self) -> bytes:
        if self.process.stdout is None:
            msg = "stdout pipe is not available"
            raise TransportError(msg)
        try:
            return await self.process.stdout.readline()
        except ValueError as exc:
            raise TransportError(f"error reading from stdout: {exc}") from exc

    async def finish_stderr(self, timeout: float) -> None:
        if self._stderr_task.done():
            return
        try:
            await asyncio.wait_for(self._stderr_task, timeout=timeout)
        except TimeoutError:
            self._stderr_task.cancel()


class StdioTransport:
    """Executes MCP calls against a command spoken to over stdin/stdout.

    Satisfies the :class:`~mcpt.transport.base.Transport` protocol.

    Usage::

        transport = StdioTransport(["npx", "-y", "@modelcontextprotocol/server-everything"])
        tools = await transport.execute("tools/list")
    """

    def __init__(
        self,
        command: list[str] | tuple[str, ...],
        *,
        debug: bool = False,
        timeout: float = 1.0,
    ) -> None:
        self._command = tuple(command)
        self._debug = debug
        self._timeout = timeout
        self._next_id = 1

    @property
    def command(self) -> tuple[str, ...]:
        return self._command

    async def execute(self, method: str, params: Any = None) -> dict[str, Any]:
        """Spawn the server, handshake, send *method*, and return its result."""
        with _tracer.start_as_current_span("mcpt.transport.execute") as span:
            span.set_attribute(ATTR_TRANSPORT, "stdio")
            span.set_attribute(ATTR_METHOD, method)

            child = await self._spawn()
            try:
                self._trace("Starting initialization")
                await self._initialize(child)
                self._trace("Initialization successful, sending method request")

                request = JsonRpcRequest(method=method, id=self._take_id(), params=params)
                span.set_attribute(ATTR_REQUEST_ID, request.id or 0)
                await self._send(child, request)
                response = self._decode(await child.read_line())
            except BaseException:
                await self._close(child)
                raise

            returncode = await self._close(child)
            if returncode is not None:
                span.set_attribute(ATTR_EXIT_CODE, returncode)
            if returncode and child.stderr_text:
                raise ProcessExitError(returncode, child.stderr_text)

            return response.result or {}

    def _take_id(self) -> int:
        request_id = self._next_id
        self._next_id += 1
        return request_id

    def _trace(self, msg: str, *args: object) -> None:
        if self._debug:
            logger.debug(msg, *args)

    async def _spawn(self) -> _ChildProcess:
        if not self._command:
            msg = "no command specified for stdio transport"
            raise TransportSetupError(msg)

        self._trace("Executing command: %s", self._command)
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_STREAM_LIMIT,
            )
        except OSError as exc:
            raise TransportSetupError(f"error starting command: {exc}") from exc
        return _ChildProcess(process)

    async def _initialize(self, child: _ChildProcess) -> None:
        """Run the initialize request/response and send the initialized notification."""
        request = JsonRpcRequest(
            method=INITIALIZE,
            id=self._take_id(),
            params={
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": "mcpt", "version": __version__},
            },
        )
        try:
            await self._send(child, request)
            self._decode(await child.read_line())
            await self._send(child, JsonRpcRequest(method=INITIALIZED))
        except MCPError as exc:
            await self._close(child)
            self._trace("Initialization failed: %s", exc)
            raise InitializationError(str(exc), child.stderr_text) from exc

    async def _send(self, child: _ChildProcess, request: JsonRpcRequest) -> None:
        payload = (json.dumps(request.to_wire()) + "\n").encode()
        self._trace("Sending request: %s", payload.decode().rstrip())
        await child.write_line(payload)
        self._trace("Wrote %d bytes", len(payload))

    def _decode(self, line: bytes) -> JsonRpcResponse:
        """Parse one response line, surfacing a remote error as :class:`RPCError`."""
        self._trace("Read from stdout: %s", line.decode(errors="replace").rstrip())
        if not line.strip():
            raise NoResponseError()

        try:
            data = json.loads(line)
        except ValueError as exc:
            raise MalformedResponseError(line, str(exc)) from exc

        if isinstance(data, dict) and data.get("error") is not None:
            try:
                error = JsonRpcError.model_validate(data["error"])
            except ValidationError as exc:
                raise MalformedResponseError(line, "invalid error object") from exc
            raise RPCError(error.code, error.message)

        try:
            return JsonRpcResponse.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponseError(line, "not a JSON-RPC response") from exc

    async def _close(self, child: _ChildProcess) -> int | None:
        """Close stdin and reap the child, killing it after the grace period.

        Returns the exit status, or ``None`` when the child had to be killed.
        Safe to call more than once.
        """
        process = child.process
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()

        returncode: int | None
        try:
            returncode = await asyncio.wait_for(process.wait(), timeout=self._timeout)
        except TimeoutError:
            self._trace("Command timed out after %s seconds, killing it", self._timeout)
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            returncode = None

        await child.finish_stderr(self._timeout)
        self._trace("Command completed with status %s", returncode)
        if child.stderr_text:
            self._trace("stderr output:\n%s", child.stderr_text)
        return returncode
