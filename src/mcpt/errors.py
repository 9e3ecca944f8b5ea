"""Shared error types for the transport and server layers."""

from __future__ import annotations

from mcpt.protocol.models import METHOD_NOT_FOUND, SERVER_ERROR


class MCPError(Exception):
    """Base error for all mcpt failures."""


# ---------------------------------------------------------------------------
# Client side
# ---------------------------------------------------------------------------


class TransportError(MCPError):
    """A transport failed to complete a call."""


class TransportSetupError(TransportError):
    """The transport could not be prepared (no command, spawn or pipe failure)."""


class InitializationError(TransportError):
    """The initialize handshake failed."""

    def __init__(self, detail: str, stderr: str = "") -> None:
        self.detail = detail
        self.stderr = stderr
        msg = f"Initialization failed: {detail}"
        if stderr:
            msg += f"\nstderr: {stderr}"
        super().__init__(msg)


class NoResponseError(TransportError):
    """The server closed its output or sent an empty line."""

    def __init__(self) -> None:
        super().__init__("No response from server")


class MalformedResponseError(TransportError):
    """The server sent a line that is not a valid JSON-RPC response."""

    def __init__(self, raw: bytes | str, detail: str = "") -> None:
        self.raw = raw.decode(errors="replace") if isinstance(raw, bytes) else raw
        self.detail = detail
        msg = "Malformed response"
        if detail:
            msg += f": {detail}"
        super().__init__(f"{msg}, response: {self.raw.strip()}")


class RPCError(TransportError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code}: {message}")


class HTTPStatusError(TransportError):
    """An HTTP endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class UnsupportedMethodError(TransportError):
    """The transport has no mapping for the requested method."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Unsupported method: {method}")


class ProcessExitError(TransportError):
    """The server process exited with a failure and wrote to stderr."""

    def __init__(self, returncode: int, stderr: str) -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command exited with status {returncode}, stderr: {stderr}")


# ---------------------------------------------------------------------------
# Server side
# ---------------------------------------------------------------------------


class DecodeError(MCPError):
    """The responder's input stream does not contain valid JSON."""


class HandlerError(MCPError):
    """A request handler failed; ``code`` is sent back in the error response."""

    code: int = SERVER_ERROR


class MethodNotFoundError(HandlerError):
    """No handler is registered for the requested method."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str = "") -> None:
        self.method = method
        super().__init__("method not found")


class InvalidParamsError(HandlerError):
    """A required parameter is missing or has the wrong type."""


class NotFoundError(HandlerError):
    """The named tool, prompt, or resource is not registered."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class UpstreamError(HandlerError):
    """A guarded upstream server failed or answered with an error; its code is passed on."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        super().__init__(message)


class ToolExecutionError(HandlerError):
    """A proxied script or command failed."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Tool execution failed: {name}" + (f": {detail}" if detail else ""))


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class ToolRegistrationError(MCPError):
    """A proxy tool definition is invalid."""


class ManifestError(MCPError):
    """A proxy manifest could not be read or validated."""
