"""JSON-RPC envelopes and MCP entity models."""

from mcpt.protocol.models import (
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    SERVER_ERROR,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    Parameter,
    ParameterType,
    Prompt,
    Resource,
    Tool,
    normalize_parameter_type,
    render_value,
)

__all__ = [
    "METHOD_NOT_FOUND",
    "PROTOCOL_VERSION",
    "SERVER_ERROR",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "Parameter",
    "ParameterType",
    "Prompt",
    "Resource",
    "Tool",
    "normalize_parameter_type",
    "render_value",
]
