"""MCP models — JSON-RPC 2.0 messages and the tool/prompt/resource entities.

Implements the message shapes exchanged with an MCP server over stdio and
served by the built-in responders.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, StrictInt, model_validator

PROTOCOL_VERSION = "2024-11-05"

METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000

INITIALIZE = "initialize"
INITIALIZED = "notifications/initialized"
TOOLS_LIST = "tools/list"
TOOLS_CALL = "tools/call"
RESOURCES_LIST = "resources/list"
RESOURCES_READ = "resources/read"
PROMPTS_LIST = "prompts/list"
PROMPTS_GET = "prompts/get"

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request; without an ``id`` it is a notification."""

    jsonrpc: str = "2.0"
    method: str
    id: StrictInt | None = None
    params: Any = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response carrying exactly one of ``result`` or ``error``."""

    jsonrpc: str = "2.0"
    id: int | str | None = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _one_of_result_or_error(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            msg = "response must carry exactly one of 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request_id: int | str | None, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: int | str | None, code: int, message: str) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message))

    def to_wire(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        data["id"] = self.id
        return data


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

_TYPE_SYNONYMS = {
    "str": "string",
    "text": "string",
    "char": "string",
    "varchar": "string",
    "integer": "int",
    "long": "int",
    "short": "int",
    "byte": "int",
    "bigint": "int",
    "smallint": "int",
    "double": "float",
    "decimal": "float",
    "number": "float",
    "real": "float",
    "boolean": "bool",
    "bit": "bool",
    "flag": "bool",
}


def normalize_parameter_type(type_name: str) -> str:
    """Map common type-name synonyms to ``string``/``int``/``float``/``bool``.

    Unknown names are returned lowercased so the caller can reject them.
    """
    lowered = type_name.strip().lower()
    return _TYPE_SYNONYMS.get(lowered, lowered)


class ParameterType(str, Enum):
    """Supported proxy tool parameter types."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"

    @property
    def json_schema_type(self) -> str:
        return _JSON_SCHEMA_TYPES[self]


_JSON_SCHEMA_TYPES = {
    ParameterType.STRING: "string",
    ParameterType.INT: "integer",
    ParameterType.FLOAT: "number",
    ParameterType.BOOL: "boolean",
}


class Parameter(BaseModel):
    """A named, typed tool parameter."""

    name: str
    type: ParameterType = ParameterType.STRING


class Tool(BaseModel):
    """A tool exposed by a responder."""

    name: str
    description: str = ""
    parameters: list[Parameter] = Field(default_factory=list)


class Prompt(BaseModel):
    """A prompt template with ``{{argName}}`` placeholders."""

    name: str
    description: str = ""
    template: str = ""


class Resource(BaseModel):
    """A static text resource keyed by URI."""

    uri: str
    description: str = ""
    content: str = ""


def render_value(value: Any) -> str:
    """Render an argument value as text, JSON-style for everything but strings."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, dict, list)) or value is None:
        return json.dumps(value)
    return str(value)
