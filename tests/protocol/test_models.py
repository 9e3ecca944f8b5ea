"""Tests for JSON-RPC envelopes and entity models."""

import json

import pytest
from pydantic import ValidationError

from mcpt.protocol.models import (
    METHOD_NOT_FOUND,
    JsonRpcRequest,
    JsonRpcResponse,
    Parameter,
    ParameterType,
    normalize_parameter_type,
    render_value,
)


class TestJsonRpcRequest:
    def test_round_trip_preserves_fields(self) -> None:
        request = JsonRpcRequest(method="tools/call", id=7, params={"name": "add", "arguments": {"a": 1}})
        decoded = JsonRpcRequest.model_validate(json.loads(json.dumps(request.to_wire())))
        assert decoded.method == "tools/call"
        assert decoded.id == 7
        assert decoded.params == {"name": "add", "arguments": {"a": 1}}

    def test_notification_omits_id_and_params(self) -> None:
        notification = JsonRpcRequest(method="notifications/initialized")
        assert notification.is_notification
        assert notification.to_wire() == {"jsonrpc": "2.0", "method": "notifications/initialized"}

    def test_id_zero_is_not_a_notification(self) -> None:
        assert not JsonRpcRequest(method="tools/list", id=0).is_notification


class TestJsonRpcResponse:
    def test_success(self) -> None:
        response = JsonRpcResponse.success(1, {"tools": []})
        assert response.to_wire() == {"jsonrpc": "2.0", "id": 1, "result": {"tools": []}}

    def test_failure(self) -> None:
        response = JsonRpcResponse.failure(2, METHOD_NOT_FOUND, "method not found")
        assert response.to_wire() == {
            "jsonrpc": "2.0",
            "id": 2,
            "error": {"code": -32601, "message": "method not found"},
        }

    def test_rejects_both_result_and_error(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse.model_validate(
                {"jsonrpc": "2.0", "id": 1, "result": {}, "error": {"code": 1, "message": "x"}}
            )

    def test_rejects_neither_result_nor_error(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse.model_validate({"jsonrpc": "2.0", "id": 1})

    def test_empty_result_is_valid(self) -> None:
        response = JsonRpcResponse.model_validate({"jsonrpc": "2.0", "id": 1, "result": {}})
        assert response.result == {}


class TestParameterTypes:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("str", "string"),
            ("TEXT", "string"),
            ("integer", "int"),
            ("long", "int"),
            ("double", "float"),
            ("number", "float"),
            ("boolean", "bool"),
            ("flag", "bool"),
            ("int", "int"),
            ("uuid", "uuid"),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_parameter_type(raw) == expected

    def test_json_schema_types(self) -> None:
        assert ParameterType.STRING.json_schema_type == "string"
        assert ParameterType.INT.json_schema_type == "integer"
        assert ParameterType.FLOAT.json_schema_type == "number"
        assert ParameterType.BOOL.json_schema_type == "boolean"

    def test_parameter_defaults_to_string(self) -> None:
        assert Parameter(name="x").type is ParameterType.STRING


class TestRenderValue:
    def test_scalars(self) -> None:
        assert render_value("hi") == "hi"
        assert render_value(3) == "3"
        assert render_value(2.5) == "2.5"
        assert render_value(True) == "true"
        assert render_value(None) == "null"

    def test_containers_render_as_json(self) -> None:
        assert render_value({"a": [1, 2]}) == '{"a": [1, 2]}'
