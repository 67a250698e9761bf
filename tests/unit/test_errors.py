"""
tests/unit/test_errors.py
Verify the structured error taxonomy.
"""
import json

from shadowspec.errors import ErrorCode, ShadowSpecError, handle_error


def test_message_carries_code():
    err = ShadowSpecError(ErrorCode.BODY_NOT_JSON, "bad body", details={"path": "/users"})
    assert str(err) == "[BODY_002] bad body"
    assert err.to_dict() == {"code": "BODY_002", "message": "bad body", "details": {"path": "/users"}}


def test_json_round_trip():
    err = ShadowSpecError(ErrorCode.STORAGE_PARSE_ERROR, "corrupt")
    restored = ShadowSpecError.from_dict(json.loads(err.to_json()))
    assert restored.code == ErrorCode.STORAGE_PARSE_ERROR
    assert restored.details == {}


def test_handle_error_mapping():
    try:
        json.loads("{")
    except json.JSONDecodeError as e:
        assert handle_error(e).code == ErrorCode.BODY_NOT_JSON

    assert handle_error(PermissionError("denied")).code == ErrorCode.STORAGE_WRITE_FAILED
    assert handle_error(FileNotFoundError("gone")).code == ErrorCode.STORAGE_READ_FAILED
    assert handle_error(KeyError("x")).code == ErrorCode.SYSTEM_INTERNAL_ERROR


def test_handle_error_context_and_passthrough():
    err = handle_error(RuntimeError("boom"), "while finalizing")
    assert err.message == "while finalizing: boom"
    assert err.details["original_type"] == "RuntimeError"

    original = ShadowSpecError(ErrorCode.CONFIG_INVALID, "x")
    assert handle_error(original) is original
