"""
tests/unit/inference/test_inferrer.py
Verify single-value schema inference under both call-site policies.
"""
import pytest

from shadowspec.inference.inferrer import (
    BODY_POLICY,
    MAX_DEPTH,
    SAMPLE_POLICY,
    JSONKind,
    ValueInferrer,
    infer,
    is_integral,
    json_kind,
    structural_string_format,
)
from shadowspec.inference.types import Schema, SchemaType


def test_json_kind_dispatch():
    assert json_kind(None) is JSONKind.NULL
    assert json_kind(True) is JSONKind.BOOL
    assert json_kind(1) is JSONKind.NUMBER
    assert json_kind(1.5) is JSONKind.NUMBER
    assert json_kind("x") is JSONKind.STRING
    assert json_kind([1]) is JSONKind.ARRAY
    assert json_kind({"a": 1}) is JSONKind.OBJECT
    assert json_kind(object()) is JSONKind.OTHER


@pytest.mark.parametrize("value,expected", [
    (42, True),
    (42.0, True),
    (42.5, False),
    (-7, True),
    (2 ** 63, False),
    (float("inf"), False),
    (True, False),
])
def test_integral_boundary(value, expected):
    assert is_integral(value) is expected


def test_integer_and_number_classification():
    schema = infer(42.0)
    assert schema.type == SchemaType.INTEGER
    assert schema.format == "int64"
    assert schema.example == 42

    schema = infer(42.5)
    assert schema.type == SchemaType.NUMBER
    assert schema.format == "double"
    assert schema.example == 42.5


def test_boolean_is_not_a_number():
    schema = infer(False)
    assert schema.type == SchemaType.BOOLEAN
    assert schema.example is False


def test_null_under_body_policy():
    schema = infer(None)
    assert schema.type == SchemaType.NULL
    assert schema.nullable is True


def test_model_inference_simple():
    schema = infer({"id": 123, "name": "Alice", "is_admin": False})

    assert schema.type == SchemaType.OBJECT
    assert schema.properties["id"].type == SchemaType.INTEGER
    assert schema.properties["name"].type == SchemaType.STRING
    assert schema.properties["is_admin"].type == SchemaType.BOOLEAN
    assert set(schema.required) == {"id", "name", "is_admin"}


def test_null_keys_are_not_required():
    schema = infer({"id": 1, "deleted_at": None})
    assert schema.required == ["id"]
    assert schema.properties["deleted_at"].nullable is True


def test_model_inference_nested():
    payload = {
        "user": {
            "id": 1,
            "roles": ["admin", "editor"],
            "settings": {"theme": "dark"},
        }
    }
    schema = infer(payload)

    user = schema.properties["user"]
    assert user.type == SchemaType.OBJECT

    roles = user.properties["roles"]
    assert roles.type == SchemaType.ARRAY
    assert roles.items.type == SchemaType.STRING
    assert roles.items.example == "admin"

    assert user.properties["settings"].properties["theme"].type == SchemaType.STRING


def test_array_uses_first_item_only():
    schema = infer([1, "two", None])
    assert schema.items.type == SchemaType.INTEGER


def test_empty_array_policies():
    assert infer([]).items == Schema(type=SchemaType.STRING)
    assert ValueInferrer(SAMPLE_POLICY).infer([]).items is None


def test_body_policy_uses_structural_dates_only():
    assert infer("2024-01-15T10:30:00Z").format == "date-time"
    assert infer("2024-01-15T10:30:00").format == "date-time"
    assert infer("2024/01/15").format == "date"
    # No pattern detector on the body path.
    assert infer("bob@example.com").format == ""


def test_sample_policy_detects_patterns():
    inferrer = ValueInferrer(SAMPLE_POLICY)
    assert inferrer.infer("bob@example.com").format == "email"
    assert inferrer.infer(None).nullable is False
    assert inferrer.infer({"a": 1}).required == []


def test_sample_policy_drops_long_examples():
    inferrer = ValueInferrer(SAMPLE_POLICY)
    assert inferrer.infer("x" * 49).example == "x" * 49
    assert inferrer.infer("x" * 50).example is None
    assert ValueInferrer(BODY_POLICY).infer("x" * 50).example == "x" * 50


def test_structural_string_format():
    assert structural_string_format("2024-01-15") == "date"
    assert structural_string_format("hello") == ""


def test_unknown_values_become_strings():
    schema = infer(object())
    assert schema.type == SchemaType.STRING
    assert isinstance(schema.example, str)


def test_nesting_is_capped():
    value = [0]
    for _ in range(MAX_DEPTH + 10):
        value = [value]
    schema = infer(value)
    for _ in range(MAX_DEPTH):
        assert schema.type == SchemaType.ARRAY
        schema = schema.items
    assert schema.type == SchemaType.STRING
    assert schema.format == "any"
