"""
ShadowSpec: reconstruct an OpenAPI description from observed HTTP traffic.

    from shadowspec import Transaction, create_shadow_spec, build_document

    spec = create_shadow_spec()
    spec.observe(Transaction.from_json_bodies("GET", "/users", response_body=[{"id": 1}]))
    document = build_document(spec.finalize(), title="Users API")
"""

from shadowspec.capture.models import Transaction
from shadowspec.config import InferenceConfig, ShadowSpecConfig, get_config, set_config, setup_logging
from shadowspec.errors import ErrorCode, ShadowSpecError
from shadowspec.inference.types import Schema, SchemaType
from shadowspec.openapi import build_document, to_openapi_schema
from shadowspec.shadow_spec import EndpointSchema, ShadowSpec, create_shadow_spec

__version__ = "0.1.0"

__all__ = [
    "EndpointSchema",
    "ErrorCode",
    "InferenceConfig",
    "Schema",
    "SchemaType",
    "ShadowSpec",
    "ShadowSpecConfig",
    "ShadowSpecError",
    "Transaction",
    "build_document",
    "create_shadow_spec",
    "get_config",
    "set_config",
    "setup_logging",
    "to_openapi_schema",
]
