"""Module merger: fold independently inferred schemas into one."""
#
# PURPOSE:
# Several transactions hit the same endpoint; each yields its own schema.
# The merger collects them per (path, method) and folds them left to right
# into one schema that does not contradict any observation.
#
# LOGIC:
# - Type conflict between two known types escalates to "object" (opaque container).
# - Objects: property union, shared keys merged recursively.
# - Arrays: item schemas merged; a missing side adopts the other (first side wins on None).
# - example / format: first non-empty wins.  enum: deduplicated union.  nullable: OR.
# - required: union (legacy) or intersection, chosen by RequiredPolicy.
#
# Not thread-safe: serialize add_schema/merge_schemas calls externally.
#

from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from shadowspec.inference.types import (
    MediaType,
    RequestBody,
    Response,
    Schema,
    SchemaType,
)

logger = logging.getLogger(__name__)

RESPONSE_SUFFIX = ":response"


class RequiredPolicy(str, Enum):
    UNION = "union"  # Any side's required names stay required
    INTERSECTION = "intersection"  # Required only if required on both sides


def _same_value(a: Any, b: Any) -> bool:
    # True == 1 in Python; enum members of different JSON kinds must stay distinct.
    return type(a) is type(b) and a == b


def merge_enums(a: Sequence[Any], b: Sequence[Any]) -> List[Any]:
    """Deduplicated union, keeping first-seen order."""
    result: List[Any] = []
    for value in list(a) + list(b):
        if not any(_same_value(value, seen) for seen in result):
            result.append(value)
    return result


def merge_required(a: Sequence[str], b: Sequence[str], policy: RequiredPolicy = RequiredPolicy.UNION) -> List[str]:
    if policy == RequiredPolicy.INTERSECTION:
        other = set(b)
        return [name for name in dict.fromkeys(a) if name in other]
    return list(dict.fromkeys(list(a) + list(b)))


def merge_properties(
    a: Optional[Dict[str, Schema]],
    b: Optional[Dict[str, Schema]],
    policy: RequiredPolicy = RequiredPolicy.UNION,
) -> Dict[str, Schema]:
    result = {name: copy.deepcopy(schema) for name, schema in (a or {}).items()}
    for name, schema in (b or {}).items():
        if name in result:
            result[name] = merge_schema(result[name], schema, policy)
        else:
            result[name] = copy.deepcopy(schema)
    return result


def merge_schema(a: Schema, b: Schema, policy: RequiredPolicy = RequiredPolicy.UNION) -> Schema:
    """
    Merge two schemas of the same logical value. Inputs are not modified.
    """
    result = copy.deepcopy(a)

    if a.type != b.type and a.type != SchemaType.UNKNOWN and b.type != SchemaType.UNKNOWN:
        result.type = SchemaType.OBJECT
    elif a.type == SchemaType.UNKNOWN:
        # A placeholder carries no evidence; adopt the other side's type.
        result.type = b.type

    if result.type == SchemaType.OBJECT:
        result.properties = merge_properties(a.properties, b.properties, policy)
        if a.type == SchemaType.UNKNOWN:
            result.required = list(b.required)
        elif b.type == SchemaType.UNKNOWN:
            result.required = list(a.required)
        else:
            result.required = merge_required(a.required, b.required, policy)
        result.items = None
    elif result.type == SchemaType.ARRAY:
        if a.items is not None and b.items is not None:
            result.items = merge_schema(a.items, b.items, policy)
        elif a.items is None and b.items is not None:
            result.items = copy.deepcopy(b.items)

    if result.example is None and b.example is not None:
        result.example = copy.deepcopy(b.example)
    result.enum = merge_enums(a.enum, b.enum)
    if not result.format and b.format:
        result.format = b.format
    result.nullable = a.nullable or b.nullable

    return result


def schemas_equal(a: Schema, b: Schema) -> bool:
    """
    Structural equality of type, format, nullability, properties, items and
    enum. Enum order matters; normalize first when it should not.
    """
    if a.type != b.type or a.format != b.format or a.nullable != b.nullable:
        return False

    if a.type == SchemaType.OBJECT:
        a_props, b_props = a.properties or {}, b.properties or {}
        if a_props.keys() != b_props.keys():
            return False
        if not all(schemas_equal(a_props[name], b_props[name]) for name in a_props):
            return False

    if a.type == SchemaType.ARRAY:
        if (a.items is None) != (b.items is None):
            return False
        if a.items is not None and not schemas_equal(a.items, b.items):
            return False

    return list(a.enum) == list(b.enum)


class SchemaMerger:
    """
    Buckets per-transaction schemas by endpoint and folds them on demand.
    """

    def __init__(self, required_policy: RequiredPolicy = RequiredPolicy.UNION):
        self.required_policy = RequiredPolicy(required_policy)
        self._schemas: Dict[str, List[Schema]] = {}

    @staticmethod
    def _key(path: str, method: str) -> str:
        return f"{path}:{method}"

    def add_schema(self, path: str, method: str, schema: Schema) -> None:
        self._schemas.setdefault(self._key(path, method), []).append(schema)

    def add_response_schema(self, path: str, method: str, schema: Schema) -> None:
        self.add_schema(path + RESPONSE_SUFFIX, method, schema)

    def schemas(self, path: str, method: str) -> List[Schema]:
        return list(self._schemas.get(self._key(path, method), ()))

    def merge_schemas(self, path: str, method: str) -> Schema:
        """
        Fold every schema added for (path, method) in insertion order.

        Zero schemas yield an empty placeholder; a single schema is returned as is.
        """
        schemas = self._schemas.get(self._key(path, method))
        if not schemas:
            return Schema()
        if len(schemas) == 1:
            return schemas[0]

        result = schemas[0]
        for schema in schemas[1:]:
            result = merge_schema(result, schema, self.required_policy)
        logger.debug(f"[Merger] {method} {path}: folded {len(schemas)} schemas")
        return result

    def merge_response_schemas(self, path: str, method: str) -> Schema:
        return self.merge_schemas(path + RESPONSE_SUFFIX, method)

    def clear(self) -> None:
        self._schemas.clear()

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "buckets": len(self._schemas),
            "schemas": sum(len(v) for v in self._schemas.values()),
        }


def _merge_content(
    target: Dict[str, MediaType],
    content: Dict[str, MediaType],
    policy: RequiredPolicy,
) -> None:
    for content_type, media in content.items():
        existing = target.get(content_type)
        merged = copy.deepcopy(media)
        if existing is not None:
            merged.schema = merge_schema(existing.schema, media.schema, policy)
            if existing.example is not None:
                merged.example = existing.example
        target[content_type] = merged


def merge_request_bodies(
    bodies: Sequence[RequestBody],
    policy: RequiredPolicy = RequiredPolicy.UNION,
) -> Optional[RequestBody]:
    """
    Union the content maps of several observed request bodies, merging the
    schemas of shared content types. Required if any input is required.
    """
    if not bodies:
        return None
    if len(bodies) == 1:
        return bodies[0]

    result = RequestBody(
        description=bodies[0].description,
        required=any(body.required for body in bodies),
    )
    for body in bodies:
        _merge_content(result.content, body.content, policy)
    return result


def merge_responses(
    responses: Sequence[Response],
    policy: RequiredPolicy = RequiredPolicy.UNION,
) -> Response:
    """
    Union the content and header maps of several observed responses.
    """
    if not responses:
        return Response()
    if len(responses) == 1:
        return responses[0]

    result = Response(description=responses[0].description)
    for response in responses:
        _merge_content(result.content, response.content, policy)
        for name, header in response.headers.items():
            existing = result.headers.get(name)
            merged = copy.deepcopy(header)
            if existing is not None:
                merged.schema = merge_schema(existing.schema, header.schema, policy)
                if existing.example is not None:
                    merged.example = existing.example
            result.headers[name] = merged
    return result


__all__ = [
    "RESPONSE_SUFFIX",
    "RequiredPolicy",
    "SchemaMerger",
    "merge_schema",
    "merge_properties",
    "merge_required",
    "merge_enums",
    "merge_request_bodies",
    "merge_responses",
    "schemas_equal",
]
