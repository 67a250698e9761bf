"""Module inferrer: derive a Schema from one decoded JSON value."""
#
# PURPOSE:
# To infer the data model (Schema) from observed JSON payloads.
#
# LOGIC:
# - Dispatch over the closed set of JSON kinds (null, bool, number, string, array, object).
# - Numbers are integers iff the value equals its int64 truncation.
# - Arrays are treated as homogeneous: only the first item is inspected.
# - Values nested deeper than MAX_DEPTH become {type: string, format: any}.
# - Call sites disagree on empty arrays, null handling and "required" marking,
#   so each one states its choice through an InferencePolicy.
#

from __future__ import annotations

import json
import math
from datetime import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from shadowspec.inference.formats import (
    FORMAT_ANY,
    FORMAT_DATE,
    FORMAT_DATE_TIME,
    FormatDetector,
    get_detector,
    parse_rfc3339,
)
from shadowspec.inference.types import Schema, SchemaType

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# Refinement keeps examples only for short strings.
MAX_EXAMPLE_LENGTH = 50

# Nesting below this many levels is rendered opaque.
MAX_DEPTH = 32


class JSONKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    OTHER = "other"


def json_kind(value: Any) -> JSONKind:
    """Classify a decoded value into one of the JSON variants."""
    if value is None:
        return JSONKind.NULL
    # bool is a subclass of int, so it must be tested first
    if isinstance(value, bool):
        return JSONKind.BOOL
    if isinstance(value, (int, float)):
        return JSONKind.NUMBER
    if isinstance(value, str):
        return JSONKind.STRING
    if isinstance(value, (list, tuple)):
        return JSONKind.ARRAY
    if isinstance(value, dict):
        return JSONKind.OBJECT
    return JSONKind.OTHER


def is_integral(value: Any) -> bool:
    """True when a numeric value equals its truncation to a 64-bit integer."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return INT64_MIN <= value <= INT64_MAX
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return False
        return INT64_MIN <= value < 2.0 ** 63
    return False


def opaque_schema() -> Schema:
    """The explicit "cannot resolve" marker."""
    return Schema(type=SchemaType.STRING, format=FORMAT_ANY)


def _stringify(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def structural_string_format(value: str) -> str:
    """Cheap parse-based format used when no pattern detector is attached."""
    if parse_rfc3339(value) is not None:
        return FORMAT_DATE_TIME
    for layout, fmt in (
        ("%Y-%m-%dT%H:%M:%S", FORMAT_DATE_TIME),
        ("%Y-%m-%d", FORMAT_DATE),
        ("%Y/%m/%d", FORMAT_DATE),
    ):
        if _matches_layout(value, layout):
            return fmt
    return ""


def _matches_layout(value: str, layout: str) -> bool:
    try:
        datetime.strptime(value, layout)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class InferencePolicy:
    """
    How a call site wants ambiguous shapes rendered.

    Attributes:
        detect_formats: run the pattern-based FormatDetector on strings
        placeholder_items: give empty arrays a {type: string} items schema
            instead of leaving items unset ("no evidence")
        mark_required: mark every non-null key of an object as required
        nullable_nulls: render null as {type: null, nullable: true}
        short_examples: keep string examples only below MAX_EXAMPLE_LENGTH
    """
    detect_formats: bool = False
    placeholder_items: bool = True
    mark_required: bool = False
    nullable_nulls: bool = True
    short_examples: bool = False


# Per-transaction body schemas: a single observation, so every present key is required.
BODY_POLICY = InferencePolicy(
    detect_formats=False,
    placeholder_items=True,
    mark_required=True,
    nullable_nulls=True,
)

# Refinement over collected samples: empty arrays stay "no evidence".
SAMPLE_POLICY = InferencePolicy(
    detect_formats=True,
    placeholder_items=False,
    mark_required=False,
    nullable_nulls=False,
    short_examples=True,
)


class ValueInferrer:
    """
    Reconstructs the shape of data from a single artifact.
    Pure and stateless apart from its (read-only) policy and detector.
    """

    def __init__(self, policy: InferencePolicy = BODY_POLICY, detector: Optional[FormatDetector] = None):
        self.policy = policy
        self.detector = detector or (get_detector() if policy.detect_formats else None)

    def infer(self, value: Any, depth: int = 0) -> Schema:
        if depth >= MAX_DEPTH:
            return opaque_schema()
        kind = json_kind(value)

        if kind is JSONKind.NULL:
            return Schema(type=SchemaType.NULL, nullable=self.policy.nullable_nulls)

        if kind is JSONKind.BOOL:
            return Schema(type=SchemaType.BOOLEAN, example=value)

        if kind is JSONKind.NUMBER:
            if is_integral(value):
                return Schema(type=SchemaType.INTEGER, format="int64", example=int(value))
            return Schema(type=SchemaType.NUMBER, format="double", example=float(value))

        if kind is JSONKind.STRING:
            return self._infer_string(value)

        if kind is JSONKind.ARRAY:
            items: Optional[Schema] = None
            if value:
                items = self.infer(value[0], depth + 1)
            elif self.policy.placeholder_items:
                items = Schema(type=SchemaType.STRING)
            return Schema(type=SchemaType.ARRAY, items=items)

        if kind is JSONKind.OBJECT:
            properties = {}
            required = []
            for key, item in value.items():
                properties[key] = self.infer(item, depth + 1)
                if self.policy.mark_required and item is not None:
                    required.append(key)
            return Schema(type=SchemaType.OBJECT, properties=properties, required=required)

        # Anything json never produces: render it and keep it as an opaque string.
        text = _stringify(value)
        return Schema(type=SchemaType.STRING, format=self._string_format(text), example=text)

    def _infer_string(self, value: str) -> Schema:
        schema = Schema(type=SchemaType.STRING, format=self._string_format(value))
        if not self.policy.short_examples or len(value) < MAX_EXAMPLE_LENGTH:
            schema.example = value
        return schema

    def _string_format(self, value: str) -> str:
        if self.detector is not None:
            return self.detector.detect(value)
        return structural_string_format(value)


_body_inferrer = ValueInferrer(BODY_POLICY)


def infer(value: Any) -> Schema:
    """Derive the schema of one decoded JSON value using the body policy."""
    return _body_inferrer.infer(value)
