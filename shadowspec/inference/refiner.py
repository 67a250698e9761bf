"""
Schema Refiner - Multi-Sample Type Inference

PURPOSE:
Improve a field's schema beyond what a single observation can show, using
every sample the collector holds for that field.

LOGIC:
1. Homogeneous samples (all infer to the same type) keep the first
   sample's schema and enhance it:
   - strings: enum detection for small repeated vocabularies, else format
   - numbers: integer vs float and int32 vs int64 from the observed range
   - arrays: item schema from the flattened items of every sample
   - objects: per-property schemas from sub-path samples
2. Mixed samples pick a dominant kind when it holds more than 70% of the
   samples, otherwise the field is marked opaque as {type: string, format: any}.
   The opaque marker is deliberate and must survive later folding.
   Fields nested MAX_DEPTH levels below the body root get the same marker.

ASSUMPTIONS:
1. Samples come from a SampleCollector; nulls are tallied there, not stored.
2. Sub-path samples ("path.prop", "path[]") are derived on demand and each
   parent sample is expanded once.
"""

from __future__ import annotations

import copy
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from shadowspec.inference.formats import FormatDetector, get_detector
from shadowspec.inference.inferrer import (
    MAX_DEPTH,
    SAMPLE_POLICY,
    JSONKind,
    ValueInferrer,
    is_integral,
    json_kind,
    opaque_schema,
)
from shadowspec.inference.samples import (
    DEFAULT_MAX_SAMPLES,
    SampleCollector,
    items_path,
    property_path,
)
from shadowspec.inference.types import Schema, SchemaType

logger = logging.getLogger(__name__)

# Enum detection thresholds
ENUM_MIN_SAMPLES = 2
ENUM_MAX_SAMPLES = 10
ENUM_MAX_DISTINCT = 5
ENUM_MAX_LENGTH = 30

# Number range classification needs at least this many samples.
NUMBER_MIN_SAMPLES = 3
INT32_RANGE = (0, 255)

DOMINANT_SHARE = 0.7

ROOT_PATH = "root"


class SchemaRefiner:
    """
    Derives refined schemas for collected field paths.
    """

    def __init__(self, collector: SampleCollector, detector: Optional[FormatDetector] = None):
        self.collector = collector
        self.detector = detector or get_detector()
        self.inferrer = ValueInferrer(SAMPLE_POLICY, self.detector)

    def infer_schema(self, path: str, depth: int = 0) -> Optional[Schema]:
        """
        Refined schema for `path`, or None when nothing was collected there.
        `depth` is the nesting level of `path` below the body root.
        """
        samples = self.collector.samples(path)
        if not samples:
            return None
        if depth >= MAX_DEPTH:
            return opaque_schema()

        first = self.inferrer.infer(samples[0])
        homogeneous = all(self.inferrer.infer(s).type == first.type for s in samples[1:])

        if homogeneous:
            schema = self._enhance(path, first, samples, depth)
        else:
            schema = self._resolve_mixed(path, samples, depth)

        # Some observations were explicitly null while others were not.
        if self.collector.null_count(path) > 0:
            schema.nullable = True

        logger.debug(f"[Refiner] {path}: {len(samples)} samples -> {schema.type.value or '?'}")
        return schema

    # ------------------------------------------------------------------
    # Homogeneous samples
    # ------------------------------------------------------------------

    def _enhance(self, path: str, schema: Schema, samples: List[Any], depth: int) -> Schema:
        if schema.type == SchemaType.STRING:
            return self._enhance_string(schema, samples)
        if schema.type in (SchemaType.INTEGER, SchemaType.NUMBER):
            return self._enhance_number(schema, samples)
        if schema.type == SchemaType.ARRAY:
            return self._enhance_array(path, schema, depth)
        if schema.type == SchemaType.OBJECT:
            schema.properties, schema.required = self._infer_properties(path, depth)
        return schema

    def _enhance_string(self, schema: Schema, samples: List[Any]) -> Schema:
        if ENUM_MIN_SAMPLES <= len(samples) <= ENUM_MAX_SAMPLES:
            values = [s for s in samples if isinstance(s, str)]
            distinct = list(dict.fromkeys(values))
            if (
                len(distinct) <= ENUM_MAX_DISTINCT
                and all(len(v) < ENUM_MAX_LENGTH for v in distinct)
                and len(distinct) < len(values)
            ):
                schema.enum = distinct
                return schema

        if not schema.format and isinstance(samples[0], str):
            schema.format = self.detector.detect(samples[0])
        return schema

    def _enhance_number(self, schema: Schema, samples: List[Any]) -> Schema:
        if len(samples) < NUMBER_MIN_SAMPLES:
            return schema

        numbers = [s for s in samples if json_kind(s) is JSONKind.NUMBER]
        if not numbers:
            return schema
        low, high = min(numbers), max(numbers)

        if all(is_integral(n) for n in numbers):
            schema.type = SchemaType.INTEGER
            if INT32_RANGE[0] <= low and high <= INT32_RANGE[1]:
                schema.format = "int32"
            else:
                schema.format = "int64"
        else:
            schema.type = SchemaType.NUMBER
            schema.format = "double"
        return schema

    def _enhance_array(self, path: str, schema: Schema, depth: int) -> Schema:
        ipath = self._expand_items(path)
        items = self.collector.samples(ipath)
        if not items:
            return schema

        if depth + 1 >= MAX_DEPTH:
            schema.items = opaque_schema()
            return schema

        item_schema = self.inferrer.infer(items[0])
        if all(self.inferrer.infer(i).type == item_schema.type for i in items[1:]):
            item_schema = self._enhance(ipath, item_schema, items, depth + 1)
        else:
            # Heterogeneous arrays are simplified on purpose; this loses information.
            item_schema = opaque_schema()

        if self.collector.null_count(ipath) > 0:
            item_schema.nullable = True
        schema.items = item_schema
        return schema

    # ------------------------------------------------------------------
    # Mixed samples
    # ------------------------------------------------------------------

    def _resolve_mixed(self, path: str, samples: List[Any], depth: int) -> Schema:
        kinds = Counter(json_kind(s) for s in samples)
        numbers = [s for s in samples if json_kind(s) is JSONKind.NUMBER]
        all_integral = all(is_integral(n) for n in numbers)

        # Ties go to the earlier candidate.
        candidates: List[Tuple[SchemaType, int]] = [
            (SchemaType.STRING, kinds[JSONKind.STRING]),
            (SchemaType.INTEGER if all_integral else SchemaType.NUMBER, kinds[JSONKind.NUMBER]),
            (SchemaType.BOOLEAN, kinds[JSONKind.BOOL]),
            (SchemaType.OBJECT, kinds[JSONKind.OBJECT]),
            (SchemaType.ARRAY, kinds[JSONKind.ARRAY]),
        ]
        dominant, best = SchemaType.UNKNOWN, 0
        for candidate, count in candidates:
            if count > best:
                dominant, best = candidate, count

        if best / len(samples) <= DOMINANT_SHARE:
            return opaque_schema()

        schema = Schema(type=dominant)
        if dominant == SchemaType.OBJECT:
            schema.properties, schema.required = self._infer_properties(path, depth)
        elif dominant == SchemaType.ARRAY:
            schema.items = self.infer_schema(self._expand_items(path), depth + 1)
        elif dominant == SchemaType.STRING:
            strings = [s for s in samples if isinstance(s, str)]
            schema.example = strings[0]
            for value in strings:
                fmt = self.detector.detect(value)
                if fmt:
                    schema.format = fmt
                    break
        elif dominant in (SchemaType.INTEGER, SchemaType.NUMBER):
            schema.format = "int64" if dominant == SchemaType.INTEGER else "double"
            schema.example = numbers[0]
        return schema

    # ------------------------------------------------------------------
    # Sub-path expansion
    # ------------------------------------------------------------------

    def _expand_items(self, path: str) -> str:
        ipath = items_path(path)
        for sample in self.collector.take_unexpanded(path, "array"):
            if isinstance(sample, list):
                for item in sample:
                    self.collector.add_sample(ipath, item)
        return ipath

    def _infer_properties(self, path: str, depth: int = 0) -> Tuple[Dict[str, Schema], List[str]]:
        """
        Per-property schemas for the object samples at `path`.

        A property missing from some object samples is nullable; a property
        present and non-null in every object sample is required.
        """
        for sample in self.collector.take_unexpanded(path, "object"):
            if isinstance(sample, dict):
                for name, value in sample.items():
                    self.collector.add_sample(property_path(path, name), value)

        objects = [s for s in self.collector.samples(path) if isinstance(s, dict)]
        presence: Counter = Counter()
        non_null: Counter = Counter()
        for obj in objects:
            for name, value in obj.items():
                presence[name] += 1
                if value is not None:
                    non_null[name] += 1

        properties: Dict[str, Schema] = {}
        required: List[str] = []
        for name in presence:
            prop = self.infer_schema(property_path(path, name), depth + 1)
            if prop is None:
                # Only ever observed as null.
                prop = Schema(type=SchemaType.NULL, nullable=True)
            if presence[name] < len(objects):
                prop.nullable = True
            if non_null[name] == len(objects):
                required.append(name)
            properties[name] = prop
        return properties, required


def improve_schema(original: Schema, improved: Schema) -> Schema:
    """
    Fold refined information into `original` without discarding what it
    already states. Only gaps are filled, except numeric formats, where the
    range classification of the refined schema wins. Returns a new Schema.
    """
    result = copy.deepcopy(original)

    if result.type == SchemaType.UNKNOWN:
        result.type = improved.type
    if not result.format and improved.format:
        result.format = improved.format
    elif (
        result.type in (SchemaType.INTEGER, SchemaType.NUMBER)
        and improved.type == result.type
        and improved.format
    ):
        result.format = improved.format
    if not result.enum and improved.enum:
        result.enum = list(improved.enum)
    if result.example is None and improved.example is not None:
        result.example = improved.example
    if not result.required and improved.required:
        result.required = list(improved.required)
    result.nullable = result.nullable or improved.nullable

    if result.type == SchemaType.OBJECT and improved.type == SchemaType.OBJECT:
        properties = result.properties if result.properties is not None else {}
        for name, prop in (improved.properties or {}).items():
            if name in properties:
                properties[name] = improve_schema(properties[name], prop)
            else:
                properties[name] = copy.deepcopy(prop)
        result.properties = properties

    if result.type == SchemaType.ARRAY and improved.type == SchemaType.ARRAY:
        if result.items is None and improved.items is not None:
            result.items = copy.deepcopy(improved.items)
        elif result.items is not None and improved.items is not None:
            result.items = improve_schema(result.items, improved.items)

    return result


def apply_type_inference(
    schema: Schema,
    samples: List[Any],
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> Schema:
    """
    Enhance an existing schema with what a set of raw samples reveals.
    Returns `schema` itself when no usable sample was given.
    """
    collector = SampleCollector(max_samples)
    for sample in samples:
        collector.add_sample(ROOT_PATH, sample)

    improved = SchemaRefiner(collector).infer_schema(ROOT_PATH)
    if improved is None:
        return schema
    return improve_schema(schema, improved)
