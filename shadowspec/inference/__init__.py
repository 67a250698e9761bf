"""
Schema inference and merging engine.

Turns decoded JSON bodies into Schema trees and reconciles many
observations of the same endpoint into one:

- **formats.py**: semantic string formats (uuid, email, date-time, ...)
- **inferrer.py**: one value -> one Schema
- **samples.py**: bounded per-field sample store
- **refiner.py**: multi-sample refinement (enums, ranges, nullability)
- **merger.py**: pairwise merge and per-endpoint folding
"""

from shadowspec.inference.types import (
    Header,
    MediaType,
    ParamLocation,
    Parameter,
    RequestBody,
    Response,
    Schema,
    SchemaType,
)
from shadowspec.inference.formats import FormatDetector, get_detector
from shadowspec.inference.inferrer import (
    BODY_POLICY,
    SAMPLE_POLICY,
    InferencePolicy,
    ValueInferrer,
    infer,
)
from shadowspec.inference.samples import SampleCollector
from shadowspec.inference.refiner import (
    SchemaRefiner,
    apply_type_inference,
    improve_schema,
)
from shadowspec.inference.merger import (
    RequiredPolicy,
    SchemaMerger,
    merge_request_bodies,
    merge_responses,
    merge_schema,
    schemas_equal,
)

__all__ = [
    # Data model
    "Schema",
    "SchemaType",
    "MediaType",
    "RequestBody",
    "Response",
    "Header",
    "Parameter",
    "ParamLocation",
    # Leaves
    "FormatDetector",
    "get_detector",
    "InferencePolicy",
    "ValueInferrer",
    "BODY_POLICY",
    "SAMPLE_POLICY",
    "infer",
    # Samples and refinement
    "SampleCollector",
    "SchemaRefiner",
    "improve_schema",
    "apply_type_inference",
    # Merging
    "RequiredPolicy",
    "SchemaMerger",
    "merge_schema",
    "merge_request_bodies",
    "merge_responses",
    "schemas_equal",
]
