"""
Sample Collector - Per-Field Evidence Store

PURPOSE:
Accumulate a bounded number of raw observations per logical field path so
the refiner can reason about a field across many transactions instead of
one.

PATHS:
- "request:POST:/users#"          the body itself
- "request:POST:/users#.address"  property of an object (dot-separated)
- "request:POST:/users#[]"        item position of an array

ASSUMPTIONS:
1. Samples are kept in observation order and never deduplicated.
2. Nulls are not stored; they are tallied beside the samples so nullability
   can still be decided.
3. Refinement derives sub-path samples from parent samples. Each parent
   sample is expanded at most once, so refining twice does not duplicate
   evidence.

Not thread-safe: callers feeding one collector from several threads must
serialize add/refine calls themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLES = 10


def property_path(path: str, name: str) -> str:
    return f"{path}.{name}"


def items_path(path: str) -> str:
    return f"{path}[]"


class SampleCollector:
    """
    Bounded mapping of field path -> ordered raw sample values.
    """

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES):
        if max_samples <= 0:
            max_samples = DEFAULT_MAX_SAMPLES
        self.max_samples = max_samples
        self._samples: Dict[str, List[Any]] = {}
        self._nulls: Dict[str, int] = {}
        self._expanded: Dict[Tuple[str, str], int] = {}

    def add_sample(self, path: str, value: Any) -> None:
        """
        Record `value` under `path`. Nulls and samples beyond the cap are ignored.
        """
        if value is None:
            self._nulls[path] = self._nulls.get(path, 0) + 1
            return

        samples = self._samples.setdefault(path, [])
        if len(samples) >= self.max_samples:
            return
        samples.append(value)

    def samples(self, path: str) -> List[Any]:
        return list(self._samples.get(path, ()))

    def has_samples(self, path: str) -> bool:
        return bool(self._samples.get(path))

    def null_count(self, path: str) -> int:
        return self._nulls.get(path, 0)

    def paths(self) -> List[str]:
        return list(self._samples)

    def take_unexpanded(self, path: str, purpose: str) -> List[Any]:
        """
        Return the samples of `path` not yet expanded for `purpose` ("object"
        properties or "array" items), and mark them expanded.
        """
        samples = self._samples.get(path, [])
        key = (purpose, path)
        start = self._expanded.get(key, 0)
        self._expanded[key] = len(samples)
        return samples[start:]

    def reset(self) -> None:
        """Clear all collected samples."""
        logger.debug(f"[Samples] Resetting {len(self._samples)} paths")
        self._samples.clear()
        self._nulls.clear()
        self._expanded.clear()

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "paths": len(self._samples),
            "samples": sum(len(v) for v in self._samples.values()),
            "nulls": sum(self._nulls.values()),
            "max_samples": self.max_samples,
        }

    def __len__(self) -> int:
        return len(self._samples)

    def __contains__(self, path: object) -> bool:
        return path in self._samples
