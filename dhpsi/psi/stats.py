# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Aggregate statistics over the attributes of matched identifiers.

An empty input yields None, the explicit empty-result marker, for every
method. NaN is never returned for an empty intersection.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

import numpy as np

from dhpsi.psi.types import Record

_AGGREGATORS: dict[str, Callable[[np.ndarray], float]] = {
    "mean": lambda arr: float(np.mean(arr)),
    "sum": lambda arr: float(np.sum(arr)),
    "min": lambda arr: float(np.min(arr)),
    "max": lambda arr: float(np.max(arr)),
}


def aggregate(values: Sequence[float], method: str = "mean") -> float | None:
    """Aggregate a sequence of numbers.

    Args:
        values: Attribute values of the matched identifiers.
        method: One of "mean", "sum", "min", "max".

    Returns:
        The aggregate, or None if values is empty.

    Raises:
        ValueError: If the method is unknown.
    """
    fn = _AGGREGATORS.get(method)
    if fn is None:
        raise ValueError(
            f"Unknown aggregation '{method}', expected one of {sorted(_AGGREGATORS)}"
        )
    if len(values) == 0:
        return None
    return fn(np.asarray(values, dtype=np.float64))


def matched_attributes(records: Iterable[Record], matched: Iterable[str]) -> list[float]:
    """Select the attributes of records whose id is in `matched`."""
    wanted = set(matched)
    return [r.attribute for r in records if r.id in wanted]


def available_methods() -> list[str]:
    return sorted(_AGGREGATORS)


__all__ = ["aggregate", "available_methods", "matched_attributes"]
