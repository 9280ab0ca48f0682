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

"""Data model of the PSI protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Identifier -> exponentiated value. Only the producing participant knows
# which real identifier a key stands for once the set crosses a boundary.
BlindedSet = dict[str, int]


@dataclass(frozen=True)
class Record:
    """An identifier and its private numeric attribute."""

    id: str
    attribute: float


@dataclass(frozen=True)
class IntersectionResult:
    """Outcome of a successful protocol run.

    `average` is None when the intersection is empty.
    """

    intersection: list[str] = field(default_factory=list)
    average: float | None = None

    @property
    def size(self) -> int:
        return len(self.intersection)

    def to_dict(self) -> dict[str, Any]:
        return {
            "intersection": list(self.intersection),
            "size": self.size,
            "averageAge": self.average,
        }


__all__ = ["BlindedSet", "IntersectionResult", "Record"]
