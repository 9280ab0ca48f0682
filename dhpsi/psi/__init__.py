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

"""DH-PSI protocol core: blinding, re-exponentiation, matching, statistics."""

from dhpsi.psi.blinding import compute_blinded, re_exponentiate
from dhpsi.psi.matching import canonical_key, intersect
from dhpsi.psi.stats import aggregate, matched_attributes
from dhpsi.psi.types import BlindedSet, IntersectionResult, Record

__all__ = [
    "BlindedSet",
    "IntersectionResult",
    "Record",
    "aggregate",
    "canonical_key",
    "compute_blinded",
    "intersect",
    "matched_attributes",
    "re_exponentiate",
]
