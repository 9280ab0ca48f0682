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

"""Tests for aggregate statistics."""

import math

import pytest

from dhpsi.psi.stats import aggregate, available_methods, matched_attributes
from dhpsi.psi.types import IntersectionResult, Record


def test_mean():
    assert aggregate([34.0, 27.0, 45.0]) == pytest.approx(106 / 3)


@pytest.mark.parametrize(
    "method,expected", [("sum", 106.0), ("min", 27.0), ("max", 45.0)]
)
def test_other_methods(method, expected):
    assert aggregate([34.0, 27.0, 45.0], method) == expected


@pytest.mark.parametrize("method", ["mean", "sum", "min", "max"])
def test_empty_is_none(method):
    assert aggregate([], method) is None


def test_result_is_plain_float():
    value = aggregate([1, 2])
    assert type(value) is float
    assert not math.isnan(value)


def test_unknown_method():
    with pytest.raises(ValueError, match="Unknown aggregation"):
        aggregate([1.0], "median")
    assert available_methods() == ["max", "mean", "min", "sum"]


def test_matched_attributes():
    records = [Record("P1", 34.0), Record("P2", 51.0), Record("P3", 27.0)]
    assert matched_attributes(records, ["P3", "P1"]) == [34.0, 27.0]
    assert matched_attributes(records, []) == []


def test_intersection_result_dict():
    result = IntersectionResult(intersection=["P1", "P3"], average=30.5)
    assert result.size == 2
    assert result.to_dict() == {
        "intersection": ["P1", "P3"],
        "size": 2,
        "averageAge": 30.5,
    }
    assert IntersectionResult().to_dict()["averageAge"] is None
