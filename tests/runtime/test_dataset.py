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

"""Tests for dataset loading."""

import json

import pytest

from dhpsi.exceptions import ConfigurationError, DataError
from dhpsi.psi.types import Record
from dhpsi.runtime.dataset import load_dataset, parse_records


def test_load_dataset(dataset_files):
    path_a, _ = dataset_files
    records = load_dataset(path_a)
    assert records[0] == Record(id="P1", attribute=34.0)
    assert [r.id for r in records] == ["P1", "P2", "P3", "P4", "P5"]


def test_custom_attribute_field():
    records = parse_records([{"id": "x", "weight": 72.5}], attribute_field="weight")
    assert records == [Record(id="x", attribute=72.5)]


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_dataset(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[{")
    with pytest.raises(DataError, match="not valid JSON"):
        load_dataset(path)


def test_empty_dataset(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps([]))
    assert load_dataset(path) == []


@pytest.mark.parametrize(
    "raw",
    [
        {"id": "P1", "age": 3},
        ["P1"],
        [{"id": "P1"}],
        [{"id": 7, "age": 3}],
        [{"id": "P1", "age": "34"}],
        [{"id": "P1", "age": True}],
        [{"id": "P1", "age": float("nan")}],
    ],
)
def test_malformed_records(raw):
    with pytest.raises(DataError):
        parse_records(raw)


def test_duplicate_id_message_hides_identifier():
    raw = [{"id": "secret-patient", "age": 1}, {"id": "secret-patient", "age": 2}]
    with pytest.raises(DataError) as excinfo:
        parse_records(raw)
    assert "secret-patient" not in str(excinfo.value)
    assert "entry 1" in str(excinfo.value)


def test_attribute_beyond_float_range():
    with pytest.raises(DataError, match="out-of-range 'age'"):
        parse_records([{"id": "P1", "age": 10**400}])
    assert parse_records([{"id": "P1", "age": 10**300}])[0].attribute == 1e300


def test_number_with_too_many_digits(tmp_path):
    path = tmp_path / "huge.json"
    path.write_text('[{"id": "P1", "age": ' + "9" * 5000 + "}]")
    with pytest.raises(DataError, match="cannot be parsed"):
        load_dataset(path)
