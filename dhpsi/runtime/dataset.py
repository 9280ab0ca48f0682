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

"""Local dataset loading.

A dataset is a JSON array of objects, each with an `id` string and a numeric
attribute field (default `age`)::

    [{"id": "P1", "age": 34}, {"id": "P2", "age": 51}]
"""

from __future__ import annotations

import json
import math
import pathlib
from typing import Any

from dhpsi.exceptions import ConfigurationError, DataError
from dhpsi.logging_config import get_logger
from dhpsi.psi.types import Record

logger = get_logger(__name__)


def parse_records(raw: Any, attribute_field: str = "age") -> list[Record]:
    """Validate decoded JSON and convert it to records.

    Raises:
        DataError: On structural problems, non-numeric attributes or
            duplicate ids. Messages cite positions, never identifiers.
    """
    if not isinstance(raw, list):
        raise DataError("Dataset must be a JSON array of objects")

    records: list[Record] = []
    seen: set[str] = set()
    for pos, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise DataError(f"Dataset entry {pos} is not an object")
        if "id" not in entry or attribute_field not in entry:
            raise DataError(
                f"Dataset entry {pos} must contain 'id' and '{attribute_field}'"
            )
        identifier = entry["id"]
        attribute = entry[attribute_field]
        if not isinstance(identifier, str):
            raise DataError(f"Dataset entry {pos} has a non-string id")
        if isinstance(attribute, bool) or not isinstance(attribute, (int, float)):
            raise DataError(f"Dataset entry {pos} has a non-numeric '{attribute_field}'")
        try:
            value = float(attribute)
        except OverflowError:
            raise DataError(
                f"Dataset entry {pos} has an out-of-range '{attribute_field}'"
            ) from None
        if not math.isfinite(value):
            raise DataError(f"Dataset entry {pos} has a non-finite '{attribute_field}'")
        if identifier in seen:
            raise DataError(f"Dataset entry {pos} repeats an earlier id")
        seen.add(identifier)
        records.append(Record(id=identifier, attribute=value))
    return records


def load_dataset(path: str | pathlib.Path, attribute_field: str = "age") -> list[Record]:
    """Load records from a JSON file.

    Raises:
        ConfigurationError: If the file does not exist.
        DataError: If the file is not valid JSON or the records are malformed.
    """
    p = pathlib.Path(path)
    if not p.is_file():
        raise ConfigurationError(f"Dataset file not found: {p}")
    try:
        with open(p, encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise DataError(f"Dataset {p} is not valid JSON: {e.msg} (line {e.lineno})") from e
    except ValueError as e:
        # int literals beyond the interpreter's digit limit
        raise DataError(f"Dataset {p} holds a number that cannot be parsed") from e
    records = parse_records(raw, attribute_field)
    logger.info(f"Loaded {len(records)} records from {p}")
    return records


__all__ = ["load_dataset", "parse_records"]
