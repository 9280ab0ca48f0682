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

"""
Wire models for blinded sets.

On the wire a blinded set is a JSON list of `{"id": ..., "value": ...}`
objects where `value` is the decimal encoding of the group element. Only
plain unsigned decimal digits are accepted; signs, whitespace, underscores
and other bases are rejected so that one integer has exactly one encoding.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters
from dhpsi.exceptions import DataError
from dhpsi.psi.types import BlindedSet

_DECIMAL_RE = re.compile(r"[0-9]+")

DEFAULT_SESSION_ID = "default"


class BlindedItem(BaseModel):
    id: str
    value: str  # decimal encoded group element


class UploadRequest(BaseModel):
    """Body of the relay's /upload endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(default=DEFAULT_SESSION_ID, alias="sessionId")
    participant_label: str = Field(alias="participantLabel")
    items: list[BlindedItem]


class RelayUploadRequest(BaseModel):
    """Body of a participant's /relay-upload endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(default=DEFAULT_SESSION_ID, alias="sessionId")


_ITEMS_ADAPTER = TypeAdapter(list[BlindedItem])


def parse_value(text: str, group: GroupParameters = DEFAULT_GROUP) -> int:
    """Parse a decimal string into a group element.

    Raises:
        DataError: If the text is not an unsigned decimal in [0, modulus).
    """
    if not isinstance(text, str) or not _DECIMAL_RE.fullmatch(text):
        raise DataError("Value is not an unsigned decimal integer")
    if len(text) > group.decimal_length:
        raise DataError("Value has more digits than any group element")
    value = int(text)
    if not group.contains(value):
        raise DataError("Value outside the group range")
    return value


def format_value(value: int) -> str:
    return str(value)


def to_json(blinded: Mapping[str, int]) -> list[dict[str, str]]:
    """Encode a blinded set as JSON-ready dicts."""
    return [{"id": i, "value": format_value(v)} for i, v in blinded.items()]


def decode_items(
    items: list[BlindedItem], group: GroupParameters = DEFAULT_GROUP
) -> BlindedSet:
    """Decode wire items into a blinded set.

    Raises:
        DataError: On unparseable values or duplicate ids.
    """
    out: BlindedSet = {}
    for item in items:
        if item.id in out:
            raise DataError(f"Duplicate id in blinded set (position {len(out)})")
        out[item.id] = parse_value(item.value, group)
    return out


def from_json(payload: Any, group: GroupParameters = DEFAULT_GROUP) -> BlindedSet:
    """Validate and decode a JSON payload received from a peer or relay.

    Raises:
        DataError: If the payload is not a list of {id, value} objects or a
            value cannot be parsed.
    """
    try:
        items = _ITEMS_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise DataError(
            f"Malformed blinded set: {e.error_count()} validation error(s)"
        ) from e
    return decode_items(items, group)


__all__ = [
    "DEFAULT_SESSION_ID",
    "BlindedItem",
    "RelayUploadRequest",
    "UploadRequest",
    "decode_items",
    "format_value",
    "from_json",
    "parse_value",
    "to_json",
]
