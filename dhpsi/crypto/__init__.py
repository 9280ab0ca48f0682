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

"""Group parameters, identifier hashing and secret exponents."""

from dhpsi.crypto.group import (
    DEFAULT_GROUP,
    MODP_1024,
    MODP_2048,
    GroupParameters,
    get_group,
    list_groups,
)
from dhpsi.crypto.hashing import hash_identifier
from dhpsi.crypto.secret import Secret, generate_secret

__all__ = [
    "DEFAULT_GROUP",
    "MODP_1024",
    "MODP_2048",
    "GroupParameters",
    "Secret",
    "generate_secret",
    "get_group",
    "hash_identifier",
    "list_groups",
]
