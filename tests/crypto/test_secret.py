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

"""Tests for private exponents."""

import pickle

import pytest

from dhpsi.crypto.group import MODP_1024
from dhpsi.crypto.secret import Secret, generate_secret


def test_generated_secret_in_range():
    for _ in range(20):
        s = generate_secret(MODP_1024)
        assert 2 <= s.value <= MODP_1024.modulus - 2


def test_generated_secrets_differ():
    assert generate_secret().value != generate_secret().value


def test_repr_is_redacted():
    s = Secret(123456789)
    assert "123456789" not in repr(s)
    assert "123456789" not in str(s)
    assert "123456789" not in f"{s}"


def test_secret_cannot_be_pickled():
    with pytest.raises(TypeError):
        pickle.dumps(Secret(5))


@pytest.mark.parametrize("value", [0, 1, MODP_1024.modulus - 1, MODP_1024.modulus])
def test_out_of_range_rejected(value):
    with pytest.raises(ValueError):
        Secret(value)


@pytest.mark.parametrize("value", [True, 5.0, "5"])
def test_non_int_rejected(value):
    with pytest.raises(TypeError):
        Secret(value)
