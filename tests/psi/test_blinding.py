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

"""Tests for blinding and re-exponentiation."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from dhpsi.crypto.group import MODP_1024, MODP_2048
from dhpsi.crypto.hashing import hash_identifier
from dhpsi.crypto.secret import Secret, generate_secret
from dhpsi.exceptions import DataError
from dhpsi.psi.blinding import compute_blinded, re_exponentiate

P = MODP_1024.modulus


def test_blind_concrete_vector():
    h = hash_identifier("P1")
    blinded = compute_blinded(["P1"], Secret(5))
    assert blinded == {"P1": pow(2, h * 5, P)}

    final = re_exponentiate(blinded, Secret(7))
    assert final == {"P1": pow(2, h * 35, P)}
    assert re_exponentiate(compute_blinded(["P1"], Secret(7)), Secret(5)) == final


def test_two_secret_commutativity():
    a, b = generate_secret(), generate_secret()
    ids = ["P1", "P2", "alice@example.com"]
    ab = re_exponentiate(compute_blinded(ids, a), b)
    ba = re_exponentiate(compute_blinded(ids, b), a)
    assert ab == ba


def test_three_secret_commutativity():
    a, k, b = generate_secret(), generate_secret(), generate_secret()
    ids = ["P3", "P5"]
    akb = re_exponentiate(re_exponentiate(compute_blinded(ids, a), k), b)
    bka = re_exponentiate(re_exponentiate(compute_blinded(ids, b), k), a)
    assert akb == bka


def test_different_identifiers_do_not_collide():
    s = generate_secret()
    blinded = compute_blinded([f"id-{i}" for i in range(200)], s)
    assert len(set(blinded.values())) == 200


def test_duplicates_collapse_and_order_is_kept():
    blinded = compute_blinded(["b", "a", "b", "c"], Secret(11))
    assert list(blinded) == ["b", "a", "c"]


def test_empty_inputs():
    assert compute_blinded([], Secret(11)) == {}
    assert re_exponentiate({}, Secret(11)) == {}


def test_values_stay_in_group():
    blinded = compute_blinded(["x", "y"], generate_secret(MODP_2048), MODP_2048)
    assert all(MODP_2048.contains(v) for v in blinded.values())


def test_re_exponentiate_keeps_keys():
    values = {"opaque-1": 4, "opaque-2": 9}
    result = re_exponentiate(values, Secret(3))
    assert result == {"opaque-1": 64, "opaque-2": 729}


@pytest.mark.parametrize("bad", [-1, P, P + 5, True, "12"])
def test_re_exponentiate_rejects_out_of_range(bad):
    with pytest.raises(DataError):
        re_exponentiate({"x": bad}, Secret(3))


def test_executor_gives_same_result():
    ids = [f"id-{i}" for i in range(150)]
    s = generate_secret()
    with ThreadPoolExecutor(max_workers=4) as pool:
        parallel = compute_blinded(ids, s, executor=pool)
        parallel_final = re_exponentiate(parallel, Secret(7), executor=pool)
    assert parallel == compute_blinded(ids, s)
    assert parallel_final == re_exponentiate(parallel, Secret(7))
