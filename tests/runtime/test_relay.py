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

"""Tests for the oblivious relay store."""

import threading

import pytest

from dhpsi.crypto.group import MODP_1024
from dhpsi.crypto.secret import Secret, generate_secret
from dhpsi.exceptions import InvalidRequestError, ResourceNotFound
from dhpsi.psi.blinding import compute_blinded, re_exponentiate
from dhpsi.psi.matching import intersect
from tests.utils.psi_fixtures import SECRET_K


def test_not_ready_returns_empty(relay):
    assert relay.get_processed("s1", "A", "peer") == {}

    relay.upload("s1", "A", {"x": 4})
    assert relay.get_processed("s1", "A", "peer") == {}
    assert relay.get_processed("s1", "A", "own") == {}


def test_requires_own_upload(relay):
    relay.upload("s1", "B", {"y": 9})
    # A has not uploaded, so it gets nothing even for the peer set
    assert relay.get_processed("s1", "A", "peer") == {}


def test_processed_sets(relay):
    relay.upload("s1", "A", {"x": 4})
    relay.upload("s1", "B", {"y": 9, "z": 16})
    k = Secret(SECRET_K)

    assert relay.get_processed("s1", "A", "own") == re_exponentiate({"x": 4}, k)
    assert relay.get_processed("s1", "A", "peer") == re_exponentiate(
        {"y": 9, "z": 16}, k
    )
    assert relay.get_processed("s1", "B", "peer") == re_exponentiate({"x": 4}, k)


def test_relay_chain_matches_common_identifiers(relay):
    a, b = generate_secret(), generate_secret()
    relay.upload("run", "A", compute_blinded(["P1", "P2", "P3"], a))
    relay.upload("run", "B", compute_blinded(["P3", "P4", "P1"], b))

    own_final_a = re_exponentiate(relay.get_processed("run", "A", "own"), b)
    peer_final_a = re_exponentiate(relay.get_processed("run", "A", "peer"), a)
    assert intersect(own_final_a, peer_final_a, MODP_1024) == ["P3", "P1"]


def test_sessions_are_isolated(relay):
    relay.upload("s1", "A", {"x": 4})
    relay.upload("s2", "B", {"y": 9})
    assert relay.get_processed("s1", "A", "peer") == {}
    assert sorted(relay.list_sessions()) == ["s1", "s2"]


def test_third_participant_rejected(relay):
    relay.upload("s1", "A", {})
    relay.upload("s1", "B", {})
    with pytest.raises(InvalidRequestError, match="already pairs"):
        relay.upload("s1", "C", {})
    # Re-uploading an existing label is allowed
    relay.upload("s1", "A", {"x": 4})
    assert relay.session_labels("s1") == ["A", "B"]


def test_reupload_replaces(relay):
    relay.upload("s1", "A", {"x": 4})
    relay.upload("s1", "A", {"x": 5})
    relay.upload("s1", "B", {"y": 9})
    assert relay.get_processed("s1", "A", "own") == {
        "x": pow(5, SECRET_K, MODP_1024.modulus)
    }


def test_bad_selector(relay):
    with pytest.raises(InvalidRequestError):
        relay.get_processed("s1", "A", "both")


def test_delete_session(relay):
    relay.upload("s1", "A", {"x": 4})
    relay.delete_session("s1")
    assert relay.list_sessions() == []
    with pytest.raises(ResourceNotFound):
        relay.delete_session("s1")
    with pytest.raises(ResourceNotFound):
        relay.session_labels("s1")


def test_concurrent_uploads(relay):
    errors = []

    def worker(session_id: str, label: str):
        try:
            relay.upload(session_id, label, {label: 4})
        except Exception as e:  # noqa: BLE001
            errors.append(e)

    threads = [
        threading.Thread(target=worker, args=(f"s{i % 10}", label))
        for i in range(50)
        for label in ("A", "B")
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(relay.list_sessions()) == 10
    for sid in relay.list_sessions():
        assert relay.session_labels(sid) == ["A", "B"]


def test_repr_hides_secret(relay):
    assert str(SECRET_K) not in repr(relay)
