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

import json

import pytest

from dhpsi.crypto.group import MODP_1024
from dhpsi.crypto.secret import Secret
from dhpsi.logging_config import disable_logging
from dhpsi.runtime.relay import ObliviousRelay
from dhpsi.runtime.session import ParticipantSession
from tests.utils.psi_fixtures import (
    CLINIC_A,
    CLINIC_B,
    SECRET_A,
    SECRET_B,
    SECRET_K,
    make_session,
)


@pytest.fixture(autouse=True)
def _library_logging():
    """Leave dhpsi logging in library mode after every test."""
    yield
    disable_logging()


@pytest.fixture
def session_a() -> ParticipantSession:
    return make_session("A", CLINIC_A, SECRET_A)


@pytest.fixture
def session_b() -> ParticipantSession:
    return make_session("B", CLINIC_B, SECRET_B)


@pytest.fixture
def relay() -> ObliviousRelay:
    return ObliviousRelay(MODP_1024, Secret(SECRET_K))


@pytest.fixture
def dataset_files(tmp_path):
    """Write both clinic datasets to disk and return their paths."""
    path_a = tmp_path / "clinic_a.json"
    path_b = tmp_path / "clinic_b.json"
    path_a.write_text(json.dumps(CLINIC_A))
    path_b.write_text(json.dumps(CLINIC_B))
    return path_a, path_b
