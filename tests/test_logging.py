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

"""Tests for dhpsi logging."""

import io
import logging

from fastapi.testclient import TestClient

import dhpsi
from dhpsi.logging_config import DHPSI_LOGGER_NAME, get_logger
from tests.utils.psi_fixtures import CLINIC_A, CLINIC_B, SECRET_A, SECRET_B, wire_participants


def capture(level: str = "DEBUG") -> io.StringIO:
    buf = io.StringIO()
    dhpsi.setup_logging(level=level, stream=buf, force=True)
    return buf


def test_library_mode_is_silent():
    """Test that the dhpsi root logger only holds a NullHandler by default."""
    dhpsi.disable_logging()
    root = logging.getLogger(DHPSI_LOGGER_NAME)
    assert [type(h) for h in root.handlers] == [logging.NullHandler]
    assert root.propagate is False


def test_level_filtering():
    buf = capture("WARNING")
    log = get_logger("dhpsi.runtime.relay")
    log.info("stored 3 values")
    log.warning("session s1 unknown")

    out = buf.getvalue()
    assert "stored 3 values" not in out
    assert "[WARNING] dhpsi.runtime.relay: session s1 unknown" in out


def test_force_replaces_handlers():
    first = capture()
    second = capture()
    get_logger("dhpsi.test").info("only once")
    assert "only once" not in first.getvalue()
    assert second.getvalue().count("only once") == 1


def test_disable_logging_after_setup():
    buf = capture()
    dhpsi.disable_logging()
    get_logger("dhpsi.test").error("suppressed")
    assert buf.getvalue() == ""


def test_log_file(tmp_path):
    path = tmp_path / "participant.log"
    dhpsi.setup_logging(level="INFO", filename=str(path), stream=io.StringIO(), force=True)
    get_logger("dhpsi.runtime.server").info("Serving 5 blinded values")
    dhpsi.disable_logging()  # closes the file handler
    assert "Serving 5 blinded values" in path.read_text()


def test_get_logger_nests_names():
    assert get_logger("dhpsi").name == "dhpsi"
    assert get_logger("dhpsi.psi.stats").name == "dhpsi.psi.stats"
    assert get_logger("plugins.audit").name == "dhpsi.plugins.audit"
    assert get_logger("dhpsiextra").name == "dhpsi.dhpsiextra"


def test_protocol_logs_hide_private_data(session_a, session_b):
    """A full run at DEBUG level logs counts and states only."""
    buf = capture()

    app_a, _ = wire_participants(session_a, session_b)
    assert TestClient(app_a).get("/run").status_code == 200

    out = buf.getvalue()
    assert "exchange_blinded" in out
    identifiers = {r["id"] for r in CLINIC_A + CLINIC_B}
    for needle in (*identifiers, str(SECRET_A), str(SECRET_B)):
        assert needle not in out
    for value in session_a.blinded.values():
        assert str(value) not in out
