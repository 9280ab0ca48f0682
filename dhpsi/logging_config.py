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
Logging for dhpsi.

As a library, dhpsi stays silent: its root logger carries a NullHandler and
does not propagate. The participant and relay commands call `setup_logging`
to attach a stderr handler and, optionally, a log file.

Records only ever carry participant labels, session ids, counts and
protocol states. Identifiers, secrets and exponentiated values are never
logged.

    >>> import dhpsi
    >>> dhpsi.setup_logging(level="DEBUG", filename="dhpsi.log")
"""

import logging
import sys
from typing import IO, Literal

DHPSI_LOGGER_NAME = "dhpsi"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def setup_logging(
    level: LogLevel = "INFO",
    filename: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> None:
    """Send dhpsi records to a stream (stderr by default) and optionally a file.

    With `force`, handlers installed by an earlier call are removed first.
    """
    logger = logging.getLogger(DHPSI_LOGGER_NAME)
    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)
    if force:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
    logger.propagate = False

    _attach(logger, logging.StreamHandler(stream or sys.stderr), log_level)
    if filename:
        _attach(logger, logging.FileHandler(filename), log_level)


def disable_logging() -> None:
    """Return to library mode: drop (and close) handlers, install a NullHandler."""
    logger = logging.getLogger(DHPSI_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Logger for a dhpsi module; names outside `dhpsi.` are nested under it."""
    if name != DHPSI_LOGGER_NAME and not name.startswith(f"{DHPSI_LOGGER_NAME}."):
        name = f"{DHPSI_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


# Library mode until an application calls setup_logging()
_root_logger = logging.getLogger(DHPSI_LOGGER_NAME)
if not _root_logger.handlers:
    _root_logger.addHandler(logging.NullHandler())
    _root_logger.propagate = False
