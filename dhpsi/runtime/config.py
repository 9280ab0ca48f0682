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
Deployment configuration for participants and the relay.

Settings come from an optional YAML file and command-line flags, flags
taking precedence. They are read once at process start. The YAML layout
mirrors a small cluster description::

    group: modp1024
    timeouts:
      request: 30
      relay_wait: 30
      relay_poll_interval: 0.25
    relay:
      endpoint: 127.0.0.1:4000
    participants:
      A:
        endpoint: 127.0.0.1:3001
        peer: B
        data: examples/data/clinic_a.json
      B:
        endpoint: 127.0.0.1:3002
        peer: A
        data: examples/data/clinic_b.json

A participant's `peer` is either another participant's label or an address.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

from dhpsi.crypto.group import DEFAULT_GROUP, get_group
from dhpsi.exceptions import ConfigurationError

DEFAULT_HOST = "127.0.0.1"
DEFAULT_RELAY_PORT = 4000


def normalize_endpoint(ep: str) -> str:
    ep = ep.strip().rstrip("/")
    return ep if ep.startswith(("http://", "https://")) else f"http://{ep}"


def split_endpoint(ep: str) -> tuple[str, int]:
    """Split `host:port` (scheme optional) into its parts."""
    hostport = ep.split("://", 1)[-1].rstrip("/")
    host, sep, port = hostport.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigurationError(f"Endpoint '{ep}' must be of the form host:port")
    return host or DEFAULT_HOST, int(port)


@dataclass(frozen=True)
class ParticipantConfig:
    """Settings of one participant process."""

    label: str
    port: int
    peer: str
    data: str
    host: str = DEFAULT_HOST
    relay: str | None = None
    group: str = DEFAULT_GROUP.name
    attribute_field: str = "age"
    request_timeout: float = 30.0
    relay_wait_timeout: float = 30.0
    relay_poll_interval: float = 0.25
    cors_origins: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        get_group(self.group)
        if self.request_timeout <= 0 or self.relay_wait_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")
        if self.relay_poll_interval <= 0:
            raise ConfigurationError("relay_poll_interval must be positive")


@dataclass(frozen=True)
class RelayConfig:
    """Settings of the relay process."""

    port: int = DEFAULT_RELAY_PORT
    host: str = DEFAULT_HOST
    group: str = DEFAULT_GROUP.name
    cors_origins: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        get_group(self.group)


def load_config(config_path: str) -> dict[str, Any]:
    """Load a YAML configuration file.

    Raises:
        ConfigurationError: If the file is missing or is not a YAML mapping.
    """
    try:
        with open(config_path, encoding="utf-8") as file:
            conf = yaml.safe_load(file)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
    if conf is None:
        return {}
    if not isinstance(conf, dict):
        raise ConfigurationError(f"Config {config_path} must be a mapping")
    return conf


def _common_settings(conf: dict[str, Any]) -> dict[str, Any]:
    settings: dict[str, Any] = {}
    if "group" in conf:
        settings["group"] = str(conf["group"])
    timeouts = conf.get("timeouts") or {}
    for src, dst in (
        ("request", "request_timeout"),
        ("relay_wait", "relay_wait_timeout"),
        ("relay_poll_interval", "relay_poll_interval"),
    ):
        if src in timeouts:
            settings[dst] = float(timeouts[src])
    if conf.get("cors_origins"):
        settings["cors_origins"] = tuple(conf["cors_origins"])
    return settings


def build_participant_config(
    conf: dict[str, Any] | None = None,
    label: str | None = None,
    **overrides: Any,
) -> ParticipantConfig:
    """Resolve a participant's settings from a config dict and overrides.

    Overrides whose value is None are ignored. Passing `relay=""` disables
    the relay even if the config file defines one.

    Raises:
        ConfigurationError: If a required setting (label, port, peer, data)
            is missing or the config is inconsistent.
    """
    conf = conf or {}
    settings: dict[str, Any] = _common_settings(conf)
    settings["label"] = label

    participants = conf.get("participants") or {}
    if participants and label is not None:
        entry = participants.get(label)
        if entry is None:
            raise ConfigurationError(
                f"Participant '{label}' not found in configuration "
                f"(known: {sorted(participants)})"
            )
        if "endpoint" in entry:
            settings["host"], settings["port"] = split_endpoint(entry["endpoint"])
        if "peer" in entry:
            peer = str(entry["peer"])
            if peer in participants:
                peer = participants[peer].get("endpoint", "")
            settings["peer"] = peer
        if "data" in entry:
            settings["data"] = entry["data"]
        if "attribute_field" in entry:
            settings["attribute_field"] = entry["attribute_field"]

    relay_section = conf.get("relay") or {}
    if relay_section.get("endpoint"):
        settings["relay"] = relay_section["endpoint"]

    for key, value in overrides.items():
        if value is not None:
            settings[key] = value

    for required in ("label", "port", "peer", "data"):
        if not settings.get(required):
            raise ConfigurationError(f"Missing required participant setting '{required}'")

    settings["peer"] = normalize_endpoint(settings["peer"])
    settings["relay"] = normalize_endpoint(settings["relay"]) if settings.get("relay") else None
    settings["port"] = int(settings["port"])
    return ParticipantConfig(**settings)


def build_relay_config(conf: dict[str, Any] | None = None, **overrides: Any) -> RelayConfig:
    """Resolve the relay's settings from a config dict and overrides."""
    conf = conf or {}
    settings: dict[str, Any] = {}
    common = _common_settings(conf)
    for key in ("group", "cors_origins"):
        if key in common:
            settings[key] = common[key]
    relay_section = conf.get("relay") or {}
    if relay_section.get("endpoint"):
        settings["host"], settings["port"] = split_endpoint(relay_section["endpoint"])
    for key, value in overrides.items():
        if value is not None:
            settings[key] = value
    return RelayConfig(**settings)


def generate_config(
    base_port: int = 3001,
    relay_port: int | None = DEFAULT_RELAY_PORT,
    data_dir: str = "examples/data",
    group: str = DEFAULT_GROUP.name,
) -> dict[str, Any]:
    """Produce an example two-clinic configuration."""
    conf: dict[str, Any] = {
        "group": group,
        "timeouts": {"request": 30, "relay_wait": 30, "relay_poll_interval": 0.25},
    }
    if relay_port is not None:
        conf["relay"] = {"endpoint": f"{DEFAULT_HOST}:{relay_port}"}
    conf["participants"] = {
        "A": {
            "endpoint": f"{DEFAULT_HOST}:{base_port}",
            "peer": "B",
            "data": f"{data_dir}/clinic_a.json",
        },
        "B": {
            "endpoint": f"{DEFAULT_HOST}:{base_port + 1}",
            "peer": "A",
            "data": f"{data_dir}/clinic_b.json",
        },
    }
    return conf


__all__ = [
    "ParticipantConfig",
    "RelayConfig",
    "build_participant_config",
    "build_relay_config",
    "generate_config",
    "load_config",
    "normalize_endpoint",
    "split_endpoint",
]
