#!/usr/bin/env python3
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
Command-line interface for DH-PSI participants and the relay.

Examples:
    # Generate an example config file
    python -m dhpsi.runtime.cli config gen -o psi.yaml

    # Start the relay and two participants
    python -m dhpsi.runtime.cli relay -c psi.yaml
    python -m dhpsi.runtime.cli participant -c psi.yaml --label A
    python -m dhpsi.runtime.cli participant -c psi.yaml --label B

    # Start a participant from flags only, without relay
    python -m dhpsi.runtime.cli participant --label A --port 3001 \\
        --peer 127.0.0.1:3002 --data clinic_a.json

    # Trigger a run and check health
    python -m dhpsi.runtime.cli run --endpoint 127.0.0.1:3001
    python -m dhpsi.runtime.cli status --endpoints 127.0.0.1:3001,127.0.0.1:3002
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

import httpx
import uvicorn
import yaml

from dhpsi.crypto.group import get_group, list_groups
from dhpsi.exceptions import ConfigurationError, PSIError
from dhpsi.logging_config import setup_logging
from dhpsi.runtime.client import PeerClient, RelayClient
from dhpsi.runtime.config import (
    ParticipantConfig,
    RelayConfig,
    build_participant_config,
    build_relay_config,
    generate_config,
    load_config,
    normalize_endpoint,
)
from dhpsi.runtime.dataset import load_dataset
from dhpsi.runtime.relay import ObliviousRelay
from dhpsi.runtime.server import create_participant_app, create_relay_app
from dhpsi.runtime.session import ParticipantSession

# Exit status for configuration errors
EXIT_CONFIG = 2


def uvicorn_log_config(node_id: str, level: str = "INFO") -> dict[str, Any]:
    """uvicorn dictConfig prefixing every record with the node id."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": f"%(levelname)s: [{node_id}] %(message)s",
                "use_colors": None,
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": f'%(levelname)s: [{node_id}] %(client_addr)s - "%(request_line)s" %(status_code)s',
                "use_colors": None,
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
            "access": {
                "formatter": "access",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.error": {"level": level},
            "uvicorn.access": {
                "handlers": ["access"],
                "level": level,
                "propagate": False,
            },
        },
    }


def _read_config(args: argparse.Namespace) -> dict[str, Any]:
    return load_config(args.config) if getattr(args, "config", None) else {}


def resolve_participant_config(args: argparse.Namespace) -> ParticipantConfig:
    """Merge the config file and flags for the participant command."""
    conf = _read_config(args)
    return build_participant_config(
        conf,
        label=args.label,
        port=args.port,
        host=args.host,
        peer=args.peer,
        relay="" if args.direct else args.relay,
        data=args.data,
        group=args.group,
        attribute_field=args.attribute_field,
        request_timeout=args.request_timeout,
    )


def build_participant(cfg: ParticipantConfig) -> tuple[ParticipantSession, Any]:
    """Load the dataset, create the session and its FastAPI app."""
    group = get_group(cfg.group)
    records = load_dataset(cfg.data, cfg.attribute_field)
    session = ParticipantSession(cfg.label, records, group)
    peer = PeerClient(cfg.peer, timeout=cfg.request_timeout, group=group)
    relay = (
        RelayClient(cfg.relay, timeout=cfg.request_timeout, group=group)
        if cfg.relay
        else None
    )
    app = create_participant_app(
        session,
        peer,
        relay,
        relay_wait_timeout=cfg.relay_wait_timeout,
        relay_poll_interval=cfg.relay_poll_interval,
        cors_origins=cfg.cors_origins,
    )
    return session, app


def cmd_participant(args: argparse.Namespace) -> int:
    """Start a participant server (blocking)."""
    try:
        cfg = resolve_participant_config(args)
        _, app = build_participant(cfg)
    except ConfigurationError as e:
        print(f"Configuration error: {e.reason}", file=sys.stderr)
        return EXIT_CONFIG
    except PSIError as e:
        print(f"Cannot start participant: {e.reason}", file=sys.stderr)
        return 1

    mode = f"relay {cfg.relay}" if cfg.relay else "two-party"
    print(
        f"Starting participant {cfg.label} on {cfg.host}:{cfg.port} "
        f"(peer {cfg.peer}, {mode})..."
    )
    uvicorn.run(
        app,
        host=cfg.host,
        port=cfg.port,
        log_config=uvicorn_log_config(cfg.label, args.log_level),
    )
    return 0


def resolve_relay_config(args: argparse.Namespace) -> RelayConfig:
    conf = _read_config(args)
    return build_relay_config(conf, port=args.port, host=args.host, group=args.group)


def cmd_relay(args: argparse.Namespace) -> int:
    """Start the oblivious relay (blocking)."""
    try:
        cfg = resolve_relay_config(args)
        relay = ObliviousRelay(get_group(cfg.group))
    except ConfigurationError as e:
        print(f"Configuration error: {e.reason}", file=sys.stderr)
        return EXIT_CONFIG

    app = create_relay_app(relay, cors_origins=cfg.cors_origins)
    print(f"Starting relay on {cfg.host}:{cfg.port}...")
    uvicorn.run(
        app,
        host=cfg.host,
        port=cfg.port,
        log_config=uvicorn_log_config("relay", args.log_level),
    )
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Ask a participant to run the protocol and print the JSON result."""
    url = f"{normalize_endpoint(args.endpoint)}/run"
    try:
        resp = httpx.get(url, timeout=args.timeout)
    except httpx.RequestError as e:
        print(f"ERR {url} -> {e}", file=sys.stderr)
        return 1
    try:
        body = resp.json()
    except ValueError:
        print(f"ERR {url} -> HTTP {resp.status_code}: {resp.text}", file=sys.stderr)
        return 1
    print(json.dumps(body, indent=2))
    return 0 if resp.status_code == 200 else 1


def cmd_status(args: argparse.Namespace) -> int:
    """Check /health of participants and relay."""
    endpoints = [normalize_endpoint(ep) for ep in args.endpoints.split(",") if ep.strip()]
    print(f"Checking {len(endpoints)} endpoints...")
    fingerprints: set[str] = set()
    healthy = True
    for ep in endpoints:
        url = f"{ep}/health"
        try:
            resp = httpx.get(url, timeout=3.0)
            resp.raise_for_status()
            body = resp.json()
            fingerprints.add(str(body.get("group")))
            print(f"OK  {url} -> {body}")
        except (httpx.HTTPError, ValueError) as exc:
            healthy = False
            print(f"ERR {url} -> {exc}")
    if len(fingerprints) > 1:
        print(f"WARNING: group parameters differ across nodes: {sorted(fingerprints)}")
        return 1
    return 0 if healthy else 1


def cmd_config_gen(args: argparse.Namespace) -> int:
    """Generate an example configuration."""
    config = generate_config(
        base_port=args.base_port,
        relay_port=None if args.no_relay else args.relay_port,
        data_dir=args.data_dir,
        group=args.group,
    )
    yaml_content = yaml.dump(config, sort_keys=False)
    if args.output:
        with open(args.output, "w") as f:
            f.write(yaml_content)
        print(f"Config written to {args.output}")
    else:
        print(yaml_content)
    return 0


def add_server_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", type=str, help="Config YAML")
    parser.add_argument("--host", type=str, default=None, help="Bind address")
    parser.add_argument("-p", "--port", type=int, default=None, help="Listening port")
    parser.add_argument(
        "--group", type=str, default=None, choices=list_groups(), help="Group parameters"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also log to this file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dhpsi",
        description="Diffie-Hellman private set intersection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'participant'
    part_parser = subparsers.add_parser("participant", help="Start a participant")
    add_server_args(part_parser)
    part_parser.add_argument("--label", type=str, help="Participant label")
    part_parser.add_argument("--peer", type=str, help="Peer address host:port")
    part_parser.add_argument("--relay", type=str, help="Relay address host:port")
    part_parser.add_argument(
        "--direct", action="store_true", help="Ignore any configured relay"
    )
    part_parser.add_argument("--data", type=str, help="Path to the JSON dataset")
    part_parser.add_argument(
        "--attribute-field", type=str, default=None, help="Numeric field to aggregate"
    )
    part_parser.add_argument(
        "--request-timeout", type=float, default=None, help="Per-request timeout (s)"
    )

    # 'relay'
    relay_parser = subparsers.add_parser("relay", help="Start the oblivious relay")
    add_server_args(relay_parser)

    # 'run'
    run_parser = subparsers.add_parser("run", help="Trigger a protocol run")
    run_parser.add_argument("--endpoint", required=True, help="Participant address")
    run_parser.add_argument(
        "--timeout", type=float, default=120.0, help="Overall timeout (s)"
    )

    # 'status'
    status_parser = subparsers.add_parser("status", help="Check node health")
    status_parser.add_argument(
        "--endpoints", required=True, help="Comma-separated node addresses"
    )

    # 'config gen'
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(
        dest="config_command", help="Config commands"
    )
    config_subparsers.required = True
    gen_parser = config_subparsers.add_parser("gen", help="Generate example config")
    gen_parser.add_argument("-p", "--base-port", type=int, default=3001)
    gen_parser.add_argument("--relay-port", type=int, default=4000)
    gen_parser.add_argument("--no-relay", action="store_true")
    gen_parser.add_argument("--data-dir", type=str, default="examples/data")
    gen_parser.add_argument("--group", type=str, default="modp1024", choices=list_groups())
    gen_parser.add_argument("-o", "--output", type=str, help="Output file path")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in ("participant", "relay"):
        setup_logging(level=args.log_level, filename=args.log_file, force=True)

    if args.command == "participant":
        return cmd_participant(args)
    if args.command == "relay":
        return cmd_relay(args)
    if args.command == "run":
        return cmd_run(args)
    if args.command == "status":
        return cmd_status(args)
    if args.command == "config":
        return cmd_config_gen(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
