"""CLI to run tenant-scoped queries against VictoriaMetrics."""

from __future__ import annotations

import argparse
import asyncio
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from .clients import VictoriaProxyClient, VictoriaReadClient
from .connection import ClusterNodeType, create_http_client
from .errors import StorageError
from .logging import configure_logging, get_logger
from .models import TimeInterval, TimeIntervalUnits
from .settings import VictoriaOptions, get_options, load_options

LOGGER = get_logger(__name__)

UNIT_NAMES = {unit.name.lower(): unit for unit in TimeIntervalUnits}


def _timestamp(value: str) -> datetime:
    """Accept Unix seconds or an ISO 8601 timestamp (UTC when naive)."""

    try:
        return datetime.fromtimestamp(float(value), tz=UTC)
    except ValueError:
        moment = datetime.fromisoformat(value)
        return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--userspace-id", type=int, required=True)
    parser.add_argument(
        "--stream-id",
        dest="stream_ids",
        type=int,
        action="append",
        required=True,
        help="Permitted stream id; repeat for several streams.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML connection config (defaults to VICTORIA_* env vars).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override the log level of the client loggers.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser("query", help="Instant query.")
    query.add_argument("query")
    query.add_argument("--step", default="5m")
    _add_scope_arguments(query)

    query_range = commands.add_parser("query-range", help="Range query.")
    query_range.add_argument("query")
    query_range.add_argument("--start", type=_timestamp, required=True)
    query_range.add_argument("--end", type=_timestamp, required=True)
    query_range.add_argument("--step-value", type=int, default=1)
    query_range.add_argument("--step-units", choices=sorted(UNIT_NAMES), default="minutes")
    _add_scope_arguments(query_range)

    labels = commands.add_parser("labels", help="Label names, scoped when ids are given.")
    labels.add_argument("--userspace-id", type=int, default=None)
    labels.add_argument("--stream-id", dest="stream_ids", type=int, action="append")

    commands.add_parser("build-info", help="Storage build information.")
    return parser


async def run_command(
    args: argparse.Namespace,
    options: VictoriaOptions,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """Execute the parsed command and return a JSON-ready result."""

    http_client = create_http_client(options, ClusterNodeType.READ, transport=transport)
    async with http_client:
        if args.command in ("query", "query-range"):
            reader = VictoriaReadClient(options, client=http_client)
            if args.command == "query":
                data = await reader.query(args.query, args.step, args.stream_ids, args.userspace_id)
            else:
                step = TimeInterval(args.step_value, UNIT_NAMES[args.step_units])
                data = await reader.query_range(
                    args.query, args.start, args.end, step, args.stream_ids, args.userspace_id
                )
            return data.model_dump(mode="json", by_alias=True)

        proxy = VictoriaProxyClient(options, client=http_client)
        if args.command == "labels":
            envelope = await proxy.labels(None, args.userspace_id, args.stream_ids)
        else:
            envelope = await proxy.build_info()
        return envelope.to_wire()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)
    try:
        options = load_options(args.config) if args.config else get_options()
        result = asyncio.run(run_command(args, options))
    except StorageError as exc:
        LOGGER.error("%s", exc)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
