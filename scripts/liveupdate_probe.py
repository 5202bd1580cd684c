#!/usr/bin/env python3
"""Live update probe: subscribe to properties and print every change.

Use this to check which property paths a director acknowledges and how
often values are pushed:

    python scripts/liveupdate_probe.py screen2:surface_1 object.offset object.rotation

Connection settings come from ``LIVEUPDATE_*`` environment variables
(``LIVEUPDATE_DIRECTOR`` is required) unless ``--director`` is given.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
import time
from dataclasses import dataclass, field
from typing import Any

from liveupdate import Accessor, ConnectionStatus, LiveUpdateClient, LiveUpdateConfig, LiveUpdateError


@dataclass
class ProbeStats:
    started_at: float
    total_changes: int = 0
    per_name: dict[str, int] = field(default_factory=dict)
    last_change_at: float | None = None

    def on_change(self, name: str, now: float) -> float | None:
        previous = self.last_change_at
        self.total_changes += 1
        self.per_name[name] = self.per_name.get(name, 0) + 1
        self.last_change_at = now
        return None if previous is None else now - previous


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Subscribe to live update properties and print changes.",
    )
    parser.add_argument("object_path", help="Remote object path, e.g. screen2:surface_1.")
    parser.add_argument("property_paths", nargs="+", help="Property paths, e.g. object.offset.")
    parser.add_argument(
        "--director",
        default=None,
        help="Director host[:port]; defaults to LIVEUPDATE_DIRECTOR.",
    )
    parser.add_argument(
        "--update-frequency-ms",
        type=float,
        default=None,
        help="Requested update frequency for these subscriptions.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Pretty-print values.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_summary(stats: ProbeStats, client: LiveUpdateClient) -> None:
    runtime = time.time() - stats.started_at
    info = client.debug_info
    print("[probe] Summary")
    print(f"[probe]   runtime_s     : {runtime:.1f}")
    print(f"[probe]   status        : {info.status} {info.connection_info}")
    print(f"[probe]   acknowledged  : {len(info.subscriptions)}")
    print(f"[probe]   total_changes : {stats.total_changes}")
    for name, count in sorted(stats.per_name.items()):
        print(f"[probe]   {name:<14}: {count}")


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {}
    if args.director:
        overrides["director"] = args.director
    config = LiveUpdateConfig.from_env(**overrides)

    configuration = None
    if args.update_frequency_ms is not None:
        configuration = {"updateFrequencyMs": args.update_frequency_ms}

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    stats = ProbeStats(started_at=time.time())

    def on_status(status: ConnectionStatus, reason: str | None) -> None:
        print(f"[probe] status={status} reason={reason or '-'}")
        if status in (ConnectionStatus.CLOSED, ConnectionStatus.ERROR):
            stop.set()

    def on_change(accessor: Accessor) -> None:
        now = time.time()
        gap = stats.on_change(accessor.name, now)
        gap_text = "first" if gap is None else f"{gap:.2f}s"
        indent = 2 if args.json else None
        print(f"[probe] {accessor.name} gap={gap_text} {json.dumps(accessor.read(), indent=indent, sort_keys=True)}")

    async with LiveUpdateClient(config, on_status_change=on_status) as client:
        subscription = client.auto_subscribe(args.object_path, args.property_paths, configuration)
        for accessor in subscription.values():
            accessor.add_listener(on_change)

        print(f"[probe] Connecting to {config.url}")
        await client.connect()
        try:
            await asyncio.wait_for(stop.wait(), timeout=args.duration or None)
        except TimeoutError:
            print(f"[probe] Reached --duration={args.duration}s, stopping.")

        missing = [name for name, accessor in subscription.items() if not accessor.has_value]
        if missing:
            print(f"[probe] never acknowledged: {', '.join(missing)}")
        subscription.dispose()
        _print_summary(stats, client)
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except LiveUpdateError as exc:  # pragma: no cover - network/system interaction
        print(f"[probe] {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(_main())
