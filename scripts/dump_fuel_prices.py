#!/usr/bin/env python3
"""Fetch every fuel price source once and report what each returned.

Useful when a retailer changes its feed or starts blocking requests: the
per-source report shows status, HTTP code, station count and latency.

Usage
-----
::

    python scripts/dump_fuel_prices.py
    python scripts/dump_fuel_prices.py --source Asda --source BP --json

Options::

    --source NAME        Only query this source (repeatable)
    --json               Output the aggregated payload as JSON
    --output FILE        Write output to FILE instead of stdout
    --verbose            Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyvehicledata import VehicleDataConfig, VehicleDataHub, aggregate  # noqa: E402
from pyvehicledata.models.outcome import FetchOutcome  # noqa: E402
from pyvehicledata.sources import SourceRegistry, build_fuel_registry  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _format_outcome(outcome: FetchOutcome) -> str:
    count = len(outcome.data) if outcome.data is not None else "-"
    code = outcome.http_status if outcome.http_status is not None else ""
    elapsed = f"{outcome.elapsed_ms:7.0f}ms" if outcome.elapsed_ms is not None else ""
    line = f"  {outcome.source_name:<12} {outcome.status.value:<14} {code!s:<4} {count!s:>6} {elapsed}"
    if outcome.error:
        line += f"\n      {outcome.error[:120]}"
    return line


async def main() -> None:
    parser = argparse.ArgumentParser(description="Dump per-source fuel price fetch results.")
    parser.add_argument("--source", action="append", default=[], help="Only query this source (repeatable)")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = VehicleDataConfig.from_env()
    registry = build_fuel_registry(config)
    if args.source:
        unknown = [name for name in args.source if name not in registry]
        if unknown:
            parser.error(f"unknown source(s): {', '.join(unknown)}; known: {', '.join(registry.names)}")
        registry = SourceRegistry(registry.get(name) for name in args.source)

    async with VehicleDataHub(config, registry=registry) as hub:
        outcomes = await hub.fetcher.fetch_all(registry)
    result = aggregate(outcomes)

    if args.json_mode:
        payload: dict[str, Any] = result.to_payload(debug=True)
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    else:
        out = [_section(f"fuel sources  ({result.success_count}/{result.source_count} ok)")]
        out.append(f"  {'source':<12} {'status':<14} {'http':<4} {'count':>6} {'elapsed':>9}")
        out.extend(_format_outcome(outcome) for outcome in outcomes)
        out.append(f"\n  total stations: {len(result.items)}")
        text = "\n".join(out)

    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


if __name__ == "__main__":
    asyncio.run(main())
