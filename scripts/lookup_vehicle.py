#!/usr/bin/env python3
"""Look up a registration against the live DVSA and DVLA APIs.

Credentials come from the same environment variables the service uses:
DVSA_CLIENT_ID, DVSA_CLIENT_SECRET, DVSA_API_KEY and VES_API_KEY.

Usage
-----
::

    python scripts/lookup_vehicle.py AB12CDE
    python scripts/lookup_vehicle.py "ab12 cde" --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyvehicledata import VehicleDataConfig, VehicleDataError, VehicleDataHub  # noqa: E402


async def main() -> int:
    parser = argparse.ArgumentParser(description="Look up one vehicle by number plate.")
    parser.add_argument("registration", help="Number plate, spaces allowed")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Print the merged record as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = VehicleDataConfig.from_env()
    async with VehicleDataHub(config) as hub:
        try:
            vehicle = await hub.lookup_vehicle(args.registration)
        except VehicleDataError as exc:
            print(f"lookup failed: {exc}", file=sys.stderr)
            return 1

    if args.json_mode:
        print(json.dumps(vehicle.to_json_dict(), indent=2, ensure_ascii=False))
        return 0

    record = vehicle.to_json_dict()
    tests = record.pop("motTests")
    for key, value in record.items():
        print(f"  {key:<16}: {value}")
    print(f"  {'motTests':<16}: {len(tests)}")
    for test in tests[:5]:
        print(f"    - {test.get('completedDate', '?')}  {test.get('testResult', '?')}  expires {test.get('expiryDate', '-')}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
