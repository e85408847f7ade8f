"""Run the pyvehicledata web service: ``python -m pyvehicledata``."""

from __future__ import annotations

import argparse
import logging
import os

from aiohttp import web

from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.server import create_app


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Vehicle data aggregation service")
    parser.add_argument("--host", help="Bind address (default: VEHICLEDATA_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Bind port (default: VEHICLEDATA_PORT or 8080)")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("VEHICLEDATA_LOG_LEVEL", "INFO"),
        help="Logging level (default: VEHICLEDATA_LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    config = VehicleDataConfig.from_env(**overrides)
    web.run_app(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
