"""Command line entry point: ``python -m metad_gateway``."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from .api.server import create_app
from .config import GatewayConfig
from .runtime import GatewayRuntime

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s %(message)s"


def parse_args(cfg: GatewayConfig) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the metad HTTP gateway")
    parser.add_argument("--host", default=cfg.server.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=cfg.server.port, help="HTTP port")
    parser.add_argument("--log-level", default=cfg.observability.log_level, help="Root logger level")
    return parser.parse_args()


def main() -> None:
    cfg = GatewayConfig.from_env()
    args = parse_args(cfg)
    cfg.server.host = args.host
    cfg.server.port = args.port
    cfg.observability.log_level = args.log_level.upper()

    logging.basicConfig(level=cfg.observability.log_level, format=LOG_FORMAT)
    app = create_app(GatewayRuntime.bootstrap(cfg))
    logging.getLogger(__name__).info("Listening on %s:%s", cfg.server.host, cfg.server.port)
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port, log_level=cfg.observability.log_level.lower())


if __name__ == "__main__":
    main()
