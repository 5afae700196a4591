"""
Launcher for the JWKS key server.

Usage:
    keyserver-serve [--host HOST] [--port PORT] [--log-level LEVEL]
    python -m keyserver.app.server

Defaults come from KEYSERVER_HOST, KEYSERVER_PORT and KEYSERVER_LOG_LEVEL
(0.0.0.0, 8080, info).
"""

import argparse
import logging
import os
import sys

import uvicorn

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = "info"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the JWKS key server")
    parser.add_argument(
        "--host",
        default=os.getenv("KEYSERVER_HOST", DEFAULT_HOST),
        help="Bind address (default: %(default)s)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("KEYSERVER_PORT", DEFAULT_PORT)),
        help="Listen port (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("KEYSERVER_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        choices=["critical", "error", "warning", "info", "debug"],
        help="Log level (default: %(default)s)",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main(argv=None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    from keyserver.app.main import app

    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
