"""FastMCP entry point for the change-set risk reviewer."""

from __future__ import annotations

import argparse
import logging

from fastmcp import FastMCP

from riskreview.config import SERVER_HOST, SERVER_NAME, SERVER_PORT, SERVER_VERSION
from riskreview.mcp_tools import register_tools

logger = logging.getLogger("riskreview.server")


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # Keep AWS SDK noise at WARNING
    for name in ("botocore", "boto3", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def create_server() -> FastMCP:
    """Create and configure the FastMCP server instance."""
    mcp = FastMCP(name=SERVER_NAME, version=SERVER_VERSION)
    register_tools(mcp)
    return mcp


# Used by the FastMCP CLI
mcp = create_server()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="riskreview-server", description=SERVER_NAME)
    parser.add_argument(
        "--transport",
        choices=["streamable-http", "stdio"],
        default="streamable-http",
    )
    parser.add_argument("--host", default=SERVER_HOST)
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.INFO)

    if args.transport == "stdio":
        logger.info("Starting %s v%s on stdio", SERVER_NAME, SERVER_VERSION)
        mcp.run(transport="stdio")
        return

    logger.info(
        "Starting %s v%s on %s:%d", SERVER_NAME, SERVER_VERSION, args.host, args.port
    )
    try:
        mcp.run(transport="streamable-http", host=args.host, port=args.port)
    except OSError as e:
        logger.error("Server failed to start: %s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
