"""Entry point for running the CLI as a module."""

import argparse
import asyncio
import os
import sys

from .config import CLIConfig
from .realip_cli import check_address, run_command, setup_cli_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Operator CLI for the realip service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Server host (default: localhost)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Server port (default: 8080)",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=os.environ.get("REALIP_ADMIN_TOKEN", ""),
        help="Admin bearer token (default: $REALIP_ADMIN_TOKEN)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("whoami", help="Show the address the server resolves for you")
    sub.add_parser("debug", help="Show the server's diagnostic view (admin)")
    sub.add_parser("sync", help="Refetch the CDN ranges now (admin)")
    check = sub.add_parser("check", help="Test an address against ranges offline")
    check.add_argument("address")
    check.add_argument("ranges", nargs="+", help="CIDR ranges or single IPs")

    return parser.parse_args(argv)


def cli_entry() -> None:
    """CLI entry point."""
    args = parse_args()
    setup_cli_logging(args.debug)

    if args.command == "check":
        sys.exit(check_address(args.address, args.ranges))

    config = CLIConfig(host=args.host, port=args.port, admin_token=args.token)
    try:
        sys.exit(asyncio.run(run_command(args.command, config)))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli_entry()
