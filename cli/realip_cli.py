"""Operator commands for a running realip service."""

import json
import logging
import sys
from typing import TextIO

import httpx

from realip.core.cidr import is_public_ip, matches, parse_range

from .client import RealIPAPIClient, RealIPAPIError
from .config import CLIConfig

logger = logging.getLogger(__name__)


def check_address(
    address: str, ranges: list[str], output: TextIO = sys.stdout
) -> int:
    """Offline check of *address* against *ranges*.  Exit code 0 on match."""
    bad = [r for r in ranges if parse_range(r) is None]
    for literal in bad:
        output.write(f"ignoring malformed range: {literal}\n")

    hit = matches(address, ranges)
    output.write(
        f"{address}: {'trusted' if hit else 'not trusted'}"
        f" ({'public' if is_public_ip(address) else 'non-public'})\n"
    )
    return 0 if hit else 1


async def run_command(
    command: str,
    config: CLIConfig,
    output: TextIO = sys.stdout,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run one remote command; returns the process exit code."""
    client = RealIPAPIClient(config, transport=transport)
    try:
        if command == "whoami":
            output.write(f"{await client.whoami()}\n")
            return 0
        if command == "debug":
            output.write(json.dumps(await client.debug(), indent=2) + "\n")
            return 0
        if command == "sync":
            result = await client.sync()
            output.write(f"[{result['status']}] {result['message']}\n")
            return 0 if result["status"] != "failed" else 1
        raise ValueError(f"Unknown command: {command}")
    except RealIPAPIError as e:
        output.write(f"Error: {e}\n")
        return 2
    except httpx.HTTPError as e:
        logger.debug("Request failed", exc_info=True)
        output.write(f"Connection error: {e}\n")
        return 2
    finally:
        await client.close()


def setup_cli_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
