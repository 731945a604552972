"""Command-line interface for ldpclient."""

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console

from . import __version__
from .http import RateLimitedClient, RequestResult
from .logging_config import setup_logging
from .models.config import ClientConfig

METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE")
BODY_METHODS = ("POST", "PUT", "PATCH")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="ldpclient",
        description="Send rate-limited HTTP requests to a Linked Data Platform server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch a resource (GET is the default method)
  ldpclient https://pod.example/container/

  # Create a resource from a Turtle file
  ldpclient POST https://pod.example/container/ --data-file note.ttl

  # Send 20 HEAD requests, at most 5 per 2 seconds
  ldpclient HEAD https://pod.example/r --repeat 20 --burst-limit 5 --refill-interval-ms 2000
        """,
    )

    parser.add_argument(
        "target",
        nargs="+",
        metavar="TARGET",
        help="Optional HTTP method followed by the URL to request",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML configuration file",
    )

    # Request
    request_group = parser.add_argument_group("request")
    body_source = request_group.add_mutually_exclusive_group()
    body_source.add_argument(
        "--data",
        "-d",
        type=str,
        default=None,
        help="Request body (POST, PUT, PATCH)",
    )
    body_source.add_argument(
        "--data-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Read the request body from a file",
    )
    request_group.add_argument(
        "--header",
        "-H",
        action="append",
        default=None,
        metavar="HEADER",
        help="Request header; replaces the default Content-Type (repeatable)",
    )
    request_group.add_argument(
        "--repeat",
        "-n",
        type=int,
        default=1,
        help="Send the request this many times concurrently",
    )

    # Rate limiting
    limit_group = parser.add_argument_group("rate limiting")
    limit_group.add_argument(
        "--burst-limit",
        "-b",
        type=int,
        default=None,
        help="Requests admitted per refill window (default: 10)",
    )
    limit_group.add_argument(
        "--refill-interval-ms",
        "-r",
        type=int,
        default=None,
        help="Milliseconds between bucket refills (default: 1000)",
    )

    # Network settings
    network_group = parser.add_argument_group("network settings")
    network_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds",
    )
    network_group.add_argument(
        "--proxy",
        type=str,
        metavar="URL",
        help="Proxy URL",
    )
    network_group.add_argument(
        "--user-agent",
        type=str,
        help="Custom User-Agent string",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--include",
        "-i",
        action="store_true",
        help="Print response headers",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only print the status line",
    )

    return parser


def parse_headers(values: Optional[list[str]]) -> Optional[dict[str, str]]:
    """Parse 'Name: value' pairs. Returns None when no header was given."""
    if values is None:
        return None
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header {value!r}, expected 'Name: value'")
        headers[name.strip()] = content.strip()
    return headers


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Merge the optional config file with command-line overrides."""
    base = ClientConfig.from_yaml_file(args.config) if args.config else ClientConfig()
    data = base.model_dump()

    if args.burst_limit is not None:
        data["rate_limit"]["burst_limit"] = args.burst_limit
    if args.refill_interval_ms is not None:
        data["rate_limit"]["refill_interval_ms"] = args.refill_interval_ms
    if args.timeout is not None:
        data["network"]["timeout"] = args.timeout
    if args.proxy:
        data["network"]["proxy"] = args.proxy
    if args.user_agent:
        data["network"]["user_agent"] = args.user_agent

    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return ClientConfig.model_validate(data)


def print_result(console: Console, client: RateLimitedClient, result: RequestResult, args: argparse.Namespace) -> None:
    """Print one result."""
    if result.response is None:
        console.print(f"[red]Failed:[/red] {result.method} {result.url} - {result.error}")
        return

    colour = "green" if result.ok else "yellow"
    console.print(f"[{colour}]{result.status_code}[/{colour}] {result.method} {result.response.url}")

    if args.include and not args.quiet:
        for name, value in result.response.headers.items():
            console.print(f"  {name}: {value}", markup=False, highlight=False)

    if not args.quiet and result.response.content:
        console.print(client.decode_content(result), markup=False, highlight=False)


def run_client(args: argparse.Namespace) -> int:
    """Run the requests described by the arguments."""
    console = Console()
    err_console = Console(stderr=True)

    if len(args.target) == 1:
        method, url = "GET", args.target[0]
    elif len(args.target) == 2:
        method, url = args.target[0].upper(), args.target[1]
    else:
        err_console.print("[red]Error:[/red] Expected a URL, optionally preceded by a method")
        return 2

    if method not in METHODS:
        err_console.print(f"[red]Error:[/red] Unsupported method {method}, choose from {', '.join(METHODS)}")
        return 2
    if args.repeat < 1:
        err_console.print("[red]Error:[/red] --repeat must be at least 1")
        return 2

    body: Optional[bytes] = None
    if args.data is not None:
        body = args.data.encode("utf-8")
    elif args.data_file is not None:
        try:
            body = args.data_file.read_bytes()
        except OSError as e:
            err_console.print(f"[red]Error:[/red] Cannot read {args.data_file}: {e}")
            return 2
    if body is not None and method not in BODY_METHODS:
        err_console.print(f"[red]Error:[/red] {method} requests do not take a body")
        return 2

    try:
        headers = parse_headers(args.header)
        config = build_config(args)
    except (ValueError, ValidationError, OSError, ImportError) as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        return 2

    setup_logging(config.log_level, str(config.log_file) if config.log_file else None)

    async def send(client: RateLimitedClient) -> RequestResult:
        if method in BODY_METHODS:
            return await getattr(client, method.lower())(url, body, headers)
        return await getattr(client, method.lower())(url, headers)

    async def run() -> int:
        start = time.monotonic()
        async with RateLimitedClient.from_config(config) as client:
            results = await asyncio.gather(*(send(client) for _ in range(args.repeat)))
            for result in results:
                print_result(console, client, result, args)

            stats = client.stats
            if args.repeat > 1 and not args.quiet:
                console.print()
                console.print("[bold]Results:[/bold]")
                console.print(f"  Requests sent: {stats.requests_sent}")
                console.print(f"  Succeeded: {stats.succeeded}")
                console.print(f"  HTTP errors: {stats.http_errors}")
                console.print(f"  Transport errors: {stats.transport_errors}")
                console.print(f"  Duration: {time.monotonic() - start:.1f}s")

        return 0 if stats.succeeded == stats.requests_sent else 1

    return asyncio.run(run())


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_client(args)


if __name__ == "__main__":
    sys.exit(main())
