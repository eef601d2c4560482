"""CLI entry point for simple-rest.

    simple-rest GET https://example.com/companies -H "Authorization: Bearer xyz"
    simple-rest POST https://example.com/companies --data '{"name": "ACME"}'
    simple-rest DELETE https://example.com/companies/1 --include
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from simple_rest.client import RestClient
from simple_rest.config_loader import load_client_config
from simple_rest.errors import ConfigError, RestError
from simple_rest.models import RequestMethod, RequestOptions
from simple_rest.response import Response
from simple_rest.url_parameters import parameters


def parse_header(value: str) -> tuple[str, str]:
    """Parse "Name: value" format.

    Raises:
        argparse.ArgumentTypeError: If format is invalid.
    """
    if ":" not in value:
        raise argparse.ArgumentTypeError(
            f"Invalid header '{value}'. Expected 'Name: value' (e.g., 'Accept: text/plain')"
        )
    name, header_value = value.split(":", 1)
    name = name.strip()
    if not name:
        raise argparse.ArgumentTypeError(f"Invalid header '{value}'. Name cannot be empty.")
    return (name, header_value.strip())


def parse_param(value: str) -> tuple[str, str]:
    """Parse KEY=VALUE format.

    Raises:
        argparse.ArgumentTypeError: If format is invalid.
    """
    if "=" not in value:
        raise argparse.ArgumentTypeError(
            f"Invalid parameter '{value}'. Expected KEY=VALUE (e.g., 'page=2')"
        )
    key, param_value = value.split("=", 1)
    if not key:
        raise argparse.ArgumentTypeError(f"Invalid parameter '{value}'. Key cannot be empty.")
    return (key, param_value)


@dataclass
class CallArgs:
    """Parsed arguments for one call."""

    method: RequestMethod
    url: str
    data: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    params: list[tuple[str, str]] = field(default_factory=list)
    accept: str | None = None
    trust_all: bool = False
    config: Path | None = None
    include: bool = False
    raise_for_status: bool | None = None
    verbose: bool = False

    @property
    def full_url(self) -> str:
        flat = [item for pair in self.params for item in pair]
        return self.url + parameters(*flat)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="simple-rest",
        description="Issue a single HTTP call and print the response body.",
    )
    parser.add_argument(
        "method",
        type=str.upper,
        choices=[m.value for m in RequestMethod],
        help="HTTP method",
    )
    parser.add_argument("url", help="Absolute URL to call")
    parser.add_argument(
        "-d", "--data",
        type=str,
        default=None,
        help="Request body, sent verbatim. Use @FILE to read it from a file",
    )
    parser.add_argument(
        "-H", "--header",
        type=parse_header,
        action="append",
        default=[],
        dest="headers",
        metavar="'NAME: VALUE'",
        help="Add a request header (can be repeated)",
    )
    parser.add_argument(
        "-p", "--param",
        type=parse_param,
        action="append",
        default=[],
        dest="params",
        metavar="KEY=VALUE",
        help="Append a URL-encoded query parameter (can be repeated)",
    )
    parser.add_argument(
        "--accept",
        type=str,
        default=None,
        help="Accept header (default: application/json)",
    )
    parser.add_argument(
        "--trust-all",
        action="store_true",
        default=False,
        dest="trust_all",
        help="Accept any server certificate. Unsafe; only for test servers with self-signed certificates",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to client configuration file (YAML)",
    )
    parser.add_argument(
        "-i", "--include",
        action="store_true",
        default=False,
        help="Print status and response headers before the body",
    )
    parser.add_argument(
        "--no-raise",
        action="store_false",
        default=None,
        dest="raise_for_status",
        help="Print responses with status >= 400 instead of failing",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    return parser


def parse_args(args: list[str] | None = None) -> CallArgs:
    """Parse command-line arguments and return typed args dataclass.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    namespace = build_parser().parse_args(args)
    return CallArgs(
        method=RequestMethod(namespace.method),
        url=namespace.url,
        data=namespace.data,
        headers=dict(namespace.headers),
        params=list(namespace.params),
        accept=namespace.accept,
        trust_all=namespace.trust_all,
        config=namespace.config,
        include=namespace.include,
        raise_for_status=namespace.raise_for_status,
        verbose=namespace.verbose,
    )


def _read_data(data: str | None) -> str | None:
    if data is None or not data.startswith("@"):
        return data
    path = Path(data[1:])
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read request body from {path}: {e}", e) from e


def _print_response(response: Response, include: bool) -> None:
    if include:
        print(f"HTTP {response.status_code}")
        for name, value in response.headers.items_flat():
            print(f"{name}: {value}")
        print()
    if response.body:
        sys.stdout.write(response.body)
        if not response.body.endswith("\n"):
            sys.stdout.write("\n")


def run_call(args: CallArgs) -> int:
    """Execute the call described by args and print the outcome."""
    try:
        payload = _read_data(args.data)
        config = load_client_config(args.config) if args.config is not None else None
        # --trust-all can only switch validation off, never back on
        client = RestClient(trust_all=True if args.trust_all else None, config=config)

        options = RequestOptions(
            headers=args.headers,
            accept=args.accept,
            raise_for_status=args.raise_for_status,
        )
        response = client.execute(args.method, args.full_url, payload, options)
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1
    except RestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_response(response, args.include)
    return 0


def main() -> int:
    """Main entry point."""
    try:
        args = parse_args()
        if args.verbose:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(levelname)s %(name)s: %(message)s",
                stream=sys.stderr,
            )
        return run_call(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
