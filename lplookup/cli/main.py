from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from lplookup.client.http import ClientConfig, OpenSearchServerlessHttpClient
from lplookup.client.memory import InMemoryLifecyclePolicyClient
from lplookup.client.protocol import LifecyclePolicyClient
from lplookup.core.lookup import (
    LifecyclePolicyDataSource,
    LifecyclePolicyLookupError,
    LifecyclePolicyType,
    PolicyResolver,
    validate_lookup_key,
)
from lplookup.utils.json_safe import to_jsonable


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _positive_float(raw: str) -> float:
    """argparse type for timeouts: a finite number of seconds above zero."""
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {raw!r}") from None
    if not 0 < value < float("inf"):
        raise argparse.ArgumentTypeError(f"must be a positive number of seconds, got {raw!r}")
    return value


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(to_jsonable(obj), indent=2, sort_keys=True))


def _build_client(args: argparse.Namespace) -> Optional[LifecyclePolicyClient]:
    """Pick the remote client: --fixture file, else --endpoint / LPLOOKUP_ENDPOINT_URL."""

    if args.fixture:
        return InMemoryLifecyclePolicyClient.from_json_file(args.fixture)
    cfg = ClientConfig.from_env()
    endpoint = args.endpoint or cfg.endpoint_url
    if not endpoint:
        return None
    return OpenSearchServerlessHttpClient(
        endpoint, api_key=cfg.api_key, timeout_seconds=cfg.timeout_seconds
    )


def cmd_read(args: argparse.Namespace) -> int:
    """Look up one lifecycle policy and print the normalized record.

    Exit codes: 0 found, 1 lookup failed, 2 no remote configured.
    """

    try:
        client = _build_client(args)
    except (OSError, ValueError) as e:
        print(f"error: cannot load remote client: {e}", file=sys.stderr)
        return 2
    if client is None:
        print("error: set --endpoint, LPLOOKUP_ENDPOINT_URL or --fixture", file=sys.stderr)
        return 2

    source = LifecyclePolicyDataSource(PolicyResolver(client, timeout_seconds=args.timeout))
    try:
        record = source.read(args.name, args.type)
    except LifecyclePolicyLookupError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    _print_json(record)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a lookup key locally (no network)."""

    result = validate_lookup_key(args.name, args.type)
    _print_json({"ok": result.ok, "violations": list(result.violations)})
    return 0 if result.ok else 1


def cmd_types(_: argparse.Namespace) -> int:
    _print_json({"types": LifecyclePolicyType.values()})
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the lookup API server.

    Binds to 127.0.0.1 by default. If LPLOOKUP_API_KEYS is set, requests must
    send X-LPLOOKUP-API-Key.
    """

    try:
        import uvicorn
    except ImportError as e:
        print(f"error: uvicorn is required to serve the API: {e}", file=sys.stderr)
        return 2

    from lplookup.api.server import create_app

    app = create_app()
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lplookup", description="Lifecycle policy lookup CLI")
    p.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Python logging level (default: WARNING)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    rd = sub.add_parser("read", help="Read one lifecycle policy by name and type")
    rd.add_argument("--name", required=True, help="Policy name (3-32 characters)")
    rd.add_argument("--type", required=True, help="Policy type, e.g. retention")
    rd.add_argument("--endpoint", default=None, help="Remote endpoint URL (overrides env)")
    rd.add_argument(
        "--fixture", default=None, help="JSON file of remote records to read from instead"
    )
    rd.add_argument(
        "--timeout", type=_positive_float, default=None, help="Per-call timeout in seconds"
    )
    rd.set_defaults(func=cmd_read)

    vd = sub.add_parser("validate", help="Validate a lookup key without calling the remote")
    vd.add_argument("--name", required=True, help="Policy name")
    vd.add_argument("--type", required=True, help="Policy type")
    vd.set_defaults(func=cmd_validate)

    ty = sub.add_parser("types", help="List known lifecycle policy types")
    ty.set_defaults(func=cmd_types)

    sv = sub.add_parser("serve", help="Run the lookup FastAPI server")
    sv.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    sv.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    sv.set_defaults(func=cmd_serve)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
