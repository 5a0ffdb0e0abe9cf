# src/main.py
"""CLI entry point: profiles, resolve commands.

Usage:
    inspectorbroker profiles
    inspectorbroker resolve <params.json> --kind completion|elicitation [options]

``resolve`` feeds one wire request through a broker session and prints the
wire result. When the request needs a human, the CLI answers with ``--reply``
or refuses it when no reply is given.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from inspectorbroker.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "profile", None):
        _apply_profile_mode(parser, args)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _apply_profile_mode(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """A testing profile only answers in auto mode, so --profile implies it."""
    if args.mode is None:
        args.mode = "auto"
    elif args.mode != "auto":
        parser.error(f"--profile requires --mode auto (got --mode {args.mode})")


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="inspectorbroker",
        description=f"inspectorbroker v{__version__}: resolve sampling and elicitation requests",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- profiles ---
    p_profiles = subparsers.add_parser(
        "profiles", help="List built-in testing profiles",
    )
    p_profiles.set_defaults(func=_cmd_profiles)

    # --- resolve ---
    p_resolve = subparsers.add_parser(
        "resolve", help="Resolve one wire request read from a JSON file",
    )
    p_resolve.add_argument("params", type=Path, help="Path to request params JSON")
    p_resolve.add_argument(
        "-k", "--kind", choices=["completion", "elicitation"], required=True,
        help="Request kind",
    )
    p_resolve.add_argument(
        "-m", "--mode", choices=["ask", "auto", "deny"], default=None,
        help="Approval mode (default: from settings)",
    )
    p_resolve.add_argument(
        "-p", "--profile", default=None,
        help="Testing profile ID (implies --mode auto)",
    )
    p_resolve.add_argument(
        "--reply", default=None,
        help="Answer given when a human is asked (text, or JSON object for elicitation)",
    )
    p_resolve.set_defaults(func=_cmd_resolve)

    return parser


async def _cmd_profiles(args: argparse.Namespace) -> int:
    """Print the built-in testing profiles."""
    from inspectorbroker.profiles.repository import MemoryProfileRepository

    for profile in await MemoryProfileRepository().list():
        auto = "auto" if profile.auto_respond else "manual"
        print(f"{profile.id:16s} {profile.name:16s} [{auto}] {profile.description or ''}")
    return 0


async def _cmd_resolve(args: argparse.Namespace) -> int:
    """Run one wire request through a broker session."""
    from inspectorbroker.broker.factory import create_session
    from inspectorbroker.broker.session import BrokerCallbacks
    from inspectorbroker.config.settings import load_settings
    from inspectorbroker.core.errors import BrokerError

    params_path: Path = args.params
    if not params_path.exists():
        logger.error("File not found: %s", params_path)
        return 1
    wire = json.loads(params_path.read_text(encoding="utf-8"))

    overrides: dict[str, Any] = {}
    if args.mode:
        overrides[f"{args.kind}_approval_mode"] = args.mode
    if args.profile:
        overrides["testing_profile_id"] = args.profile
    settings = load_settings(**overrides)
    if not args.verbose:
        from inspectorbroker.logging.logger import configure_from_settings

        configure_from_settings(settings)

    holder: dict[str, Any] = {}
    loop = asyncio.get_running_loop()

    def on_request(request_id: str, request: Any, parent_id: str | None) -> None:
        logger.info("Human input requested for %s", request_id)
        # Settle from outside the handler, as a UI would
        loop.call_soon(_answer, holder["session"], args.kind, request_id, args.reply)

    callbacks = BrokerCallbacks(
        on_completion_request=on_request,
        on_elicitation_request=on_request,
    )
    session = await create_session(settings, callbacks)
    holder["session"] = session

    try:
        if args.kind == "completion":
            result = await session.handle_completion(wire)
        else:
            result = await session.handle_elicitation(wire)
    except BrokerError as exc:
        logger.error("Request failed: %s", exc)
        return 1

    print(json.dumps(result, indent=2))
    return 0


def _answer(session: Any, kind: str, request_id: str, reply: str | None) -> None:
    """Settle a pending request with the CLI reply, or refuse it."""
    from inspectorbroker.core.models import CompletionResponse, TextContent

    if kind == "completion":
        if reply is None:
            session.reject_completion(request_id)
        else:
            session.settle_completion(
                request_id,
                CompletionResponse(content=TextContent(text=reply), model="manual"),
            )
        return

    if reply is None:
        session.reject_elicitation(request_id)
        return
    try:
        data = json.loads(reply)
    except json.JSONDecodeError:
        data = None
    if not isinstance(data, dict):
        logger.error("Elicitation reply must be a JSON object, declining")
        session.reject_elicitation(request_id, "Invalid reply")
        return
    session.settle_elicitation(request_id, data)


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from inspectorbroker.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING", log_format="text")


if __name__ == "__main__":
    sys.exit(main())
