"""Command-line interface for socialink."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import SocialinkError
from .types import AccountSnapshot, NotConnected


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .app import Socialink


DEFAULT_PROBE_PLATFORMS = ["linkedin", "instagram", "facebook"]


def main(argv: list[str] | None = None) -> int:
    """Run the main CLI entry point.

    Returns
    -------
    int
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="socialink",
        description="Link social accounts via OAuth and inspect their sync state",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    config_parser = subparsers.add_parser("config", help="Show or export configuration")
    config_group = config_parser.add_mutually_exclusive_group()
    config_group.add_argument("--show", action="store_true", help="Show current configuration")
    config_group.add_argument("--toml", action="store_true", help="Export configuration as TOML")
    config_group.add_argument(
        "--env", action="store_true", help="Export configuration as environment variables"
    )
    config_parser.add_argument("--output", "-o", type=str, help="Output file path (default: stdout)")

    connect_parser = subparsers.add_parser("connect", help="Open a provider's authorization dialog")
    connect_parser.add_argument("provider", help="Provider id, e.g. instagram or twitter")
    connect_parser.add_argument(
        "--no-browser", action="store_true", help="Print the URL instead of opening a browser"
    )

    callback_parser = subparsers.add_parser(
        "callback", help="Resume a connect flow from the provider's redirect URL"
    )
    callback_parser.add_argument("url", help="The full redirect URL")
    callback_parser.add_argument(
        "--no-browser", action="store_true", help="Print the backend URL instead of opening it"
    )

    login_parser = subparsers.add_parser("login", help="Log in to the backend")
    login_parser.add_argument("--email", required=True)
    login_parser.add_argument("--password", help="Prompted for when omitted")

    register_parser = subparsers.add_parser("register", help="Register a backend account")
    register_parser.add_argument("--email", required=True)
    register_parser.add_argument("--password", help="Prompted for when omitted")
    register_parser.add_argument(
        "--user-type", choices=["BRAND", "INFLUENCER", "ADMIN"], default="INFLUENCER"
    )

    subparsers.add_parser("logout", help="Log out of the backend")

    sync_parser = subparsers.add_parser("sync", help="Trigger a resync of one platform")
    sync_parser.add_argument("platform")

    probe_parser = subparsers.add_parser("probe", help="Show linked account snapshots")
    probe_parser.add_argument("platforms", nargs="*", default=DEFAULT_PROBE_PLATFORMS)

    args = parser.parse_args(argv)

    handlers: dict[str, Callable[[argparse.Namespace], int]] = {
        "config": handle_config,
        "connect": handle_connect,
        "callback": handle_callback,
        "login": handle_login,
        "register": handle_register,
        "logout": handle_logout,
        "sync": handle_sync,
        "probe": handle_probe,
    }
    handler = handlers.get(args.command or "")
    if handler is None:
        parser.print_help()
        return 0
    return handler(args)


def _print_url(url: str) -> None:
    print(url)


def _print_notice(message: str) -> None:
    print(message, file=sys.stderr)


def _run(
    action: Callable[[Socialink], Awaitable[int]],
    *,
    print_urls: bool = False,
) -> int:
    """Build the app, run ``action`` and map socialink errors to exit code 1."""
    from .app import Socialink

    async def _main() -> int:
        navigate = _print_url if print_urls else None
        async with Socialink(navigate=navigate, notify=_print_notice) as app:
            return await action(app)

    try:
        return asyncio.run(_main())
    except SocialinkError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def handle_config(args: argparse.Namespace) -> int:
    """Handle the config command."""
    from .config import SocialinkSettings

    settings = SocialinkSettings()

    if args.toml:
        output = settings.to_toml()
    elif args.env:
        output = settings.to_env()
    else:
        output = settings.show()

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Configuration written to {args.output}")
    else:
        print(output)

    return 0


def handle_connect(args: argparse.Namespace) -> int:
    """Handle the connect command."""

    async def action(app: Socialink) -> int:
        await app.linker.connect(args.provider)
        return 0

    return _run(action, print_urls=args.no_browser)


def handle_callback(args: argparse.Namespace) -> int:
    """Handle the callback command."""

    async def action(app: Socialink) -> int:
        outcome = await app.reconciler.resume(args.url)
        print(f"Forwarded {outcome.provider_id} authorization to the backend", file=sys.stderr)
        return 0

    return _run(action, print_urls=args.no_browser)


def handle_login(args: argparse.Namespace) -> int:
    """Handle the login command."""
    password = args.password or getpass.getpass("Password: ")

    async def action(app: Socialink) -> int:
        await app.login(args.email, password)
        print("Login Successful!")
        return 0

    return _run(action)


def handle_register(args: argparse.Namespace) -> int:
    """Handle the register command."""
    password = args.password or getpass.getpass("Password: ")

    async def action(app: Socialink) -> int:
        await app.register(args.email, password, args.user_type)
        print("Registration Successful!")
        return 0

    return _run(action)


def handle_logout(_args: argparse.Namespace) -> int:
    """Handle the logout command."""

    async def action(app: Socialink) -> int:
        await app.logout()
        print("Logged out")
        return 0

    return _run(action)


def handle_sync(args: argparse.Namespace) -> int:
    """Handle the sync command."""

    async def action(app: Socialink) -> int:
        await app.accounts.trigger_sync(args.platform)
        print(f"{args.platform.capitalize()} sync successful!")
        return 0

    return _run(action)


def format_probe_result(platform: str, result: object) -> str:
    """One display line per probed platform."""
    if isinstance(result, AccountSnapshot):
        synced = result.last_synced_at.isoformat() if result.last_synced_at else "never"
        return (
            f"{platform:10} {result.display_name} - "
            f"{result.followers_count:,} followers (last synced {synced})"
        )
    if isinstance(result, NotConnected):
        return f"{platform:10} {platform.capitalize()} not connected."
    message = result.message if isinstance(result, SocialinkError) else str(result)
    return f"{platform:10} Error: {message}"


def handle_probe(args: argparse.Namespace) -> int:
    """Handle the probe command."""

    async def action(app: Socialink) -> int:
        batch = await app.accounts.probe_all(args.platforms)
        for platform in args.platforms:
            print(format_probe_result(platform, batch.results[platform]))
        return 0

    return _run(action)
