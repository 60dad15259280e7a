"""tail-spotify entry point.

Changes:
  - 2026-10-19: --config selects the credential file.
  - 2026-10-19: Errors are reported once here, tagged with the failing phase.
  - 2026-10-19: Rich logging on stderr; stdout carries only playback output.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import httpx

from tailspotify.config import Settings, get_settings
from tailspotify.errors import TailSpotifyError
from tailspotify.format import format_json, format_line
from tailspotify.integrations.credentials import CredentialManager
from tailspotify.integrations.oauth import TokenClient
from tailspotify.integrations.spotify import SpotifyClient
from tailspotify.integrations.token_store import JsonCredentialStore, RegistrationDefaultsStore
from tailspotify.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return get_version("tail-spotify")
    except PackageNotFoundError:
        return "unknown"


def read_authorization_code(url: str) -> str:
    """Show the authorize URL and read the code the user pastes back."""
    print(f"Authorize your Spotify account via: {url}", file=sys.stderr)
    print("Paste the code from the redirect URL: ", end="", file=sys.stderr, flush=True)
    return sys.stdin.readline()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tail-spotify",
        description="Print the track currently playing on your Spotify account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tail-spotify --setup               Authorize your Spotify account
  tail-spotify                       Print "Track - Artist"
  tail-spotify --json                Print the playback state as JSON
""",
    )
    parser.add_argument(
        "--setup",
        "-s",
        action="store_true",
        help="Run the Spotify login process and save the credentials",
    )
    parser.add_argument(
        "--json",
        "-j",
        action="store_true",
        help="Print the playback state in JSON format",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Credential file to use (default: ~/.config/tail_spotify/credentials.json)",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log token and request activity to stderr"
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {_version()}",
    )
    return parser


def run(
    args: argparse.Namespace,
    settings: Settings,
    http: httpx.Client,
    code_reader: Callable[[str], str] = read_authorization_code,
) -> None:
    """Check credentials, then fetch and print playback (unless --setup)."""
    path = args.config or settings.credentials_path
    logger.debug("Using credential file %s", path)
    store = RegistrationDefaultsStore(
        JsonCredentialStore(path),
        client_id=settings.client_id,
        client_secret=settings.client_secret_value(),
        redirect_uri=settings.redirect_uri,
    )
    manager = CredentialManager(
        store,
        TokenClient(http, settings.accounts_url),
        scopes=settings.scopes,
        code_reader=code_reader,
    )

    if args.setup:
        manager.ensure_valid(force_authorize=True)
        print("Config Saved.")
        return

    spotify = SpotifyClient(http, settings.api_url)
    result = manager.call(spotify.fetch_playback_state)
    print(format_json(result) if args.json else format_line(result))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        with httpx.Client(timeout=settings.request_timeout) as http:
            run(args, settings, http)
    except TailSpotifyError as e:
        where = f" ({e.phase})" if e.phase else ""
        print(f"Error{where}: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
