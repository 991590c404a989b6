#!/usr/bin/env python3
"""Main entry point for Auto Login."""

import argparse
import asyncio
import logging
import sys

from auto_login.config import settings
from auto_login.credentials.resolver import CredentialResolver
from auto_login.exceptions import EXIT_GENERIC_FAILURE, EXIT_SUCCESS, AutoLoginError
from auto_login.login_flow import AutoLogin, LoginConfig

logger = logging.getLogger(__name__)


def configure_logging():
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Automated Expensify magic code login")
    parser.add_argument(
        "--login-url",
        default=None,
        help=f"Login page (default: {settings.login_url})"
    )
    parser.add_argument("--headless", action="store_true", default=None, help="Run the browser headless")
    parser.add_argument("--devtools", action="store_true", default=None, help="Open DevTools automatically")
    parser.add_argument("--no-keychain", action="store_true", help="Skip the macOS Keychain lookup")
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help=f"Seconds to wait for the code email (default: {settings.max_wait_ms // 1000})"
    )
    parser.add_argument(
        "--close-after-login",
        action="store_true",
        help="Close the browser after logging in instead of waiting for Ctrl+C"
    )
    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """Update settings from command line flags."""
    if args.login_url:
        settings.login_url = args.login_url
    if args.headless:
        settings.headless = True
    if args.devtools:
        settings.devtools = True
    if args.no_keychain:
        settings.use_keychain = False
    if args.timeout is not None:
        settings.max_wait_ms = args.timeout * 1000


async def run(config: LoginConfig, close_after_login: bool = False) -> None:
    """Log in, then keep the browser open until interrupted."""
    auto_login = AutoLogin(config)
    try:
        await auto_login.login()
        if close_after_login:
            return
        logger.info("Browser will remain open. Press Ctrl+C to exit.")
        await asyncio.Event().wait()
    finally:
        logger.info("Closing browser...")
        await auto_login.close()


def main():
    """Main entry point."""
    args = build_parser().parse_args()
    apply_overrides(args)
    configure_logging()

    try:
        resolver = CredentialResolver(settings)
        email = resolver.resolve_email()
        app_password = resolver.resolve_app_password(email)
        asyncio.run(run(LoginConfig.from_settings(email, app_password, settings), args.close_after_login))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting...")
        sys.exit(EXIT_SUCCESS)
    except AutoLoginError as e:
        logger.error(f"{type(e).__name__}: {e}")
        if e.remediation:
            logger.error(e.remediation)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
