#!/usr/bin/env python3
"""
Verify the Gmail App Password stored in the macOS Keychain.

Usage: python scripts/verify_app_password.py your-email@gmail.com
       (or set EMAIL)
"""

import logging
import sys
from typing import Optional

from auto_login.config import settings
from auto_login.credentials import keychain
from auto_login.credentials.resolver import APP_PASSWORD_LENGTH, clean_secret

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def verify(email: str, service: str) -> int:
    """Check the stored entry for ``email``. Returns a process exit code."""
    logger.info(f"Checking Keychain for: {email}")

    if not keychain.keychain_available():
        logger.error("The macOS Keychain is only available on macOS")
        return 1

    password = keychain.read_password(service, email)
    if not password:
        logger.error("No password found in Keychain")
        logger.info("To add the App Password to Keychain:")
        logger.info("   " + keychain.add_command_hint(service, email))
        return 1

    length = len(clean_secret(password))
    logger.info(f"Password length: {length} characters")

    if length != APP_PASSWORD_LENGTH:
        logger.warning(f"App Password should be {APP_PASSWORD_LENGTH} characters, got {length}")
        logger.info("This might be a regular password, not an App Password.")
        logger.info("1. Enable 2-Step Verification: https://myaccount.google.com/security")
        logger.info("2. Create App Password: https://myaccount.google.com/apppasswords")
        logger.info(f'3. Update Keychain: security add-generic-password -U -s "{service}" -a "{email}" -w "NEW_PASSWORD"')
        return 1

    if " " in password:
        logger.info("Password contains spaces (will be cleaned automatically)")

    logger.info("App Password in Keychain looks correct!")
    logger.info("If Gmail still asks for an application-specific password:")
    logger.info("   1. Verify IMAP is enabled in Gmail settings")
    logger.info("   2. Make sure 2-Step Verification is enabled")
    logger.info("   3. Try creating a new App Password")
    return 0


def main(argv: Optional[list] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    email = argv[0] if argv else settings.email
    if not email:
        logger.error("Please provide an email: verify_app_password.py your-email@gmail.com (or set EMAIL)")
        return 1
    return verify(email, settings.keychain_service)


if __name__ == "__main__":
    sys.exit(main())
