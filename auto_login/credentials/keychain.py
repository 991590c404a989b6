"""macOS Keychain access through the ``security`` command line tool."""

import logging
import subprocess
import sys
from typing import Optional

logger = logging.getLogger(__name__)


def keychain_available() -> bool:
    return sys.platform == "darwin"


def read_password(service: str, account: str) -> Optional[str]:
    """Return the generic password stored for ``service``/``account``, or None."""
    if not keychain_available():
        return None

    try:
        result = subprocess.run(
            ["security", "find-generic-password", "-s", service, "-a", account, "-w"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Keychain lookup failed: {e}")
        return None

    password = result.stdout.strip()
    if result.returncode != 0 or not password:
        logger.debug(f"No Keychain entry for {service}/{account}")
        return None
    return password


def store_password(service: str, account: str, password: str) -> bool:
    """Create or update (``-U``) the Keychain entry."""
    if not keychain_available():
        return False

    try:
        result = subprocess.run(
            ["security", "add-generic-password", "-U", "-s", service, "-a", account, "-w", password],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Keychain update failed: {e}")
        return False
    return result.returncode == 0


def add_command_hint(service: str, account: str) -> str:
    return f'security add-generic-password -s "{service}" -a "{account}" -w "YOUR_16_CHAR_APP_PASSWORD"'
