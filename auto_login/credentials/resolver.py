"""Account email and App Password resolution.

The App Password comes from the first provider that yields one:

1. ``APP_PASSWORD`` (environment or ``.env``)
2. macOS Keychain, when enabled and on macOS
3. Interactive masked prompt
"""

import getpass
import logging
import re
from typing import Callable, List, Optional, Tuple

from auto_login.config import TEMPLATE_EMAIL, Settings, settings
from auto_login.credentials import keychain
from auto_login.exceptions import ConfigurationError, CredentialFormatError

logger = logging.getLogger(__name__)

APP_PASSWORD_LENGTH = 16

SecretProvider = Callable[[], Optional[str]]


def clean_secret(raw: str) -> str:
    """Trim, drop one pair of surrounding quotes, remove all whitespace."""
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1].strip()
    return re.sub(r"\s", "", value)


def check_app_password_format(secret: str, source: str) -> None:
    """Raise CredentialFormatError unless ``secret`` has App Password shape."""
    if len(secret) != APP_PASSWORD_LENGTH:
        raise CredentialFormatError(
            f"Password from {source} is {len(secret)} characters (should be {APP_PASSWORD_LENGTH}). "
            "Gmail App Passwords are exactly 16 characters; remove any quotes or spaces around it."
        )


def first_secret(providers: List[Tuple[str, SecretProvider]]) -> Optional[Tuple[str, str]]:
    """Evaluate providers in order; return ``(source, secret)`` for the first hit."""
    for source, provider in providers:
        secret = provider()
        if secret:
            return source, secret
    return None


class CredentialResolver:
    """Resolves the login email and the mailbox App Password."""

    def __init__(
        self,
        config: Settings = settings,
        prompt_secret: Callable[[str], str] = getpass.getpass,
        prompt_text: Callable[[str], str] = input,
    ):
        self.config = config
        self.prompt_secret = prompt_secret
        self.prompt_text = prompt_text

    def resolve_email(self) -> str:
        """EMAIL from the environment, else an interactive prompt."""
        email = (self.config.email or "").strip()
        if email == TEMPLATE_EMAIL:
            logger.warning("EMAIL is still the template value; update your .env file. Falling back to prompt.")
            email = ""
        if not email:
            email = self._ask(self.prompt_text, "Enter your Gmail address: ").strip()
        if not email or "@" not in email:
            raise ConfigurationError("An account email address is required (set EMAIL)")
        return email

    def resolve_app_password(self, email: str, use_keychain: Optional[bool] = None) -> str:
        if use_keychain is None:
            use_keychain = self.config.use_keychain

        found = first_secret(self.providers(email, use_keychain))
        if found is None:
            raise ConfigurationError(f"No App Password available for {email}")

        source, secret = found
        try:
            check_app_password_format(secret, source)
        except CredentialFormatError as e:
            logger.warning(str(e))
        logger.info(f"Using App Password from {source} ({len(secret)} characters)")
        return secret

    def providers(self, email: str, use_keychain: bool) -> List[Tuple[str, SecretProvider]]:
        providers: List[Tuple[str, SecretProvider]] = [("APP_PASSWORD", self._from_environment)]
        if use_keychain and keychain.keychain_available():
            providers.append(("macOS Keychain", lambda: self._from_keychain(email)))
        providers.append(("prompt", lambda: self._from_prompt(email, use_keychain)))
        return providers

    def _from_environment(self) -> Optional[str]:
        if not self.config.app_password or not self.config.app_password.strip():
            logger.info("APP_PASSWORD not found in environment")
            return None
        return clean_secret(self.config.app_password)

    def _from_keychain(self, email: str) -> Optional[str]:
        password = keychain.read_password(self.config.keychain_service, email)
        return clean_secret(password) if password else None

    def _from_prompt(self, email: str, use_keychain: bool) -> Optional[str]:
        offer_store = use_keychain and keychain.keychain_available()
        if offer_store:
            logger.info("Password not found in macOS Keychain. Store it for convenience with:")
            logger.info("   " + keychain.add_command_hint(self.config.keychain_service, email))

        password = clean_secret(self._ask(self.prompt_secret, f"Enter Gmail App Password for {email}: "))
        if not password:
            return None

        if offer_store:
            answer = self._ask(self.prompt_text, "Store password in macOS Keychain? (y/n): ")
            if answer.strip().lower() == "y":
                if keychain.store_password(self.config.keychain_service, email, password):
                    logger.info("Password stored in Keychain")
                else:
                    logger.warning("Failed to store password in Keychain")
        return password

    def _ask(self, prompt: Callable[[str], str], message: str) -> str:
        try:
            return prompt(message)
        except EOFError as e:
            raise ConfigurationError(f"Cannot prompt for input: {message.strip()}") from e
