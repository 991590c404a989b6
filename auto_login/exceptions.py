"""Exception hierarchy for Auto Login.

Every error carries an ``exit_code``; :func:`auto_login.main.main` exits with
it after the orchestrator has released the mailbox and browser.

    AutoLoginError              (exit 1)
    +-- ConfigurationError      (exit 2)
    +-- CredentialFormatError   (warning only)
    +-- MailAccessError         (exit 3)
    |   +-- AppPasswordRequiredError
    |   +-- AuthenticationFailedError
    |   +-- ImapDisabledError
    +-- MailTimeoutError        (exit 4)
    +-- ElementNotFoundError    (exit 5)
    +-- ProtocolError           (exit 6)
        +-- MailConnectionError
        +-- MailProtocolError
"""

from typing import Optional

EXIT_SUCCESS = 0
EXIT_GENERIC_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_MAIL_ACCESS = 3
EXIT_MAIL_TIMEOUT = 4
EXIT_ELEMENT_NOT_FOUND = 5
EXIT_PROTOCOL = 6


class AutoLoginError(Exception):
    """Base exception for all auto login errors.

    Args:
        message: Human-readable error description.
        remediation: Optional multi-line guidance shown to the user.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, remediation: Optional[str] = None):
        super().__init__(message)
        self.remediation = remediation


class ConfigurationError(AutoLoginError):
    """A required setting is absent or invalid."""

    exit_code = EXIT_CONFIGURATION


class CredentialFormatError(AutoLoginError):
    """The secret does not look like a Gmail App Password.

    Never fatal: the resolver logs it and continues with the value as given.
    """


class MailAccessError(AutoLoginError):
    """The mailbox refused access."""

    exit_code = EXIT_MAIL_ACCESS


class AppPasswordRequiredError(MailAccessError):
    """Gmail rejected a regular password and demands an App Password."""


class AuthenticationFailedError(MailAccessError):
    """The account or App Password is wrong, expired or revoked."""


class ImapDisabledError(MailAccessError):
    """IMAP access is turned off for the account."""


class MailTimeoutError(AutoLoginError):
    """No qualifying code email arrived within the wait budget."""

    exit_code = EXIT_MAIL_TIMEOUT


class ElementNotFoundError(AutoLoginError):
    """Every locator strategy for a required page step missed."""

    exit_code = EXIT_ELEMENT_NOT_FOUND


class ProtocolError(AutoLoginError):
    """Network or parse failure not covered by a more specific error."""

    exit_code = EXIT_PROTOCOL


class MailConnectionError(ProtocolError):
    """The IMAP server could not be reached or the TLS handshake failed."""


class MailProtocolError(ProtocolError):
    """An IMAP command (select, search, fetch) failed."""
