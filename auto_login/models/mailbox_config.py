"""Mailbox connection settings."""

import re
from dataclasses import dataclass

_TAG_PATTERN = re.compile(r"\+[^@]+@")


def strip_email_tag(email: str) -> str:
    """Remove a ``+tag`` segment: ``user+tag@domain.com`` -> ``user@domain.com``."""
    return _TAG_PATTERN.sub("@", email, count=1)


@dataclass
class MailboxConfig:
    """IMAP account the code email is delivered to."""

    username: str
    password: str
    host: str = "imap.gmail.com"
    port: int = 993
    use_ssl: bool = True
    mailbox: str = "INBOX"

    @classmethod
    def for_login_email(cls, email: str, password: str, **kwargs) -> "MailboxConfig":
        """Build a config whose IMAP account is ``email`` without its ``+tag``."""
        return cls(username=strip_email_tag(email), password=password, **kwargs)

    def __repr__(self):
        return f"<MailboxConfig(username='{self.username}', host='{self.host}', port={self.port})>"
