"""IMAP client for the mailbox that receives magic code emails."""

import aioimaplib
import asyncio
import logging
import re
import ssl
from datetime import datetime, timezone
from email import message_from_bytes, policy
from email.utils import parsedate_to_datetime
from typing import List, Optional

from auto_login.exceptions import (
    AppPasswordRequiredError,
    AuthenticationFailedError,
    ImapDisabledError,
    MailAccessError,
    MailConnectionError,
    MailProtocolError,
)
from auto_login.models.mailbox_config import MailboxConfig
from auto_login.models.message import CandidateMessage

logger = logging.getLogger(__name__)

INTERNALDATE_PATTERN = re.compile(rb'INTERNALDATE "([^"]+)"')

APP_PASSWORD_HELP = """\
To fix this:
1. Enable 2-Step Verification: https://myaccount.google.com/security
2. Create an App Password: https://myaccount.google.com/apppasswords
3. Make sure IMAP is enabled: Gmail -> Settings -> Forwarding and POP/IMAP -> Enable IMAP
App Passwords are 16 characters (spaces are removed automatically).
Store it in Keychain:
   security add-generic-password -s "{service}" -a "{account}" -w "YOUR_16_CHAR_APP_PASSWORD\""""

AUTH_FAILED_HELP = """\
Possible causes:
1. APP_PASSWORD is incorrect or not an App Password
2. The App Password has expired or been revoked
3. The password contains extra quotes or characters
To fix:
1. Create a new App Password: https://myaccount.google.com/apppasswords
2. Update .env: APP_PASSWORD=your-16-char-password (no quotes)
Debug info: password length {length} characters, account {account}"""

IMAP_DISABLED_HELP = """\
Enable IMAP in Gmail: Settings -> See all settings -> Forwarding and POP/IMAP -> Enable IMAP"""


def classify_login_failure(detail: str, config: MailboxConfig, service: str = "expensify-auto-login") -> MailAccessError:
    """Map the server's login rejection text to an actionable error."""
    if "Application-specific password required" in detail or ("ALERT" in detail and "185833" in detail):
        return AppPasswordRequiredError(
            "Gmail App Password required",
            remediation=APP_PASSWORD_HELP.format(service=service, account=config.username),
        )
    if "not enabled for IMAP" in detail:
        return ImapDisabledError("IMAP access is disabled for this account", remediation=IMAP_DISABLED_HELP)
    if "Invalid credentials" in detail or "AUTHENTICATIONFAILED" in detail or "authentication" in detail.lower():
        return AuthenticationFailedError(
            "Gmail authentication failed. Check APP_PASSWORD",
            remediation=AUTH_FAILED_HELP.format(length=len(config.password or ""), account=config.username),
        )
    return MailAccessError(f"Login rejected by {config.host}: {detail}")


def _response_text(lines) -> str:
    return " ".join(
        line.decode("utf-8", errors="ignore") if isinstance(line, (bytes, bytearray)) else str(line)
        for line in lines
    )


class ImapMailbox:
    """Authenticated connection to one mailbox.

    Connecting is idempotent and the connection is reused across poll cycles.
    Fetches use ``BODY.PEEK[]`` so reading a candidate never marks it read;
    only :meth:`mark_seen` mutates flags.
    """

    def __init__(self, config: MailboxConfig, keychain_service: str = "expensify-auto-login", timeout: float = 30):
        self.config = config
        self.keychain_service = keychain_service
        self.timeout = timeout
        self.client = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Connect and log in to the IMAP server."""
        if self._connected:
            return

        try:
            if self.config.use_ssl:
                self.client = aioimaplib.IMAP4_SSL(
                    host=self.config.host,
                    port=self.config.port,
                    ssl_context=ssl.create_default_context(),
                    timeout=self.timeout,
                )
            else:
                self.client = aioimaplib.IMAP4(host=self.config.host, port=self.config.port, timeout=self.timeout)
            await self.client.wait_hello_from_server()
        except (OSError, asyncio.TimeoutError) as e:
            raise MailConnectionError(f"Could not reach {self.config.host}:{self.config.port}: {e}") from e

        try:
            login_response = await self.client.login(self.config.username, self.config.password)
        except (OSError, asyncio.TimeoutError, aioimaplib.Abort) as e:
            raise MailConnectionError(f"Connection lost during login to {self.config.host}: {e}") from e

        if login_response.result != "OK":
            detail = _response_text(login_response.lines)
            logger.error(f"Login failed for {self.config.username}: {login_response.result} - {detail}")
            raise classify_login_failure(detail, self.config, self.keychain_service)

        self._connected = True
        logger.info(f"Connected to {self.config.host} as {self.config.username}")

    async def disconnect(self) -> None:
        """Log out and drop the client, also after a rejected login; safe to call twice."""
        if self.client is None:
            return
        try:
            await self.client.logout()
            logger.info(f"Disconnected from {self.config.host}")
        except Exception as e:
            logger.error(f"Error disconnecting from {self.config.host}: {e}")
        finally:
            self.client = None
            self._connected = False

    async def search_unread(self, from_address: str, subject_label: str) -> List[str]:
        """UIDs of unread messages from ``from_address`` with the label in the subject."""
        await self._select()
        response = await self._command(
            self.client.uid_search("UNSEEN", "FROM", f'"{from_address}"', "SUBJECT", f'"{subject_label}"'),
            "search",
        )
        if response.result != "OK":
            raise MailProtocolError(f"Search failed: {_response_text(response.lines)}")

        first_line = response.lines[0] if response.lines else b""
        if isinstance(first_line, (bytes, bytearray)):
            first_line = first_line.decode()
        return [uid for uid in first_line.split() if uid.isdigit()]

    async def fetch_candidate(self, uid: str) -> Optional[CandidateMessage]:
        """Fetch and parse one message without touching its flags."""
        response = await self._command(self.client.uid("fetch", uid, "(INTERNALDATE BODY.PEEK[])"), "fetch")
        if response.result != "OK":
            raise MailProtocolError(f"Fetch of message {uid} failed: {_response_text(response.lines)}")

        raw_email = next((line for line in response.lines if isinstance(line, bytearray)), None)
        if raw_email is None and len(response.lines) > 1:
            raw_email = response.lines[1]
        if not raw_email:
            logger.warning(f"Message {uid} returned no body")
            return None

        internal_date = None
        for line in response.lines:
            if isinstance(line, bytes):
                match = INTERNALDATE_PATTERN.search(line)
                if match:
                    internal_date = match.group(1).decode()
                    break

        return parse_candidate(bytes(raw_email), uid, internal_date)

    async def mark_seen(self, uid: str) -> bool:
        """Set ``\\Seen`` on one message. Setting it twice is harmless."""
        response = await self._command(self.client.uid("store", uid, "+FLAGS", "(\\Seen)"), "store")
        if response.result != "OK":
            logger.warning(f"Could not mark message {uid} as read: {_response_text(response.lines)}")
            return False
        return True

    async def _select(self) -> None:
        if not self._connected:
            await self.connect()
        response = await self._command(self.client.select(self.config.mailbox), "select")
        if response.result != "OK":
            raise MailProtocolError(f"Could not open {self.config.mailbox}: {_response_text(response.lines)}")

    async def _command(self, awaitable, name: str):
        try:
            return await awaitable
        except (OSError, asyncio.TimeoutError, aioimaplib.Abort, aioimaplib.CommandTimeout) as e:
            raise MailProtocolError(f"IMAP {name} failed: {type(e).__name__}: {e}") from e


def parse_candidate(raw_email: bytes, uid: str, internal_date: Optional[str] = None) -> CandidateMessage:
    """Parse raw RFC822 bytes into a candidate message."""
    msg = message_from_bytes(raw_email, policy=policy.default)

    sender = str(msg.get("From", ""))
    subject = str(msg.get("Subject", ""))
    received_at = _received_at(internal_date, msg.get("Date"))

    body_plain = ""
    body_html = ""
    for part in msg.walk():
        if part.is_multipart() or part.get_content_disposition() == "attachment":
            continue
        content_type = part.get_content_type()
        if content_type not in ("text/plain", "text/html"):
            continue
        payload = part.get_payload(decode=True)
        if not payload:
            continue
        try:
            decoded = payload.decode(part.get_content_charset() or "utf-8", errors="ignore")
        except LookupError:
            decoded = payload.decode("utf-8", errors="ignore")
        if content_type == "text/plain":
            body_plain += decoded
        else:
            body_html += decoded

    return CandidateMessage(
        uid=uid,
        sender=sender,
        subject=subject,
        received_at=received_at,
        body_plain=body_plain,
        body_html=body_html,
    )


def _received_at(internal_date: Optional[str], date_header) -> datetime:
    """INTERNALDATE, else the Date header, else now; always timezone-aware."""
    if internal_date:
        try:
            return datetime.strptime(internal_date.strip(), "%d-%b-%Y %H:%M:%S %z")
        except ValueError:
            logger.debug(f"Unparseable INTERNALDATE {internal_date!r}")
    if date_header:
        try:
            parsed = parsedate_to_datetime(str(date_header))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
        except (TypeError, ValueError):
            logger.debug(f"Unparseable Date header {date_header!r}")
    return datetime.now(timezone.utc)
