"""Polls the mailbox until the magic code for the current login arrives."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from auto_login.exceptions import MailTimeoutError
from auto_login.mail.code_extractor import CodeExtractor
from auto_login.mail.imap_client import ImapMailbox
from auto_login.mail.polling import is_fresh, next_poll_delay, select_latest
from auto_login.models.message import ExtractedCode

logger = logging.getLogger(__name__)


class MailboxPoller:
    """Resolve the single verification code meant for this login attempt.

    Each cycle searches unread label-matching mail from the sender, drops
    stale candidates, extracts codes and keeps the most recent one. Only the
    winning message is marked read.
    """

    def __init__(
        self,
        mailbox: ImapMailbox,
        subject_label: str = "Expensify magic code",
        poll_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.mailbox = mailbox
        self.subject_label = subject_label
        self.poll_interval = poll_interval
        self.extractor = CodeExtractor(subject_label)
        self._clock = clock
        self._sleep = sleep

    async def connect(self) -> None:
        await self.mailbox.connect()

    async def disconnect(self) -> None:
        await self.mailbox.disconnect()

    async def wait_for_code(
        self,
        from_address: str = "noreply@expensify.com",
        max_wait_ms: int = 60000,
        since_time: Optional[datetime] = None,
    ) -> str:
        """
        Block (cooperatively) until a qualifying code email arrives.

        Args:
            from_address: Expected sender
            max_wait_ms: Total wait budget in milliseconds
            since_time: Ignore messages received strictly before this instant

        Returns:
            The code string

        Raises:
            MailTimeoutError: No qualifying message within ``max_wait_ms``
            MailAccessError, ProtocolError: Connection or command failures
        """
        result = await self.wait_for_extracted_code(from_address, max_wait_ms, since_time)
        return result.code

    async def wait_for_extracted_code(
        self,
        from_address: str,
        max_wait_ms: int,
        since_time: Optional[datetime] = None,
    ) -> ExtractedCode:
        """Same as :meth:`wait_for_code` but returns the source message details."""
        await self.mailbox.connect()

        if since_time is not None and since_time.tzinfo is None:
            since_time = since_time.replace(tzinfo=timezone.utc)

        max_wait = max_wait_ms / 1000
        start = self._clock()
        logger.info(f"Waiting for magic code email from {from_address} (up to {max_wait:.0f}s)...")

        while True:
            found = await self.poll_once(from_address, since_time)
            if found is not None:
                logger.info(f"Code found in message {found.message_uid} ({found.source})")
                return found

            delay = next_poll_delay(self._clock() - start, max_wait, self.poll_interval)
            if delay is None:
                raise MailTimeoutError(f"Timed out after {max_wait:.0f}s waiting for email from {from_address}")
            await self._sleep(delay)

    async def poll_once(self, from_address: str, since_time: Optional[datetime] = None) -> Optional[ExtractedCode]:
        """Run one search/fetch/select cycle. Returns None when nothing qualifies yet."""
        logger.debug(f"Searching for emails from: {from_address}")
        uids = await self.mailbox.search_unread(from_address, self.subject_label)
        logger.debug(f"Found {len(uids)} matching emails")
        if not uids:
            return None

        codes: List[ExtractedCode] = []
        for uid in uids:
            try:
                message = await self.mailbox.fetch_candidate(uid)
            except (ValueError, TypeError, UnicodeError) as e:
                logger.error(f"Error parsing message {uid}: {e}")
                continue
            if message is None:
                continue

            if not is_fresh(message.received_at, since_time):
                logger.debug(f"Skipping stale message {uid} received at {message.received_at}")
                continue

            extracted = self.extractor.extract(message)
            if extracted is not None:
                codes.append(extracted)

        winner = select_latest(codes)
        if winner is None:
            return None

        await self.mailbox.mark_seen(winner.message_uid)
        return winner
