"""Verification code extraction from candidate messages."""

import logging
import re
from typing import Optional

from auto_login.models.message import CandidateMessage, ExtractedCode

logger = logging.getLogger(__name__)

# Body fallback: a run of exactly six digits not touching other digits
BODY_CODE_PATTERN = re.compile(r"(?<!\d)(\d{6})(?!\d)")


class CodeExtractor:
    """Pull the magic code out of a message.

    The subject rule (``<label>: 147826``) always wins over the body rule.
    """

    def __init__(self, subject_label: str = "Expensify magic code"):
        self.subject_label = subject_label
        self.subject_pattern = re.compile(re.escape(subject_label) + r":\s*(\d+)")

    def extract(self, message: CandidateMessage) -> Optional[ExtractedCode]:
        """
        Extract the code from a candidate message.

        Args:
            message: Parsed candidate

        Returns:
            ExtractedCode, or None when neither rule matches
        """
        code = self.from_subject(message.subject)
        if code:
            logger.info("Extracted code from subject of message %s", message.uid)
            return ExtractedCode(code=code, message_uid=message.uid, received_at=message.received_at, source="subject")

        code = self.from_body(message.body_plain, message.body_html)
        if code:
            logger.info("Extracted code from body of message %s", message.uid)
            return ExtractedCode(code=code, message_uid=message.uid, received_at=message.received_at, source="body")

        logger.info("No code found in message %s (%r)", message.uid, message.subject)
        return None

    def from_subject(self, subject: str) -> Optional[str]:
        match = self.subject_pattern.search(subject or "")
        return match.group(1) if match else None

    def from_body(self, body_plain: str, body_html: str = "") -> Optional[str]:
        """First standalone six-digit run in the plain body, else in the HTML text."""
        if body_plain:
            match = BODY_CODE_PATTERN.search(body_plain)
            if match:
                return match.group(1)
        if body_html:
            match = BODY_CODE_PATTERN.search(self._html_to_text(body_html))
            if match:
                return match.group(1)
        return None

    def _html_to_text(self, html: str) -> str:
        """Extract visible text from HTML."""
        try:
            from bs4 import BeautifulSoup

            soup = BeautifulSoup(html, "html.parser")
            for tag in soup(["style", "script", "head"]):
                tag.decompose()
            return soup.get_text(separator=" ", strip=True)
        except Exception as e:
            logger.warning("HTML extraction failed: %s", e)
            return html
