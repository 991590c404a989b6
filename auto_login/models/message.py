"""Candidate code emails and the codes extracted from them."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CandidateMessage:
    """One unread message matched by a poll cycle's search."""

    uid: str
    sender: str
    subject: str
    received_at: datetime
    body_plain: str = ""
    body_html: str = ""

    def __repr__(self):
        return f"<CandidateMessage(uid='{self.uid}', subject='{self.subject}', received_at='{self.received_at}')>"


@dataclass(frozen=True)
class ExtractedCode:
    """A verification code and the message it came from."""

    code: str
    message_uid: str
    received_at: datetime
    source: str  # "subject" or "body"
