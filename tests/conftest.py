"""Test configuration and fixtures."""

import os
from collections import namedtuple
from datetime import datetime, timedelta, timezone

import pytest

for _var in ("EMAIL", "APP_PASSWORD", "SELECTORS_FILE", "LOG_FILE"):
    os.environ.pop(_var, None)
os.environ["USE_KEYCHAIN"] = "false"

# Same shape as aioimaplib's Response
ImapResponse = namedtuple("ImapResponse", "result lines")

T0 = datetime(2025, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


def make_candidate(uid, subject="Expensify magic code: 123456", received_at=T0, body_plain="", body_html=""):
    from auto_login.models.message import CandidateMessage

    return CandidateMessage(
        uid=uid,
        sender="Expensify <noreply@expensify.com>",
        subject=subject,
        received_at=received_at,
        body_plain=body_plain,
        body_html=body_html,
    )


class FakeMailbox:
    """In-memory stand-in for ImapMailbox.

    ``cycles`` is a list of lists of candidates, one list per search; the
    last entry repeats once exhausted.
    """

    def __init__(self, cycles=None):
        self.cycles = cycles or [[]]
        self.searches = 0
        self.fetched = []
        self.seen = []
        self.connect_calls = 0
        self.disconnect_calls = 0
        self._current = {}

    async def connect(self):
        self.connect_calls += 1

    async def disconnect(self):
        self.disconnect_calls += 1

    async def search_unread(self, from_address, subject_label):
        index = min(self.searches, len(self.cycles) - 1)
        self.searches += 1
        self._current = {c.uid: c for c in self.cycles[index]}
        return list(self._current)

    async def fetch_candidate(self, uid):
        self.fetched.append(uid)
        return self._current[uid]

    async def mark_seen(self, uid):
        self.seen.append(uid)
        return True


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mailbox_config():
    from auto_login.models.mailbox_config import MailboxConfig

    return MailboxConfig(username="user@gmail.com", password="abcdefghijklmnop")


@pytest.fixture
def sample_raw_email():
    """Magic code email as delivered by Expensify."""
    return b"""From: Expensify <noreply@expensify.com>
To: user+expensify@gmail.com
Subject: Expensify magic code: 147826
Date: Wed, 15 Jan 2025 10:30:00 +0000
Message-ID: <code-123@expensify.com>
MIME-Version: 1.0
Content-Type: multipart/alternative; boundary=boundary123

--boundary123
Content-Type: text/plain; charset=UTF-8

Use 147826 to sign in.

--boundary123
Content-Type: text/html; charset=UTF-8

<html><body><p>Use <b>147826</b> to sign in.</p></body></html>

--boundary123--
"""


@pytest.fixture
def sample_raw_html_email():
    """HTML-only email whose code is only in the body."""
    return b"""From: Expensify <noreply@expensify.com>
To: user@gmail.com
Subject: Your Expensify magic code
Date: Wed, 15 Jan 2025 10:31:00 +0000
MIME-Version: 1.0
Content-Type: text/html; charset=UTF-8

<html><head><style>.c { color: #123456; }</style></head><body><p>Your code is 482913</p></body></html>
"""


@pytest.fixture
def recent():
    return T0 + timedelta(seconds=5)
