"""Tests for the mailbox poller."""

from datetime import timedelta

import pytest

from conftest import T0, FakeMailbox, make_candidate


def _poller(mailbox, clock):
    from auto_login.mail.poller import MailboxPoller

    return MailboxPoller(mailbox, poll_interval=2.0, clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
async def test_returns_code_from_latest_message(fake_clock):
    """Among several valid candidates the newest one wins and only it is marked read."""
    mailbox = FakeMailbox([[
        make_candidate("10", "Expensify magic code: 111111", T0),
        make_candidate("11", "Expensify magic code: 333333", T0 + timedelta(seconds=20)),
        make_candidate("12", "Expensify magic code: 222222", T0 + timedelta(seconds=10)),
    ]])

    code = await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 60000)

    assert code == "333333"
    assert mailbox.seen == ["11"]
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_since_time_excludes_stale_message(fake_clock):
    """A message before since_time is ignored even with a valid code."""
    mailbox = FakeMailbox([[
        make_candidate("1", "Expensify magic code: 111111", T0 - timedelta(seconds=5)),
        make_candidate("2", "Expensify magic code: 222222", T0 + timedelta(seconds=5)),
    ]])

    code = await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 60000, since_time=T0)

    assert code == "222222"
    assert mailbox.seen == ["2"]


@pytest.mark.asyncio
async def test_stale_newer_order_does_not_matter(fake_clock):
    """Stale filtering happens before selection, even if the stale message sorts later."""
    mailbox = FakeMailbox([[
        make_candidate("5", "Expensify magic code: 222222", T0 + timedelta(seconds=5)),
        make_candidate("4", "Expensify magic code: 111111", T0 - timedelta(seconds=5)),
    ]])

    code = await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 60000, since_time=T0)

    assert code == "222222"


@pytest.mark.asyncio
async def test_naive_since_time_treated_as_utc(fake_clock):
    mailbox = FakeMailbox([[make_candidate("1", "Expensify magic code: 123456", T0)]])

    code = await _poller(mailbox, fake_clock).wait_for_code(
        "noreply@expensify.com", 60000, since_time=T0.replace(tzinfo=None)
    )

    assert code == "123456"


@pytest.mark.asyncio
async def test_keeps_polling_until_message_arrives(fake_clock):
    """Empty cycles sleep the poll interval and retry."""
    mailbox = FakeMailbox([[], [], [make_candidate("7", "Expensify magic code: 765432")]])

    code = await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 60000)

    assert code == "765432"
    assert fake_clock.sleeps == [2.0, 2.0]
    assert mailbox.searches == 3


@pytest.mark.asyncio
async def test_message_without_code_keeps_polling(fake_clock):
    """A matching message with no extractable code is 'not yet arrived'."""
    mailbox = FakeMailbox([
        [make_candidate("1", "Expensify magic code pending", body_plain="no digits here")],
        [make_candidate("2", "Expensify magic code: 246810")],
    ])

    code = await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 60000)

    assert code == "246810"
    assert mailbox.seen == ["2"]


@pytest.mark.asyncio
async def test_timeout_marks_nothing_read(fake_clock):
    """Timeout raises MailTimeoutError, flags nothing, and stays within budget plus one interval."""
    from auto_login.exceptions import MailTimeoutError

    mailbox = FakeMailbox([[make_candidate("1", "Expensify magic code: 111111", T0 - timedelta(minutes=10))]])

    with pytest.raises(MailTimeoutError):
        await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 5000, since_time=T0)

    assert mailbox.seen == []
    assert fake_clock.now <= 5.0 + 2.0
    assert fake_clock.sleeps == [2.0, 2.0, 1.0]


@pytest.mark.asyncio
async def test_connects_before_polling(fake_clock):
    mailbox = FakeMailbox([[make_candidate("1")]])

    await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 1000)

    assert mailbox.connect_calls == 1


@pytest.mark.asyncio
async def test_wait_for_extracted_code_reports_source(fake_clock):
    mailbox = FakeMailbox([[make_candidate("9", "Hello", body_plain="Code: 482913")]])

    extracted = await _poller(mailbox, fake_clock).wait_for_extracted_code("noreply@expensify.com", 1000)

    assert extracted.code == "482913"
    assert extracted.source == "body"
    assert extracted.message_uid == "9"


@pytest.mark.asyncio
async def test_unparseable_candidate_is_skipped(fake_clock):
    """A candidate that fails to parse does not abort the cycle."""
    mailbox = FakeMailbox([[make_candidate("1"), make_candidate("2", "Expensify magic code: 555555")]])
    original_fetch = mailbox.fetch_candidate

    async def flaky_fetch(uid):
        if uid == "1":
            raise ValueError("bad header")
        return await original_fetch(uid)

    mailbox.fetch_candidate = flaky_fetch

    code = await _poller(mailbox, fake_clock).wait_for_code("noreply@expensify.com", 1000)

    assert code == "555555"
