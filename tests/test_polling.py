"""Tests for poll scheduling and winner selection."""

from datetime import timedelta

from conftest import T0


def test_next_poll_delay_full_interval():
    """Plenty of budget left: sleep the full interval."""
    from auto_login.mail.polling import next_poll_delay

    assert next_poll_delay(0.0, 60.0, 2.0) == 2.0
    assert next_poll_delay(30.0, 60.0, 2.0) == 2.0


def test_next_poll_delay_clipped_to_deadline():
    """The last sleep ends exactly at the deadline."""
    from auto_login.mail.polling import next_poll_delay

    assert next_poll_delay(59.5, 60.0, 2.0) == 0.5


def test_next_poll_delay_stops_at_deadline():
    """No budget left: stop."""
    from auto_login.mail.polling import next_poll_delay

    assert next_poll_delay(60.0, 60.0, 2.0) is None
    assert next_poll_delay(75.0, 60.0, 2.0) is None


def test_is_fresh():
    """Only messages strictly before since_time are stale."""
    from auto_login.mail.polling import is_fresh

    assert is_fresh(T0, None) is True
    assert is_fresh(T0, T0) is True
    assert is_fresh(T0 - timedelta(seconds=1), T0) is False
    assert is_fresh(T0 + timedelta(seconds=1), T0) is True


def _code(uid, code, offset):
    from auto_login.models.message import ExtractedCode

    return ExtractedCode(code=code, message_uid=uid, received_at=T0 + timedelta(seconds=offset), source="subject")


def test_select_latest_picks_max_timestamp():
    """The most recent message wins regardless of order."""
    from auto_login.mail.polling import select_latest

    codes = [_code("1", "111111", 10), _code("2", "222222", 30), _code("3", "333333", 20)]

    assert select_latest(codes).code == "222222"


def test_select_latest_tie_goes_to_last_fetched():
    """Equal timestamps resolve to the last candidate in fetch order."""
    from auto_login.mail.polling import select_latest

    codes = [_code("1", "111111", 10), _code("2", "222222", 10)]

    assert select_latest(codes).message_uid == "2"
    assert select_latest(list(reversed(codes))).message_uid == "1"


def test_select_latest_empty():
    from auto_login.mail.polling import select_latest

    assert select_latest([]) is None
