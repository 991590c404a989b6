"""Tests for locator lists."""

import json
from pathlib import Path

import pytest


def test_default_selectors():
    """Defaults are ordered by likelihood."""
    from auto_login.browser.selectors import load_selectors

    selectors = load_selectors(None)

    assert selectors.email_inputs[0] == 'input[type="email"]'
    assert selectors.code_inputs[0] == 'input[inputmode="numeric"]'
    assert 'button[type="submit"]' in selectors.code_submits


def test_load_overrides(tmp_path):
    """Lists in the file replace the defaults; others are kept."""
    from auto_login.browser.selectors import SelectorSet, load_selectors

    path = tmp_path / "selectors.json"
    path.write_text(json.dumps({"code_inputs": ["#magic-code"]}))

    selectors = load_selectors(str(path))

    assert selectors.code_inputs == ["#magic-code"]
    assert selectors.email_inputs == SelectorSet().email_inputs


def test_unknown_list_rejected(tmp_path):
    from auto_login.browser.selectors import load_selectors
    from auto_login.exceptions import ConfigurationError

    path = tmp_path / "selectors.json"
    path.write_text(json.dumps({"password_inputs": ["#pw"]}))

    with pytest.raises(ConfigurationError):
        load_selectors(str(path))


@pytest.mark.parametrize("content", ["not json", "[]", '{"code_inputs": []}', '{"code_inputs": "#code"}'])
def test_invalid_file_rejected(tmp_path, content):
    from auto_login.browser.selectors import load_selectors
    from auto_login.exceptions import ConfigurationError

    path = tmp_path / "selectors.json"
    path.write_text(content)

    with pytest.raises(ConfigurationError):
        load_selectors(str(path))


def test_missing_file_rejected():
    from auto_login.browser.selectors import load_selectors
    from auto_login.exceptions import ConfigurationError

    with pytest.raises(ConfigurationError):
        load_selectors(str(Path("/nonexistent/selectors.json")))
