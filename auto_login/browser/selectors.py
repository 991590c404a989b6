"""
Central registry for login page locators.

Each list is ordered by how likely it is to match and is evaluated
first-match-wins. If the page markup changes, point SELECTORS_FILE at a JSON
file overriding any of the lists instead of editing code.
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional

from auto_login.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectorSet:
    email_inputs: List[str] = field(default_factory=lambda: [
        'input[type="email"]',
        'input[name="email"]',
        'input[id*="email"]',
        'input[placeholder*="email" i]',
    ])
    email_submits: List[str] = field(default_factory=lambda: [
        'button[type="submit"]',
        'button:has-text("Continue")',
        'button:has-text("Send")',
        'button:has-text("Next")',
        '[role="button"]:has-text("Continue")',
    ])
    code_inputs: List[str] = field(default_factory=lambda: [
        'input[inputmode="numeric"]',
        'input[type="number"]',
        'input[type="text"][name*="code" i]',
        'input[type="text"][id*="code" i]',
        'input[placeholder*="code" i]',
        'input[placeholder*="magic" i]',
    ])
    code_submits: List[str] = field(default_factory=lambda: [
        'button[type="submit"]',
        'button:has-text("Continue")',
        'button:has-text("Verify")',
        'button:has-text("Login")',
        '[role="button"]:has-text("Continue")',
    ])
    success_indicators: List[str] = field(default_factory=lambda: [
        '[data-testid="workspace"]',
        '.workspace',
        '[aria-label*="workspace" i]',
        'nav',
        'header',
    ])
    logout_buttons: List[str] = field(default_factory=lambda: [
        'button:has-text("Logout")',
        'button:has-text("Log out")',
        '[data-testid="logout"]',
        '[aria-label*="logout" i]',
        'a[href*="logout"]',
    ])


def load_selectors(path: Optional[str] = None) -> SelectorSet:
    """
    Build the selector set, applying overrides from a JSON file if given.

    The file maps list names (``email_inputs``, ``code_inputs``...) to lists
    of selector strings; lists not mentioned keep their defaults.
    """
    defaults = SelectorSet()
    if not path:
        return defaults

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Selectors file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            overrides = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Selectors file {config_path} is not valid JSON: {e}") from e

    if not isinstance(overrides, dict):
        raise ConfigurationError(f"Selectors file {config_path} must contain a JSON object")

    known = {f.name for f in fields(SelectorSet)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigurationError(f"Unknown selector lists in {config_path}: {', '.join(unknown)}")

    for name, value in overrides.items():
        if not isinstance(value, list) or not value or not all(isinstance(s, str) for s in value):
            raise ConfigurationError(f"Selector list {name!r} must be a non-empty list of strings")

    logger.info(f"Loaded selector overrides from {config_path}: {', '.join(sorted(overrides))}")
    return replace(defaults, **overrides)
