"""Automated magic code login for Expensify."""

__version__ = "1.0.0"
