"""Login attempt tracking model."""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


class LoginOutcome(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class LoginAttempt:
    """One end-to-end run of the login flow.

    The outcome moves from ``PENDING`` to a terminal value exactly once.
    """

    login_url: str
    email: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    outcome: LoginOutcome = LoginOutcome.PENDING
    finished_at: Optional[datetime] = None

    @property
    def is_finished(self) -> bool:
        return self.outcome is not LoginOutcome.PENDING

    def finish(self, outcome: LoginOutcome) -> None:
        """Record the terminal outcome."""
        if outcome is LoginOutcome.PENDING:
            raise ValueError("PENDING is not a terminal outcome")
        if self.is_finished:
            raise RuntimeError(f"Login attempt already finished as {self.outcome.value}")
        self.outcome = outcome
        self.finished_at = datetime.now(timezone.utc)

    def __repr__(self):
        return f"<LoginAttempt(email='{self.email}', outcome='{self.outcome.value}', started_at='{self.started_at}')>"
