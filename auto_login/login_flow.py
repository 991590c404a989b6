"""Login orchestration: browser and mailbox wired into one sequential run."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from auto_login.browser.driver import BrowserDriver
from auto_login.browser.selectors import load_selectors
from auto_login.config import Settings, settings
from auto_login.exceptions import AutoLoginError, MailTimeoutError
from auto_login.mail.imap_client import ImapMailbox
from auto_login.mail.poller import MailboxPoller
from auto_login.models.login_attempt import LoginAttempt, LoginOutcome
from auto_login.models.mailbox_config import MailboxConfig

logger = logging.getLogger(__name__)

# Local clock may run ahead of the mail server's INTERNALDATE
CLOCK_SKEW_MARGIN = timedelta(seconds=30)


@dataclass
class LoginConfig:
    """Everything one login run needs."""

    email: str
    app_password: str
    login_url: str
    from_email: str = "noreply@expensify.com"
    headless: bool = False
    devtools: bool = False
    max_wait_ms: int = 60000

    @classmethod
    def from_settings(cls, email: str, app_password: str, config: Settings = settings) -> "LoginConfig":
        return cls(
            email=email,
            app_password=app_password,
            login_url=config.login_url,
            from_email=config.from_email,
            headless=config.headless,
            devtools=config.devtools,
            max_wait_ms=config.max_wait_ms,
        )


class AutoLogin:
    """Runs the email -> magic code -> success flow once.

    The mailbox is always disconnected when :meth:`login` returns or raises.
    The browser is left open for the user; callers close it via :meth:`close`.
    """

    def __init__(
        self,
        config: LoginConfig,
        poller: Optional[MailboxPoller] = None,
        driver: Optional[BrowserDriver] = None,
        app_settings: Settings = settings,
    ):
        self.config = config
        if poller is None:
            mailbox = ImapMailbox(
                MailboxConfig.for_login_email(
                    config.email,
                    config.app_password,
                    host=app_settings.imap_host,
                    port=app_settings.imap_port,
                ),
                keychain_service=app_settings.keychain_service,
            )
            poller = MailboxPoller(
                mailbox,
                subject_label=app_settings.subject_label,
                poll_interval=app_settings.poll_interval_seconds,
            )
        if driver is None:
            driver = BrowserDriver(
                user_data_dir=app_settings.browser_data_dir,
                selectors=load_selectors(app_settings.selectors_file),
                headless=config.headless,
                devtools=config.devtools,
            )
        self.poller = poller
        self.driver = driver
        self.attempt: Optional[LoginAttempt] = None

    async def login(self) -> LoginAttempt:
        """Run the flow; the returned attempt records the outcome.

        Messages received up to ``CLOCK_SKEW_MARGIN`` before the attempt started
        still count, so a local clock ahead of the server does not turn a fresh
        code into a stale one.
        """
        attempt = LoginAttempt(login_url=self.config.login_url, email=self.config.email)
        self.attempt = attempt
        # INTERNALDATE has one-second resolution
        since_time = attempt.started_at.replace(microsecond=0) - CLOCK_SKEW_MARGIN

        logger.info("Starting automated login process...")
        try:
            await self.poller.connect()
            await self.driver.start()
            await self.driver.navigate(self.config.login_url)

            if not await self.driver.submit_email(self.config.email):
                attempt.finish(LoginOutcome.SUCCESS)
                return attempt

            code = await self.poller.wait_for_code(self.config.from_email, self.config.max_wait_ms, since_time)
            logger.info(f"Code received: {code}")

            await self.driver.submit_code(code)
            await self.driver.await_success()

            attempt.finish(LoginOutcome.SUCCESS)
            logger.info("Login process completed successfully!")
            return attempt
        except MailTimeoutError:
            attempt.finish(LoginOutcome.TIMED_OUT)
            raise
        except AutoLoginError as e:
            logger.error(f"Login failed: {e}")
            attempt.finish(LoginOutcome.FAILED)
            raise
        except BaseException:
            if not attempt.is_finished:
                attempt.finish(LoginOutcome.FAILED)
            raise
        finally:
            await self.poller.disconnect()

    async def logout(self) -> bool:
        return await self.driver.logout()

    async def close(self) -> None:
        await self.driver.close()
