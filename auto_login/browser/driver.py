"""Playwright driver for the email and magic code login steps."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from auto_login.browser.selectors import SelectorSet
from auto_login.exceptions import ElementNotFoundError

logger = logging.getLogger(__name__)

LOGIN_PATH_MARKERS = ("/login", "/signin")

INPUTS_SNAPSHOT_JS = """
inputs => inputs.map(i => ({
    type: i.type,
    name: i.name,
    id: i.id,
    placeholder: i.placeholder,
    inputmode: i.inputMode,
}))
"""


def is_login_url(url: str) -> bool:
    return any(marker in url for marker in LOGIN_PATH_MARKERS)


class BrowserDriver:
    """Drive the login page with ordered, first-match-wins locator lists.

    The browser runs on a persistent profile directory so an existing
    session survives between runs. Only one driver may use a profile
    directory at a time.
    """

    def __init__(
        self,
        user_data_dir: str = "./browser-data",
        selectors: Optional[SelectorSet] = None,
        headless: bool = False,
        devtools: bool = False,
        email_timeout_ms: int = 5000,
        code_timeout_ms: int = 2000,
        success_timeout_ms: int = 10000,
        success_grace_ms: int = 3000,
    ):
        self.user_data_dir = user_data_dir
        self.selectors = selectors or SelectorSet()
        self.headless = headless
        self.devtools = devtools
        self.email_timeout_ms = email_timeout_ms
        self.code_timeout_ms = code_timeout_ms
        self.success_timeout_ms = success_timeout_ms
        self.success_grace_ms = success_grace_ms
        self._playwright = None
        self.context = None
        self.page = None

    async def start(self) -> None:
        """Launch Chromium on the persistent profile and pick its first tab."""
        args = ["--start-maximized"]
        if self.devtools:
            args.append("--auto-open-devtools-for-tabs")

        Path(self.user_data_dir).mkdir(parents=True, exist_ok=True)
        self._playwright = await async_playwright().start()
        self.context = await self._playwright.chromium.launch_persistent_context(
            self.user_data_dir,
            headless=self.headless,
            slow_mo=100,
            no_viewport=True,
            args=args,
        )
        self.page = self.context.pages[0] if self.context.pages else await self.context.new_page()
        logger.info(f"Browser started with profile {self.user_data_dir}")

    async def navigate(self, url: str) -> None:
        """Load ``url`` and wait for network quiescence."""
        page = self._require_page()
        logger.info(f"Navigating to {url}")
        await page.goto(url, wait_until="networkidle")

    async def submit_email(self, address: str) -> bool:
        """
        Fill and submit the email step.

        Returns:
            True when the email was submitted, False when no email field
            exists and the page is not a login page (already logged in)

        Raises:
            ElementNotFoundError: No email field on an actual login page
        """
        page = self._require_page()

        selector = await self._wait_for_first(self.selectors.email_inputs, self.email_timeout_ms)
        if selector is None:
            if not is_login_url(page.url):
                logger.info("Already logged in, skipping login process")
                return False
            raise ElementNotFoundError(f"Could not find email input field on {page.url}")

        logger.info(f"Entering email: {address}")
        await page.fill(selector, address)
        await self._submit(selector, self.selectors.email_submits, "Email")

        await page.wait_for_timeout(1000)
        return True

    async def submit_code(self, code: str) -> None:
        """
        Fill and submit the magic code step.

        Raises:
            ElementNotFoundError: No code field matched; the page's inputs are
                logged first
        """
        page = self._require_page()

        logger.info("Waiting for code input field...")
        selector = await self._wait_for_first(self.selectors.code_inputs, self.code_timeout_ms)
        if selector is None:
            inputs = await page.eval_on_selector_all("input", INPUTS_SNAPSHOT_JS)
            logger.error(f"Available inputs on page: {inputs}")
            raise ElementNotFoundError("Could not find code input field")

        logger.info(f"Found code input with selector: {selector}")
        await page.fill(selector, code)
        await self._submit(selector, self.selectors.code_submits, "Code")

        await page.wait_for_timeout(2000)

    async def await_success(self) -> bool:
        """
        Wait for a sign that the login went through.

        Returns:
            True when a success indicator appeared or the URL left the login
            path, False when success could not be confirmed (never raises)
        """
        page = self._require_page()
        logger.info("Waiting for login to complete...")

        indicator = await self._race_for_first(self.selectors.success_indicators, self.success_timeout_ms)
        if indicator is not None:
            logger.info(f"Login successful! ({indicator})")
            return True

        await page.wait_for_timeout(self.success_grace_ms)
        if not is_login_url(page.url):
            logger.info("Login successful! (URL changed)")
            return True

        logger.warning("Could not confirm login success, but continuing...")
        return False

    async def logout(self) -> bool:
        page = self._require_page()
        selector = await self._click_first_present(self.selectors.logout_buttons)
        if selector is None:
            logger.warning("Could not find logout button")
            return False
        logger.info("Logged out")
        await page.wait_for_timeout(1000)
        return True

    async def close(self) -> None:
        """Close the browser; calling it twice is a no-op."""
        if self.context is not None:
            await self.context.close()
            self.context = None
            self.page = None
            logger.info("Browser closed")
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def _submit(self, field_selector: str, submit_selectors: List[str], step: str) -> None:
        """Click the first submit control present, else press Enter in the field."""
        if await self._click_first_present(submit_selectors) is not None:
            logger.info(f"{step} submitted")
            return
        await self._require_page().press(field_selector, "Enter")
        logger.info(f"{step} submitted (via Enter key)")

    async def _wait_for_first(self, selectors: List[str], timeout_ms: int) -> Optional[str]:
        """Try each selector in order, waiting up to ``timeout_ms`` for each."""
        page = self._require_page()
        for selector in selectors:
            try:
                handle = await page.wait_for_selector(selector, timeout=timeout_ms)
            except PlaywrightTimeoutError:
                continue
            if handle is not None:
                return selector
        return None

    async def _click_first_present(self, selectors: List[str]) -> Optional[str]:
        page = self._require_page()
        for selector in selectors:
            try:
                element = await page.query_selector(selector)
                if element is not None:
                    await element.click()
                    return selector
            except PlaywrightError as e:
                logger.debug(f"Selector {selector} failed: {e}")
        return None

    async def _race_for_first(self, selectors: List[str], timeout_ms: int) -> Optional[str]:
        """Wait on all selectors at once; the earliest to appear wins, list order breaks ties."""
        page = self._require_page()
        tasks = {asyncio.ensure_future(page.wait_for_selector(s, timeout=timeout_ms)): s for s in selectors}
        order = {s: i for i, s in enumerate(selectors)}
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=lambda t: order[tasks[t]]):
                    if task.exception() is None and task.result() is not None:
                        return tasks[task]
            return None
        finally:
            for task in pending:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    def _require_page(self):
        if self.page is None:
            raise RuntimeError("Browser not initialized")
        return self.page
