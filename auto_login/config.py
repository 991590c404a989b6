"""Configuration settings for Auto Login."""

from typing import Optional

from pydantic_settings import BaseSettings

# Placeholder shipped in .env.example; treated as "not configured"
TEMPLATE_EMAIL = "your-email@gmail.com"


class Settings(BaseSettings):
    # Account
    email: Optional[str] = None
    app_password: Optional[str] = None  # Gmail App Password (16 chars)
    use_keychain: bool = True
    keychain_service: str = "expensify-auto-login"

    # Login target
    login_url: str = "https://new.expensify.com/"
    from_email: str = "noreply@expensify.com"

    # Mailbox
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    subject_label: str = "Expensify magic code"
    max_wait_ms: int = 60000
    poll_interval_seconds: float = 2.0

    # Browser
    headless: bool = False
    devtools: bool = False
    browser_data_dir: str = "./browser-data"
    selectors_file: Optional[str] = None  # JSON overrides for locator lists

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
