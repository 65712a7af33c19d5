import os
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from oapi_client.core.constants import APP_TYPE_INTERNAL, APP_TYPE_ISV, DEFAULT_DOMAIN

# Load .env file variables into environment
load_dotenv(verbose=True)


class Settings:
    """Client configuration settings loaded from environment variables."""

    # --- App Settings ---
    OAPI_DOMAIN: str = DEFAULT_DOMAIN
    OAPI_APP_ID: Optional[str] = None
    OAPI_APP_SECRET: Optional[str] = None
    OAPI_APP_TYPE: str = APP_TYPE_INTERNAL

    # --- HTTP Settings ---
    OAPI_HTTP_TIMEOUT: Optional[float] = None

    def get_domain(self) -> str:
        """Returns the open platform domain, without a trailing slash."""
        domain = os.getenv("OAPI_DOMAIN", DEFAULT_DOMAIN)
        parsed = urlparse(domain)
        if not all([parsed.scheme, parsed.netloc]):
            raise ValueError(f"Invalid OAPI_DOMAIN format: {domain}")
        return domain.rstrip("/")

    def get_app_id(self) -> str | None:
        return os.getenv("OAPI_APP_ID")

    def get_app_secret(self) -> str | None:
        return os.getenv("OAPI_APP_SECRET")

    def get_app_type(self) -> str:
        """Returns the app type, 'internal' (single tenant) unless set to 'isv'."""
        app_type = os.getenv("OAPI_APP_TYPE", APP_TYPE_INTERNAL).lower()
        if app_type not in (APP_TYPE_INTERNAL, APP_TYPE_ISV):
            raise ValueError(f"OAPI_APP_TYPE must be '{APP_TYPE_INTERNAL}' or '{APP_TYPE_ISV}', got '{app_type}'.")
        return app_type

    def is_isv(self) -> bool:
        """Returns True if the app is a multi-tenant ISV app."""
        return self.get_app_type() == APP_TYPE_ISV

    def get_http_timeout(self) -> float | None:
        """Returns the default HTTP timeout in seconds, or None if not set."""
        timeout_str = os.getenv("OAPI_HTTP_TIMEOUT")
        if timeout_str is None:
            return None
        try:
            return float(timeout_str)
        except ValueError:
            raise ValueError("OAPI_HTTP_TIMEOUT environment variable must be a number.")

    # --- Logging Settings ---
    def get_log_level(self, default: str = "INFO") -> str:
        """Gets the configured log level, defaulting if not set."""
        return os.getenv("LOG_LEVEL", default).upper()
