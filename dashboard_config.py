"""
Dashboard Configuration
Settings for the insights dashboard client, read from the environment (.env for local development).
The config object is passed explicitly into the resolver, API client and store.
"""

import os
import logging
from typing import Optional
from dotenv import load_dotenv

from dashboard_errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://vespa-dashboard-9a1f84ee5341.herokuapp.com'
DEFAULT_STAFF_ADMIN_OBJECT = 'object_5'
DEFAULT_TIMEOUT = 30

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _env_flag(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


class DashboardConfig:
    def __init__(self,
                 api_url: Optional[str] = DEFAULT_API_URL,
                 knack_app_id: Optional[str] = None,
                 knack_api_key: Optional[str] = None,
                 staff_admin_object: str = DEFAULT_STAFF_ADMIN_OBJECT,
                 logged_in_user_email: Optional[str] = None,
                 timeout: int = DEFAULT_TIMEOUT,
                 use_mock_data: bool = False,
                 supabase_url: Optional[str] = None,
                 supabase_key: Optional[str] = None,
                 role_binding_source: str = 'knack'):
        self.api_url = api_url.rstrip('/') if api_url else api_url
        self.knack_app_id = knack_app_id
        self.knack_api_key = knack_api_key
        self.staff_admin_object = staff_admin_object
        self.logged_in_user_email = logged_in_user_email
        self.timeout = timeout
        self.use_mock_data = use_mock_data
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.role_binding_source = role_binding_source

    @classmethod
    def from_env(cls, dotenv=True):
        """Build the config from environment variables, loading .env first unless told not to"""
        if dotenv:
            load_dotenv()

        timeout = os.getenv('DASHBOARD_API_TIMEOUT')
        try:
            timeout = int(timeout) if timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigurationError(f"DASHBOARD_API_TIMEOUT must be an integer, got {timeout!r}")

        return cls(
            api_url=os.getenv('DASHBOARD_API_URL', DEFAULT_API_URL),
            knack_app_id=os.getenv('KNACK_APP_ID'),
            knack_api_key=os.getenv('KNACK_API_KEY'),
            staff_admin_object=os.getenv('KNACK_STAFF_ADMIN_OBJECT', DEFAULT_STAFF_ADMIN_OBJECT),
            logged_in_user_email=os.getenv('LOGGED_IN_USER_EMAIL') or None,
            timeout=timeout,
            use_mock_data=_env_flag('DASHBOARD_USE_MOCK_DATA'),
            supabase_url=os.getenv('SUPABASE_URL'),
            supabase_key=os.getenv('SUPABASE_KEY'),
            role_binding_source=os.getenv('ROLE_BINDING_SOURCE', 'knack').strip().lower(),
        )

    @property
    def knack_configured(self):
        return bool(self.knack_app_id and self.knack_api_key)

    @property
    def supabase_configured(self):
        return bool(self.supabase_url and self.supabase_key)

    def validate(self):
        if self.use_mock_data:
            return self
        if not self.api_url:
            raise ConfigurationError("Dashboard configuration not found: DASHBOARD_API_URL is not set")
        if self.role_binding_source not in ('knack', 'supabase'):
            raise ConfigurationError(f"Unknown ROLE_BINDING_SOURCE: {self.role_binding_source}")
        return self

    def describe(self):
        # Log configuration status (without revealing actual keys)
        logger.info(f"DASHBOARD_API_URL: {self.api_url}")
        logger.info(f"KNACK_APP_ID configured: {'Yes' if self.knack_app_id else 'No'}")
        logger.info(f"KNACK_API_KEY configured: {'Yes' if self.knack_api_key else 'No'}")
        logger.info(f"SUPABASE configured: {'Yes' if self.supabase_configured else 'No'}")
        logger.info(f"Role binding source: {self.role_binding_source}")
        if self.use_mock_data:
            logger.info("Mock data source enabled - API calls will return canned data")
