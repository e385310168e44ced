"""
Configuration for the enrichment collector, the import coordinator and the
price updater.

Values are plain frozen dataclasses handed to each component when it is built.
Only the from_env() constructors touch the environment (after loading .env).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Browser identity presented to GOAT. Without it Cloudflare serves a challenge
# page and every product comes back with no images.
DESKTOP_USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)
HTML_ACCEPT = 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8'
JSON_ACCEPT = 'application/json'

DEFAULT_BROWSER_ARGS = (
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-blink-features=AutomationControlled',
)


def load_env(env_file: Optional[Path] = None) -> None:
    """Load `env_file` (default: <project root>/.env) if it exists."""
    env_path = env_file or PROJECT_ROOT / '.env'
    if env_path.exists():
        load_dotenv(env_path)


def supabase_credentials() -> Tuple[str, str]:
    """
    Read the service-role Supabase URL and key from the environment.

    Raises:
        ValueError: If either is missing
    """
    supabase_url = os.getenv('SUPABASE_URL') or os.getenv('VITE_SUPABASE_URL', '')
    supabase_key = os.getenv('SUPABASE_SERVICE_ROLE_KEY') or os.getenv('SUPABASE_KEY', '')

    if not supabase_url or not supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment")
    return supabase_url, supabase_key


@dataclass(frozen=True)
class CollectorConfig:
    """Settings for the browser-driven image enrichment run."""
    max_images: int = 8
    delay_between_seconds: float = 1.5
    page_timeout_ms: int = 20000
    settle_ms: int = 800
    headless: bool = True
    user_agent: str = DESKTOP_USER_AGENT
    viewport: Tuple[int, int] = (1440, 900)
    locale: str = 'en-US'
    timezone_id: str = 'America/New_York'
    accept_language: str = 'en-US,en;q=0.9'
    accept: str = HTML_ACCEPT
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS

    @property
    def extra_http_headers(self) -> Dict[str, str]:
        return {
            'Accept-Language': self.accept_language,
            'Accept': self.accept,
        }


@dataclass(frozen=True)
class ImportConfig:
    """Settings for the import coordinator and its Supabase collaborators."""
    supabase_url: str = ''
    supabase_key: str = field(default='', repr=False)
    storage_bucket: str = 'product-images'
    max_images: int = 8
    image_concurrency: int = 4
    page_fetch_timeout: float = 15.0
    image_timeout: float = 20.0
    user_agent: str = DESKTOP_USER_AGENT
    page_accept_language: str = 'en-US,en;q=0.5'
    image_referer: str = 'https://www.goat.com/'

    # Fixed listing fields for imported rows
    category: str = 'sneakers'
    condition: str = 'new'
    listing_status: str = 'active'
    shipping_charges: float = 0
    delivery_days: str = '7-10'

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, **overrides) -> 'ImportConfig':
        """
        Build config from environment variables.

        Reads SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_KEY) after
        loading `env_file` (default: <project root>/.env).

        Raises:
            ValueError: If the Supabase URL or key is missing
        """
        load_env(env_file)
        supabase_url, supabase_key = supabase_credentials()

        values = {
            'supabase_url': supabase_url,
            'supabase_key': supabase_key,
            'storage_bucket': os.getenv('SUPABASE_STORAGE_BUCKET', cls.storage_bucket),
        }
        values.update(overrides)
        return cls(**values)


def _price_browser_config() -> CollectorConfig:
    return CollectorConfig(
        user_agent=DESKTOP_USER_AGENT.replace('Chrome/120.0.0.0', 'Chrome/124.0.0.0'),
        viewport=(1920, 1080),
        accept=JSON_ACCEPT,
    )


@dataclass(frozen=True)
class PriceUpdateConfig:
    """
    Settings for the daily price refresh.

    GOAT quotes USD; listings are priced in INR as
    ((usd + shipping_usd) * usd_to_inr) + margin_inr.
    """
    supabase_url: str = ''
    supabase_key: str = field(default='', repr=False)
    usd_to_inr: float = 91.0
    margin_inr: float = 2000.0
    shipping_usd: float = 10.0
    search_limit: int = 3
    country_code: str = 'HK'
    delay_between_seconds: float = 0.4
    delay_jitter_seconds: float = 0.1
    warmup_url: str = 'https://www.goat.com'
    warmup_timeout_ms: int = 60000
    warmup_settle_ms: int = 3000
    browser: CollectorConfig = field(default_factory=_price_browser_config)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, **overrides) -> 'PriceUpdateConfig':
        """
        Build config from environment variables.

        Reads the Supabase credentials like ImportConfig.from_env() and the
        exchange rate from USD_TO_INR.

        Raises:
            ValueError: If credentials are missing or USD_TO_INR is not a number
        """
        load_env(env_file)
        supabase_url, supabase_key = supabase_credentials()

        rate = os.getenv('USD_TO_INR', str(cls.usd_to_inr))
        try:
            usd_to_inr = float(rate)
        except ValueError:
            raise ValueError(f"USD_TO_INR must be a number, got {rate!r}")

        values = {
            'supabase_url': supabase_url,
            'supabase_key': supabase_key,
            'usd_to_inr': usd_to_inr,
        }
        values.update(overrides)
        return cls(**values)
