"""
Configuration management and loading.

Handles dashboard settings from YAML and environment variables.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml

from ai_usage_dashboard.core.currency import Currency
from ai_usage_dashboard.core.savings import PlanPricing
from ai_usage_dashboard.core.series import Language

API_KEY_ENV = "AI_USAGE_API_KEY"
BASE_URL_ENV = "AI_USAGE_BASE_URL"


@dataclass(frozen=True)
class ApiConfig:
    """Connection settings for the reporting API."""
    base_url: str
    api_key: Optional[str] = None
    timeout_seconds: float = 10.0
    rate_retries: int = 0

    def __post_init__(self):
        """Validate URL and limits."""
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.rate_retries < 0:
            raise ValueError("rate_retries cannot be negative")


@dataclass(frozen=True)
class CurrencyConfig:
    """Display currency and the rate used before any rate is resolved."""
    display: Currency = Currency.USD
    initial_rate: float = 150.0

    def __post_init__(self):
        """Validate initial rate is positive."""
        if self.initial_rate <= 0:
            raise ValueError("initial_rate must be > 0")


@dataclass(frozen=True)
class DashboardConfig:
    """Complete dashboard configuration."""
    api: ApiConfig
    currency: CurrencyConfig = field(default_factory=CurrencyConfig)
    plans: PlanPricing = field(default_factory=PlanPricing)
    language: Language = Language.EN

    @classmethod
    def default(cls, base_url: str) -> "DashboardConfig":
        """Defaults for everything except the API root."""
        return apply_environment(cls(api=ApiConfig(base_url=base_url)))


def apply_environment(config: DashboardConfig) -> DashboardConfig:
    """Let ``AI_USAGE_API_KEY`` override the configured API key."""
    api_key = os.environ.get(API_KEY_ENV)
    if not api_key:
        return config
    return replace(config, api=replace(config.api, api_key=api_key))


def load_dashboard_config(path: str) -> DashboardConfig:
    """Load and validate dashboard configuration from a YAML file.

    Unknown keys are rejected so a typo never silently falls back to a
    default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated DashboardConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Dashboard config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'api', 'currency', 'plans', 'language'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    if 'api' not in raw_config:
        raise ValueError("Missing required 'api' section")

    config = DashboardConfig(
        api=_parse_api_config(_section(raw_config, 'api')),
        currency=_parse_currency_config(_section(raw_config, 'currency', required=False)),
        plans=_parse_plans_config(_section(raw_config, 'plans', required=False)),
        language=_parse_language(raw_config.get('language', Language.EN.value)),
    )
    return apply_environment(config)


def _section(raw_config: Dict, name: str, required: bool = True) -> Dict:
    data = raw_config.get(name)
    if data is None and not required:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _check_keys(data: Dict, allowed_keys: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _positive_number(data: Dict, key: str, path: str, default: Any) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"'{key}' in {path} must be > 0")
    return float(value)


def _parse_api_config(data: Dict) -> ApiConfig:
    """Parse and validate the api section.

    Raises:
        ValueError: If configuration is invalid
    """
    _check_keys(data, {'base_url', 'api_key', 'timeout_seconds', 'rate_retries'}, "api")

    base_url = data.get('base_url')
    if not isinstance(base_url, str) or not base_url.strip():
        raise ValueError("Missing required 'base_url' in api")

    api_key = data.get('api_key')
    if api_key is not None and not isinstance(api_key, str):
        raise ValueError("'api_key' in api must be a string")

    rate_retries = data.get('rate_retries', 0)
    if isinstance(rate_retries, bool) or not isinstance(rate_retries, int) or rate_retries < 0:
        raise ValueError("'rate_retries' in api must be an integer >= 0")

    return ApiConfig(
        base_url=base_url.strip(),
        api_key=api_key or None,
        timeout_seconds=_positive_number(data, 'timeout_seconds', "api", 10.0),
        rate_retries=rate_retries,
    )


def _parse_currency_config(data: Dict) -> CurrencyConfig:
    _check_keys(data, {'display', 'initial_rate'}, "currency")

    display = data.get('display', Currency.USD.value)
    if not isinstance(display, str):
        raise ValueError("'display' in currency must be a string")

    return CurrencyConfig(
        display=Currency.parse(display),
        initial_rate=_positive_number(data, 'initial_rate', "currency", 150.0),
    )


def _parse_plans_config(data: Dict) -> PlanPricing:
    _check_keys(data, {'tiers', 'days_per_month'}, "plans")

    tiers = data.get('tiers', [100, 200])
    if not isinstance(tiers, list) or len(tiers) != 2:
        raise ValueError("'tiers' in plans must be a list of two monthly prices")
    for price in tiers:
        if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
            raise ValueError("'tiers' in plans must contain prices > 0")
    if tiers[1] <= tiers[0]:
        raise ValueError("'tiers' in plans must be strictly increasing")

    days = data.get('days_per_month', 30)
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValueError("'days_per_month' in plans must be an integer > 0")

    return PlanPricing(
        lower_monthly=float(tiers[0]),
        upper_monthly=float(tiers[1]),
        days_per_month=days,
    )


def _parse_language(value: Any) -> Language:
    if not isinstance(value, str):
        raise ValueError("'language' must be a string")
    return Language.parse(value)
