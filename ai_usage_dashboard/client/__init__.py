"""
HTTP client for the usage reporting API.
"""

from .api import UsageApiClient, UsageFeedError

__all__ = ["UsageApiClient", "UsageFeedError"]
