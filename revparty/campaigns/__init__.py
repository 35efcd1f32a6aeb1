"""
Campaign targeting: filtering, tenant resolution and the shared client cache.
"""

from .filter import filter_campaigns, get_zone_fallback
from .tenants import (
    TenantResolver,
    StaticTenantResolver,
    SubdomainTenantResolver,
    AuthTokenTenantResolver,
    build_tenant_resolver,
)
from .cache import (
    CampaignApiClient,
    CampaignCache,
    CacheFetchError,
    NetworkError,
    bootstrap_campaigns,
    get_campaigns_cache_key,
    invalidate_campaigns_cache,
)
from .zones import CampaignZone, CampaignsView, ZoneRender, use_campaigns

__all__ = [
    "filter_campaigns",
    "get_zone_fallback",
    "TenantResolver",
    "StaticTenantResolver",
    "SubdomainTenantResolver",
    "AuthTokenTenantResolver",
    "build_tenant_resolver",
    "CampaignApiClient",
    "CampaignCache",
    "CacheFetchError",
    "NetworkError",
    "bootstrap_campaigns",
    "get_campaigns_cache_key",
    "invalidate_campaigns_cache",
    "CampaignZone",
    "CampaignsView",
    "ZoneRender",
    "use_campaigns",
]
