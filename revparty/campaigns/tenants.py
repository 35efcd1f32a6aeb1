# revparty/campaigns/tenants.py

"""
Tenant resolution.

The active tenant decides which campaign list a client reads. The strategy is
picked once from configuration (see build_tenant_resolver) and injected into
the campaign cache.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional

from jose import jwt
from jose.exceptions import JOSEError

from ..utils.browser import LocationProvider
from ..utils.config import DEFAULT_TENANT_ID

MAIN_SUBDOMAINS = ("www", "app", "admin")


class TenantResolver(ABC):
    def __init__(self, default_tenant_id: str = DEFAULT_TENANT_ID):
        self.default_tenant_id = default_tenant_id

    @abstractmethod
    def get_tenant_id(self) -> str:
        ...


class StaticTenantResolver(TenantResolver):
    def get_tenant_id(self) -> str:
        return self.default_tenant_id


class SubdomainTenantResolver(TenantResolver):
    """acme.revenueparty.com -> tenants['acme']; main-site hosts use the default."""

    def __init__(self, location: LocationProvider, tenants: Optional[Mapping[str, str]] = None,
                 default_tenant_id: str = DEFAULT_TENANT_ID):
        super().__init__(default_tenant_id)
        self.location = location
        self.tenants = dict(tenants or {})

    def subdomain(self) -> Optional[str]:
        hostname = (self.location.hostname or "").split(":")[0]
        parts = hostname.split(".")
        if len(parts) < 3:
            return None
        return parts[0].lower()

    def get_tenant_id(self) -> str:
        slug = self.subdomain()
        if slug is None or slug in MAIN_SUBDOMAINS:
            return self.default_tenant_id
        return self.tenants.get(slug, self.default_tenant_id)


class AuthTokenTenantResolver(TenantResolver):
    """Reads the tenant claim from the session JWT. The token is not verified here."""

    def __init__(self, token_provider: Callable[[], Optional[str]],
                 default_tenant_id: str = DEFAULT_TENANT_ID):
        super().__init__(default_tenant_id)
        self.token_provider = token_provider

    def get_tenant_id(self) -> str:
        token = self.token_provider()
        if not token:
            return self.default_tenant_id
        try:
            claims = jwt.get_unverified_claims(token)
        except JOSEError:
            return self.default_tenant_id
        tenant_id = claims.get("tenantId") or claims.get("tenant_id")
        return tenant_id if isinstance(tenant_id, str) and tenant_id else self.default_tenant_id


def build_tenant_resolver(
    tenant_cfg: Dict[str, Any],
    location=None,
    token_provider: Optional[Callable[[], Optional[str]]] = None,
) -> TenantResolver:
    strategy = tenant_cfg.get("strategy", "static")
    default = tenant_cfg.get("default_tenant_id", DEFAULT_TENANT_ID)

    if strategy == "static":
        return StaticTenantResolver(default)

    if strategy == "subdomain":
        if location is None:
            raise ValueError("subdomain tenant strategy needs a location provider")
        return SubdomainTenantResolver(location, tenant_cfg.get("subdomains") or {}, default)

    if strategy == "auth_token":
        if token_provider is None:
            raise ValueError("auth_token tenant strategy needs a token provider")
        return AuthTokenTenantResolver(token_provider, default)

    raise ValueError(f"Unknown tenant strategy: {strategy}")
