# revparty/campaigns/cache.py

"""
Tenant-scoped campaign cache.

Every widget on a page reads the same tenant's campaign list. The cache keeps
that list fresh for `stale_seconds`, drops it after `retain_seconds`, and
shares one in-flight request per (endpoint, tenant) key so concurrent misses
cost a single round trip.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
from pydantic import TypeAdapter, ValidationError

from ..utils.schemas import Campaign
from .tenants import StaticTenantResolver, TenantResolver

CAMPAIGNS_ENDPOINT = "/api/public/campaigns"

CacheKey = Tuple[str, str]
Fetcher = Callable[[str], Awaitable[List[Campaign]]]

_campaign_rows = TypeAdapter(List[Dict[str, Any]])

logger = logging.getLogger(__name__)


class CacheFetchError(RuntimeError):
    """Campaign list could not be loaded."""


class NetworkError(CacheFetchError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def get_campaigns_cache_key(tenant_id: str, endpoint: str = CAMPAIGNS_ENDPOINT) -> CacheKey:
    return (endpoint, tenant_id)


class CampaignApiClient:
    def __init__(
        self,
        base_url: str,
        endpoint: str = CAMPAIGNS_ENDPOINT,
        timeout: float = 10.0,
        cookies: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.endpoint = endpoint
        self._timeout = timeout
        self._cookies = cookies or {}
        self._transport = transport

    @classmethod
    def from_config(cls, campaigns_cfg: Dict[str, Any], **kwargs) -> "CampaignApiClient":
        return cls(
            base_url=campaigns_cfg.get("base_url", ""),
            endpoint=campaigns_cfg.get("endpoint", CAMPAIGNS_ENDPOINT),
            timeout=campaigns_cfg.get("timeout_seconds", 10.0),
            **kwargs,
        )

    async def fetch_campaigns(self, tenant_id: str) -> List[Campaign]:
        url = f"{self.base_url}{self.endpoint}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, cookies=self._cookies, transport=self._transport
            ) as client:
                response = await client.get(url, headers={"X-Tenant-Id": tenant_id})
        except httpx.HTTPError as exc:
            raise NetworkError(f"Failed to fetch campaigns: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise NetworkError(
                f"Failed to fetch campaigns (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            rows = _campaign_rows.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise CacheFetchError(f"Campaign payload is invalid: {exc}") from exc

        campaigns: List[Campaign] = []
        for i, row in enumerate(rows):
            try:
                campaigns.append(Campaign.model_validate(row))
            except ValidationError as exc:
                # invalid rows are dropped individually
                logger.warning(f"Dropping campaign row {i} ({row.get('id')!r}): {exc.error_count()} validation error(s)")
        return campaigns


@dataclass
class _Entry:
    data: List[Campaign]
    fetched_at: float
    invalidated: bool = False


class CampaignCache:
    def __init__(
        self,
        fetcher: Fetcher,
        tenant_resolver: Optional[TenantResolver] = None,
        stale_seconds: float = 300,
        retain_seconds: float = 600,
        endpoint: str = CAMPAIGNS_ENDPOINT,
        clock: Callable[[], float] = time.monotonic,
        logger=None,
    ) -> None:
        self._fetcher = fetcher
        self.tenant_resolver = tenant_resolver or StaticTenantResolver()
        self.stale_seconds = stale_seconds
        self.retain_seconds = retain_seconds
        self.endpoint = endpoint
        self._clock = clock
        self._entries: Dict[CacheKey, _Entry] = {}
        self._inflight: Dict[CacheKey, "asyncio.Future[List[Campaign]]"] = {}
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, campaigns_cfg: Dict[str, Any], fetcher: Fetcher,
                    tenant_resolver: Optional[TenantResolver] = None, **kwargs) -> "CampaignCache":
        return cls(
            fetcher,
            tenant_resolver=tenant_resolver,
            stale_seconds=campaigns_cfg.get("stale_seconds", 300),
            retain_seconds=campaigns_cfg.get("retain_seconds", 600),
            endpoint=campaigns_cfg.get("endpoint", CAMPAIGNS_ENDPOINT),
            **kwargs,
        )

    # ------------------------------------------------------------------
    def get_tenant_id(self) -> str:
        return self.tenant_resolver.get_tenant_id()

    def cache_key(self, tenant_id: Optional[str] = None) -> CacheKey:
        return get_campaigns_cache_key(tenant_id or self.get_tenant_id(), self.endpoint)

    def _lookup(self, key: CacheKey) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.retain_seconds:
            self.logger.debug(f"Campaign cache evicted {key}")
            del self._entries[key]
            return None
        return entry

    def _is_fresh(self, entry: _Entry) -> bool:
        return not entry.invalidated and self._clock() - entry.fetched_at < self.stale_seconds

    def peek(self, tenant_id: Optional[str] = None) -> Optional[List[Campaign]]:
        """Retained data for the tenant, fresh or stale, without fetching."""
        entry = self._lookup(self.cache_key(tenant_id))
        return list(entry.data) if entry else None

    # ------------------------------------------------------------------
    async def _fetch(self, key: CacheKey, tenant_id: str) -> List[Campaign]:
        self.logger.info(f"Fetching campaigns for tenant {tenant_id}")
        data = await self._fetcher(tenant_id)
        # written even if invalidated meanwhile; the entry simply starts a new window
        self._entries[key] = _Entry(data=list(data), fetched_at=self._clock())
        return data

    async def get_campaigns(self, tenant_id: Optional[str] = None) -> List[Campaign]:
        tenant_id = tenant_id or self.get_tenant_id()
        key = self.cache_key(tenant_id)

        entry = self._lookup(key)
        if entry and self._is_fresh(entry):
            self.logger.debug(f"Campaign cache hit {key}")
            return list(entry.data)

        task = self._inflight.get(key)
        if task is None:
            self.logger.debug(f"Campaign cache miss {key}")
            task = asyncio.ensure_future(self._fetch(key, tenant_id))
            self._inflight[key] = task

            def _done(t, key=key):
                if self._inflight.get(key) is t:
                    del self._inflight[key]

            task.add_done_callback(_done)

        return list(await asyncio.shield(task))

    async def prefetch(self, tenant_id: Optional[str] = None) -> List[Campaign]:
        """Warm the cache once at startup; a fresh entry is reused as-is."""
        return await self.get_campaigns(tenant_id)

    def invalidate(self, tenant_id: Optional[str] = None) -> None:
        key = self.cache_key(tenant_id)
        entry = self._entries.get(key)
        if entry:
            entry.invalidated = True
        self.logger.info(f"Campaign cache invalidated {key}")


def invalidate_campaigns_cache(cache: CampaignCache, tenant_id: Optional[str] = None) -> None:
    """Call after any campaign create/update/delete."""
    cache.invalidate(tenant_id)


async def bootstrap_campaigns(cache: CampaignCache) -> None:
    """App-start prefetch for the current tenant. Failures are logged; widgets fall back per zone."""
    try:
        await cache.prefetch()
    except CacheFetchError as exc:
        cache.logger.error(f"Campaign prefetch failed: {exc}")
