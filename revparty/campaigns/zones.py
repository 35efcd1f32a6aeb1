# revparty/campaigns/zones.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..utils.schemas import Campaign
from .cache import CacheFetchError, CampaignCache
from .filter import filter_campaigns, get_zone_fallback


@dataclass
class CampaignsView:
    campaigns: List[Campaign] = field(default_factory=list)
    all_campaigns: List[Campaign] = field(default_factory=list)
    error: Optional[CacheFetchError] = None


@dataclass
class ZoneRender:
    zone: str
    campaigns: List[Campaign]
    fallback: Optional[Dict[str, str]] = None


async def use_campaigns(
    cache: CampaignCache,
    zone: Optional[str] = None,
    page_names: Optional[Sequence[str]] = None,
    display_as: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CampaignsView:
    """Shared-cache read plus client-side filtering. Fetch errors are returned, not raised."""
    try:
        all_campaigns = await cache.get_campaigns()
    except CacheFetchError as exc:
        return CampaignsView(error=exc)

    return CampaignsView(
        campaigns=filter_campaigns(all_campaigns, zone=zone, page_names=page_names,
                                   display_as=display_as, now=now),
        all_campaigns=all_campaigns,
    )


class CampaignZone:
    """A placement slot: renders the highest-priority eligible campaigns or the zone fallback."""

    def __init__(self, cache: CampaignCache, zone: str, logger=None):
        self.cache = cache
        self.zone = zone
        self.logger = logger or cache.logger

    async def resolve(self, page_names: Optional[Sequence[str]] = None,
                      now: Optional[datetime] = None) -> ZoneRender:
        view = await use_campaigns(self.cache, zone=self.zone, page_names=page_names,
                                   display_as="inline", now=now)

        if view.error is not None:
            self.logger.error(f"Zone {self.zone}: campaign fetch failed, rendering fallback: {view.error}")
            return ZoneRender(zone=self.zone, campaigns=[], fallback=get_zone_fallback(self.zone))

        ranked = sorted(view.campaigns, key=lambda c: c.priority, reverse=True)
        if not ranked:
            return ZoneRender(zone=self.zone, campaigns=[], fallback=get_zone_fallback(self.zone))
        return ZoneRender(zone=self.zone, campaigns=ranked)
