# revparty/campaigns/filter.py

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from ..utils.schemas import Campaign

# Reserved layout space per zone, used before campaign data is available.
ZONE_FALLBACKS: Dict[str, Dict[str, str]] = {
    # hero zones
    "hero-top": {"display_size": "hero", "min_height": "60vh"},
    "hero-center": {"display_size": "hero", "min_height": "60vh"},
    "hero-bottom": {"display_size": "hero", "min_height": "50vh"},
    # cta zones
    "cta-top": {"display_size": "large", "min_height": "40vh"},
    "cta-center": {"display_size": "takeover", "min_height": "60vh"},
    "cta-bottom": {"display_size": "large", "min_height": "40vh"},
    # content zones
    "content-top": {"display_size": "standard"},
    "content-center": {"display_size": "standard"},
    "content-bottom": {"display_size": "standard"},
    # sidebar zones
    "sidebar-top": {"display_size": "inline"},
    "sidebar-center": {"display_size": "inline"},
    "sidebar-bottom": {"display_size": "inline"},
    # article zones
    "article-top": {"display_size": "inline"},
    "article-inline": {"display_size": "inline"},
    "article-bottom": {"display_size": "inline"},
    # forms
    "form-embed": {"display_size": "standard"},
    "lead-capture": {"display_size": "standard"},
    "default": {"display_size": "standard"},
}


def get_zone_fallback(zone: Optional[str]) -> Dict[str, str]:
    """Display size (and optional min height) to reserve for a zone."""
    return dict(ZONE_FALLBACKS.get(zone or "", ZONE_FALLBACKS["default"]))


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_campaign_eligible(
    campaign: Campaign,
    zone: Optional[str] = None,
    page_names: Optional[Sequence[str]] = None,
    display_as: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    if display_as and campaign.display_as != display_as:
        return False

    if zone and campaign.target_zone != zone:
        return False

    # empty or missing target_pages targets every page
    if page_names and campaign.target_pages:
        if not any(page in page_names for page in campaign.target_pages):
            return False

    if not campaign.is_active:
        return False

    now = _aware(now or datetime.now(timezone.utc))
    if campaign.start_date and _aware(campaign.start_date) > now:
        return False
    if campaign.end_date and _aware(campaign.end_date) <= now:
        return False

    return True


def filter_campaigns(
    campaigns: Sequence[Campaign],
    zone: Optional[str] = None,
    page_names: Optional[Sequence[str]] = None,
    display_as: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Campaign]:
    """
    Campaigns matching the zone / page / display filters that are active and
    inside their date window at `now`. Input order is preserved.
    """
    now = now or datetime.now(timezone.utc)
    return [
        c for c in campaigns
        if is_campaign_eligible(c, zone=zone, page_names=page_names, display_as=display_as, now=now)
    ]
