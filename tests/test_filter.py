"""Unit tests for campaign filtering and zone fallbacks."""

from datetime import datetime, timedelta, timezone

import pytest

from revparty.campaigns.filter import filter_campaigns, get_zone_fallback
from revparty.utils.schemas import Campaign

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def campaigns():
    return [
        Campaign(id="1", tenant_id="test", campaign_name="Hero Calculator", display_as="inline",
                 target_zone="hero-top", target_pages=["home"], is_active=True),
        Campaign(id="2", tenant_id="test", campaign_name="Popup Form", display_as="popup",
                 target_zone=None, target_pages=[], is_active=True),
        Campaign(id="3", tenant_id="test", campaign_name="Sidebar Widget", display_as="inline",
                 target_zone="sidebar-top", target_pages=["blog", "resources"], is_active=False),
        Campaign(id="5", tenant_id="test", campaign_name="Blog Banner", display_as="inline",
                 target_zone="article-top", target_pages=["blog"], is_active=True),
    ]


def ids(result):
    return [c.id for c in result]


def test_filter_by_display_as(campaigns):
    result = filter_campaigns(campaigns, display_as="inline", now=NOW)
    assert ids(result) == ["1", "5"]


def test_filter_by_zone_is_exact(campaigns):
    assert ids(filter_campaigns(campaigns, zone="hero-top", now=NOW)) == ["1"]
    assert filter_campaigns(campaigns, zone="hero", now=NOW) == []


def test_filter_by_page_names(campaigns):
    result = filter_campaigns(campaigns, page_names=["blog"], now=NOW)
    # 2 is a wildcard, 3 matches but is inactive
    assert ids(result) == ["2", "5"]


@pytest.mark.parametrize("pages", [[], None])
def test_empty_or_missing_target_pages_match_any_page(pages):
    campaign = Campaign(id="w", tenant_id="t", target_pages=pages)
    assert ids(filter_campaigns([campaign], page_names=["pricing"], now=NOW)) == ["w"]
    assert ids(filter_campaigns([campaign], page_names=["home", "blog"], now=NOW)) == ["w"]


def test_inactive_campaign_is_always_excluded():
    campaign = Campaign(id="x", tenant_id="t", is_active=False)
    assert filter_campaigns([campaign], now=NOW) == []


def test_future_start_date_excluded(campaigns):
    future = campaigns[0].model_copy(update={"id": "4", "start_date": NOW + timedelta(days=1)})
    assert "4" not in ids(filter_campaigns(campaigns + [future], now=NOW))


def test_end_date_boundary():
    ends_now = Campaign(id="a", tenant_id="t", end_date=NOW)
    ends_soon = Campaign(id="b", tenant_id="t", end_date=NOW + timedelta(seconds=1))
    assert ids(filter_campaigns([ends_now, ends_soon], now=NOW)) == ["b"]


def test_started_and_not_ended_is_included():
    running = Campaign(id="r", tenant_id="t", start_date=NOW - timedelta(days=1), end_date=NOW + timedelta(days=1))
    assert ids(filter_campaigns([running], now=NOW)) == ["r"]


def test_naive_dates_are_treated_as_utc():
    naive_future = Campaign(id="n", tenant_id="t", start_date=datetime(2026, 3, 2))
    assert filter_campaigns([naive_future], now=NOW) == []


@pytest.mark.parametrize("criteria", [
    {},
    {"display_as": "inline"},
    {"zone": "hero-top"},
    {"page_names": ["blog"]},
    {"page_names": ["home"], "display_as": "popup"},
])
def test_filter_is_idempotent(campaigns, criteria):
    once = filter_campaigns(campaigns, now=NOW, **criteria)
    twice = filter_campaigns(once, now=NOW, **criteria)
    assert ids(twice) == ids(once)


def test_parses_api_payload_with_camel_case_fields():
    campaign = Campaign.model_validate({
        "id": "9", "tenantId": "t", "displayAs": "popup", "targetZone": None,
        "targetPages": ["home"], "isActive": True, "startDate": "2026-01-01T00:00:00Z",
        "endDate": None, "priority": 3,
    })
    assert campaign.display_as == "popup"
    assert ids(filter_campaigns([campaign], page_names=["home"], now=NOW)) == ["9"]


def test_zone_fallback_known_and_unknown():
    assert get_zone_fallback("hero-top") == {"display_size": "hero", "min_height": "60vh"}
    assert get_zone_fallback("cta-center")["display_size"] == "takeover"
    assert get_zone_fallback("unknown-zone") == {"display_size": "standard"}
    assert get_zone_fallback(None) == {"display_size": "standard"}
