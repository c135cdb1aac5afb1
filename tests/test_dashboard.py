"""
Tests for dashboard aggregates.
"""

from datetime import datetime, timezone

import pytest

from core.portfolio.dashboard import (
    PORTFOLIO_WIDE,
    address_lookup,
    portfolio_summary,
    recent_activity,
    upcoming_inspections,
    upcoming_rows,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def properties():
    return [
        {"id": "p1", "status": "Occupied", "address": {"street": "Mill Lane", "city": "Leeds", "postcode": "LS1 4AB"}},
        {"id": "p2", "status": "Vacant", "address": {"street": "High Street", "city": "York", "postcode": "YO1 7HH"}},
        {"id": "p3", "status": "Under Maintenance", "address": {"street": "Bank Road", "city": "Hull", "postcode": "HU1 1AA"}},
    ]


@pytest.fixture
def logs():
    return [
        {"id": f"m{i}", "propertyId": "p1", "title": f"Issue {i}", "status": "Open", "priority": "Routine",
         "reportedDate": f"2026-05-0{i}T09:00:00+00:00"}
        for i in range(1, 8)
    ] + [
        {"id": "done", "propertyId": "gone", "title": "Old", "status": "Completed", "reportedDate": "2026-05-09T09:00:00+00:00"},
    ]


@pytest.fixture
def inspections():
    return [
        {"id": "i1", "propertyId": "p1", "type": "HMO", "status": "Scheduled", "scheduledDate": "2026-07-01T10:00:00+00:00"},
        {"id": "i2", "propertyId": "p2", "type": "Single-Let", "status": "Scheduled", "scheduledDate": "2026-06-15T10:00:00"},
        {"id": "i3", "propertyId": "p2", "type": "Single-Let", "status": "Scheduled", "scheduledDate": "2026-05-01T10:00:00+00:00"},
        {"id": "i4", "propertyId": "p3", "type": "Single-Let", "status": "Completed", "scheduledDate": "2026-08-01T10:00:00+00:00"},
        {"id": "i5", "propertyId": "p3", "type": "Single-Let", "status": "Scheduled"},
    ]


class TestSummary:
    """Tests for portfolio_summary."""

    def test_counts(self, properties, logs, inspections):
        summary = portfolio_summary(properties, [{"id": "t1"}], logs, inspections, now=NOW)
        assert summary.active_properties == 3
        assert summary.occupied == 1
        assert summary.vacant == 1
        assert summary.under_maintenance == 1
        assert summary.active_tenants == 1
        assert summary.open_maintenance == 7
        assert summary.upcoming_inspections == 2

    def test_occupancy_rate(self, properties):
        summary = portfolio_summary(properties, [], [], [], now=NOW)
        assert summary.to_dict()["occupancy_rate"] == 0.3333

    def test_empty_portfolio(self):
        assert portfolio_summary([], [], [], [], now=NOW).occupancy_rate == 0.0


class TestUpcomingInspections:
    def test_future_scheduled_soonest_first(self, inspections):
        assert [i["id"] for i in upcoming_inspections(inspections, now=NOW)] == ["i2", "i1"]

    def test_rows(self, inspections, properties):
        rows = upcoming_rows(upcoming_inspections(inspections, now=NOW), properties)
        assert rows[0] == {"id": "i2", "property": "High Street, York, YO1 7HH", "type": "Single-Let", "date": "15 Jun 2026"}


class TestRecentActivity:
    def test_latest_five_newest_first(self, logs, properties):
        items = recent_activity(logs, properties, now=NOW)
        assert [item.id for item in items] == ["done", "m7", "m6", "m5", "m4"]

    def test_unknown_property_is_portfolio_wide(self, logs, properties):
        item = recent_activity(logs, properties, now=NOW)[0]
        assert item.property == PORTFOLIO_WIDE
        assert item.date == "09 May"
        assert item.href == "/dashboard/maintenance/done?propertyId=gone"

    def test_address_lookup(self, properties):
        assert address_lookup(properties)["p1"] == "Mill Lane, Leeds, LS1 4AB"
