"""
Dashboard - Portfolio Aggregates

Pure functions over already-loaded snapshots. Nothing here reads the store;
the caller supplies whatever each panel needs and renders any subset that
has resolved.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence

from core.dates import format_date, sort_key, to_date
from core.lifecycle import InspectionStatus, PropertyStatus
from core.portfolio.maintenance import OPEN_STATUSES, maintenance_url
from utils.formatting import format_address

PORTFOLIO_WIDE = "Portfolio Wide"
RECENT_ACTIVITY_LIMIT = 5


@dataclass(frozen=True)
class ActivityItem:
    """One row of the recent-activity panel."""

    id: str
    property: str
    activity: str
    status: Optional[str]
    priority: Optional[str]
    date: str
    href: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PortfolioSummary:
    """Headline counts for the dashboard cards."""

    active_properties: int
    occupied: int
    vacant: int
    under_maintenance: int
    active_tenants: int
    open_maintenance: int
    upcoming_inspections: int

    @property
    def occupancy_rate(self) -> float:
        if self.active_properties == 0:
            return 0.0
        return self.occupied / self.active_properties

    def to_dict(self) -> dict:
        data = asdict(self)
        data["occupancy_rate"] = round(self.occupancy_rate, 4)
        return data


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def address_lookup(properties: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """Property id -> formatted address."""
    return {p["id"]: format_address(p.get("address")) for p in properties if p.get("id")}


def open_maintenance(logs: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """Logs that are Open or In Progress."""
    return [log for log in logs if log.get("status") in OPEN_STATUSES]


def upcoming_inspections(
    inspections: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> list[Mapping[str, Any]]:
    """
    Scheduled inspections whose date is still ahead, soonest first.

    Inspections without a readable scheduled date are left out.
    """
    current = _aware(_now(now))
    upcoming = []
    for inspection in inspections:
        if inspection.get("status") != InspectionStatus.SCHEDULED.value:
            continue
        scheduled = to_date(inspection.get("scheduledDate"))
        if scheduled is not None and _aware(scheduled) > current:
            upcoming.append(inspection)
    return sorted(upcoming, key=lambda i: sort_key(i.get("scheduledDate")))


def recent_activity(
    logs: Iterable[Mapping[str, Any]],
    properties: Iterable[Mapping[str, Any]],
    limit: int = RECENT_ACTIVITY_LIMIT,
    now: Optional[datetime] = None,
) -> list[ActivityItem]:
    """The latest maintenance logs by reported date, newest first."""
    addresses = address_lookup(properties)
    latest = sorted(logs, key=lambda log: sort_key(log.get("reportedDate")), reverse=True)[:limit]
    fallback = _now(now)
    return [
        ActivityItem(
            id=log["id"],
            property=addresses.get(log.get("propertyId"), PORTFOLIO_WIDE),
            activity=log.get("title", ""),
            status=log.get("status"),
            priority=log.get("priority"),
            date=(to_date(log.get("reportedDate")) or fallback).strftime("%d %b"),
            href=maintenance_url(log["id"], log.get("propertyId", "")),
        )
        for log in latest
    ]


def portfolio_summary(
    properties: Sequence[Mapping[str, Any]],
    tenants: Sequence[Mapping[str, Any]],
    logs: Sequence[Mapping[str, Any]],
    inspections: Sequence[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> PortfolioSummary:
    """
    Count what the dashboard cards show.

    Args:
        properties: Active (non-deleted) properties
        tenants: Active tenants across the portfolio
        logs: Every maintenance log across the portfolio
        inspections: Live inspections across the portfolio
        now: Reference time for "upcoming"
    """
    statuses = [p.get("status") for p in properties]
    return PortfolioSummary(
        active_properties=len(properties),
        occupied=statuses.count(PropertyStatus.OCCUPIED.value),
        vacant=statuses.count(PropertyStatus.VACANT.value),
        under_maintenance=statuses.count(PropertyStatus.UNDER_MAINTENANCE.value),
        active_tenants=len(tenants),
        open_maintenance=len(open_maintenance(logs)),
        upcoming_inspections=len(upcoming_inspections(inspections, now)),
    )


def upcoming_rows(inspections: Iterable[Mapping[str, Any]], properties: Iterable[Mapping[str, Any]]) -> list[dict]:
    """Upcoming inspections shaped for the dashboard list."""
    addresses = address_lookup(properties)
    return [
        {
            "id": i.get("id"),
            "property": addresses.get(i.get("propertyId"), PORTFOLIO_WIDE),
            "type": i.get("type"),
            "date": format_date(i.get("scheduledDate")),
        }
        for i in inspections
    ]
