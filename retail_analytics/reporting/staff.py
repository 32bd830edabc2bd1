"""
Staff Attribution

Resolves legacy staff ids to people (name, photo) and builds the retail
leaderboard. Unmapped staff keep their source-system name; attachment rate
does not depend on whether the link resolves.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from retail_analytics.ingestion.records import PersonProfile, StaffMapping
from retail_analytics.reporting.metrics import attachment_rate, average_ticket
from retail_analytics.reporting.models import StaffRetailRow
from retail_analytics.transformation.aggregation import StaffAggregate

logger = structlog.get_logger(__name__)

UNKNOWN_STAFF = "Unknown"


@dataclass(frozen=True)
class StaffIdentity:
    staff_id: str
    user_id: Optional[str] = None
    name: str = UNKNOWN_STAFF
    photo_url: Optional[str] = None
    branch_name: Optional[str] = None


def resolve_identities(
    staff_ids: Iterable[str],
    mappings: Iterable[StaffMapping],
    profiles: Iterable[PersonProfile],
) -> Dict[str, StaffIdentity]:
    """
    Join staff ids to mappings and profiles.

    Name preference: profile display name, profile full name, then the name
    recorded by the source system.
    """
    mapping_by_staff = {m.source_staff_id: m for m in mappings}
    profile_by_person = {p.person_id: p for p in profiles}

    identities: Dict[str, StaffIdentity] = {}
    for staff_id in staff_ids:
        mapping = mapping_by_staff.get(staff_id)
        if mapping is None:
            identities[staff_id] = StaffIdentity(staff_id=staff_id)
            continue

        profile = profile_by_person.get(mapping.linked_person_id) if mapping.linked_person_id else None
        name = (
            (profile.display_name or profile.full_name if profile else None)
            or mapping.source_staff_name
            or UNKNOWN_STAFF
        )
        identities[staff_id] = StaffIdentity(
            staff_id=staff_id,
            user_id=mapping.linked_person_id,
            name=name,
            photo_url=profile.photo_url if profile else None,
            branch_name=mapping.branch_name,
        )
    return identities


def build_staff_rows(
    staff: Dict[str, StaffAggregate],
    identities: Dict[str, StaffIdentity],
) -> Tuple[StaffRetailRow, ...]:
    """Leaderboard rows, highest product revenue first. Staff with no retail revenue are left out."""
    rows: List[StaffRetailRow] = []
    for staff_id, totals in staff.items():
        if totals.revenue <= 0:
            continue
        identity = identities.get(staff_id) or StaffIdentity(staff_id=staff_id)
        rows.append(StaffRetailRow(
            staff_id=staff_id,
            user_id=identity.user_id,
            name=identity.name,
            photo_url=identity.photo_url,
            branch_name=identity.branch_name,
            product_revenue=totals.revenue,
            units_sold=totals.units,
            attachment_rate=attachment_rate(totals.service_transactions, totals.product_transactions),
            avg_ticket=average_ticket(totals.revenue, totals.units),
        ))
    rows.sort(key=lambda r: r.product_revenue, reverse=True)
    return tuple(rows)


class StaffAttributionResolver:
    """
    Looks staff ids up through a data source exposing
    `fetch_staff_mappings(staff_ids)` and `fetch_profiles(person_ids)`.
    """

    def __init__(self, source):
        self.source = source

    async def resolve(self, staff_ids: Iterable[str]) -> Dict[str, StaffIdentity]:
        staff_ids = list(staff_ids)
        if not staff_ids:
            return {}

        mappings = await self.source.fetch_staff_mappings(staff_ids)
        person_ids = sorted({m.linked_person_id for m in mappings if m.linked_person_id})
        profiles = await self.source.fetch_profiles(person_ids) if person_ids else []

        identities = resolve_identities(staff_ids, mappings, profiles)
        unmapped = sum(1 for i in identities.values() if i.user_id is None)
        if unmapped:
            logger.debug("Staff without linked person", unmapped=unmapped, total=len(staff_ids))
        return identities
