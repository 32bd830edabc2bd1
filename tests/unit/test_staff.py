"""
Unit Tests - Staff Attribution
"""
import pytest

from retail_analytics.ingestion.records import LineType, PersonProfile, StaffMapping
from retail_analytics.reporting.staff import (
    UNKNOWN_STAFF,
    StaffAttributionResolver,
    StaffIdentity,
    build_staff_rows,
    resolve_identities,
)
from retail_analytics.transformation.aggregation import aggregate_line_items
from tests.factories import make_item


MAPPINGS = [
    StaffMapping(source_staff_id="st-1", linked_person_id="person-1",
                 source_staff_name="Jo S.", branch_name="Downtown"),
    StaffMapping(source_staff_id="st-2", linked_person_id=None,
                 source_staff_name="Sam K.", branch_name="Uptown"),
    StaffMapping(source_staff_id="st-3", linked_person_id="person-3", source_staff_name=None),
]

PROFILES = [
    PersonProfile(person_id="person-1", full_name="Jo Smith", display_name="Jo",
                  photo_url="https://cdn.example.com/jo.png"),
    PersonProfile(person_id="person-3", full_name="Ari Lee", display_name=None),
]


class TestResolveIdentities:
    """Tests for resolve_identities"""

    def test_name_preference(self):
        identities = resolve_identities(["st-1", "st-2", "st-3", "st-4"], MAPPINGS, PROFILES)

        assert identities["st-1"].name == "Jo"
        assert identities["st-1"].user_id == "person-1"
        assert identities["st-1"].photo_url == "https://cdn.example.com/jo.png"
        assert identities["st-1"].branch_name == "Downtown"

        assert identities["st-2"].name == "Sam K."
        assert identities["st-2"].user_id is None

        assert identities["st-3"].name == "Ari Lee"

        assert identities["st-4"] == StaffIdentity(staff_id="st-4")
        assert identities["st-4"].name == UNKNOWN_STAFF


class TestBuildStaffRows:
    """Tests for build_staff_rows"""

    def test_leaderboard(self):
        current = aggregate_line_items([
            make_item(name="Cut", line_type=LineType.SERVICE, total=60.0, tx="t-1", staff="st-1"),
            make_item(total=20.0, tx="t-1", staff="st-1"),
            make_item(total=20.0, tx="t-5", staff="st-1"),
            make_item(quantity=3, total=90.0, tx="t-2", staff="st-2"),
            make_item(name="Colour", line_type=LineType.SERVICE, total=120.0, tx="t-3", staff="st-3"),
        ])
        identities = resolve_identities(list(current.staff), MAPPINGS, PROFILES)

        rows = build_staff_rows(current.staff, identities)

        assert [r.staff_id for r in rows] == ["st-2", "st-1"]
        jo = rows[1]
        assert jo.name == "Jo"
        assert jo.product_revenue == 40.0
        assert jo.units_sold == 2
        assert jo.attachment_rate == 100
        assert jo.avg_ticket == 20.0
        assert rows[0].attachment_rate == 0

    def test_missing_identity_is_unknown(self):
        current = aggregate_line_items([make_item(staff="st-9")])

        row, = build_staff_rows(current.staff, {})

        assert row.name == UNKNOWN_STAFF
        assert row.user_id is None


class FakeStaffSource:
    """In-memory stand-in for RetailDataSource"""

    def __init__(self):
        self.profile_requests = []

    async def fetch_staff_mappings(self, staff_ids):
        return [m for m in MAPPINGS if m.source_staff_id in staff_ids]

    async def fetch_profiles(self, person_ids):
        self.profile_requests.append(list(person_ids))
        return [p for p in PROFILES if p.person_id in person_ids]


class TestStaffAttributionResolver:
    """Tests for StaffAttributionResolver"""

    @pytest.mark.asyncio
    async def test_resolve(self):
        source = FakeStaffSource()

        identities = await StaffAttributionResolver(source).resolve(["st-1", "st-2", "st-9"])

        assert identities["st-1"].name == "Jo"
        assert identities["st-2"].name == "Sam K."
        assert identities["st-9"].name == UNKNOWN_STAFF
        assert source.profile_requests == [["person-1"]]

    @pytest.mark.asyncio
    async def test_no_staff_skips_lookups(self):
        source = FakeStaffSource()

        assert await StaffAttributionResolver(source).resolve([]) == {}
        assert source.profile_requests == []
