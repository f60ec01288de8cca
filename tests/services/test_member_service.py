"""Tests for MemberService."""

from datetime import date

import pytest

from parish.exceptions import (
    RecordNotFoundException,
    ResourceConflictException,
    ValidationException,
)
from parish.models.member import Member
from parish.services.member_service import (
    MemberPage,
    validate_sort_direction,
    validate_sort_field,
    years_before,
)


@pytest.fixture
def member_service(container, session):
    return container.member_service()


def _member_data(**overrides):
    data = {
        "first_name": "John",
        "last_name": "Kamau",
        "gender": "Male",
        "date_of_birth": date(1980, 3, 15),
        "local_church": "St James Kangemi",
        "church_group": "CMA",
    }
    data.update(overrides)
    return data


class TestHelpers:
    def test_sort_field_whitelist(self):
        assert validate_sort_field("first_name") == "first_name"
        assert validate_sort_field("password") == "last_name"
        assert validate_sort_field(None) == "last_name"

    def test_sort_field_rejects_function_injection(self):
        """Test values that look like injected code fall back to the default."""
        assert validate_sort_field("created_at()") == "last_name"
        assert validate_sort_field("function(){}") == "last_name"

    def test_sort_direction(self):
        assert validate_sort_direction("DESC") == "desc"
        assert validate_sort_direction("sideways") == "asc"

    def test_years_before_leap_day(self):
        assert years_before(date(2024, 2, 29), 18) == date(2006, 2, 28)
        assert years_before(date(2024, 6, 1), 30) == date(1994, 6, 1)

    def test_last_page(self):
        assert MemberPage(items=[], total=0, page=1, per_page=15).last_page == 1
        assert MemberPage(items=[], total=31, page=1, per_page=15).last_page == 3


class TestCreateAndUpdate:
    def test_create_defaults_to_active(self, member_service):
        member = member_service.create(_member_data())

        assert member.id is not None
        assert member.membership_status == "active"

    def test_create_fills_certificate_fields_for_married_members(self, member_service):
        """Test husband and wife columns are derived from member and spouse."""
        member = member_service.create(
            _member_data(
                matrimony_status="married",
                spouse_name="Mary Wanjiku",
                spouse_age=40,
                occupation="Teacher",
                parent="Joseph Kamau",
            )
        )

        assert member.husband_name == "John Kamau"
        assert member.wife_name == "Mary Wanjiku"
        assert member.wife_age == 40
        assert member.husband_occupation == "Teacher"
        assert member.father_name == "Joseph Kamau"

    def test_duplicate_id_number_conflicts(self, member_service):
        member_service.create(_member_data(id_number="12345678"))

        with pytest.raises(ResourceConflictException, match="id number 12345678"):
            member_service.create(_member_data(first_name="James", id_number="12345678"))

    def test_duplicate_email_conflicts(self, member_service):
        member_service.create(_member_data(email="john@example.com"))

        with pytest.raises(ResourceConflictException):
            member_service.create(_member_data(email="john@example.com"))

    def test_unknown_family_rejected(self, member_service):
        with pytest.raises(RecordNotFoundException, match="Family 999"):
            member_service.create(_member_data(family_id=999))

    def test_update_may_keep_own_unique_values(self, member_service):
        member = member_service.create(_member_data(email="john@example.com"))

        updated = member_service.update(member.id, {"email": "john@example.com", "first_name": "Johnny"})

        assert updated.first_name == "Johnny"

    def test_update_rejects_another_members_email(self, member_service):
        member_service.create(_member_data(email="john@example.com"))
        other = member_service.create(_member_data(first_name="Mary", email="mary@example.com"))

        with pytest.raises(ResourceConflictException):
            member_service.update(other.id, {"email": "john@example.com"})

    def test_get_missing_member(self, member_service):
        with pytest.raises(RecordNotFoundException, match="Member 404 was not found"):
            member_service.get_by_id(404)


class TestListing:
    def test_search_matches_full_name(self, member_service, make_member):
        make_member(first_name="John", middle_name="Mwangi", last_name="Kamau")
        make_member(first_name="Mary", last_name="Wanjiku")

        assert [m.first_name for m in member_service.list_members(search="John Kamau").items] == ["John"]
        assert [m.first_name for m in member_service.list_members(search="Mwangi Kamau").items] == ["John"]

    def test_filters(self, member_service, make_member):
        make_member(first_name="A", gender="Male", church_group="CMA")
        make_member(first_name="B", gender="Female", church_group="CMA", membership_status="inactive")
        make_member(first_name="C", gender="Female", church_group="Youth")

        assert [m.first_name for m in member_service.list_members(gender="male").items] == ["A"]
        assert [
            m.first_name
            for m in member_service.list_members(church_group="CMA", membership_status="inactive").items
        ] == ["B"]

    def test_age_groups(self, member_service, make_member):
        today = date(2024, 6, 1)
        make_member(first_name="Child", date_of_birth=date(2015, 1, 1))
        make_member(first_name="Youth", date_of_birth=date(2000, 1, 1))
        make_member(first_name="Senior", date_of_birth=date(1950, 1, 1))

        def names(group):
            return [m.first_name for m in member_service.list_members(age_group=group, today=today).items]

        assert names("children") == ["Child"]
        assert names("youth") == ["Youth"]
        assert names("seniors") == ["Senior"]
        assert len(names("unknown")) == 3

    def test_sorting_and_pagination(self, member_service, make_member):
        for name in ("Agnes", "Boniface", "Charles", "Dorcas"):
            make_member(first_name=name)

        page = member_service.list_members(sort="first_name", direction="desc", page=2, per_page=3)

        assert page.total == 4
        assert page.last_page == 2
        assert [m.first_name for m in page.items] == ["Agnes"]

    def test_per_page_is_capped(self, member_service):
        assert member_service.list_members(per_page=1000).per_page == 100
        assert member_service.list_members(per_page=0, page=-3).page == 1


class TestDeleteAndStatus:
    def test_delete_clears_family_head(self, member_service, session, make_member, make_family):
        family = make_family()
        head = make_member(family_id=family.id)
        family.head_of_family_id = head.id
        session.flush()

        member_service.delete(head.id)

        session.refresh(family)
        assert family.head_of_family_id is None
        assert session.get(Member, head.id) is None

    def test_bulk_delete(self, member_service, session, make_member):
        ids = [make_member().id for _ in range(3)]

        assert member_service.bulk_delete(ids[:2] + ids[:1]) == 2
        assert session.query(Member).count() == 1

    def test_bulk_delete_requires_all_ids(self, member_service, session, make_member):
        member = make_member()

        with pytest.raises(RecordNotFoundException, match="Member 9999"):
            member_service.bulk_delete([member.id, 9999])
        assert session.query(Member).count() == 1

    def test_bulk_delete_requires_ids(self, member_service):
        with pytest.raises(ValidationException):
            member_service.bulk_delete([])

    def test_toggle_status(self, member_service, make_member):
        member = make_member(membership_status="active")

        assert member_service.toggle_status(member.id).membership_status == "inactive"
        assert member_service.toggle_status(member.id).membership_status == "active"

    def test_toggle_from_transferred_activates(self, member_service, make_member):
        member = make_member(membership_status="transferred")

        assert member_service.toggle_status(member.id).membership_status == "active"

    def test_set_status_validates(self, member_service, make_member):
        member = make_member()

        assert member_service.set_status(member.id, "deceased").membership_status == "deceased"
        with pytest.raises(ValidationException):
            member_service.set_status(member.id, "missing")


class TestLookups:
    def test_quick_search(self, member_service, make_member):
        make_member(first_name="John", last_name="Kamau", phone="+254712345678")
        for n in range(12):
            make_member(first_name=f"Johnny{n}")

        results = member_service.quick_search("  john ")

        assert len(results) == 10
        assert set(results[0]) == {"id", "full_name", "phone", "email", "local_church", "church_group"}
        assert member_service.quick_search("   ") == []

    def test_by_church_and_group(self, member_service, make_member):
        make_member(first_name="A", local_church="St Peter Kiawara", church_group="Choir")
        make_member(first_name="B")

        assert [m.first_name for m in member_service.get_by_church("St Peter Kiawara")] == ["A"]
        assert [m.first_name for m in member_service.get_by_group("Choir")] == ["A"]

    def test_statistics(self, member_service, make_member):
        make_member(local_church="St Peter Kiawara")
        make_member(membership_status="inactive")

        stats = member_service.get_statistics()

        assert stats["total"] == 2
        assert stats["active"] == 1
        assert stats["by_church"] == {"St James Kangemi": 1, "St Peter Kiawara": 1}
        assert stats["by_status"] == {"active": 1, "inactive": 1}

    def test_married_members(self, member_service, make_member):
        make_member(first_name="Married", matrimony_status="married")
        make_member(first_name="Spouse", spouse_name="Someone")
        make_member(first_name="Single", matrimony_status="single")

        assert [m.first_name for m in member_service.get_married_members()] == ["Married", "Spouse"]
