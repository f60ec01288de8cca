"""Tests for FamilyService."""

import pytest

from parish.exceptions import (
    InvalidOperationException,
    RecordNotFoundException,
    ResourceConflictException,
)
from parish.models.family import Family


@pytest.fixture
def family_service(container, session):
    return container.family_service()


class TestFamilyCrud:
    def test_create_with_head_links_the_head(self, family_service, make_member):
        head = make_member(first_name="John")

        family = family_service.create({"family_name": "Kamau Family", "head_of_family_id": head.id})

        assert family.head_of_family_id == head.id
        assert head.family_id == family.id

    def test_create_with_unknown_head(self, family_service):
        with pytest.raises(RecordNotFoundException, match="Member 77"):
            family_service.create({"family_name": "Ghost Family", "head_of_family_id": 77})

    def test_family_code_must_be_unique(self, family_service):
        family_service.create({"family_name": "Kamau Family", "family_code": "FAM001"})

        with pytest.raises(ResourceConflictException, match="family code FAM001"):
            family_service.create({"family_name": "Other Family", "family_code": "FAM001"})

    def test_update_keeps_own_code(self, family_service):
        family = family_service.create({"family_name": "Kamau Family", "family_code": "FAM001"})

        updated = family_service.update(family.id, {"family_code": "FAM001", "address": "Thika"})

        assert updated.address == "Thika"

    def test_update_head_adopts_familyless_member(self, family_service, make_member):
        family = family_service.create({"family_name": "Kamau Family"})
        head = make_member()

        family_service.update(family.id, {"head_of_family_id": head.id})

        assert head.family_id == family.id

    def test_delete_keeps_members(self, family_service, session, make_member):
        family = family_service.create({"family_name": "Kamau Family"})
        member = make_member(family_id=family.id)
        family_service.update(family.id, {"head_of_family_id": member.id})

        family_service.delete(family.id)

        session.refresh(member)
        assert member.family_id is None
        assert session.get(Family, family.id) is None

    def test_list_search_and_filters(self, family_service, make_family):
        make_family(family_name="Kamau Family", parish_section="Central", deanery="Thika")
        make_family(family_name="Otieno Family", parish_section="North", deanery="Thika")

        assert [f.family_name for f in family_service.list_families(search="kamau")] == ["Kamau Family"]
        assert [f.family_name for f in family_service.list_families(parish_section="North")] == [
            "Otieno Family"
        ]
        assert len(family_service.list_families(deanery="Thika")) == 2

    def test_get_by_name_is_case_insensitive(self, family_service, make_family):
        family = make_family(family_name="Kamau Family")

        assert family_service.get_by_name("  kamau family ") is family
        assert family_service.get_by_name("Unknown") is None


class TestFamilyMembership:
    def test_add_and_remove_member(self, family_service, make_family, make_member):
        family = make_family()
        member = make_member()

        family = family_service.add_member(family.id, member.id)
        assert family.member_count == 1

        family = family_service.remove_member(family.id, member.id)
        assert family.member_count == 0
        assert member.family_id is None

    def test_adding_twice_is_a_no_op(self, family_service, make_family, make_member):
        family = make_family()
        member = make_member(family_id=family.id)

        assert family_service.add_member(family.id, member.id).id == family.id

    def test_member_of_another_family_cannot_be_added(self, family_service, make_family, make_member):
        first = make_family()
        second = make_family()
        member = make_member(family_id=first.id)

        with pytest.raises(InvalidOperationException, match="already part of another family"):
            family_service.add_member(second.id, member.id)

    def test_removing_a_stranger_fails(self, family_service, make_family, make_member):
        family = make_family()
        member = make_member()

        with pytest.raises(InvalidOperationException, match="does not belong"):
            family_service.remove_member(family.id, member.id)

    def test_removing_the_head_clears_it(self, family_service, session, make_family, make_member):
        family = make_family()
        member = make_member(family_id=family.id)
        family.head_of_family_id = member.id
        session.flush()

        family = family_service.remove_member(family.id, member.id)

        assert family.head_of_family_id is None
