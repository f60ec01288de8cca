"""Tests for SacramentService."""

from datetime import date

import pytest

from parish.exceptions import (
    RecordNotFoundException,
    ResourceConflictException,
    ValidationException,
)

TODAY = date(2024, 6, 1)


@pytest.fixture
def sacrament_service(container, session):
    return container.sacrament_service()


class TestSacramentService:
    def test_create(self, sacrament_service, make_member):
        member = make_member()

        sacrament = sacrament_service.create(
            {
                "member_id": member.id,
                "sacrament_type": "confirmation",
                "sacrament_date": date(2010, 5, 15),
                "celebrant": "Bishop Anthony",
            },
            today=TODAY,
        )

        assert sacrament.id is not None
        assert sacrament.member_id == member.id

    def test_future_date_rejected(self, sacrament_service, make_member):
        member = make_member()

        with pytest.raises(ValidationException, match="cannot be in the future"):
            sacrament_service.create(
                {"member_id": member.id, "sacrament_type": "baptism", "sacrament_date": date(2024, 6, 2)},
                today=TODAY,
            )

    def test_unknown_member(self, sacrament_service):
        with pytest.raises(RecordNotFoundException, match="Member 42"):
            sacrament_service.create(
                {"member_id": 42, "sacrament_type": "baptism", "sacrament_date": date(2000, 1, 1)}
            )

    def test_one_sacrament_of_each_type_per_member(self, sacrament_service, make_member, make_sacrament):
        member = make_member()
        make_sacrament(member, sacrament_type="baptism")

        with pytest.raises(ResourceConflictException, match="type baptism"):
            sacrament_service.create(
                {"member_id": member.id, "sacrament_type": "baptism", "sacrament_date": date(2001, 1, 1)}
            )

        other = sacrament_service.create(
            {"member_id": member.id, "sacrament_type": "marriage", "sacrament_date": date(2015, 1, 1)}
        )
        assert other.sacrament_type == "marriage"

    def test_update_checks_duplicates_only_when_identity_changes(
        self, sacrament_service, make_member, make_sacrament
    ):
        member = make_member()
        baptism = make_sacrament(member, sacrament_type="baptism")
        confirmation = make_sacrament(member, sacrament_type="confirmation")

        updated = sacrament_service.update(baptism.id, {"location": "St James Kangemi"})
        assert updated.location == "St James Kangemi"

        with pytest.raises(ResourceConflictException):
            sacrament_service.update(confirmation.id, {"sacrament_type": "baptism"})

    def test_member_sacraments_in_date_order(self, sacrament_service, make_member, make_sacrament):
        member = make_member()
        make_sacrament(member, sacrament_type="marriage", sacrament_date=date(2015, 1, 1))
        make_sacrament(member, sacrament_type="baptism", sacrament_date=date(1990, 1, 1))

        sacraments = sacrament_service.get_member_sacraments(member.id)

        assert [s.sacrament_type for s in sacraments] == ["baptism", "marriage"]

    def test_list_filters(self, sacrament_service, make_member, make_sacrament):
        john = make_member(first_name="John")
        mary = make_member(first_name="Mary")
        make_sacrament(john, sacrament_type="baptism", sacrament_date=date(1990, 1, 1), celebrant="Fr. Otieno")
        make_sacrament(mary, sacrament_type="baptism", sacrament_date=date(1995, 1, 1))
        make_sacrament(mary, sacrament_type="marriage", sacrament_date=date(2020, 1, 1))

        assert len(sacrament_service.list_sacraments(sacrament_type="baptism")) == 2
        assert len(sacrament_service.list_sacraments(member_id=mary.id)) == 2
        assert len(sacrament_service.list_sacraments(date_from=date(1994, 1, 1), date_to=date(2000, 1, 1))) == 1
        assert [s.member_id for s in sacrament_service.list_sacraments(search="otieno")] == [john.id]
        assert [s.member_id for s in sacrament_service.list_sacraments(search="Mary")] == [mary.id, mary.id]

    def test_delete(self, sacrament_service, make_member, make_sacrament):
        sacrament = make_sacrament(make_member())

        sacrament_service.delete(sacrament.id)

        with pytest.raises(RecordNotFoundException):
            sacrament_service.get_by_id(sacrament.id)
