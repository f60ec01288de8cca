"""Startup hooks.

Hook points called by create_app():
  - create_container()
  - register_blueprints()
  - register_root_blueprints()

Hook points called by CLI command handlers:
  - load_test_data_hook()
"""

from __future__ import annotations

import logging
from datetime import date, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from flask import Blueprint, Flask

from parish.services.container import ServiceContainer

if TYPE_CHECKING:
    from parish.app import App

logger = logging.getLogger(__name__)


def create_container() -> ServiceContainer:
    """Create and configure the application's service container."""
    return ServiceContainer()


def register_blueprints(api_bp: Blueprint, app: Flask) -> None:
    """Register all resource blueprints on api_bp (under /api prefix)."""
    if not api_bp._got_registered_once:  # type: ignore[attr-defined]
        from parish.api.activities import activities_bp
        from parish.api.families import families_bp
        from parish.api.members import members_bp
        from parish.api.performance import performance_bp
        from parish.api.reports import reports_bp
        from parish.api.sacraments import sacraments_bp
        from parish.api.tithes import tithes_bp

        api_bp.register_blueprint(members_bp)  # type: ignore[attr-defined]
        api_bp.register_blueprint(families_bp)  # type: ignore[attr-defined]
        api_bp.register_blueprint(sacraments_bp)  # type: ignore[attr-defined]
        api_bp.register_blueprint(tithes_bp)  # type: ignore[attr-defined]
        api_bp.register_blueprint(activities_bp)  # type: ignore[attr-defined]
        api_bp.register_blueprint(reports_bp)  # type: ignore[attr-defined]
        api_bp.register_blueprint(performance_bp)  # type: ignore[attr-defined]


def register_root_blueprints(app: Flask) -> None:
    """Register blueprints directly on the app (not under /api prefix).

    These are for internal cluster use only and should not be publicly proxied.
    """
    from parish.api.health import health_bp
    from parish.api.metrics import metrics_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(metrics_bp)


def load_test_data_hook(app: App) -> None:
    """Load a small sample parish after database recreation."""
    container = app.container
    today = date.today()

    with app.app_context():
        session = container.db_session()
        try:
            family_service = container.family_service()
            member_service = container.member_service()
            sacrament_service = container.sacrament_service()
            tithe_service = container.tithe_service()
            activity_service = container.activity_service()

            kamau = family_service.create({
                "family_name": "The Kamau Family",
                "family_code": "FAM001",
                "address": "Kiambu County, Thika Town",
                "phone": "+254712345678",
                "email": "kamau.family@example.com",
                "deanery": "Thika Deanery",
                "parish": "Sacred Heart Kandara Parish",
                "parish_section": "Central",
            })
            wanjiku = family_service.create({
                "family_name": "The Wanjiku Family",
                "family_code": "FAM002",
                "address": "Nairobi County, Kasarani",
                "phone": "+254723456789",
                "email": "wanjiku.family@example.com",
                "deanery": "Nairobi Deanery",
                "parish": "Sacred Heart Kandara Parish",
                "parish_section": "North",
            })

            john = member_service.create({
                "first_name": "John",
                "middle_name": "Mwangi",
                "last_name": "Kamau",
                "date_of_birth": date(1975, 3, 15),
                "gender": "Male",
                "id_number": "12345678",
                "phone": "+254712345678",
                "email": "john.kamau@example.com",
                "residence": "Thika Town, Kiambu County",
                "local_church": "Sacred Heart Kandara",
                "small_christian_community": "Tumaini SCC",
                "church_group": "CMA",
                "membership_date": date(2000, 1, 15),
                "baptism_date": date(1975, 4, 20),
                "confirmation_date": date(1988, 5, 15),
                "matrimony_status": "married",
                "marriage_type": "church",
                "marriage_date": date(2001, 8, 18),
                "marriage_location": "Sacred Heart Kandara Parish",
                "spouse_name": "Mary Wanjiku Kamau",
                "spouse_age": 24,
                "presence_of": "Rev. Fr. Peter Njoroge",
                "occupation": "employed",
                "education_level": "degree",
                "family_id": kamau.id,
                "tribe": "Kikuyu",
                "clan": "Anjiru",
            })
            mary = member_service.create({
                "first_name": "Mary",
                "middle_name": "Wanjiku",
                "last_name": "Kamau",
                "date_of_birth": date(1977, 7, 22),
                "gender": "Female",
                "id_number": "23456789",
                "phone": "+254712345679",
                "email": "mary.kamau@example.com",
                "local_church": "Sacred Heart Kandara",
                "small_christian_community": "Tumaini SCC",
                "church_group": "C.W.A",
                "membership_date": date(2001, 8, 18),
                "matrimony_status": "married",
                "marriage_type": "church",
                "family_id": kamau.id,
                "tribe": "Kikuyu",
            })
            grace = member_service.create({
                "first_name": "Grace",
                "last_name": "Wanjiku",
                "date_of_birth": date(2005, 11, 2),
                "gender": "Female",
                "phone": "+254723456780",
                "local_church": "St James Kangemi",
                "church_group": "Youth",
                "membership_date": date(2019, 6, 9),
                "baptism_date": date(2005, 12, 25),
                "parent": "Joseph Wanjiku",
                "godparent": "Anne Muthoni",
                "minister": "Rev. Fr. James Kariuki",
                "family_id": wanjiku.id,
            })
            peter = member_service.create({
                "first_name": "Peter",
                "last_name": "Otieno",
                "date_of_birth": date(1950, 1, 30),
                "gender": "Male",
                "local_church": "St Peter Kiawara",
                "church_group": "Catholic Action",
                "membership_status": "inactive",
                "membership_date": date(1980, 4, 6),
            })

            family_service.update(kamau.id, {"head_of_family_id": john.id})

            sacrament_service.create({
                "member_id": john.id,
                "sacrament_type": "marriage",
                "sacrament_date": date(2001, 8, 18),
                "location": "Sacred Heart Kandara Parish",
                "celebrant": "Rev. Fr. Peter Njoroge",
                "witness_1": "Samuel Kariuki",
                "witness_2": "Lucy Njeri",
            })
            sacrament_service.create({
                "member_id": grace.id,
                "sacrament_type": "baptism",
                "sacrament_date": date(2005, 12, 25),
                "location": "St James Kangemi",
                "celebrant": "Rev. Fr. James Kariuki",
                "godparent_1": "Anne Muthoni",
            })

            for member, amount, tithe_type, method, days_ago in (
                (john, Decimal("5000.00"), "tithe", "mobile_money", 3),
                (mary, Decimal("1500.00"), "offering", "cash", 10),
                (john, Decimal("20000.00"), "project_contribution", "bank_transfer", 40),
                (peter, Decimal("500.00"), "thanksgiving", "cash", 70),
            ):
                tithe_service.create({
                    "member_id": member.id,
                    "amount": amount,
                    "tithe_type": tithe_type,
                    "payment_method": method,
                    "date_given": today - timedelta(days=days_ago),
                })

            activity_service.create({
                "title": "Parish Youth Retreat",
                "activity_type": "retreat",
                "start_date": today + timedelta(days=14),
                "end_date": today + timedelta(days=16),
                "location": "Mangu Retreat Centre",
                "organizer": "Youth Committee",
                "max_participants": 60,
                "registration_required": True,
                "registration_deadline": today + timedelta(days=7),
            })
            activity_service.create({
                "title": "Harambee for the New Church Hall",
                "activity_type": "fundraising",
                "start_date": today - timedelta(days=30),
                "start_time": time(10, 0),
                "end_time": time(15, 0),
                "location": "Parish Grounds",
                "status": "completed",
            })

            session.commit()
            logger.info("Loaded sample data: 2 families, 4 members")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            container.db_session.reset()
