"""Tests for the member API endpoints."""

import csv
import io

from parish.models.member import Member

NEW_MEMBER = {
    "first_name": "John",
    "last_name": "Kamau",
    "gender": "male",
    "date_of_birth": "1980-03-15",
    "local_church": "St James Kangemi",
    "church_group": "CMA",
    "email": "John.Kamau@Example.com",
}


class TestMemberCrudApi:
    """Create, read, update and delete through HTTP."""

    def test_create_member(self, client):
        response = client.post("/api/members", json=NEW_MEMBER)

        assert response.status_code == 201
        data = response.get_json()
        assert data["id"] > 0
        assert data["full_name"] == "John Kamau"
        assert data["gender"] == "Male"
        assert data["email"] == "john.kamau@example.com"
        assert data["membership_status"] == "active"

    def test_create_requires_names(self, client):
        response = client.post("/api/members", json={**NEW_MEMBER, "first_name": ""})

        assert response.status_code == 400

    def test_create_rejects_unknown_church(self, client):
        response = client.post("/api/members", json={**NEW_MEMBER, "local_church": "Nowhere"})

        assert response.status_code == 400

    def test_create_rejects_future_birth_date(self, client):
        response = client.post("/api/members", json={**NEW_MEMBER, "date_of_birth": "2999-01-01"})

        assert response.status_code == 400

    def test_duplicate_email_conflicts(self, client, session, make_member):
        make_member(email="john.kamau@example.com")
        session.commit()

        response = client.post("/api/members", json=NEW_MEMBER)

        assert response.status_code == 409
        data = response.get_json()
        assert data["code"] == "RESOURCE_CONFLICT"
        assert "email john.kamau@example.com" in data["error"]

    def test_get_member(self, client, session, make_member):
        member = make_member(first_name="Mary", last_name="Wanjiku")
        session.commit()

        response = client.get(f"/api/members/{member.id}")

        assert response.status_code == 200
        assert response.get_json()["full_name"] == "Mary Wanjiku"

    def test_get_missing_member(self, client):
        response = client.get("/api/members/9999")

        assert response.status_code == 404
        data = response.get_json()
        assert data["error"] == "Member 9999 was not found"
        assert data["code"] == "RECORD_NOT_FOUND"
        assert "correlationId" in data

    def test_update_member(self, client, session, make_member):
        member = make_member(occupation="Farmer")
        session.commit()

        response = client.put(f"/api/members/{member.id}", json={"occupation": "Teacher"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["occupation"] == "Teacher"
        assert data["last_name"] == member.last_name

    def test_update_with_unknown_family(self, client, session, make_member):
        member = make_member()
        session.commit()

        response = client.put(f"/api/members/{member.id}", json={"family_id": 4242})

        assert response.status_code == 404

    def test_update_rejects_null_required_fields(self, client, session, make_member):
        member = make_member(first_name="Mary")
        session.commit()

        for field in ("first_name", "last_name", "gender", "local_church", "church_group", "membership_status"):
            response = client.put(f"/api/members/{member.id}", json={field: None})

            assert response.status_code == 400, field

        assert client.get(f"/api/members/{member.id}").get_json()["first_name"] == "Mary"

    def test_update_allows_clearing_optional_fields(self, client, session, make_member):
        member = make_member(occupation="Farmer")
        session.commit()

        response = client.put(f"/api/members/{member.id}", json={"occupation": None})

        assert response.status_code == 200
        assert response.get_json()["occupation"] is None

    def test_delete_member(self, client, session, make_member, make_tithe):
        member = make_member()
        make_tithe(member)
        session.commit()

        response = client.delete(f"/api/members/{member.id}")

        assert response.status_code == 204
        assert client.get(f"/api/members/{member.id}").status_code == 404


class TestMemberStatusApi:
    def test_toggle_status(self, client, session, make_member):
        member = make_member(membership_status="active")
        session.commit()

        first = client.post(f"/api/members/{member.id}/toggle-status")
        second = client.post(f"/api/members/{member.id}/toggle-status")

        assert first.get_json()["membership_status"] == "inactive"
        assert second.get_json()["membership_status"] == "active"

    def test_set_status(self, client, session, make_member):
        member = make_member()
        session.commit()

        response = client.put(f"/api/members/{member.id}/status", json={"status": "transferred"})

        assert response.status_code == 200
        assert response.get_json()["membership_status"] == "transferred"

    def test_set_invalid_status(self, client, session, make_member):
        member = make_member()
        session.commit()

        response = client.put(f"/api/members/{member.id}/status", json={"status": "retired"})

        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_FAILED"

    def test_bulk_delete(self, client, session, make_member):
        first = make_member()
        second = make_member()
        keep = make_member()
        session.commit()

        response = client.post("/api/members/bulk-delete", json={"member_ids": [first.id, second.id]})

        assert response.status_code == 200
        assert response.get_json() == {"deleted": 2}
        assert client.get(f"/api/members/{keep.id}").status_code == 200

    def test_bulk_delete_with_missing_id_deletes_nothing(self, client, session, make_member):
        member = make_member()
        session.commit()

        response = client.post("/api/members/bulk-delete", json={"member_ids": [member.id, 9999]})

        assert response.status_code == 404
        assert client.get(f"/api/members/{member.id}").status_code == 200


class TestMemberListingApi:
    def test_list_is_paginated(self, client, session, make_member):
        for _ in range(3):
            make_member()
        session.commit()

        response = client.get("/api/members?per_page=2&page=2&sort=last_name&direction=asc")

        assert response.status_code == 200
        data = response.get_json()
        assert data["total"] == 3
        assert data["page"] == 2
        assert data["per_page"] == 2
        assert data["last_page"] == 2
        assert [item["last_name"] for item in data["items"]] == ["Test3"]

    def test_list_filters(self, client, session, make_member):
        make_member(first_name="Anne", church_group="Youth", local_church="St James Kangemi")
        make_member(first_name="Beth", church_group="C.W.A", local_church="St Peter Kiawara")
        session.commit()

        response = client.get("/api/members", query_string={"local_church": "St Peter Kiawara"})

        assert [item["first_name"] for item in response.get_json()["items"]] == ["Beth"]

    def test_list_search(self, client, session, make_member):
        make_member(first_name="Anne", phone="+254712345678")
        make_member(first_name="Beth")
        session.commit()

        response = client.get("/api/members?search=712345678")

        assert [item["first_name"] for item in response.get_json()["items"]] == ["Anne"]

    def test_quick_search(self, client, session, make_member):
        make_member(first_name="Wanjiru", last_name="Njoroge")
        make_member(first_name="Otieno", last_name="Odhiambo")
        session.commit()

        response = client.get("/api/members/search?q=wanj")

        assert response.status_code == 200
        results = response.get_json()["results"]
        assert [r["full_name"] for r in results] == ["Wanjiru Njoroge"]

    def test_quick_search_requires_term(self, client):
        response = client.get("/api/members/search")

        assert response.status_code == 400

    def test_by_church_and_group(self, client, session, make_member):
        make_member(first_name="Anne", local_church="St Veronica Pembe Tatu", church_group="C.W.A")
        make_member(first_name="Beth", local_church="St James Kangemi", church_group="C.W.A")
        session.commit()

        by_church = client.get("/api/members/church/St%20Veronica%20Pembe%20Tatu").get_json()
        by_group = client.get("/api/members/group/C.W.A").get_json()

        assert by_church["total"] == 1
        assert by_church["items"][0]["full_name"].startswith("Anne")
        assert by_group["total"] == 2

    def test_statistics(self, client, session, make_member):
        make_member(membership_status="active", church_group="Youth")
        make_member(membership_status="inactive", church_group="CMA")
        session.commit()

        data = client.get("/api/members/statistics").get_json()

        assert data["total"] == 2
        assert data["active"] == 1
        assert data["by_group"] == {"Youth": 1, "CMA": 1}
        assert data["by_status"] == {"active": 1, "inactive": 1}

    def test_filter_options(self, client, session, make_member):
        make_member(local_church="St Peter Kiawara", church_group="CMA")
        session.commit()

        data = client.get("/api/members/filter-options").get_json()

        assert data["churches"] == ["St Peter Kiawara"]
        assert data["groups"] == ["CMA"]
        assert "St James Kangemi" in data["local_churches"]
        assert "Youth" in data["church_groups"]


class TestMemberImportApi:
    """CSV upload through the multipart endpoint."""

    def _upload(self, client, content: bytes, filename: str = "members.csv", **flags):
        data = {"file": (io.BytesIO(content), filename)}
        data.update(flags)
        return client.post("/api/members/import", data=data, content_type="multipart/form-data")

    def test_import(self, client, session):
        content = (
            "first_name,last_name,date_of_birth,gender,local_church,church_group,phone\n"
            "John,Kamau,1980-03-15,Male,Kangemi,CMA,0712345678\n"
            ",Nameless,1980-03-15,Male,Kangemi,CMA,\n"
        ).encode("utf-8")

        response = self._upload(client, content)

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["imported"] == 1
        assert data["skipped"] == 1
        assert data["total_processed"] == 2
        assert data["errors"][0].startswith("Row 3:")
        assert session.query(Member).filter_by(first_name="John").one().phone == "+254712345678"

    def test_update_existing_flag(self, client, session, make_member):
        make_member(first_name="John", last_name="Kamau", id_number="111", occupation="not_employed")
        session.commit()
        content = (
            "first_name,last_name,date_of_birth,gender,local_church,church_group,id_number,occupation\n"
            "John,Kamau,1980-03-15,Male,Kangemi,CMA,111,employed\n"
        ).encode("utf-8")

        response = self._upload(client, content, update_existing="true")

        data = response.get_json()
        assert data["updated"] == 1
        assert data["imported"] == 0
        assert session.query(Member).filter_by(id_number="111").one().occupation == "employed"

    def test_missing_file(self, client):
        response = client.post("/api/members/import", data={}, content_type="multipart/form-data")

        assert response.status_code == 422
        assert response.get_json()["error"] == "Import failed: No file was uploaded."

    def test_wrong_extension(self, client):
        response = self._upload(client, b"first_name\nJohn\n", filename="members.xlsx")

        assert response.status_code == 422
        assert response.get_json()["code"] == "IMPORT_FAILED"

    def test_template_download(self, client):
        response = client.get("/api/members/import/template")

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert response.headers["Content-Disposition"] == (
            'attachment; filename="members_import_template.csv"'
        )
        body = response.get_data(as_text=True)
        assert body.startswith("\ufeff")
        assert body.lstrip("\ufeff").startswith("first_name,middle_name,last_name")


class TestMemberExportApi:
    def test_export_csv(self, client, session, make_member):
        make_member(first_name="John", last_name="Kamau", church_group="CMA")
        make_member(first_name="Mary", last_name="Wanjiku", church_group="Youth")
        session.commit()

        response = client.get("/api/members/export?church_group=CMA&fields=first_name,last_name")

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        disposition = response.headers["Content-Disposition"]
        assert disposition.startswith('attachment; filename="members_export_')
        assert disposition.endswith('.csv"')
        assert "no-store" in response.headers["Cache-Control"]

        rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
        assert rows[1:] == [["John", "Kamau"]]

    def test_export_rejects_unknown_field(self, client):
        response = client.get("/api/members/export?fields=first_name,password")

        assert response.status_code == 400
        assert "password" in response.get_json()["error"]

    def test_export_rejects_other_formats(self, client):
        response = client.get("/api/members/export?format=xlsx")

        assert response.status_code == 400

    def test_preview(self, client, session, make_member):
        for _ in range(12):
            make_member()
        session.commit()

        response = client.get("/api/members/export/preview")

        assert response.status_code == 200
        data = response.get_json()
        assert data["showing"] == 10
        assert data["total_count"] == 12
        assert len(data["preview_data"]) == 10
        assert data["preview_data"][0]["local_church"] == "St James Kangemi"
