"""Tests for the activity API endpoints."""

from datetime import date, timedelta


class TestActivityApi:
    def test_create(self, client):
        response = client.post(
            "/api/activities",
            json={
                "title": "Youth Retreat",
                "activity_type": "retreat",
                "start_date": "2030-04-10",
                "end_date": "2030-04-12",
                "start_time": "08:00:00",
                "location": "Mangu",
                "registration_required": True,
                "registration_deadline": "2030-04-01",
            },
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["status"] == "planned"
        assert data["start_time"] == "08:00:00"
        assert data["registration_required"] is True

    def test_invalid_schedule(self, client):
        response = client.post(
            "/api/activities",
            json={
                "title": "Retreat",
                "activity_type": "retreat",
                "start_date": "2030-04-10",
                "end_date": "2030-04-09",
            },
        )

        assert response.status_code == 400
        assert response.get_json()["error"] == "End date cannot be before the start date"

    def test_unknown_type(self, client):
        response = client.post(
            "/api/activities",
            json={"title": "Party", "activity_type": "rave", "start_date": "2030-04-10"},
        )

        assert response.status_code == 400

    def test_get_update_delete(self, client, session, make_activity):
        activity = make_activity()
        session.commit()

        assert client.get(f"/api/activities/{activity.id}").get_json()["title"] == "Sunday Mass"

        updated = client.put(f"/api/activities/{activity.id}", json={"status": "completed"})
        assert updated.get_json()["status"] == "completed"

        assert client.delete(f"/api/activities/{activity.id}").status_code == 204
        assert client.get(f"/api/activities/{activity.id}").status_code == 404

    def test_update_rejects_null_start_date(self, client, session, make_activity):
        activity = make_activity()
        session.commit()

        response = client.put(f"/api/activities/{activity.id}", json={"start_date": None})

        assert response.status_code == 400
        assert client.get(f"/api/activities/{activity.id}").get_json()["start_date"] == activity.start_date.isoformat()

    def test_list_filters(self, client, session, make_activity):
        make_activity(title="Mass", activity_type="mass")
        make_activity(title="Choir", activity_type="choir")
        session.commit()

        data = client.get("/api/activities?activity_type=choir").get_json()

        assert [a["title"] for a in data["items"]] == ["Choir"]


class TestActivityQueriesApi:
    def test_upcoming(self, client, session, make_activity):
        today = date.today()
        make_activity(title="Past", start_date=today - timedelta(days=3))
        make_activity(title="Next week", start_date=today + timedelta(days=7))
        make_activity(title="Tomorrow", start_date=today + timedelta(days=1))
        make_activity(title="Cancelled", start_date=today + timedelta(days=2), status="cancelled")
        session.commit()

        data = client.get("/api/activities/upcoming").get_json()

        assert [a["title"] for a in data["items"]] == ["Tomorrow", "Next week"]

    def test_search(self, client, session, make_activity):
        make_activity(title="Harambee", location="Kangemi Hall")
        make_activity(title="Mass")
        session.commit()

        data = client.get("/api/activities/search?q=kangemi").get_json()

        assert [a["title"] for a in data["items"]] == ["Harambee"]

    def test_search_requires_term(self, client):
        assert client.get("/api/activities/search").status_code == 400

    def test_statistics(self, client, session, make_activity):
        make_activity(activity_type="mass", status="completed")
        make_activity(activity_type="choir", status="active")
        session.commit()

        data = client.get("/api/activities/statistics").get_json()

        assert data["total_activities"] == 2
        assert data["active_activities"] == 1
        assert data["completed_activities"] == 1
        assert data["activities_by_type"] == {"mass": 1, "choir": 1}
