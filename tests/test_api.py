"""End-to-end tests through the HTTP API."""

import pytest

from tests.conftest import auth_headers

API = "/api/v1"


def candidate_headers(candidate_id):
    return auth_headers(candidate_id, "candidate")


def register(client, candidate_id, **overrides):
    body = {
        "firstName": "Ada",
        "lastName": candidate_id,
        "email": f"{candidate_id}@example.com",
        "profileId": "developer",
        "seniority": "intermediate",
        "status": "disponible",
        "languages": ["French"],
        "expertises": [],
    }
    body.update(overrides)
    response = client.put(f"{API}/candidates/me", json=body, headers=candidate_headers(candidate_id))
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def launched(client, client_headers):
    """A launched project with one French-speaking developer slot and two candidates."""
    register(client, "cand-a")
    register(client, "cand-b")
    project = client.post(f"{API}/projects", json={"title": "Mobile app"}, headers=client_headers).json()
    assignment = client.post(
        f"{API}/projects/{project['id']}/assignments",
        json={"profileId": "developer", "seniority": "intermediate", "languages": [" French "]},
        headers=client_headers,
    ).json()
    response = client.post(f"{API}/projects/{project['id']}/launch", headers=client_headers)
    assert response.status_code == 200, response.text
    return project, assignment, response.json()


class TestAuth:
    """Authentication and role checks."""

    def test_health_is_public(self, client):
        assert client.get("/health").json()["status"] == "ok"
        assert client.get(f"{API}/health").json()["database"] == "connected"
        assert client.get(f"{API}/health/live").json() == {"alive": True}

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"

    def test_detailed_health_reports_booking_integrity(self, client):
        body = client.get(f"{API}/health/detailed").json()

        assert body["status"] == "healthy"
        assert body["components"]["booking_integrity"]["status"] == "clean"

    def test_missing_token_is_rejected(self, client):
        response = client.get(f"{API}/projects")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_invalid_token_is_rejected(self, client):
        response = client.get(f"{API}/projects", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_candidates_cannot_create_projects(self, client):
        response = client.post(f"{API}/projects", json={"title": "X"}, headers=candidate_headers("cand-a"))

        assert response.status_code == 403

    def test_integrity_endpoint_is_admin_only(self, client, client_headers, admin_headers):
        assert client.get(f"{API}/admin/booking-integrity", headers=client_headers).status_code == 403

        response = client.get(f"{API}/admin/booking-integrity", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["isClean"] is True


class TestProjects:
    """Project creation and lifecycle over HTTP."""

    def test_create_uses_camel_case(self, client, client_headers):
        response = client.post(
            f"{API}/projects",
            json={"title": "Mobile app", "dueDate": "2026-12-31"},
            headers=client_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "draft"
        assert body["ownerId"] == "client-1"
        assert body["dueDate"] == "2026-12-31"
        assert body["teamComplete"] is False

    def test_blank_title_is_a_validation_error(self, client, client_headers):
        response = client.post(f"{API}/projects", json={"title": "  "}, headers=client_headers)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_blank_profile_change_is_a_validation_error(self, client, client_headers, launched):
        _, assignment, _ = launched

        response = client.patch(
            f"{API}/assignments/{assignment['id']}",
            json={"profileId": "   "},
            headers=client_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        body = client.get(f"{API}/assignments/{assignment['id']}", headers=client_headers).json()
        assert body["profileId"] == "developer"

    def test_unknown_seniority_is_a_validation_error(self, client, client_headers, make_project):
        project = make_project()

        response = client.post(
            f"{API}/projects/{project.id}/assignments",
            json={"profileId": "developer", "seniority": "guru"},
            headers=client_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_other_clients_cannot_manage_project(self, client, other_client_headers, make_project):
        project = make_project()

        response = client.get(f"{API}/projects/{project.id}", headers=other_client_headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_list_only_own_projects(self, client, client_headers, admin_headers, make_project):
        make_project(title="Mine")
        make_project(owner_id="client-2", title="Theirs")

        body = client.get(f"{API}/projects", headers=client_headers).json()
        assert [p["title"] for p in body["data"]] == ["Mine"]
        assert body["meta"]["total"] == 1

        body = client.get(f"{API}/projects", headers=admin_headers).json()
        assert body["meta"]["total"] == 2

    def test_start_with_open_slot_is_rejected(self, client, client_headers, launched):
        project, _, _ = launched

        response = client.post(f"{API}/projects/{project['id']}/start", headers=client_headers)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"


class TestBookingFlow:
    """Candidates discovering and booking missions."""

    def test_launch_notifies_matching_candidates(self, client, launched):
        _, assignment, launch = launched

        assert launch["candidatesNotified"] == 2
        notifications = client.get(
            f"{API}/candidates/me/notifications", headers=candidate_headers("cand-a")
        ).json()
        assert [(n["type"], n["assignmentId"]) for n in notifications] == [
            ("mission_request", assignment["id"])
        ]

    def test_missions_list_open_slot(self, client, launched):
        project, assignment, _ = launched

        missions = client.get(f"{API}/candidates/me/missions", headers=candidate_headers("cand-a")).json()

        assert len(missions) == 1
        assert missions[0]["id"] == assignment["id"]
        assert missions[0]["bookingStatus"] == "recherche"
        assert missions[0]["projectTitle"] == "Mobile app"
        assert missions[0]["languages"] == ["french"]

    def test_match_explains_each_criterion(self, client, launched):
        _, assignment, _ = launched
        register(client, "cand-c", languages=["English"])

        body = client.get(
            f"{API}/assignments/{assignment['id']}/match", headers=candidate_headers("cand-c")
        ).json()

        assert body["matched"] is False
        assert body["visible"] is False
        assert body["failedCriteria"] == ["languages"]

    def test_full_flow(self, client, client_headers, launched):
        project, assignment, _ = launched
        aid = assignment["id"]

        response = client.post(f"{API}/assignments/{aid}/accept", headers=candidate_headers("cand-a"))
        assert response.status_code == 200
        assert response.json()["toStatus"] == "accepted"
        assert response.json()["candidateId"] == "cand-a"

        response = client.post(f"{API}/assignments/{aid}/accept", headers=candidate_headers("cand-b"))
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NOT_AVAILABLE"

        # The booked slot disappears for the other candidate
        assert client.get(f"{API}/assignments/{aid}", headers=candidate_headers("cand-b")).status_code == 404
        assert client.get(f"{API}/candidates/me/missions", headers=candidate_headers("cand-b")).json() == []
        assert client.get(f"{API}/assignments/{aid}", headers=candidate_headers("cand-a")).status_code == 200

        response = client.post(f"{API}/projects/{project['id']}/start", headers=client_headers)
        assert response.status_code == 200
        body = client.get(f"{API}/projects/{project['id']}", headers=client_headers).json()
        assert body["status"] == "play"
        assert body["teamComplete"] is True

        response = client.post(f"{API}/projects/{project['id']}/complete", headers=client_headers)
        assert response.status_code == 200

        missions = client.get(f"{API}/candidates/me/missions", headers=candidate_headers("cand-a")).json()
        assert [(m["bookingStatus"], m["projectStatus"]) for m in missions] == [("completed", "completed")]

        events = client.get(f"{API}/assignments/{aid}/events", headers=client_headers).json()
        assert [e["action"] for e in events] == ["open_search", "accept", "complete"]

    def test_mismatching_candidate_cannot_accept(self, client, launched):
        _, assignment, _ = launched
        register(client, "cand-c", status="qualification")

        response = client.post(
            f"{API}/assignments/{assignment['id']}/accept", headers=candidate_headers("cand-c")
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "CANDIDATE_MISMATCH"
        assert error["details"]["failed_criteria"] == ["availability"]

    def test_decline_hides_mission(self, client, launched):
        _, assignment, _ = launched
        headers = candidate_headers("cand-a")

        response = client.post(f"{API}/assignments/{assignment['id']}/decline", headers=headers)

        assert response.status_code == 200
        assert response.json()["toStatus"] == "recherche"
        assert client.get(f"{API}/candidates/me/missions", headers=headers).json() == []

    def test_archived_decline_keeps_mission_hidden(self, client, client_headers, launched):
        _, assignment, _ = launched
        headers = candidate_headers("cand-a")
        client.post(f"{API}/assignments/{assignment['id']}/decline", headers=headers)
        declined = client.get(f"{API}/candidates/me/notifications?status=declined", headers=headers).json()

        response = client.post(f"{API}/candidates/me/notifications/{declined[0]['id']}/archive", headers=headers)
        assert response.json()["status"] == "declined"
        assert client.get(f"{API}/candidates/me/missions", headers=headers).json() == []

        response = client.patch(
            f"{API}/assignments/{assignment['id']}",
            json={"calculatedPrice": 700.0},
            headers=client_headers,
        )
        assert response.json()["candidatesNotified"] == 0
        assert client.get(f"{API}/candidates/me/missions", headers=headers).json() == []
        assert client.get(f"{API}/candidates/me/notifications", headers=headers).json() == []
        archived = client.get(f"{API}/candidates/me/notifications?archived=true", headers=headers).json()
        assert [(n["type"], n["status"]) for n in archived] == [("mission_request", "declined")]

    def test_notifications_read_and_archive(self, client, launched):
        headers = candidate_headers("cand-a")
        notification = client.get(f"{API}/candidates/me/notifications", headers=headers).json()[0]

        response = client.post(f"{API}/candidates/me/notifications/{notification['id']}/read", headers=headers)
        assert response.json()["status"] == "read"

        response = client.post(f"{API}/candidates/me/notifications/{notification['id']}/archive", headers=headers)
        assert response.json()["status"] == "read"
        assert response.json()["archivedAt"] is not None
        assert client.get(f"{API}/candidates/me/notifications", headers=headers).json() == []
        archived = client.get(f"{API}/candidates/me/notifications?archived=true", headers=headers).json()
        assert [n["id"] for n in archived] == [notification["id"]]

        response = client.post(
            f"{API}/candidates/me/notifications/{notification['id']}/read",
            headers=candidate_headers("cand-b"),
        )
        assert response.status_code == 404

    def test_client_cancels_slot(self, client, client_headers, launched):
        _, assignment, _ = launched

        response = client.post(
            f"{API}/assignments/{assignment['id']}/cancel",
            json={"comment": "Out of budget"},
            headers=client_headers,
        )

        assert response.status_code == 200
        assert response.json()["fromStatus"] == "recherche"
        assert response.json()["toStatus"] == "cancelled"


class TestRequirementChanges:
    """PATCH on assignments."""

    def test_rebooking_over_http(self, client, client_headers, launched):
        project, assignment, _ = launched
        aid = assignment["id"]
        client.post(f"{API}/assignments/{aid}/accept", headers=candidate_headers("cand-a"))
        client.post(f"{API}/projects/{project['id']}/start", headers=client_headers)

        response = client.patch(
            f"{API}/assignments/{aid}",
            json={"seniority": "senior"},
            headers=client_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["action"] == "rebooked"
        assert body["previousAssignmentId"] == aid
        assert body["outgoingCandidateId"] == "cand-a"
        assert body["assignment"]["bookingStatus"] == "recherche"
        assert body["assignment"]["seniority"] == "senior"

        project_body = client.get(f"{API}/projects/{project['id']}", headers=client_headers).json()
        assert project_body["status"] == "attente-team"
        assert {a["bookingStatus"] for a in project_body["assignments"]} == {"completed", "recherche"}

        notifications = client.get(
            f"{API}/candidates/me/notifications", headers=candidate_headers("cand-a")
        ).json()
        assert notifications[0]["type"] == "mission_completed"

    def test_other_client_cannot_patch(self, client, other_client_headers, launched):
        _, assignment, _ = launched

        response = client.patch(
            f"{API}/assignments/{assignment['id']}",
            json={"seniority": "senior"},
            headers=other_client_headers,
        )

        assert response.status_code == 403
