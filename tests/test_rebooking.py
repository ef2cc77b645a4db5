"""Tests for requirement changes and rebooking."""

import pytest
from sqlalchemy import update

from staffing_api.middleware.error_handler import AssignmentNotAvailableError, InvalidTransitionError
from staffing_api.models import (
    CandidateNotification,
    NotificationStatus,
    NotificationType,
    Project,
    ProjectStatus,
    ResourceAssignment,
)
from staffing_api.services.booking import BookingService
from staffing_api.services.notifications import NotificationService


@pytest.fixture
def service(db):
    return BookingService(db, "client-1")


@pytest.fixture
def booked(db, make_project, make_assignment, make_candidate):
    """A running project with one slot booked by a French-speaking developer."""
    candidate = make_candidate(languages=["french", "english"], expertises=["react"])
    project = make_project(status=ProjectStatus.PLAY.value)
    assignment = make_assignment(
        project=project,
        booking_status="accepted",
        candidate_id=candidate.id,
        languages=["french"],
        expertises=["react"],
        calculated_price=500.0,
    )
    return project, assignment, candidate


class TestInPlaceChanges:
    """Changes that keep the current slot."""

    def test_no_real_change_is_a_noop(self, service, booked):
        _, assignment, _ = booked

        result = service.change_requirements(
            assignment.id,
            {"profile_id": "developer", "languages": [" French"], "expertises": ["REACT"]},
        )

        assert result.action == "unchanged"
        assert result.assignment.id == assignment.id

    def test_booked_slot_price_change_is_in_place(self, db, service, booked):
        _, assignment, candidate = booked

        result = service.change_requirements(assignment.id, {"calculated_price": 650.0})

        assert result.action == "updated"
        assert result.assignment.calculated_price == 650.0
        assert result.assignment.booking_status == "accepted"
        assert result.assignment.candidate_id == candidate.id

    def test_booked_candidate_still_covering_skills_keeps_slot(self, service, booked):
        _, assignment, candidate = booked

        result = service.change_requirements(assignment.id, {"languages": ["french", "english"]})

        assert result.action == "updated"
        assert result.assignment.languages == {"french", "english"}
        assert result.assignment.candidate_id == candidate.id

    def test_open_slot_updates_and_notifies_new_matches(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        french = make_candidate(languages=["french"])
        monolingual = make_candidate(languages=["english"])
        NotificationService(db).notify_eligible_candidates(assignment)
        db.commit()

        designer = make_candidate(profile_id="designer", languages=["french"])
        result = service.change_requirements(
            assignment.id,
            {"profile_id": "designer", "languages": ["french"]},
        )

        assert result.action == "updated"
        assert result.candidates_notified == 1
        by_candidate = {n.candidate_id: n.status for n in db.query(CandidateNotification)}
        assert by_candidate == {
            french.id: NotificationStatus.EXPIRED.value,
            monolingual.id: NotificationStatus.EXPIRED.value,
            designer.id: NotificationStatus.UNREAD.value,
        }

    def test_open_slot_keeps_requests_of_still_eligible_candidates(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        french = make_candidate(languages=["french"])
        other = make_candidate(languages=["english"])
        NotificationService(db).notify_eligible_candidates(assignment)
        db.commit()

        result = service.change_requirements(assignment.id, {"languages": ["french"]})

        assert result.candidates_notified == 0
        by_candidate = {n.candidate_id: n.status for n in db.query(CandidateNotification)}
        assert by_candidate[french.id] == NotificationStatus.UNREAD.value
        assert by_candidate[other.id] == NotificationStatus.EXPIRED.value

    def test_closed_slot_cannot_change(self, service, make_assignment, make_candidate):
        candidate = make_candidate()
        assignment = make_assignment(booking_status="completed", candidate_id=candidate.id)

        with pytest.raises(AssignmentNotAvailableError):
            service.change_requirements(assignment.id, {"seniority": "senior"})


class TestRebooking:
    """Changes that close the booked slot and reopen the search."""

    def test_profile_change_rebooks(self, db, service, booked, make_candidate):
        project, assignment, candidate = booked
        designer = make_candidate(profile_id="designer", languages=["french"], expertises=["react"])

        result = service.change_requirements(assignment.id, {"profile_id": "designer"})

        assert result.action == "rebooked"
        assert result.outgoing_candidate_id == candidate.id
        assert result.candidates_notified == 1

        previous = result.previous
        assert previous.booking_status == "completed"
        assert previous.candidate_id == candidate.id
        assert previous.replaced_by_id == result.assignment.id

        replacement = result.assignment
        assert replacement.booking_status == "recherche"
        assert replacement.candidate_id is None
        assert replacement.profile_id == "designer"
        assert replacement.languages == {"french"}
        assert replacement.expertises == {"react"}
        assert replacement.calculated_price == 500.0

        db.expire_all()
        assert db.get(Project, project.id).status == ProjectStatus.WAITING_TEAM.value

        notifications = db.query(CandidateNotification).order_by(CandidateNotification.id).all()
        assert [(n.candidate_id, n.type) for n in notifications] == [
            (candidate.id, NotificationType.MISSION_COMPLETED.value),
            (designer.id, NotificationType.MISSION_REQUEST.value),
        ]

    def test_uncovered_language_rebooks(self, db, service, booked):
        _, assignment, candidate = booked

        result = service.change_requirements(assignment.id, {"languages": ["french", "german"]})

        assert result.action == "rebooked"
        assert result.assignment.languages == {"french", "german"}
        assert result.assignment.profile_id == "developer"
        db.expire_all()
        assert db.query(ResourceAssignment).count() == 2

    def test_seniority_change_rebooks_and_audits(self, db, service, booked):
        _, assignment, _ = booked

        result = service.change_requirements(assignment.id, {"seniority": "senior"})

        actions = [e.action for e in result.previous.events]
        assert actions == ["rebook"]
        assert [e.action for e in result.assignment.events] == ["open_search"]

    def test_concurrently_completed_project_is_not_reopened(self, db, service, booked):
        project, assignment, _ = booked
        assert assignment.project.status == ProjectStatus.PLAY.value
        # Another writer completes the project after it was loaded here
        db.execute(
            update(Project)
            .where(Project.id == project.id)
            .values(status=ProjectStatus.COMPLETED.value)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(InvalidTransitionError):
            service.change_requirements(assignment.id, {"seniority": "senior"})

        db.expire_all()
        assert db.get(ResourceAssignment, assignment.id).booking_status == "accepted"
        assert db.query(ResourceAssignment).count() == 1
