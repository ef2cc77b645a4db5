"""Tests for the booking integrity report and repair."""

from contextlib import contextmanager

import pytest
from sqlalchemy import text

from staffing_api.models import (
    BookingEvent,
    CandidateNotification,
    NotificationStatus,
    NotificationType,
    Project,
    ProjectStatus,
    ResourceAssignment,
)
from staffing_api.services.integrity import check_booking_integrity


@pytest.fixture
def unchecked(db):
    """Let the test write rows the CHECK constraints would reject."""

    @contextmanager
    def _unchecked():
        db.execute(text("PRAGMA ignore_check_constraints = ON"))
        try:
            yield
        finally:
            db.execute(text("PRAGMA ignore_check_constraints = OFF"))

    return _unchecked


def add_request(db, assignment, candidate_id, status=NotificationStatus.UNREAD.value):
    notification = CandidateNotification(
        candidate_id=candidate_id,
        project_id=assignment.project_id,
        assignment_id=assignment.id,
        type=NotificationType.MISSION_REQUEST.value,
        title="New mission",
        status=status,
    )
    db.add(notification)
    db.commit()
    return notification


class TestReport:
    """Tests for the read-only report."""

    def test_consistent_data_is_clean(self, db, make_assignment, make_candidate):
        candidate = make_candidate()
        make_assignment(booking_status="accepted", candidate_id=candidate.id)
        make_assignment()

        report = check_booking_integrity(db)

        assert report.is_clean
        assert report.repaired is False
        assert report.to_dict()["is_clean"] is True

    def test_accepted_without_candidate(self, db, make_assignment, unchecked):
        with unchecked():
            assignment = make_assignment(booking_status="accepted")

        report = check_booking_integrity(db)

        assert report.accepted_without_candidate == [assignment.id]
        assert not report.is_clean

    def test_legacy_spelling(self, db, make_assignment, make_candidate):
        candidate = make_candidate()
        assignment = make_assignment(booking_status="booké", candidate_id=candidate.id)

        report = check_booking_integrity(db)

        assert report.legacy_status_aliases == [assignment.id]
        assert report.accepted_without_candidate == []

    def test_stale_requests_exclude_the_winner(self, db, make_assignment, make_candidate):
        winner = make_candidate()
        loser = make_candidate()
        assignment = make_assignment(booking_status="accepted", candidate_id=winner.id)
        add_request(db, assignment, winner.id, status=NotificationStatus.READ.value)
        stale = add_request(db, assignment, loser.id)
        add_request(db, assignment, loser.id, status=NotificationStatus.DECLINED.value)

        report = check_booking_integrity(db)

        assert report.stale_notifications == [stale.id]

    def test_running_project_with_open_slot(self, db, make_project, make_assignment):
        project = make_project(status=ProjectStatus.PLAY.value)
        make_assignment(project=project)

        report = check_booking_integrity(db)

        assert report.incomplete_play_projects == [project.id]


class TestRepair:
    """Tests for repair=True."""

    def test_reopens_accepted_rows_without_candidate(self, db, make_assignment, unchecked):
        with unchecked():
            assignment = make_assignment(booking_status="booké")

        report = check_booking_integrity(db, repair=True)

        assert report.repaired is True
        assert report.accepted_without_candidate == [assignment.id]
        assert report.legacy_status_aliases == [assignment.id]
        repaired = db.get(ResourceAssignment, assignment.id)
        assert repaired.booking_status == "recherche"
        events = db.query(BookingEvent).filter(BookingEvent.assignment_id == assignment.id).all()
        assert [(e.action, e.to_status) for e in events] == [("repair", "recherche")]

    def test_reopened_slot_is_offered_again(self, db, make_assignment, make_candidate, unchecked):
        candidate = make_candidate()
        with unchecked():
            assignment = make_assignment(booking_status="accepted")
        stale = add_request(db, assignment, candidate.id)

        check_booking_integrity(db, repair=True)

        requests = (
            db.query(CandidateNotification)
            .filter(CandidateNotification.assignment_id == assignment.id)
            .order_by(CandidateNotification.id)
            .all()
        )
        assert [n.status for n in requests] == [
            NotificationStatus.EXPIRED.value,
            NotificationStatus.UNREAD.value,
        ]
        assert requests[0].id == stale.id
        assert requests[1].candidate_id == candidate.id
        assert check_booking_integrity(db).is_clean

    def test_normalizes_legacy_spelling(self, db, make_assignment, make_candidate):
        candidate = make_candidate()
        assignment = make_assignment(booking_status="booké", candidate_id=candidate.id)

        check_booking_integrity(db, repair=True)

        repaired = db.get(ResourceAssignment, assignment.id)
        assert repaired.booking_status == "accepted"
        assert repaired.candidate_id == candidate.id
        assert [e.action for e in repaired.events] == ["repair"]

    def test_expires_stale_requests_and_moves_projects_back(self, db, make_project, make_assignment, make_candidate):
        winner = make_candidate()
        loser = make_candidate()
        project = make_project(status=ProjectStatus.PLAY.value)
        booked = make_assignment(project=project, booking_status="accepted", candidate_id=winner.id)
        make_assignment(project=project)
        stale = add_request(db, booked, loser.id)

        check_booking_integrity(db, repair=True)

        assert db.get(CandidateNotification, stale.id).status == NotificationStatus.EXPIRED.value
        assert db.get(Project, project.id).status == ProjectStatus.WAITING_TEAM.value
        assert check_booking_integrity(db).is_clean

    def test_clean_data_is_not_touched(self, db, make_assignment):
        make_assignment()

        report = check_booking_integrity(db, repair=True)

        assert report.is_clean
        assert report.repaired is False
        assert db.query(BookingEvent).count() == 0
