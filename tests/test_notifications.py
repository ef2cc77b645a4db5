"""Tests for mission request fan-out and closing."""

from datetime import datetime

import pytest

from staffing_api.config.settings import settings
from staffing_api.models import CandidateNotification, NotificationStatus, NotificationType
from staffing_api.services.booking import BookingService
from staffing_api.services.notifications import NotificationService


@pytest.fixture
def service(db):
    return NotificationService(db)


def notification_statuses(db):
    db.expire_all()
    return {n.candidate_id: n.status for n in db.query(CandidateNotification)}


class TestFanOut:
    """Tests for notify_eligible_candidates."""

    def test_only_eligible_candidates_are_asked(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment(languages=["french"])
        eligible = make_candidate(languages=["french"])
        make_candidate(languages=["english"])
        make_candidate(status="qualification", languages=["french"])
        make_candidate(seniority="senior", languages=["french"])

        assert service.notify_eligible_candidates(assignment) == 1
        db.commit()

        notification = db.query(CandidateNotification).one()
        assert notification.candidate_id == eligible.id
        assert notification.type == NotificationType.MISSION_REQUEST.value
        assert notification.status == NotificationStatus.UNREAD.value
        assert notification.project_id == assignment.project_id
        assert notification.title == "New mission: Website redesign"

    def test_candidates_already_asked_are_skipped(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        make_candidate()
        make_candidate()

        assert service.notify_eligible_candidates(assignment) == 2
        db.commit()
        assert service.notify_eligible_candidates(assignment) == 0

    def test_declined_candidates_are_not_asked_again(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        candidate = make_candidate()
        BookingService(db, candidate.id).decline(assignment.id, candidate.id)

        assert service.notify_eligible_candidates(assignment) == 0

    def test_expired_requests_are_renewed(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        make_candidate()
        service.notify_eligible_candidates(assignment)
        db.commit()
        service.expire_requests(assignment.id)
        db.commit()

        assert service.notify_eligible_candidates(assignment) == 1

    def test_fan_out_is_capped(self, db, service, make_assignment, make_candidate, monkeypatch):
        monkeypatch.setattr(settings, "NOTIFY_CANDIDATE_LIMIT", 2)
        assignment = make_assignment()
        first = make_candidate()
        second = make_candidate()
        make_candidate()

        assert service.notify_eligible_candidates(assignment) == 2
        db.commit()
        assert set(notification_statuses(db)) == {first.id, second.id}


class TestClosing:
    """Tests for closing requests when a slot leaves recherche."""

    def test_booking_reads_winner_and_expires_others(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        winner = make_candidate()
        loser = make_candidate()
        service.notify_eligible_candidates(assignment)
        db.commit()

        BookingService(db, winner.id).accept(assignment.id, winner.id)

        assert notification_statuses(db) == {
            winner.id: NotificationStatus.READ.value,
            loser.id: NotificationStatus.EXPIRED.value,
        }

    def test_booking_keeps_declined_requests(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        winner = make_candidate()
        refuser = make_candidate()
        BookingService(db, refuser.id).decline(assignment.id, refuser.id)

        BookingService(db, winner.id).accept(assignment.id, winner.id)

        assert notification_statuses(db)[refuser.id] == NotificationStatus.DECLINED.value

    def test_archived_decline_still_counts_as_an_answer(self, db, service, make_assignment, make_candidate):
        assignment = make_assignment()
        candidate = make_candidate()
        BookingService(db, candidate.id).decline(assignment.id, candidate.id)
        db.query(CandidateNotification).update({"archived_at": datetime(2026, 1, 1)})
        db.commit()

        assert service.notify_eligible_candidates(assignment) == 0
        assert service.expire_requests(assignment.id) == 0
        assert notification_statuses(db) == {candidate.id: NotificationStatus.DECLINED.value}

    def test_mission_completed_notice(self, db, service, make_assignment, make_candidate):
        candidate = make_candidate()
        assignment = make_assignment(booking_status="accepted", candidate_id=candidate.id)

        notification = service.notify_mission_completed(assignment, candidate.id, "Requirements changed")
        db.commit()

        assert notification.type == NotificationType.MISSION_COMPLETED.value
        assert notification.message == "Requirements changed"
        assert notification.status == NotificationStatus.UNREAD.value
