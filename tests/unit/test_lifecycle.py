"""Unit tests for the session state machine"""

from datetime import date, datetime, timezone

import pytest

from buddy_booking.domain.availability import TimeBucket
from buddy_booking.domain.exceptions import InvalidTransitionError, UnauthorizedTransitionError
from buddy_booking.domain.lifecycle import (
    allowed_targets,
    authorize_transition,
    is_terminal,
    source_status,
)
from buddy_booking.domain.models import BookingSession, SessionStatus, Slot


def _session(status: SessionStatus) -> BookingSession:
    return BookingSession(
        id="session-1",
        buddy_id="buddy-1",
        learner_id="learner-1",
        slot=Slot("buddy-1", date(2026, 10, 19), TimeBucket.MORNING),
        status=status,
        created_at=datetime(2026, 10, 18, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize("target", [SessionStatus.CONFIRMED, SessionStatus.DECLINED])
def test_buddy_decides_on_requests(target):
    authorize_transition(_session(SessionStatus.REQUESTED), "buddy-1", target)


@pytest.mark.parametrize("target", [SessionStatus.CONFIRMED, SessionStatus.DECLINED])
def test_learner_cannot_decide_on_requests(target):
    with pytest.raises(UnauthorizedTransitionError):
        authorize_transition(_session(SessionStatus.REQUESTED), "learner-1", target)


@pytest.mark.parametrize("actor", ["buddy-1", "learner-1"])
@pytest.mark.parametrize("target", [SessionStatus.COMPLETED, SessionStatus.CANCELLED])
def test_either_participant_closes_confirmed_sessions(actor, target):
    authorize_transition(_session(SessionStatus.CONFIRMED), actor, target)


def test_outsider_cannot_close_confirmed_session():
    with pytest.raises(UnauthorizedTransitionError):
        authorize_transition(_session(SessionStatus.CONFIRMED), "stranger", SessionStatus.CANCELLED)


@pytest.mark.parametrize("status", list(SessionStatus))
def test_transition_to_current_status_is_rejected(status):
    with pytest.raises(InvalidTransitionError):
        authorize_transition(_session(status), "buddy-1", status)


@pytest.mark.parametrize(
    "status,target",
    [
        (SessionStatus.CONFIRMED, SessionStatus.REQUESTED),
        (SessionStatus.REQUESTED, SessionStatus.COMPLETED),
        (SessionStatus.REQUESTED, SessionStatus.CANCELLED),
        (SessionStatus.DECLINED, SessionStatus.CONFIRMED),
        (SessionStatus.COMPLETED, SessionStatus.CANCELLED),
        (SessionStatus.CANCELLED, SessionStatus.CONFIRMED),
    ],
)
def test_edges_outside_the_lifecycle_are_rejected(status, target):
    with pytest.raises(InvalidTransitionError):
        authorize_transition(_session(status), "buddy-1", target)


def test_invalid_edge_reported_before_authority():
    """A stranger asking for an impossible edge still gets InvalidTransition"""
    with pytest.raises(InvalidTransitionError):
        authorize_transition(_session(SessionStatus.CONFIRMED), "stranger", SessionStatus.REQUESTED)


def test_terminal_statuses():
    assert is_terminal(SessionStatus.DECLINED)
    assert is_terminal(SessionStatus.COMPLETED)
    assert is_terminal(SessionStatus.CANCELLED)
    assert not is_terminal(SessionStatus.REQUESTED)
    assert set(allowed_targets(SessionStatus.CONFIRMED)) == {SessionStatus.COMPLETED, SessionStatus.CANCELLED}


def test_source_status_is_unique_per_target():
    assert source_status(SessionStatus.REQUESTED) is None
    assert source_status(SessionStatus.DECLINED) is SessionStatus.REQUESTED
    assert source_status(SessionStatus.CANCELLED) is SessionStatus.CONFIRMED


def test_active_statuses():
    assert SessionStatus.REQUESTED.is_active
    assert SessionStatus.CONFIRMED.is_active
    assert not SessionStatus.DECLINED.is_active
