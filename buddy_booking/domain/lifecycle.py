"""Session state machine: which status changes exist and who may make them"""

from enum import Enum
from typing import Dict, Tuple

from buddy_booking.domain.exceptions import InvalidTransitionError, UnauthorizedTransitionError
from buddy_booking.domain.models import BookingSession, SessionStatus


class Authority(str, Enum):
    """Who may drive a lifecycle edge"""

    BUDDY = "buddy"
    PARTICIPANT = "participant"  # buddy or learner


TRANSITIONS: Dict[Tuple[SessionStatus, SessionStatus], Authority] = {
    (SessionStatus.REQUESTED, SessionStatus.CONFIRMED): Authority.BUDDY,
    (SessionStatus.REQUESTED, SessionStatus.DECLINED): Authority.BUDDY,
    (SessionStatus.CONFIRMED, SessionStatus.COMPLETED): Authority.PARTICIPANT,
    (SessionStatus.CONFIRMED, SessionStatus.CANCELLED): Authority.PARTICIPANT,
}

# Outcomes after which the learner's credit is returned (when refunds are enabled)
REFUNDABLE_STATUSES = frozenset({SessionStatus.DECLINED, SessionStatus.CANCELLED})


def allowed_targets(status: SessionStatus) -> list[SessionStatus]:
    return [target for (source, target) in TRANSITIONS if source == status]


def is_terminal(status: SessionStatus) -> bool:
    return not allowed_targets(status)


def source_status(target: SessionStatus) -> SessionStatus | None:
    """The only status target can be reached from; None for the initial status"""
    sources = [source for (source, edge_target) in TRANSITIONS if edge_target == target]
    return sources[0] if len(sources) == 1 else None


def authorize_transition(session: BookingSession, actor_id: str, target: SessionStatus) -> None:
    """
    Validate one status change without applying it.

    The edge is checked before the actor, so a request that could never
    succeed reports InvalidTransitionError whoever sends it.

    Raises:
        InvalidTransitionError: target is not reachable from the current status
        UnauthorizedTransitionError: actor has no authority over the edge
    """
    authority = TRANSITIONS.get((session.status, target))
    if authority is None:
        raise InvalidTransitionError(
            f"Session {session.id} cannot move from {session.status.value} to {target.value}"
        )

    if authority is Authority.BUDDY:
        permitted = actor_id == session.buddy_id
    else:
        permitted = actor_id in (session.buddy_id, session.learner_id)

    if not permitted:
        raise UnauthorizedTransitionError(
            f"Actor {actor_id} may not move session {session.id} to {target.value}"
        )
