"""Session lookup and lifecycle transitions"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from buddy_booking.api.dependencies import domain_http_error, get_core, get_notification_client, get_request_id
from buddy_booking.api.v1.schemas import SessionResponse, TransitionRequest
from buddy_booking.domain.exceptions import DomainException
from buddy_booking.domain.lifecycle import source_status
from buddy_booking.domain.models import SessionTransition
from buddy_booking.infrastructure.clients.notifications import NotificationClient, transition_payload
from buddy_booking.infrastructure.locks import LockTimeoutError
from buddy_booking.infrastructure.observability.logging import log_transition_attempt
from buddy_booking.services.container import BookingCore

router = APIRouter()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, core: BookingCore = Depends(get_core)):
    try:
        session = core.bookings.get_session(session_id)
    except DomainException as e:
        raise domain_http_error(e)
    return SessionResponse.from_session(session, core.bookings.tz)


@router.post("/sessions/{session_id}/transitions", response_model=SessionResponse)
def transition_session(
    session_id: str,
    request_body: TransitionRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    core: BookingCore = Depends(get_core),
    notifier: NotificationClient = Depends(get_notification_client),
):
    """
    Apply a lifecycle transition on behalf of actor_id.

    Buddies confirm or decline requests; either participant completes or
    cancels a confirmed session.
    """
    request_id = get_request_id(request)
    target = request_body.target_status.value

    try:
        session = core.bookings.transition_session(session_id, request_body.actor_id, request_body.target_status)

    except DomainException as e:
        log_transition_attempt(request_id, session_id, request_body.actor_id, target, e.code)
        raise domain_http_error(e)

    except LockTimeoutError as e:
        logging.error(f"Transition lock timeout: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Booking service busy, try again")

    if notifier.enabled:
        background_tasks.add_task(
            notifier.send_event,
            transition_payload(
                SessionTransition(
                    session_id=session.id,
                    previous_status=source_status(session.status),
                    new_status=session.status,
                    occurred_at=session.updated_at,
                    actor_id=request_body.actor_id,
                )
            ),
        )

    log_transition_attempt(request_id, session_id, request_body.actor_id, target, "applied")
    return SessionResponse.from_session(session, core.bookings.tz)
