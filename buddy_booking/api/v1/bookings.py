"""POST /v1/bookings - reserve a slot and charge the learner"""

import logging
import time

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from buddy_booking.api.dependencies import domain_http_error, get_core, get_notification_client, get_request_id
from buddy_booking.api.v1.schemas import BookingRequest, SessionResponse
from buddy_booking.domain.exceptions import BookingError, DomainException
from buddy_booking.domain.models import SessionTransition
from buddy_booking.infrastructure.clients.notifications import NotificationClient, transition_payload
from buddy_booking.infrastructure.locks import LockTimeoutError
from buddy_booking.infrastructure.observability.logging import log_booking_attempt
from buddy_booking.infrastructure.observability.metrics import record_booking
from buddy_booking.services.container import BookingCore

router = APIRouter()


@router.post("/bookings", response_model=SessionResponse, status_code=201)
def request_booking(
    request_body: BookingRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    core: BookingCore = Depends(get_core),
    notifier: NotificationClient = Depends(get_notification_client),
):
    """
    Book a buddy's slot for a learner.

    Flow:
    1. Validate accounts, roles and slot ownership
    2. Under the slot and learner locks: check offerable, not booked, credit
    3. Create the requested session and debit one credit in one transaction
    4. Schedule the notification webhook
    5. Return the session

    Failures are never retried here: SlotAlreadyBooked means pick another
    slot, InsufficientCredit means top up first.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    slot = request_body.slot.to_slot(request_body.buddy_id)

    try:
        session = core.bookings.request_booking(request_body.learner_id, request_body.buddy_id, slot)

    except BookingError as e:
        record_booking(e.code)
        log_booking_attempt(
            request_id, request_body.learner_id, request_body.buddy_id, e.code, (time.time() - start_time) * 1000
        )
        raise domain_http_error(e)

    except DomainException as e:
        record_booking(e.code)
        logging.warning(f"Booking rejected: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    except LockTimeoutError as e:
        record_booking("lock_timeout")
        logging.error(f"Booking lock timeout: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Booking service busy, try again")

    if notifier.enabled:
        background_tasks.add_task(
            notifier.send_event,
            transition_payload(
                SessionTransition(
                    session_id=session.id,
                    previous_status=None,
                    new_status=session.status,
                    occurred_at=session.created_at,
                    actor_id=request_body.learner_id,
                )
            ),
        )

    record_booking("booked")
    log_booking_attempt(
        request_id, request_body.learner_id, request_body.buddy_id, "booked", (time.time() - start_time) * 1000
    )
    return SessionResponse.from_session(session, core.bookings.tz)
