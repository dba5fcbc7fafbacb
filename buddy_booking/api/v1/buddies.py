"""Buddy-facing reads: offerable slots and pending requests"""

from fastapi import APIRouter, Depends, Query

from buddy_booking.api.dependencies import domain_http_error, get_core
from buddy_booking.api.v1.schemas import SessionListResponse, SessionResponse, SlotListResponse, SlotResponse
from buddy_booking.domain.exceptions import DomainException
from buddy_booking.services.container import BookingCore

router = APIRouter()


@router.get("/buddies/{buddy_id}/slots", response_model=SlotListResponse)
def resolve_slots(
    buddy_id: str,
    horizon_days: int | None = Query(None, ge=1, description="Days to look ahead, capped at the booking horizon"),
    core: BookingCore = Depends(get_core),
):
    """
    List the buddy's bookable slots.

    Slots already reserved by another learner are still listed; the booking
    request is what arbitrates between competing learners.
    """
    try:
        slots = core.bookings.resolve_slots(buddy_id, horizon_days=horizon_days)
    except DomainException as e:
        raise domain_http_error(e)

    tz = core.bookings.tz
    return SlotListResponse(
        buddy_id=buddy_id,
        horizon_days=slots.horizon_days,
        slots=[SlotResponse.from_slot(slot, tz) for slot in slots],
    )


@router.get("/buddies/{buddy_id}/requests", response_model=SessionListResponse)
def pending_requests(buddy_id: str, core: BookingCore = Depends(get_core)):
    """Requests waiting for the buddy to confirm or decline"""
    try:
        sessions = core.bookings.pending_requests(buddy_id)
    except DomainException as e:
        raise domain_http_error(e)

    tz = core.bookings.tz
    return SessionListResponse(
        account_id=buddy_id,
        sessions=[SessionResponse.from_session(s, tz) for s in sessions],
    )
