"""Account endpoints: registration, availability, session listings and ledger"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from buddy_booking.api.dependencies import domain_http_error, get_core, get_request_id
from buddy_booking.api.v1.schemas import (
    AccountResponse,
    AvailabilityRequest,
    CreateAccountRequest,
    LedgerEntrySchema,
    LedgerResponse,
    SessionListResponse,
    SessionResponse,
)
from buddy_booking.domain.availability import AvailabilityGrid
from buddy_booking.domain.exceptions import DomainException
from buddy_booking.domain.models import SessionStatus
from buddy_booking.services.container import BookingCore

router = APIRouter()


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(
    request_body: CreateAccountRequest,
    request: Request,
    core: BookingCore = Depends(get_core),
):
    """Register an account on first role selection"""
    try:
        grid = AvailabilityGrid.from_dict(request_body.availability)
        account = core.accounts.create_account(
            request_body.account_id,
            request_body.role,
            request_body.nickname,
            availability=grid,
        )
    except DomainException as e:
        logging.warning(f"Account creation rejected: {e}", extra={"request_id": get_request_id(request)})
        raise domain_http_error(e)
    return AccountResponse.from_account(account)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, core: BookingCore = Depends(get_core)):
    try:
        account = core.accounts.get_account(account_id)
    except DomainException as e:
        raise domain_http_error(e)
    return AccountResponse.from_account(account)


@router.put("/accounts/{account_id}/availability", response_model=AccountResponse)
def update_availability(
    account_id: str,
    request_body: AvailabilityRequest,
    core: BookingCore = Depends(get_core),
):
    """
    Replace the account's weekly grid.

    Accepts canonical keys ({"mon": ["morning"]}) or the labels of either
    locale. Sessions already booked keep their slot.
    """
    try:
        grid = AvailabilityGrid.from_dict(request_body.availability)
        account = core.accounts.update_availability(account_id, grid)
    except DomainException as e:
        raise domain_http_error(e)
    return AccountResponse.from_account(account)


@router.get("/accounts/{account_id}/sessions", response_model=SessionListResponse)
def list_sessions(
    account_id: str,
    status: Optional[List[SessionStatus]] = Query(None, description="Filter by status"),
    upcoming: bool = Query(False, description="Only confirmed sessions that have not started"),
    core: BookingCore = Depends(get_core),
):
    """Sessions where the account is learner or buddy"""
    try:
        if upcoming:
            sessions = core.bookings.upcoming_sessions(account_id)
        else:
            sessions = core.bookings.list_sessions(account_id, status)
    except DomainException as e:
        raise domain_http_error(e)

    tz = core.bookings.tz
    return SessionListResponse(
        account_id=account_id,
        sessions=[SessionResponse.from_session(s, tz) for s in sessions],
    )


@router.get("/accounts/{account_id}/ledger", response_model=LedgerResponse)
def get_ledger(
    account_id: str,
    limit: int = Query(50, ge=1, le=500),
    core: BookingCore = Depends(get_core),
):
    """Current balance and most recent ledger entries"""
    try:
        balance = core.ledger.balance(account_id)
        entries = core.ledger.history(account_id, limit=limit)
    except DomainException as e:
        raise domain_http_error(e)

    return LedgerResponse(
        account_id=account_id,
        credit_balance=balance,
        entries=[LedgerEntrySchema.from_entry(entry) for entry in entries],
    )
