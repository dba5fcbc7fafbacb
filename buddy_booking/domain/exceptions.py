"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "DomainError"


# Validation errors: rejected before any state is touched


class AccountNotFoundError(DomainException):
    """Account id is unknown to the account directory"""

    code = "AccountNotFound"


class AccountExistsError(DomainException):
    """Account id is already registered; a role is chosen only once"""

    code = "AccountExists"


class SessionNotFoundError(DomainException):
    """Session id does not exist"""

    code = "SessionNotFound"


class InvalidAccountRoleError(DomainException):
    """Account has the wrong role for the requested operation"""

    code = "InvalidAccountRole"


class InvalidSlotError(DomainException):
    """Slot is malformed or addressed to a different buddy"""

    code = "InvalidSlot"


class InvalidAvailabilityError(DomainException):
    """Availability grid contains unknown days or buckets"""

    code = "InvalidAvailability"


class InvalidAmountError(DomainException):
    """Ledger amount must be a positive integer"""

    code = "InvalidAmount"


# Booking preconditions, checked in this order


class BookingError(DomainException):
    """A booking request was rejected; nothing was written"""

    pass


class SlotUnavailableError(BookingError):
    """Slot is not offered by the buddy or lies outside the horizon"""

    code = "SlotUnavailable"


class SlotAlreadyBookedError(BookingError):
    """Another active session already holds this slot"""

    code = "SlotAlreadyBooked"


class InsufficientCreditError(BookingError):
    """Learner balance is below the cost of the operation"""

    code = "InsufficientCredit"


# Session lifecycle


class InvalidTransitionError(DomainException):
    """Requested status change is not an edge of the session lifecycle"""

    code = "InvalidTransition"


class UnauthorizedTransitionError(DomainException):
    """Actor has no authority over this lifecycle edge"""

    code = "Unauthorized"
