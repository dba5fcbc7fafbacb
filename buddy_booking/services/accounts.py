"""Account directory: the identity/profile data the booking core depends on"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from buddy_booking.domain.availability import AvailabilityGrid
from buddy_booking.domain.exceptions import AccountExistsError, AccountNotFoundError
from buddy_booking.domain.models import Account, Role
from buddy_booking.infrastructure.database.repositories import AccountRepository, account_from_record
from buddy_booking.infrastructure.database.session import session_scope
from buddy_booking.infrastructure.locks import KeyedLock, account_lock_key
from buddy_booking.services.ledger import CreditLedger

logger = logging.getLogger(__name__)


class AccountDirectory:
    """Create and read accounts, and edit availability grids"""

    def __init__(
        self,
        session_factory: sessionmaker,
        ledger: CreditLedger,
        locks: KeyedLock,
        learner_starting_credits: int = 2,
    ):
        self._session_factory = session_factory
        self._ledger = ledger
        self._locks = locks
        self.learner_starting_credits = learner_starting_credits

    def create_account(
        self,
        account_id: str,
        role: Role,
        nickname: str,
        availability: AvailabilityGrid | None = None,
    ) -> Account:
        """
        Register an account on first role selection.

        Learners receive their starting credits through the ledger, so the
        grant shows up in the audit trail like any other balance change.
        """
        role = Role(role)
        grant = None
        with self._locks.hold(account_lock_key(account_id)):
            try:
                with session_scope(self._session_factory) as db:
                    repo = AccountRepository(db)
                    if repo.get(account_id) is not None:
                        raise AccountExistsError(f"Account {account_id} already exists")
                    record = repo.create(account_id, role, nickname, availability or AvailabilityGrid())
                    if role is Role.LEARNER and self.learner_starting_credits > 0:
                        grant = self._ledger.apply_credit(
                            db, account_id, self.learner_starting_credits, reason="starting_grant"
                        )
                    db.refresh(record)
                    account = account_from_record(record)
            except IntegrityError as e:
                raise AccountExistsError(f"Account {account_id} already exists") from e
        if grant is not None:
            self._ledger.publish(grant)

        logger.info("Account created", extra={"account_id": account_id, "role": role.value})
        return account

    def get_account(self, account_id: str) -> Account:
        with session_scope(self._session_factory) as db:
            record = AccountRepository(db).get(account_id)
            if record is None:
                raise AccountNotFoundError(f"Account {account_id} not found")
            return account_from_record(record)

    def get_availability(self, account_id: str) -> AvailabilityGrid:
        return self.get_account(account_id).availability

    def update_availability(self, account_id: str, grid: AvailabilityGrid) -> Account:
        """
        Replace an account's grid.

        Existing sessions are snapshots and are not affected; only future
        booking requests see the new grid.
        """
        with session_scope(self._session_factory) as db:
            repo = AccountRepository(db)
            record = repo.get(account_id)
            if record is None:
                raise AccountNotFoundError(f"Account {account_id} not found")
            repo.set_availability(record, grid)
            return account_from_record(record)
