"""Credit ledger: one non-negative integer balance per account"""

import logging
from typing import List

from sqlalchemy.orm import Session, sessionmaker

from buddy_booking.domain.exceptions import (
    AccountNotFoundError,
    InsufficientCreditError,
    InvalidAmountError,
)
from buddy_booking.domain.models import BalanceChange, LedgerEntry
from buddy_booking.infrastructure.database.repositories import LedgerRepository
from buddy_booking.infrastructure.database.session import session_scope
from buddy_booking.infrastructure.events import CREDIT_BALANCES, EventBus
from buddy_booking.infrastructure.locks import KeyedLock, account_lock_key
from buddy_booking.utils.date_utils import utcnow

logger = logging.getLogger(__name__)


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(f"Amount must be a positive integer, got {amount!r}")


class CreditLedger:
    """
    Atomic debit/credit of account balances.

    debit() and credit() are self-contained: they take the account lock, run
    their own transaction and publish a BalanceChange once the lock is
    released. apply_debit() and apply_credit() join a caller's transaction
    instead; the caller must already hold the account lock and publish the
    returned change after commit, outside its locks.
    """

    def __init__(self, session_factory: sessionmaker, locks: KeyedLock, events: EventBus):
        self._session_factory = session_factory
        self._locks = locks
        self._events = events

    def balance(self, account_id: str) -> int:
        with session_scope(self._session_factory) as db:
            balance = LedgerRepository(db).get_balance(account_id)
        if balance is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return balance

    def history(self, account_id: str, limit: int = 50) -> List[LedgerEntry]:
        with session_scope(self._session_factory) as db:
            if LedgerRepository(db).get_balance(account_id) is None:
                raise AccountNotFoundError(f"Account {account_id} not found")
            return LedgerRepository(db).history(account_id, limit=limit)

    def debit(self, account_id: str, amount: int = 1, reason: str = "debit") -> int:
        """
        Take amount credits from an account.

        Raises:
            InsufficientCreditError: balance is below amount; nothing changes
            AccountNotFoundError: unknown account
        """
        _check_amount(amount)
        with self._locks.hold(account_lock_key(account_id)):
            with session_scope(self._session_factory) as db:
                change = self.apply_debit(db, account_id, amount, reason)
        self.publish(change)
        return change.new_balance

    def credit(self, account_id: str, amount: int, reason: str = "credit") -> int:
        """Add amount credits to an account and return the new balance"""
        _check_amount(amount)
        with self._locks.hold(account_lock_key(account_id)):
            with session_scope(self._session_factory) as db:
                change = self.apply_credit(db, account_id, amount, reason)
        self.publish(change)
        return change.new_balance

    def apply_debit(
        self,
        db: Session,
        account_id: str,
        amount: int,
        reason: str,
        session_id: str | None = None,
    ) -> BalanceChange:
        _check_amount(amount)
        repo = LedgerRepository(db)
        new_balance = repo.debit(account_id, amount)
        if new_balance is None:
            current = repo.get_balance(account_id)
            if current is None:
                raise AccountNotFoundError(f"Account {account_id} not found")
            raise InsufficientCreditError(
                f"Account {account_id} has {current} credits, {amount} required"
            )
        return self._record(repo, account_id, -amount, new_balance, reason, session_id)

    def apply_credit(
        self,
        db: Session,
        account_id: str,
        amount: int,
        reason: str,
        session_id: str | None = None,
    ) -> BalanceChange:
        _check_amount(amount)
        repo = LedgerRepository(db)
        new_balance = repo.credit(account_id, amount)
        if new_balance is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return self._record(repo, account_id, amount, new_balance, reason, session_id)

    def publish(self, change: BalanceChange) -> None:
        logger.info(
            "Credit balance changed",
            extra={
                "account_id": change.account_id,
                "delta": change.delta,
                "new_balance": change.new_balance,
                "reason": change.reason,
                "session_id": change.session_id,
            },
        )
        self._events.publish(CREDIT_BALANCES, change, key=change.account_id)

    def _record(
        self,
        repo: LedgerRepository,
        account_id: str,
        delta: int,
        new_balance: int,
        reason: str,
        session_id: str | None,
    ) -> BalanceChange:
        occurred_at = utcnow()
        repo.add_entry(account_id, delta, new_balance, reason, occurred_at, session_id)
        return BalanceChange(
            account_id=account_id,
            previous_balance=new_balance - delta,
            new_balance=new_balance,
            delta=delta,
            reason=reason,
            occurred_at=occurred_at,
            session_id=session_id,
        )
