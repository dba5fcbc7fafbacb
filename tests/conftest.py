"""Pytest fixtures for testing"""

from datetime import date, datetime
from typing import Callable, Generator
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from buddy_booking.api.main import create_app
from buddy_booking.config import Settings
from buddy_booking.domain.availability import AvailabilityGrid, TimeBucket, Weekday
from buddy_booking.domain.models import Account, Role
from buddy_booking.infrastructure.database.models import Base
from buddy_booking.infrastructure.database.session import create_db_engine, create_session_factory
from buddy_booking.services.container import BookingCore, build_core

SEOUL = ZoneInfo("Asia/Seoul")
MONDAY = date(2026, 10, 19)


class FakeClock:
    """Settable clock; starts at midnight of MONDAY in Seoul"""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(MONDAY.year, MONDAY.month, MONDAY.day, tzinfo=SEOUL)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        slot_timezone="Asia/Seoul",
        booking_horizon_days=7,
        booking_cost_credits=1,
        learner_starting_credits=2,
        refund_on_release=True,
        notification_webhook_url=None,
        lock_timeout_seconds=30.0,
    )


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """File-backed SQLite so worker threads get their own connections"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return create_session_factory(engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def core(session_factory: sessionmaker, test_settings: Settings, clock: FakeClock) -> BookingCore:
    return build_core(session_factory, test_settings, clock=clock)


@pytest.fixture
def make_learner(core: BookingCore) -> Callable[..., Account]:
    """Create a learner, optionally topping the balance up to `credits`"""

    def _make(account_id: str = "learner-1", credits: int = 2) -> Account:
        account = core.accounts.create_account(account_id, Role.LEARNER, f"nick-{account_id}")
        if credits > account.credit_balance:
            core.ledger.credit(account_id, credits - account.credit_balance, reason="test_top_up")
        elif credits < account.credit_balance:
            core.ledger.debit(account_id, account.credit_balance - credits, reason="test_adjust")
        return core.accounts.get_account(account_id)

    return _make


@pytest.fixture
def make_buddy(core: BookingCore) -> Callable[..., Account]:
    """Create a buddy offering the given (weekday, bucket) cells; every morning by default"""

    def _make(account_id: str = "buddy-1", cells=None) -> Account:
        if cells is None:
            cells = [(day, TimeBucket.MORNING) for day in Weekday]
        return core.accounts.create_account(account_id, Role.BUDDY, f"nick-{account_id}", AvailabilityGrid(cells))

    return _make


@pytest.fixture
def client(core: BookingCore) -> TestClient:
    """Create FastAPI test client bound to the test core"""
    app = create_app(core)
    return TestClient(app)
