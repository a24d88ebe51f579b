# backend/tests/conftest.py
"""
Shared pytest fixtures for the LabHub backend.

Tests run against an in-memory SQLite database (single shared connection via
StaticPool) and a fixed clock, so every scenario is deterministic.
"""

import os
import sys

# Set test configuration BEFORE any labhub imports
os.environ.setdefault("CI", "1")
os.environ["SITE_MODE"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LAB_LOCK_BACKEND"] = "local"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from typing import Callable, Dict, Iterator, Optional

from fastapi import Request
from fastapi.testclient import TestClient
import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from labhub import models  # noqa: F401
from labhub.api.dependencies import (
    get_db,
    get_lab_booking_service,
    get_lab_space_service,
    get_maintenance_service,
)
from labhub.core.config import settings
from labhub.core.enums import PermissionName
from labhub.core.lab_space_lock import NamedLockManager
from labhub.database import Base, build_engine
from labhub.domain.plan import PlanDescriptor
from labhub.domain.time_range import TimeRange
from labhub.main import create_app
from labhub.models.lab_booking import LabBooking
from labhub.models.lab_space import LabSpace
from labhub.models.maintenance_block import MaintenanceBlock
from labhub.principal import LabPrincipal
from labhub.services.lab_booking_service import LabBookingService
from labhub.services.lab_space_service import LabSpaceService
from labhub.services.maintenance_service import MaintenanceService
from tests.helpers.lab_time import FROZEN_NOW, FrozenClock

settings.is_testing = True

STAFF_PERMISSIONS = frozenset(p.value for p in PermissionName)


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def engine() -> Iterator[Engine]:
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Domain fixtures
# ============================================================================


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def lock_manager() -> NamedLockManager:
    return NamedLockManager("local", timeout_s=2.0)


@pytest.fixture
def premium_plan() -> PlanDescriptor:
    return PlanDescriptor(name="Premium Member", monthly_hour_limit=10, auto_approve=True)


@pytest.fixture
def student_plan() -> PlanDescriptor:
    return PlanDescriptor(name="Student Member", monthly_hour_limit=10, auto_approve=False)


@pytest.fixture
def basic_plan() -> PlanDescriptor:
    return PlanDescriptor(name="Basic Member", monthly_hour_limit=2, auto_approve=True)


@pytest.fixture
def free_plan() -> PlanDescriptor:
    return PlanDescriptor(name="Free", monthly_hour_limit=0, eligible=False)


@pytest.fixture
def make_principal() -> Callable[..., LabPrincipal]:
    def _make(
        user_id: str,
        plan: PlanDescriptor,
        username: Optional[str] = None,
        permissions: frozenset = frozenset(),
    ) -> LabPrincipal:
        return LabPrincipal(
            user_id=user_id,
            username=username or user_id.lower(),
            plan=plan,
            permissions=frozenset(permissions),
        )

    return _make


@pytest.fixture
def user_a(make_principal, premium_plan) -> LabPrincipal:
    return make_principal("01HUSERA000000000000000000", premium_plan, "alice")


@pytest.fixture
def user_b(make_principal, basic_plan) -> LabPrincipal:
    return make_principal("01HUSERB000000000000000000", basic_plan, "bob")


@pytest.fixture
def student(make_principal, student_plan) -> LabPrincipal:
    return make_principal("01HUSERS000000000000000000", student_plan, "sam")


@pytest.fixture
def staff(make_principal, premium_plan) -> LabPrincipal:
    return make_principal(
        "01HSTAFF000000000000000000", premium_plan, "lab-admin", STAFF_PERMISSIONS
    )


@pytest.fixture
def make_space(db: Session) -> Callable[..., LabSpace]:
    def _make(slug: str, **overrides) -> LabSpace:
        space = LabSpace(
            name=overrides.pop("name", slug.replace("-", " ").title()),
            slug=slug,
            type=overrides.pop("type", "wet_lab"),
            capacity=overrides.pop("capacity", 5),
            amenities=overrides.pop("amenities", ["fume hood", "centrifuge"]),
            safety_requirements=overrides.pop("safety_requirements", ["lab coat"]),
            is_active=overrides.pop("is_active", True),
            **overrides,
        )
        db.add(space)
        db.commit()
        return space

    return _make


@pytest.fixture
def lab_space(make_space) -> LabSpace:
    return make_space("nairobi-wet-lab", name="Nairobi Central Wet Lab", description="BSL-1 wet lab")


@pytest.fixture
def other_space(make_space) -> LabSpace:
    return make_space("kisumu-dry-lab", name="Kisumu Dry Lab", type="dry_lab")


@pytest.fixture
def add_booking(db: Session) -> Callable[..., LabBooking]:
    """Insert a booking row directly, bypassing the service rules."""

    def _add(space: LabSpace, user: LabPrincipal, time_range: TimeRange, **overrides) -> LabBooking:
        booking = LabBooking(
            user_id=user.user_id,
            owner_name=user.username,
            lab_space_id=space.id,
            purpose=overrides.pop("purpose", "Seeded booking for tests"),
            starts_at=time_range.start,
            ends_at=time_range.end,
            status=overrides.pop("status", "approved"),
            **overrides,
        )
        db.add(booking)
        db.commit()
        return booking

    return _add


@pytest.fixture
def add_maintenance(db: Session) -> Callable[..., MaintenanceBlock]:
    def _add(space: LabSpace, time_range: TimeRange, **overrides) -> MaintenanceBlock:
        block = MaintenanceBlock(
            lab_space_id=space.id,
            title=overrides.pop("title", "Maintenance"),
            reason=overrides.pop("reason", "Autoclave service"),
            starts_at=time_range.start,
            ends_at=time_range.end,
            **overrides,
        )
        db.add(block)
        db.commit()
        return block

    return _add


@pytest.fixture
def booking_service(db: Session, clock: FrozenClock, lock_manager: NamedLockManager) -> LabBookingService:
    return LabBookingService(db, lock_manager=lock_manager, clock=clock)


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
def principals(user_a, user_b, student, staff) -> Dict[str, LabPrincipal]:
    return {p.user_id: p for p in (user_a, user_b, student, staff)}


@pytest.fixture
def client(
    session_factory: sessionmaker,
    clock: FrozenClock,
    lock_manager: NamedLockManager,
    principals: Dict[str, LabPrincipal],
) -> Iterator[TestClient]:
    """TestClient whose caller is chosen with the ``X-Test-User`` header."""

    def identity_provider(request: Request) -> Optional[LabPrincipal]:
        return principals.get(request.headers.get("X-Test-User", ""))

    app = create_app(identity_provider=identity_provider)

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def override_booking_service() -> Iterator[LabBookingService]:
        session = session_factory()
        try:
            yield LabBookingService(session, lock_manager=lock_manager, clock=clock)
        finally:
            session.close()

    def override_lab_space_service() -> Iterator[LabSpaceService]:
        session = session_factory()
        try:
            yield LabSpaceService(session, lock_manager=lock_manager)
        finally:
            session.close()

    def override_maintenance_service() -> Iterator[MaintenanceService]:
        session = session_factory()
        try:
            yield MaintenanceService(session, lock_manager=lock_manager)
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lab_booking_service] = override_booking_service
    app.dependency_overrides[get_lab_space_service] = override_lab_space_service
    app.dependency_overrides[get_maintenance_service] = override_maintenance_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

