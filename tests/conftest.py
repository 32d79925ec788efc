"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory ProfileRepository with copy-on-read semantics
- A controllable clock
- Wired domain services (OTP verifier, slot allocator, registration, payments)
- Valid registration form data and profile factories
"""

import copy
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, TypeVar
from unittest.mock import Mock
from uuid import uuid4

import pytest

from src.domain.models import OtpGrant, PaymentStatus, Profile, ProfileFields
from src.domain.otp import OtpVerifier
from src.domain.payments import PaymentService
from src.domain.registration import RegistrationService
from src.domain.slots import SlotAllocator

T = TypeVar("T")

START = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class InMemoryProfileRepository:
    """
    ProfileRepository backed by a dict.

    Hands out copies so that, as with a database, mutations only stick
    when they go through modify_*.
    """

    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}

    def add(self, profile: Profile) -> Profile:
        self.profiles[profile.id] = copy.deepcopy(profile)
        return profile

    def get_by_email(self, email: str) -> Profile | None:
        profile = self._find("email", email)
        return copy.deepcopy(profile) if profile is not None else None

    def get_by_id(self, profile_id: str) -> Profile | None:
        profile = self.profiles.get(profile_id)
        return copy.deepcopy(profile) if profile is not None else None

    def count_confirmed(self, gender: str) -> int:
        return sum(1 for p in self.profiles.values() if p.gender == gender and p.is_confirmed)

    def create(
        self,
        fields: ProfileFields,
        grant: OtpGrant,
        allocate: Callable[[int], PaymentStatus],
        now: datetime,
    ) -> Profile | None:
        if self._find("email", fields.email) is not None:
            return None
        profile = Profile(
            id=str(uuid4()),
            **asdict(fields),
            created_at=now,
            updated_at=now,
            otp_hash=grant.code_hash,
            otp_expires_at=grant.expires_at,
            last_otp_sent_at=grant.sent_at,
            payment_status=allocate(self.count_confirmed(fields.gender)),
        )
        self.profiles[profile.id] = profile
        return copy.deepcopy(profile)

    def modify_by_email(self, email: str, transition: Callable[[Profile], T]) -> T | None:
        profile = self._find("email", email)
        return self._modify(profile, transition) if profile is not None else None

    def modify_by_id(self, profile_id: str, transition: Callable[[Profile], T]) -> T | None:
        profile = self.profiles.get(profile_id)
        return self._modify(profile, transition) if profile is not None else None

    def _modify(self, profile: Profile, transition: Callable[[Profile], T]) -> T:
        working = copy.deepcopy(profile)
        result = transition(working)
        self.profiles[working.id] = copy.deepcopy(working)
        return result

    def _find(self, attr: str, value: str) -> Profile | None:
        return next((p for p in self.profiles.values() if getattr(p, attr) == value), None)


def build_form_data(**overrides: Any) -> dict[str, Any]:
    """Registration form values that pass validation."""
    data = {
        "name": "Alice Example",
        "age": 24,
        "gender": "Female",
        "interested_in": "Male",
        "college": "State University",
        "email": "alice@x.com",
        "relationship_goal": "Serious",
        "description": "I enjoy long walks, board games, and trying new recipes on weekends.",
        "preferences": "Someone kind and curious who likes the outdoors and good conversation.",
        "interests": "Yes",
    }
    data.update(overrides)
    return data


def build_profile(**overrides: Any) -> Profile:
    """Build a stored Profile with sensible defaults."""
    fields = build_form_data()
    values: dict[str, Any] = {
        "id": str(uuid4()),
        **fields,
        "created_at": START,
        "updated_at": START,
    }
    values.update(overrides)
    return Profile(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def sender() -> Mock:
    """Email sender mock that accepts every message."""
    mock = Mock()
    mock.send_verification_code.return_value = True
    return mock


@pytest.fixture
def otp_verifier(repository: InMemoryProfileRepository, sender: Mock, clock: FakeClock) -> OtpVerifier:
    return OtpVerifier(
        repository=repository,
        email_sender=sender,
        ttl_seconds=600,
        cooldown_seconds=60,
        max_attempts=5,
        bcrypt_cost=4,
        clock=clock,
    )


@pytest.fixture
def slot_allocator(repository: InMemoryProfileRepository) -> SlotAllocator:
    return SlotAllocator(repository=repository, free_slot_limit=5)


@pytest.fixture
def registration_service(
    repository: InMemoryProfileRepository,
    otp_verifier: OtpVerifier,
    slot_allocator: SlotAllocator,
    clock: FakeClock,
) -> RegistrationService:
    return RegistrationService(
        repository=repository,
        otp_verifier=otp_verifier,
        slot_allocator=slot_allocator,
        clock=clock,
    )


@pytest.fixture
def gateway() -> Mock:
    mock = Mock()
    mock.name = "razorpay"
    mock.currency = "INR"
    return mock


@pytest.fixture
def payment_service(
    repository: InMemoryProfileRepository, gateway: Mock, clock: FakeClock
) -> PaymentService:
    return PaymentService(
        repository=repository,
        gateway=gateway,
        amount=Decimal("99"),
        clock=clock,
    )


def sent_code(sender: Mock) -> str:
    """Code passed to the most recent send_verification_code call."""
    return sender.send_verification_code.call_args[0][1]


@pytest.fixture
def form_data() -> Callable[..., dict[str, Any]]:
    return build_form_data


@pytest.fixture
def make_profile() -> Callable[..., Profile]:
    return build_profile


@pytest.fixture
def last_code() -> Callable[[Mock], str]:
    return sent_code
