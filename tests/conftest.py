"""Shared fixtures for the ledger tests."""

import pytest

from savings_buckets.models import Bucket, SavingsData


@pytest.fixture
def emergency() -> Bucket:
    return Bucket(id="emergency", name="Emergency", allocation=50, goal=5000)


@pytest.fixture
def travel() -> Bucket:
    return Bucket(id="travel", name="Travel", allocation=50, goal=2000)


@pytest.fixture
def empty_two_buckets(emergency, travel) -> SavingsData:
    """Two 50/50 buckets, nothing deposited yet."""
    return SavingsData(buckets=[emergency, travel])


@pytest.fixture
def funded_state() -> SavingsData:
    """Emergency 60, Travel 40, total 100."""
    return SavingsData(
        total_balance=100,
        buckets=[
            Bucket(id="emergency", name="Emergency", allocation=50, goal=5000, balance=60),
            Bucket(id="travel", name="Travel", allocation=50, goal=2000, balance=40),
        ],
    )
