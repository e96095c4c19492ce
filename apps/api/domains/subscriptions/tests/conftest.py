import uuid
from dataclasses import replace
from datetime import date

import pytest

from packages.subscription_detection import StoredTransaction, Subscription, SubscriptionNotFoundError

USER_ID = "test-user-id"


class InMemorySubscriptionStore:
    """Dict-backed stand-in for SupabaseSubscriptionStore."""

    def __init__(self, subscriptions=()):
        self.rows = {sub.id: sub for sub in subscriptions}

    def find_by_merchant(self, user_id, merchant_name):
        for sub in self.rows.values():
            if sub.user_id == user_id and sub.merchant_name == merchant_name:
                return sub
        return None

    def create(self, user_id, fields):
        sub = Subscription(id=str(uuid.uuid4()), user_id=user_id, **fields)
        self.rows[sub.id] = sub
        return sub

    def update(self, user_id, subscription_id, fields):
        existing = self.rows.get(subscription_id)
        if existing is None or existing.user_id != user_id:
            raise SubscriptionNotFoundError(subscription_id, user_id)
        self.rows[subscription_id] = replace(existing, **fields)
        return self.rows[subscription_id]

    def list_for_user(self, user_id):
        return [sub for sub in self.rows.values() if sub.user_id == user_id]


@pytest.fixture
def netflix_debits():
    return [
        StoredTransaction(id="n1", date=date(2024, 1, 15), amount=-1399, merchant_name="Netflix", category="subscription"),
        StoredTransaction(id="n2", date=date(2024, 2, 15), amount=-1399, merchant_name="Netflix", category="subscription"),
        StoredTransaction(id="n3", date=date(2024, 3, 14), amount=-1399, merchant_name="Netflix", category="subscription"),
    ]


@pytest.fixture
def stored_subscriptions():
    return [
        Subscription(
            id="sub-netflix",
            user_id=USER_ID,
            merchant_name="Netflix",
            amount=1399,
            frequency="MONTHLY",
            confidence=90,
            next_charge_date=date(2024, 3, 22),
            last_charge_date=date(2024, 3, 14),
            category="subscription",
        ),
        Subscription(
            id="sub-spotify",
            user_id=USER_ID,
            merchant_name="Spotify",
            amount=12000,
            frequency="ANNUAL",
            confidence=80,
            next_charge_date=date(2024, 11, 2),
            last_charge_date=date(2023, 11, 2),
            category="subscription",
        ),
    ]


@pytest.fixture
def store(stored_subscriptions):
    return InMemorySubscriptionStore(stored_subscriptions)


@pytest.fixture
def empty_store():
    return InMemorySubscriptionStore()
