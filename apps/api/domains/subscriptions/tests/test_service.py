from dataclasses import replace
from datetime import date

import pytest

from apps.api.core.errors import NotFoundError
from apps.api.domains.subscriptions import service
from packages.subscription_detection import StoredTransaction

USER_ID = "test-user-id"
NOW = date(2024, 3, 20)


def test_run_detection_creates_subscription(empty_store, netflix_debits):
    store = empty_store

    result = service.run_detection(store, USER_ID, netflix_debits, now=NOW)

    assert result["detected"] == 1
    assert result["created"] == 1
    assert result["message"] == "1 subscription(s) detected, 0 updated"
    [sub] = store.list_for_user(USER_ID)
    assert sub.merchant_name == "Netflix"
    assert sub.amount == 1399
    assert sub.currency == "EUR"
    assert sub.next_charge_date == date(2024, 4, 13)
    assert result["subscriptions"][0]["merchant_name"] == "Netflix"


def test_run_detection_twice_creates_nothing_new(empty_store, netflix_debits):
    store = empty_store
    service.run_detection(store, USER_ID, netflix_debits, now=NOW)

    result = service.run_detection(store, USER_ID, netflix_debits, now=NOW)

    assert result["created"] == 0
    assert len(store.list_for_user(USER_ID)) == 1


def test_run_detection_without_debits(empty_store):
    result = service.run_detection(empty_store, USER_ID, [], now=NOW)

    assert result["detected"] == 0
    assert result["subscriptions"] == []


def test_confirm_subscription_sets_full_confidence(store):
    sub = service.confirm_subscription(store, USER_ID, "sub-netflix")

    assert sub.confidence == 100
    assert store.rows["sub-netflix"].confidence == 100


def test_confirm_unknown_subscription_raises_not_found(store):
    with pytest.raises(NotFoundError):
        service.confirm_subscription(store, USER_ID, "missing")


def test_confirm_other_users_subscription_raises_not_found(store):
    with pytest.raises(NotFoundError):
        service.confirm_subscription(store, "someone-else", "sub-netflix")


def test_subscription_to_dict_hides_owner(stored_subscriptions):
    data = service.subscription_to_dict(stored_subscriptions[0])

    assert "user_id" not in data
    assert data["id"] == "sub-netflix"


def test_renewal_alerts_flags_upcoming_charge(stored_subscriptions):
    alerts = service.renewal_alerts(stored_subscriptions, [], NOW, window_days=30)

    assert alerts == [
        {
            "type": "renewal",
            "severity": "urgent",
            "subscription_id": "sub-netflix",
            "merchant_name": "Netflix",
            "message": "Netflix renews in 2 days (13.99 EUR)",
            "date": date(2024, 3, 22),
            "amount": 1399,
        }
    ]


def test_renewal_alerts_group_debits_for_price_changes(stored_subscriptions, netflix_debits):
    netflix = replace(
        stored_subscriptions[0],
        next_charge_date=date(2024, 6, 1),
        transaction_ids=["n1", "n2", "n3"],
    )
    debits = netflix_debits + [
        StoredTransaction(id="n4", date=date(2024, 3, 18), amount=-1599, merchant_name="Netflix"),
        # refunds are not charges
        StoredTransaction(id="r1", date=date(2024, 3, 19), amount=1599, merchant_name="Netflix"),
        StoredTransaction(id="x1", date=date(2024, 3, 19), amount=-5000, merchant_name=None),
    ]

    alerts = service.renewal_alerts([netflix], debits, NOW, window_days=30)

    assert [(a["type"], a["amount"], a["date"]) for a in alerts] == [
        ("price_increase", 200, date(2024, 3, 18)),
    ]
