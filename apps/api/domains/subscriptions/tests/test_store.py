from datetime import date
from unittest.mock import MagicMock

import pytest

from apps.api.domains.subscriptions.store import (
    SupabaseSubscriptionStore,
    fetch_merchant_debits,
    row_to_subscription,
    serialize_fields,
)
from packages.subscription_detection import SubscriptionNotFoundError

ROW = {
    "id": "sub-1",
    "user_id": "test-user-id",
    "merchant_name": "Netflix",
    "amount": 1399,
    "frequency": "MONTHLY",
    "confidence": 90,
    "next_charge_date": "2024-04-13",
    "last_charge_date": "2024-03-14T00:00:00+00:00",
    "first_charge_date": None,
    "category": "subscription",
    "transaction_ids": ["n1", "n2"],
    "status": "ACTIVE",
    "currency": "EUR",
    "display_name": None,
}


def test_row_to_subscription_parses_dates():
    sub = row_to_subscription(ROW)

    assert sub.next_charge_date == date(2024, 4, 13)
    assert sub.last_charge_date == date(2024, 3, 14)
    assert sub.first_charge_date is None
    assert sub.transaction_ids == ["n1", "n2"]


def test_row_to_subscription_defaults():
    row = {k: v for k, v in ROW.items() if k not in ("status", "currency", "transaction_ids")}

    sub = row_to_subscription(row)

    assert sub.status == "ACTIVE"
    assert sub.currency == "EUR"
    assert sub.transaction_ids == []


def test_serialize_fields_writes_iso_dates():
    payload = serialize_fields({"amount": 1399, "next_charge_date": date(2024, 4, 13)})

    assert payload == {"amount": 1399, "next_charge_date": "2024-04-13"}


def test_create_upserts_on_merchant():
    client = MagicMock()
    client.table.return_value.upsert.return_value.execute.return_value.data = [ROW]

    sub = SupabaseSubscriptionStore(client).create("test-user-id", {"merchant_name": "Netflix", "amount": 1399})

    assert sub.id == "sub-1"
    payload = client.table.return_value.upsert.call_args.args[0]
    assert payload["user_id"] == "test-user-id"
    assert client.table.return_value.upsert.call_args.kwargs["on_conflict"] == "user_id,merchant_name"


def test_create_returns_none_when_row_already_exists():
    client = MagicMock()
    client.table.return_value.upsert.return_value.execute.return_value.data = []

    assert SupabaseSubscriptionStore(client).create("test-user-id", {"merchant_name": "Netflix"}) is None


def test_update_missing_row_raises():
    client = MagicMock()
    client.table.return_value.update.return_value.eq.return_value.eq.return_value.execute.return_value.data = []

    with pytest.raises(SubscriptionNotFoundError):
        SupabaseSubscriptionStore(client).update("test-user-id", "nope", {"confidence": 100})


def test_get_missing_row_raises():
    client = MagicMock()
    client.table.return_value.select.return_value.eq.return_value.eq.return_value.limit.return_value.execute.return_value.data = []

    with pytest.raises(SubscriptionNotFoundError):
        SupabaseSubscriptionStore(client).get("test-user-id", "nope")


def test_fetch_merchant_debits_skips_rows_without_merchant():
    client = MagicMock()
    client.table.return_value.select.return_value.eq.return_value.lt.return_value.order.return_value.execute.return_value.data = [
        {"id": 1, "date": "2024-01-15", "amount": -1399, "merchant_name": "Netflix", "category": "subscription"},
        {"id": 2, "date": "2024-01-16", "amount": -4210, "merchant_name": None, "category": None},
    ]

    debits = fetch_merchant_debits(client, "test-user-id")

    assert len(debits) == 1
    assert debits[0].id == "1"
    assert debits[0].date == date(2024, 1, 15)

