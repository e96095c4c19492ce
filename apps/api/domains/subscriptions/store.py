"""Supabase access for subscriptions and the debits they are detected from."""

from datetime import date
from typing import Any, Optional

from supabase import Client

from packages.subscription_detection import StoredTransaction, Subscription, SubscriptionNotFoundError

SUBSCRIPTIONS_TABLE = "subscriptions"
TRANSACTIONS_TABLE = "transactions"

_DATE_FIELDS = ("next_charge_date", "last_charge_date", "first_charge_date")


def _to_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def row_to_subscription(row: dict[str, Any]) -> Subscription:
    return Subscription(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        merchant_name=row["merchant_name"],
        amount=int(row["amount"]),
        frequency=row["frequency"],
        confidence=int(row["confidence"]),
        next_charge_date=_to_date(row.get("next_charge_date")),
        last_charge_date=_to_date(row.get("last_charge_date")),
        first_charge_date=_to_date(row.get("first_charge_date")),
        category=row.get("category"),
        transaction_ids=list(row.get("transaction_ids") or []),
        status=row.get("status") or "ACTIVE",
        currency=row.get("currency") or "EUR",
        display_name=row.get("display_name"),
    )


def serialize_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Dates become ISO strings for PostgREST."""
    payload = dict(fields)
    for key in _DATE_FIELDS:
        if isinstance(payload.get(key), date):
            payload[key] = payload[key].isoformat()
    return payload


class SupabaseSubscriptionStore:
    """Subscription store backed by the ``subscriptions`` table.

    Every query is scoped by ``user_id`` on top of RLS, so a foreign id
    behaves exactly like a missing one.
    """

    def __init__(self, client: Client):
        self.client = client

    def find_by_merchant(self, user_id: str, merchant_name: str) -> Optional[Subscription]:
        res = (
            self.client.table(SUBSCRIPTIONS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("merchant_name", merchant_name)
            .limit(1)
            .execute()
        )
        return row_to_subscription(res.data[0]) if res.data else None

    def get(self, user_id: str, subscription_id: str) -> Subscription:
        res = (
            self.client.table(SUBSCRIPTIONS_TABLE)
            .select("*")
            .eq("id", subscription_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not res.data:
            raise SubscriptionNotFoundError(subscription_id, user_id)
        return row_to_subscription(res.data[0])

    def list_for_user(self, user_id: str) -> list[Subscription]:
        res = (
            self.client.table(SUBSCRIPTIONS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("next_charge_date")
            .execute()
        )
        return [row_to_subscription(row) for row in res.data or []]

    def create(self, user_id: str, fields: dict[str, Any]) -> Optional[Subscription]:
        """Insert keyed on (user_id, merchant_name).

        If a concurrent run already created the row it is left as is and
        ``None`` is returned.
        """
        payload = serialize_fields(fields)
        payload["user_id"] = user_id
        res = (
            self.client.table(SUBSCRIPTIONS_TABLE)
            .upsert(payload, on_conflict="user_id,merchant_name", ignore_duplicates=True)
            .execute()
        )
        return row_to_subscription(res.data[0]) if res.data else None

    def update(self, user_id: str, subscription_id: str, fields: dict[str, Any]) -> Subscription:
        res = (
            self.client.table(SUBSCRIPTIONS_TABLE)
            .update(serialize_fields(fields))
            .eq("id", subscription_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not res.data:
            raise SubscriptionNotFoundError(subscription_id, user_id)
        return row_to_subscription(res.data[0])


def fetch_merchant_debits(client: Client, user_id: str) -> list[StoredTransaction]:
    """All of the user's debits that carry a merchant name, oldest first."""
    res = (
        client.table(TRANSACTIONS_TABLE)
        .select("id, date, amount, merchant_name, category")
        .eq("user_id", user_id)
        .lt("amount", 0)
        .order("date")
        .execute()
    )
    return [
        StoredTransaction(
            id=str(row["id"]),
            date=_to_date(row["date"]),
            amount=int(row["amount"]),
            merchant_name=row["merchant_name"],
            category=row.get("category"),
        )
        for row in res.data or []
        if row.get("merchant_name")
    ]

