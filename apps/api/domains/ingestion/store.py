"""Supabase access for imported transactions."""

from datetime import date
from typing import Any

from supabase import Client

TRANSACTIONS_TABLE = "transactions"

TransactionKey = tuple[str, int, str]


class SupabaseTransactionStore:
    """Reads and writes the ``transactions`` table for one user client."""

    def __init__(self, client: Client):
        self.client = client

    def existing_keys(self, user_id: str, start: date, end: date) -> set[TransactionKey]:
        """(date, amount, description) of the user's rows between two dates."""
        res = (
            self.client.table(TRANSACTIONS_TABLE)
            .select("date, amount, description")
            .eq("user_id", user_id)
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .execute()
        )
        return {
            (str(row["date"])[:10], int(row["amount"]), row["description"])
            for row in res.data or []
        }

    def insert_many(self, rows: list[dict[str, Any]]) -> None:
        if rows:
            self.client.table(TRANSACTIONS_TABLE).insert(rows).execute()
