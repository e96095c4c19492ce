from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from apps.api.core.errors import NoTransactionsFoundError
from apps.api.domains.ingestion.service import import_statement, transaction_key
from packages.statement_ingestion import ParseResult, RawTransaction

USER_ID = "test-user-id"
IMPORTED_AT = datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc)


class RecordingStore:
    def __init__(self, existing=()):
        self.existing = set(existing)
        self.ranges = []
        self.inserted = []

    def existing_keys(self, user_id, start, end):
        self.ranges.append((start, end))
        return set(self.existing)

    def insert_many(self, rows):
        self.inserted.extend(rows)


def parsed(*raws, errors=(), **metadata):
    return ParseResult(
        transactions=list(raws),
        errors=list(errors),
        format_label="N26",
        metadata={"import_source": "csv", **metadata},
    )


def raw(day, description, amount):
    return RawTransaction(date=day, description=description, amount=Decimal(amount))


def test_import_statement_stores_rows_with_metadata():
    store = RecordingStore()
    result = parsed(raw("2024-01-15", "NETFLIX.COM", "-13.99"), raw("2024-01-20", "SPOTIFY", "-9.99"), account="FR76")

    summary = import_statement(store, USER_ID, result, "n26.csv", 512, now=IMPORTED_AT)

    assert summary.imported == 2
    assert store.ranges == [(date(2024, 1, 15), date(2024, 1, 20))]
    row = store.inserted[0]
    assert row["user_id"] == USER_ID
    assert row["import_source"] == "csv"
    assert row["metadata"] == {
        "file_name": "n26.csv",
        "file_size": 512,
        "format_label": "N26",
        "imported_at": "2024-02-01T09:00:00+00:00",
        "account": "FR76",
    }


def test_import_statement_skips_known_keys():
    store = RecordingStore(existing={("2024-01-15", -1399, "NETFLIX.COM")})

    summary = import_statement(store, USER_ID, parsed(raw("2024-01-15", "NETFLIX.COM", "-13.99")), "a.csv", 1)

    assert summary.imported == 0
    assert summary.skipped == 1
    assert store.inserted == []


def test_import_statement_keeps_parser_errors_as_warnings():
    result = parsed(raw("2024-01-15", "NETFLIX.COM", "-13.99"), errors=["Line 3: missing date or description"])

    summary = import_statement(RecordingStore(), USER_ID, result, "a.csv", 1)

    assert summary.warnings == ["Line 3: missing date or description"]


def test_import_statement_empty_result_raises():
    with pytest.raises(NoTransactionsFoundError) as exc_info:
        import_statement(RecordingStore(), USER_ID, parsed(errors=["CSV file is empty"]), "a.csv", 1)

    assert exc_info.value.errors == ["CSV file is empty"]
    assert exc_info.value.format_label == "N26"


def test_import_statement_all_dates_unreadable_raises():
    with pytest.raises(NoTransactionsFoundError) as exc_info:
        import_statement(RecordingStore(), USER_ID, parsed(raw("someday", "NETFLIX", "-13.99")), "a.csv", 1)

    assert exc_info.value.errors == ['Unreadable date "someday" for "NETFLIX": transaction dropped']


def test_transaction_key_uses_cleaned_description():
    from packages.statement_ingestion import TransactionNormalizer

    tx = TransactionNormalizer().normalize(raw("15/01/2024", "PRLV SEPA NETFLIX.COM", "-13.99"))

    assert transaction_key(tx) == ("2024-01-15", -1399, "NETFLIX.COM")
