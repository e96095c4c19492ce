"""Ingestion service — normalization, duplicate filtering and storage of
parsed bank statements.

Parsing itself lives in packages.statement_ingestion; this module turns a
ParseResult into stored rows and an import summary. Duplicates are exact
matches on (date, amount, cleaned description) against what the user
already has, including rows earlier in the same file.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from apps.api.core.errors import NoTransactionsFoundError
from apps.api.domains.ingestion.store import SupabaseTransactionStore, TransactionKey
from packages.statement_ingestion import NormalizedTransaction, ParseResult, TransactionNormalizer

logger = structlog.get_logger()


@dataclass
class ImportSummary:
    imported: int
    skipped: int
    dropped: int
    total: int
    format_label: Optional[str]
    warnings: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{self.imported} transaction(s) imported successfully"

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "imported": self.imported,
            "skipped": self.skipped,
            "dropped": self.dropped,
            "total": self.total,
            "format_label": self.format_label,
            "warnings": self.warnings,
        }


def transaction_key(tx: NormalizedTransaction) -> TransactionKey:
    return (tx.date.isoformat(), tx.amount, tx.description)


def build_transaction_row(
    tx: NormalizedTransaction,
    user_id: str,
    import_source: str,
    metadata: dict[str, Any],
) -> dict[str, Any]:
    """Shape one normalized transaction as a ``transactions`` row."""
    row = tx.to_dict()
    row.update(
        {
            "user_id": user_id,
            "import_source": import_source,
            "metadata": metadata,
        }
    )
    return row


def normalize_with_warnings(
    normalizer: TransactionNormalizer, parsed: ParseResult
) -> tuple[list[NormalizedTransaction], list[str]]:
    """Normalize parsed records, with one warning per dropped record."""
    normalized = []
    warnings = []
    for raw in parsed.transactions:
        tx = normalizer.normalize(raw)
        if tx is None:
            warnings.append(f'Unreadable date "{raw.date}" for "{raw.description}": transaction dropped')
            continue
        normalized.append(tx)
    return normalized, warnings


def import_statement(
    store: SupabaseTransactionStore,
    user_id: str,
    parsed: ParseResult,
    file_name: str,
    file_size: int,
    normalizer: Optional[TransactionNormalizer] = None,
    now: Optional[datetime] = None,
) -> ImportSummary:
    """Store the transactions of a parsed statement for one user.

    Raises:
        NoTransactionsFoundError: the statement had nothing importable
            (parser diagnostics are attached)
    """
    if parsed.is_empty:
        raise NoTransactionsFoundError(parsed.errors, parsed.format_label)

    normalizer = normalizer or TransactionNormalizer()
    normalized, drop_warnings = normalize_with_warnings(normalizer, parsed)
    warnings = list(parsed.errors) + drop_warnings
    if not normalized:
        raise NoTransactionsFoundError(warnings, parsed.format_label)

    imported_at = (now or datetime.now(timezone.utc)).isoformat()
    import_source = parsed.metadata.get("import_source", "csv")
    metadata = {
        "file_name": file_name,
        "file_size": file_size,
        "format_label": parsed.format_label,
        "imported_at": imported_at,
    }
    if "account" in parsed.metadata:
        metadata["account"] = parsed.metadata["account"]

    start = min(tx.date for tx in normalized)
    end = max(tx.date for tx in normalized)
    seen = store.existing_keys(user_id, start, end)

    rows = []
    skipped = 0
    for tx in normalized:
        key = transaction_key(tx)
        if key in seen:
            skipped += 1
            continue
        seen.add(key)
        rows.append(build_transaction_row(tx, user_id, import_source, metadata))

    store.insert_many(rows)

    summary = ImportSummary(
        imported=len(rows),
        skipped=skipped,
        dropped=len(drop_warnings),
        total=len(normalized),
        format_label=parsed.format_label,
        warnings=warnings,
    )
    logger.info(
        "statement_imported",
        user_id=user_id,
        file_name=file_name,
        format_label=parsed.format_label,
        imported=summary.imported,
        skipped=summary.skipped,
        dropped=summary.dropped,
    )
    return summary
