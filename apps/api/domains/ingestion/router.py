"""Ingestion router — bank statement upload (CSV, OFX, QIF, PDF)."""

import asyncio
from functools import partial
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, File, UploadFile
from supabase import Client

from apps.api.core.auth import get_current_user_id, get_user_client
from apps.api.core.config import Settings, get_settings
from apps.api.core.errors import (
    AppError,
    PayloadTooLargeError,
    UnsupportedMediaError,
    ValidationError,
)
from apps.api.core.rate_limit import enforce_rate_limit
from apps.api.domains.ingestion.schemas import ImportResponse
from apps.api.domains.ingestion.service import import_statement
from apps.api.domains.ingestion.store import SupabaseTransactionStore
from packages.statement_ingestion import (
    TransactionNormalizer,
    UnsupportedFormatError,
    parse_statement,
)
from packages.statement_ingestion.loader import SUPPORTED_EXTENSIONS

router = APIRouter(prefix="/ingest", tags=["ingestion"])
logger = structlog.get_logger()


@router.post("/statement", response_model=ImportResponse)
async def ingest_statement(
    file: UploadFile = File(...),
    client: Client = Depends(get_user_client),
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
):
    """Parse an uploaded bank statement and store its new transactions.

    Parsing runs in a worker thread bounded by PARSE_TIMEOUT_SECONDS.
    A file with nothing importable is a 422 carrying the parser errors;
    partial problems come back as ``warnings`` on a successful import.
    """
    filename = file.filename or ""
    extension = Path(filename).suffix.lower().lstrip(".")
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedMediaError(
            f"Unsupported file type. Accepted: {', '.join('.' + ext for ext in SUPPORTED_EXTENSIONS)}"
        )

    enforce_rate_limit(user_id, "ingest")

    contents = await file.read()
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError(
            f"File too large (max {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB)"
        )

    loop = asyncio.get_event_loop()
    try:
        parsed = await asyncio.wait_for(
            loop.run_in_executor(
                None,
                partial(parse_statement, contents, filename, max_pdf_pages=settings.PDF_MAX_PAGES),
            ),
            timeout=settings.PARSE_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.warning("statement_parse_timeout", filename=filename, timeout_s=settings.PARSE_TIMEOUT_SECONDS)
        raise ValidationError("The statement took too long to parse")
    except UnsupportedFormatError as e:
        raise UnsupportedMediaError(str(e))

    logger.info(
        "statement_parsed",
        filename=filename,
        format_label=parsed.format_label,
        transactions=len(parsed.transactions),
        errors=len(parsed.errors),
    )

    normalizer = TransactionNormalizer(default_currency=settings.DEFAULT_CURRENCY)
    try:
        summary = import_statement(
            SupabaseTransactionStore(client),
            user_id,
            parsed,
            file_name=filename,
            file_size=len(contents),
            normalizer=normalizer,
        )
    except AppError:
        raise
    except Exception as e:
        logger.error("db_insert_failed", error=str(e), filename=filename)
        raise AppError("Database error", status_code=500)

    return summary.to_dict()
