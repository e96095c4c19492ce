"""Statement loader - picks a parser from the file extension or content."""

import logging
from pathlib import Path
from typing import Optional

from .csv_parser import parse_csv
from .models import ParseResult
from .ofx_parser import is_qif, parse_ofx, parse_qif
from .pdf_parser import DEFAULT_MAX_PAGES, parse_pdf

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("csv", "ofx", "qif", "pdf")
TEXT_ENCODINGS = ["utf-8-sig", "cp1252", "latin-1"]


class UnsupportedFormatError(ValueError):
    """Raised when asked to parse a format outside SUPPORTED_EXTENSIONS."""


def decode_text(content: bytes) -> str:
    """Decode statement text, trying common bank export encodings."""
    for encoding in TEXT_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("Could not decode file with any known encoding")


def sniff_format(content: bytes) -> str:
    """Detect the statement format from content magic and markers."""
    head = content[:2048].lstrip()
    if head.startswith(b"%PDF"):
        return "pdf"
    upper = head.upper()
    if b"OFXHEADER" in upper or b"<OFX>" in upper:
        return "ofx"
    if upper.startswith(b"!TYPE"):
        return "qif"
    return "csv"


def detect_format(filename: Optional[str], content: bytes) -> str:
    extension = Path(filename or "").suffix.lower().lstrip(".")
    if not extension:
        return sniff_format(content)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"Unsupported format '{extension}'. Accepted: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    return extension


def parse_statement(
    content: bytes,
    filename: Optional[str] = None,
    max_pdf_pages: int = DEFAULT_MAX_PAGES,
) -> ParseResult:
    """
    Parse a bank statement file.

    Args:
        content: Raw file bytes (size-capped by the caller)
        filename: Original file name, used for the extension
        max_pdf_pages: Page ceiling forwarded to the PDF parser

    Returns:
        ParseResult; never raises for bad data

    Raises:
        UnsupportedFormatError: if the extension is not csv/ofx/qif/pdf
    """
    file_format = detect_format(filename, content)
    logger.info(f"Parsing {filename or 'statement'} as {file_format}")

    if file_format == "pdf":
        result = parse_pdf(content, max_pages=max_pdf_pages)
    else:
        text = decode_text(content)
        if file_format == "csv":
            result = parse_csv(text)
        elif is_qif(text):
            result = parse_qif(text)
        else:
            result = parse_ofx(text)

    result.metadata.setdefault("import_source", file_format)
    return result
