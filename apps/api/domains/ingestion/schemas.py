"""Pydantic schemas for the ingestion domain."""

from typing import Optional

from pydantic import BaseModel, Field


class ImportResponse(BaseModel):
    """Outcome of a statement upload."""

    message: str
    imported: int
    skipped: int = 0  # already stored
    dropped: int = 0  # unreadable date
    total: int
    format_label: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
