"""RevPace — Upload Audit Model."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


class UploadHistory(SQLModel, table=True):
    """One row per upload attempt.

    Only the status fields change after creation; this is the audit trail.
    """

    __tablename__ = "upload_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str = Field(default="", description="Original file name, if any")
    upload_type: str = Field(index=True, description="platform | flatfee | skimlinks")
    platform_key: str = Field(default="", description="Platform for platform uploads")
    status: str = Field(default="processing", description="processing | success | error")
    records_processed: int = Field(default=0)
    records_skipped: int = Field(default=0)
    error_message: Optional[str] = Field(default=None)
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
