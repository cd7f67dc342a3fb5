"""RevPace — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── AI Agent ──
    anthropic_api_key: Optional[str] = None
    agent_model: str = "claude-sonnet-4-20250514"
    agent_max_tokens: int = 4096
    agent_max_tool_rounds: int = 5

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    digest_hour: int = 7  # Daily pacing digest at 7 AM

    # ── Finance ──
    business_timezone: str = "UTC"
    currency: str = "USD"
    underperforming_threshold: float = 80.0  # pacing %

    # ── Uploads ──
    upload_batch_size: int = 25
    flat_fee_prorate_partial_weeks: bool = False

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/revpace.db"
        return "sqlite:///./revpace.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
