"""RevPace — Abstract Agent Provider."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from pydantic import BaseModel
from sqlmodel import Session

from app.models.pacing_models import ReportingPeriod


class AgentReply(BaseModel):
    """Final text answer of an agent conversation."""

    message: str
    usage: Dict[str, int] = {}
    tool_calls: List[str] = []


class AgentProvider(ABC):
    """Abstract base for the business-intelligence agent.

    Providers answer questions about the revenue data by calling the
    dashboard tools. The dashboard works without an agent; this is optional.
    """

    @abstractmethod
    async def converse(
        self,
        messages: List[Dict[str, Any]],
        session: Session,
        period: ReportingPeriod,
    ) -> AgentReply:
        """Continue a conversation and return the agent's final answer.

        Args:
            messages: Prior turns as ``{"role": ..., "content": ...}`` dicts,
                      ending with the user's latest message.
            session: Database session the tools read from.
            period: Reporting period the tools compute pacing for.
        """
        ...

    async def chat(
        self, message: str, session: Session, period: ReportingPeriod
    ) -> AgentReply:
        """Single-turn convenience wrapper around ``converse``."""
        return await self.converse(
            [{"role": "user", "content": message}], session, period
        )

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured and ready."""
        ...
