"""RevPace — AI Agent Routes."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from anthropic import APIStatusError
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from app.database import get_session
from app.ai.base_provider import AgentProvider, AgentReply
from app.ai.claude_provider import ClaudeProvider
from app.api.dependencies import reporting_period
from app.models.pacing_models import ReportingPeriod
from app.core.logging import get_logger

logger = get_logger("api.agent")

router = APIRouter(prefix="/agent", tags=["Agent"])

CAPABILITIES = [
    "Dashboard overview analysis",
    "Platform performance insights",
    "Brand performance tracking",
    "Top performers identification",
    "Underperforming brand detection",
    "Revenue category breakdown",
    "Business recommendations",
]

INSIGHTS_PROMPT = (
    "Provide a brief executive summary of current business performance. "
    "Include: 1) Overall revenue status and pacing, 2) Top 3 performing brands, "
    "3) Any areas of concern, 4) One key recommendation."
)

ANALYSIS_PROMPTS = {
    "performance": "Analyze overall platform performance. What are the key trends and how are we tracking against targets?",
    "brands": "Identify the top performing and underperforming brands. What patterns do you see?",
    "forecast": "Based on current pacing, forecast end-of-month revenue. What adjustments could improve outcomes?",
    "opportunities": "Identify growth opportunities across all platforms. Where should we focus efforts?",
    "risks": "What are the current business risks based on the data? Which brands or platforms need immediate attention?",
}


# ── Request Models ──


class ChatRequest(BaseModel):
    message: Optional[Any] = None


class ConversationRequest(BaseModel):
    messages: Optional[Any] = None


class AnalyzeRequest(BaseModel):
    analysisType: Optional[str] = None


# ── Shared Helpers ──


def get_agent() -> AgentProvider:
    """Dependency returning the configured agent provider."""
    return ClaudeProvider()


def _require_available(agent: AgentProvider) -> None:
    if not agent.is_available():
        raise HTTPException(
            status_code=503,
            detail="AI agent not configured. Set ANTHROPIC_API_KEY in .env.",
        )


async def _run(
    agent: AgentProvider,
    messages: List[Dict[str, Any]],
    session: Session,
    period: ReportingPeriod,
) -> AgentReply:
    try:
        return await agent.converse(messages, session, period)
    except APIStatusError as e:
        logger.error(f"Agent API error: {e}", extra={"status_code": e.status_code})
        if e.status_code == 401:
            raise HTTPException(
                status_code=500,
                detail="AI service authentication failed. Please check API configuration.",
            )
        if e.status_code == 429:
            raise HTTPException(
                status_code=429,
                detail="AI service rate limit exceeded. Please try again later.",
            )
        raise HTTPException(status_code=500, detail=f"Agent request failed: {str(e)}")
    except Exception as e:
        logger.error(f"Agent conversation failed: {e}")
        raise HTTPException(status_code=500, detail=f"Agent request failed: {str(e)}")


def _valid_messages(messages: Any) -> bool:
    if not isinstance(messages, list) or not messages:
        return False
    return all(
        isinstance(m, dict)
        and m.get("role") in ("user", "assistant")
        and bool(m.get("content"))
        for m in messages
    )


# ── Endpoints ──


@router.get("/status")
async def get_status(agent: AgentProvider = Depends(get_agent)):
    """Agent availability and capabilities."""
    available = agent.is_available()
    return {
        "success": True,
        "status": "configured" if available else "unconfigured",
        "message": "AI Agent is ready to use"
        if available
        else "ANTHROPIC_API_KEY environment variable is not set",
        "capabilities": CAPABILITIES,
    }


@router.post("/chat")
async def chat(
    request: ChatRequest,
    period: ReportingPeriod = Depends(reporting_period),
    agent: AgentProvider = Depends(get_agent),
    session: Session = Depends(get_session),
):
    """Single-turn question to the agent."""
    if not isinstance(request.message, str) or not request.message.strip():
        raise HTTPException(
            status_code=400, detail="Message is required and must be a string"
        )
    _require_available(agent)

    reply = await _run(
        agent, [{"role": "user", "content": request.message}], session, period
    )
    return {
        "success": True,
        "response": reply.message,
        "usage": reply.usage,
        "toolCalls": reply.tool_calls,
    }


@router.post("/conversation")
async def conversation(
    request: ConversationRequest,
    period: ReportingPeriod = Depends(reporting_period),
    agent: AgentProvider = Depends(get_agent),
    session: Session = Depends(get_session),
):
    """Continue a multi-turn conversation."""
    if not _valid_messages(request.messages):
        raise HTTPException(
            status_code=400,
            detail="Invalid message format. Each message must have role (user/assistant) and content.",
        )
    _require_available(agent)

    reply = await _run(agent, request.messages, session, period)
    return {
        "success": True,
        "response": reply.message,
        "usage": reply.usage,
        "toolCalls": reply.tool_calls,
    }


@router.get("/insights")
async def insights(
    period: ReportingPeriod = Depends(reporting_period),
    agent: AgentProvider = Depends(get_agent),
    session: Session = Depends(get_session),
):
    """Automated executive summary."""
    _require_available(agent)
    reply = await _run(
        agent, [{"role": "user", "content": INSIGHTS_PROMPT}], session, period
    )
    return {
        "success": True,
        "insights": reply.message,
        "usage": reply.usage,
        "generatedAt": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/analyze")
async def analyze(
    request: AnalyzeRequest,
    period: ReportingPeriod = Depends(reporting_period),
    agent: AgentProvider = Depends(get_agent),
    session: Session = Depends(get_session),
):
    """Canned analysis by type: performance, brands, forecast, opportunities or risks."""
    prompt = ANALYSIS_PROMPTS.get(request.analysisType or "")
    if prompt is None:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid analysis type. Valid types: {', '.join(ANALYSIS_PROMPTS)}",
        )
    _require_available(agent)

    reply = await _run(agent, [{"role": "user", "content": prompt}], session, period)
    return {
        "success": True,
        "analysisType": request.analysisType,
        "analysis": reply.message,
        "usage": reply.usage,
        "generatedAt": datetime.now(timezone.utc).isoformat(),
    }
