"""RevPace — Anthropic Claude Agent.

Runs the Messages API tool-use loop: while Claude asks for tools, execute
them against the database and feed the results back, up to
``settings.agent_max_tool_rounds`` rounds.
"""

import json
from typing import Any, Dict, List, Optional

from anthropic import AsyncAnthropic
from sqlmodel import Session

from app.ai.agent_tools import AGENT_TOOLS, execute_tool
from app.ai.base_provider import AgentProvider, AgentReply
from app.config import settings
from app.models.pacing_models import ReportingPeriod
from app.core.logging import get_logger

logger = get_logger("ai.claude")

SYSTEM_PROMPT = """You are the business intelligence assistant for RevPace, a revenue tracking dashboard for partner and affiliate platforms.

Your capabilities:
1. Analyze revenue data across attribution, affiliate and flat-fee platforms
2. Report brand performance and pacing against targets
3. Identify top performers and brands that need attention
4. Suggest optimization strategies based on the data

Platform Categories:
- Attribution: Creator Connections, Levanta, Perch, PartnerBoost, Archer
- Affiliate: Skimlinks, Impact, Howl, BrandAds, Awin, Partnerize, Connexity, Apple
- Flat Fee: partners with fixed contracts allocated evenly across finance weeks

Key Metrics:
- MTD Revenue / MTD GMV: month-to-date revenue and gross merchandise value
- Target GMV: monthly target
- Pacing: (MTD GMV / days accounted) x days left / target x 100
- Weekly Revenue: revenue in the finance week (Thursday to Wednesday)

RULES:
1. Use the tools to fetch data. Never invent numbers.
2. Report pacing values exactly as the tools return them. Do not recompute them.
3. If a tool returns an error or no data, say so plainly.
4. Be concise and data-driven. Lead with the most important finding.
5. Format currency values in {currency}.

Reporting month: {month} (as of {as_of})."""


def _block_to_param(block: Any) -> Dict[str, Any]:
    """Convert a response content block into a request content block."""
    if block.type == "tool_use":
        return {
            "type": "tool_use",
            "id": block.id,
            "name": block.name,
            "input": block.input,
        }
    return {"type": "text", "text": getattr(block, "text", "")}


def _text_of(content: List[Any]) -> str:
    return "\n".join(b.text for b in content if b.type == "text" and b.text)


class ClaudeProvider(AgentProvider):
    """Anthropic Claude tool-calling agent."""

    def __init__(self, client: Optional[Any] = None):
        if client is not None:
            self.client = client
        else:
            self.client = (
                AsyncAnthropic(api_key=settings.anthropic_api_key)
                if settings.anthropic_api_key
                else None
            )

    def is_available(self) -> bool:
        return self.client is not None

    async def converse(
        self,
        messages: List[Dict[str, Any]],
        session: Session,
        period: ReportingPeriod,
    ) -> AgentReply:
        if not self.is_available():
            raise RuntimeError("Claude provider not configured")

        system = SYSTEM_PROMPT.format(
            currency=settings.currency,
            month=period.month,
            as_of=period.reference_date.isoformat(),
        )
        conversation = list(messages)
        usage = {"input_tokens": 0, "output_tokens": 0}
        tool_calls: List[str] = []

        for round_no in range(settings.agent_max_tool_rounds + 1):
            try:
                response = await self.client.messages.create(
                    model=settings.agent_model,
                    max_tokens=settings.agent_max_tokens,
                    system=system,
                    tools=AGENT_TOOLS,
                    messages=conversation,
                )
            except Exception as e:
                logger.error(f"Claude request failed: {e}")
                raise

            if response.usage is not None:
                usage["input_tokens"] += response.usage.input_tokens
                usage["output_tokens"] += response.usage.output_tokens

            if response.stop_reason != "tool_use":
                return AgentReply(
                    message=_text_of(response.content) or "No response generated",
                    usage=usage,
                    tool_calls=tool_calls,
                )

            if round_no == settings.agent_max_tool_rounds:
                break

            results = []
            for block in response.content:
                if block.type != "tool_use":
                    continue
                tool_calls.append(block.name)
                result = execute_tool(session, block.name, block.input, period)
                results.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": block.id,
                        "content": json.dumps(result, default=str),
                    }
                )

            conversation.append(
                {"role": "assistant", "content": [_block_to_param(b) for b in response.content]}
            )
            conversation.append({"role": "user", "content": results})

        logger.warning(
            f"Agent stopped after {settings.agent_max_tool_rounds} tool rounds"
        )
        return AgentReply(
            message=_text_of(response.content)
            or "The analysis needed more steps than allowed. Please narrow the question.",
            usage=usage,
            tool_calls=tool_calls,
        )
