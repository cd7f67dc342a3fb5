"""
Tests for the AI agent: tool dispatch and the Claude tool-use loop.

The Anthropic client is replaced by a scripted stub, so no network calls
are made. Tool results are checked against the ``seeded`` November book.
"""

import json
from types import SimpleNamespace

import httpx
import pytest
from anthropic import RateLimitError

from app.main import app
from app.config import settings
from app.ai.agent_tools import AGENT_TOOLS, execute_tool
from app.ai.claude_provider import ClaudeProvider
from app.api.agent_routes import get_agent

NOV = {"month": "2025-11", "asOf": "2025-11-15"}


# ============================================================
# STUB CLIENT
# ============================================================


def _usage(i=10, o=5):
    return SimpleNamespace(input_tokens=i, output_tokens=o)


def tool_use(name, tool_input=None, tool_id="toolu_1"):
    return SimpleNamespace(
        stop_reason="tool_use",
        content=[
            SimpleNamespace(type="text", text="Let me check."),
            SimpleNamespace(type="tool_use", id=tool_id, name=name, input=tool_input or {}),
        ],
        usage=_usage(),
    )


def final(text):
    return SimpleNamespace(
        stop_reason="end_turn",
        content=[SimpleNamespace(type="text", text=text)],
        usage=_usage(),
    )


class StubMessages:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def create(self, **kwargs):
        # Snapshot: the provider keeps appending to the same list
        self.calls.append({**kwargs, "messages": list(kwargs["messages"])})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class StubClient:
    def __init__(self, responses):
        self.messages = StubMessages(responses)


@pytest.fixture
def use_agent():
    """Install a ClaudeProvider backed by a scripted stub client."""

    def install(responses):
        stub = StubClient(responses)
        app.dependency_overrides[get_agent] = lambda: ClaudeProvider(client=stub)
        return stub.messages

    return install


# ============================================================
# TOOL DISPATCH
# ============================================================


class TestExecuteTool:
    def test_tool_names(self):
        assert {t["name"] for t in AGENT_TOOLS} == {
            "get_dashboard_overview",
            "get_platform_performance",
            "get_brand_details",
            "get_top_performers",
            "get_underperforming_brands",
            "get_revenue_by_category",
        }

    def test_dashboard_overview_matches_dashboard(self, seeded, november):
        result = execute_tool(seeded, "get_dashboard_overview", {}, november)
        assert result["totalRevenue"] == 4500
        assert result["overallPacing"] == pytest.approx(28.125, abs=0.01)

    def test_platform_performance_omits_brand_rows(self, seeded, november):
        result = execute_tool(seeded, "get_platform_performance", {}, november)
        assert [p["name"] for p in result["platforms"]] == ["creator-connections", "skimlinks"]
        assert "brands" not in result["platforms"][0]

    def test_brand_details(self, seeded, november):
        result = execute_tool(seeded, "get_brand_details", {"brand_name": "Acme"}, november)
        assert result["revenue"] == 3000
        missing = execute_tool(seeded, "get_brand_details", {"brand_name": "Umbrella"}, november)
        assert "error" in missing

    def test_top_performers(self, seeded, november):
        result = execute_tool(
            seeded, "get_top_performers", {"metric": "gmv", "limit": 1}, november
        )
        assert [p["brand"] for p in result["topPerformers"]] == ["Acme"]

    def test_underperforming_threshold(self, seeded, november):
        result = execute_tool(
            seeded, "get_underperforming_brands", {"threshold": 20}, november
        )
        assert [b["brand"] for b in result["underperformingBrands"]] == ["Globex"]

    def test_revenue_by_category(self, seeded, november):
        result = execute_tool(seeded, "get_revenue_by_category", {}, november)
        assert result["total"] == 4500

    def test_unknown_tool(self, session, november):
        assert execute_tool(session, "drop_tables", {}, november) == {
            "error": "Unknown tool: drop_tables"
        }


# ============================================================
# ROUTES + TOOL-USE LOOP
# ============================================================


class TestAgentRoutes:
    def test_status_unconfigured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "anthropic_api_key", None)
        body = client.get("/agent/status").json()
        assert body["status"] == "unconfigured"

    def test_chat_without_key_is_503(self, client, monkeypatch):
        monkeypatch.setattr(settings, "anthropic_api_key", None)
        response = client.post("/agent/chat", params=NOV, json={"message": "How are we pacing?"})
        assert response.status_code == 503

    def test_chat_requires_message(self, client, use_agent):
        use_agent([])
        assert client.post("/agent/chat", json={}).status_code == 400
        assert client.post("/agent/chat", json={"message": 42}).status_code == 400

    def test_conversation_validates_messages(self, client, use_agent):
        use_agent([])
        response = client.post(
            "/agent/conversation", json={"messages": [{"role": "system", "content": "x"}]}
        )
        assert response.status_code == 400

    def test_tool_use_loop(self, client, seeded, use_agent):
        calls = use_agent(
            [tool_use("get_dashboard_overview"), final("Overall pacing is 28.13%.")]
        )
        response = client.post(
            "/agent/chat", params=NOV, json={"message": "How are we pacing?"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["response"] == "Overall pacing is 28.13%."
        assert body["toolCalls"] == ["get_dashboard_overview"]
        assert body["usage"] == {"input_tokens": 20, "output_tokens": 10}

        assert len(calls.calls) == 2
        assert calls.calls[0]["tools"] == AGENT_TOOLS
        assert "2025-11" in calls.calls[0]["system"]

        followup = calls.calls[1]["messages"]
        assert followup[1]["role"] == "assistant"
        assert followup[1]["content"][1]["type"] == "tool_use"
        tool_result = followup[2]["content"][0]
        assert tool_result["tool_use_id"] == "toolu_1"
        assert json.loads(tool_result["content"])["totalRevenue"] == 4500

    def test_tool_rounds_are_bounded(self, client, seeded, use_agent, monkeypatch):
        monkeypatch.setattr(settings, "agent_max_tool_rounds", 1)
        calls = use_agent(
            [tool_use("get_revenue_by_category"), tool_use("get_revenue_by_category")]
        )
        response = client.post("/agent/chat", params=NOV, json={"message": "Loop"})
        assert response.status_code == 200
        assert len(calls.calls) == 2
        assert response.json()["toolCalls"] == ["get_revenue_by_category"]

    def test_conversation(self, client, seeded, use_agent):
        calls = use_agent([final("Acme leads.")])
        messages = [
            {"role": "user", "content": "Top brand?"},
            {"role": "assistant", "content": "Checking."},
            {"role": "user", "content": "Well?"},
        ]
        response = client.post("/agent/conversation", params=NOV, json={"messages": messages})
        assert response.json()["response"] == "Acme leads."
        assert calls.calls[0]["messages"] == messages

    def test_insights(self, client, seeded, use_agent):
        use_agent([final("All good.")])
        body = client.get("/agent/insights", params=NOV).json()
        assert body["insights"] == "All good."
        assert "generatedAt" in body

    def test_analyze_type(self, client, use_agent):
        use_agent([final("Forecast ready.")])
        assert client.post("/agent/analyze", json={"analysisType": "nope"}).status_code == 400
        body = client.post("/agent/analyze", json={"analysisType": "forecast"}).json()
        assert body["analysis"] == "Forecast ready."

    def test_rate_limit_maps_to_429(self, client, use_agent):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        error = RateLimitError(
            "rate limited", response=httpx.Response(429, request=request), body=None
        )
        use_agent([error])
        response = client.post("/agent/chat", json={"message": "Hi"})
        assert response.status_code == 429
