"""RevPace — Agent Tool Definitions & Dispatch.

Tools the Claude agent may call. Every result is computed by the same
aggregation and risk functions the dashboard uses, so the agent quotes
the dashboard's pacing figures exactly.
"""

from typing import Any, Callable, Dict, List

from sqlmodel import Session

from app.analyzer.pipeline import (
    brand_details,
    build_dashboard_overview,
    build_platform_performance,
)
from app.analyzer.risk_engine import (
    find_underperforming_brands,
    revenue_by_category,
    top_performers,
)
from app.models.pacing_models import ReportingPeriod
from app.core.logging import get_logger

logger = get_logger("ai.tools")


AGENT_TOOLS: List[Dict[str, Any]] = [
    {
        "name": "get_dashboard_overview",
        "description": "Get overall dashboard summary including total revenue, GMV, targets, and pacing metrics",
        "input_schema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": "get_platform_performance",
        "description": "Get detailed performance data for all platforms including revenue, GMV, brand count and pacing",
        "input_schema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": "get_brand_details",
        "description": "Get detailed metrics for a specific brand",
        "input_schema": {
            "type": "object",
            "properties": {
                "brand_name": {
                    "type": "string",
                    "description": "The name of the brand to look up",
                },
            },
            "required": ["brand_name"],
        },
    },
    {
        "name": "get_top_performers",
        "description": "Get top performing brands by revenue or GMV",
        "input_schema": {
            "type": "object",
            "properties": {
                "metric": {
                    "type": "string",
                    "enum": ["revenue", "gmv"],
                    "description": "The metric to rank by",
                },
                "limit": {
                    "type": "number",
                    "description": "Number of top performers to return (default: 10)",
                },
            },
            "required": ["metric"],
        },
    },
    {
        "name": "get_underperforming_brands",
        "description": "Get brands that are below their pacing targets",
        "input_schema": {
            "type": "object",
            "properties": {
                "threshold": {
                    "type": "number",
                    "description": "Pacing percentage threshold (default: 80, meaning below 80% pacing)",
                },
            },
            "required": [],
        },
    },
    {
        "name": "get_revenue_by_category",
        "description": "Get revenue breakdown by platform category (attribution, affiliate, flatfee)",
        "input_schema": {"type": "object", "properties": {}, "required": []},
    },
]


# ── Tool Handlers ──


def _dashboard_overview(session: Session, period: ReportingPeriod, _: dict) -> dict:
    return build_dashboard_overview(session, period).model_dump(by_alias=True, mode="json")


def _platform_performance(session: Session, period: ReportingPeriod, _: dict) -> dict:
    platforms = build_platform_performance(session, period)
    return {
        "platforms": [
            p.model_dump(by_alias=True, exclude={"brands"}) for p in platforms
        ],
    }


def _brand_details(session: Session, period: ReportingPeriod, tool_input: dict) -> dict:
    name = str(tool_input.get("brand_name", "")).strip()
    if not name:
        return {"error": "brand_name is required"}
    summary = brand_details(session, period, name)
    if summary is None:
        return {"error": f"No data found for brand: {name}"}
    return summary.model_dump(by_alias=True)


def _top_performers(session: Session, period: ReportingPeriod, tool_input: dict) -> dict:
    metric = tool_input.get("metric") or "revenue"
    limit = int(tool_input.get("limit") or 10)
    performers = top_performers(session, period, metric=metric, limit=limit)
    return {
        "topPerformers": [p.model_dump(by_alias=True) for p in performers],
        "metric": metric,
        "limit": limit,
    }


def _underperforming(session: Session, period: ReportingPeriod, tool_input: dict) -> dict:
    threshold = tool_input.get("threshold")
    brands = find_underperforming_brands(session, period, threshold)
    return {
        "underperformingBrands": [b.model_dump(by_alias=True) for b in brands],
        "threshold": threshold,
    }


def _category_revenue(session: Session, period: ReportingPeriod, _: dict) -> dict:
    return revenue_by_category(session, period).model_dump(by_alias=True)


TOOL_HANDLERS: Dict[str, Callable[[Session, ReportingPeriod, dict], dict]] = {
    "get_dashboard_overview": _dashboard_overview,
    "get_platform_performance": _platform_performance,
    "get_brand_details": _brand_details,
    "get_top_performers": _top_performers,
    "get_underperforming_brands": _underperforming,
    "get_revenue_by_category": _category_revenue,
}


def execute_tool(
    session: Session,
    tool_name: str,
    tool_input: Dict[str, Any],
    period: ReportingPeriod,
) -> dict:
    """Run a tool and return its JSON-serialisable result."""
    handler = TOOL_HANDLERS.get(tool_name)
    if handler is None:
        logger.warning(f"Agent requested unknown tool: {tool_name}")
        return {"error": f"Unknown tool: {tool_name}"}
    logger.info(f"Executing agent tool {tool_name}")
    return handler(session, period, tool_input or {})
