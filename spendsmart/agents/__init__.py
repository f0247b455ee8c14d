"""AI Agents package."""

from spendsmart.agents.ai_agents import (
    FALLBACK_INSIGHT,
    CategoryAgent,
    ClassificationError,
    EmptyLedgerError,
    InsightAgent,
    InsightGenerationError,
    OracleError,
    build_category_prompt,
    build_insight_prompt,
    parse_insight,
)

__all__ = [
    "FALLBACK_INSIGHT",
    "CategoryAgent",
    "ClassificationError",
    "EmptyLedgerError",
    "InsightAgent",
    "InsightGenerationError",
    "OracleError",
    "build_category_prompt",
    "build_insight_prompt",
    "parse_insight",
]
