"""Insight services that turn match tables into coaching commentary."""

from .anthropic_service import AnthropicInsightService
from .interface import FOCUS_ALL, InsightService
from .prompts import build_user_prompt, collect_match_tables, sanitize_focus

__all__ = [
    "FOCUS_ALL",
    "AnthropicInsightService",
    "InsightService",
    "build_user_prompt",
    "collect_match_tables",
    "sanitize_focus",
]
