"""Insight service backed by the Anthropic Messages API."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import anthropic

from ..config import DEFAULT_MODEL, InsightConfig
from ..context import MatchContext
from ..errors import InsightError
from .interface import FOCUS_ALL, InsightService
from .prompts import SYSTEM_PROMPT, build_user_prompt, collect_match_tables

logger = logging.getLogger(__name__)


class AnthropicInsightService(InsightService):
    """Sends a match's CSV tables to Claude and returns its markdown reply."""

    def __init__(
        self,
        output_dir: Path,
        *,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        api_key_env: str = "ANTHROPIC_API_KEY",
        max_table_chars: int = 20_000,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.output_dir = Path(output_dir)
        self.model = model
        self.max_tokens = max_tokens
        self.api_key_env = api_key_env
        self.max_table_chars = max_table_chars
        self._client = client

    @classmethod
    def from_config(
        cls, output_dir: Path, config: InsightConfig
    ) -> AnthropicInsightService:
        return cls(
            output_dir,
            model=config.model,
            max_tokens=config.max_tokens,
            api_key_env=config.api_key_env,
            max_table_chars=config.max_table_chars,
        )

    def _get_client(self, match_id: str) -> anthropic.AsyncAnthropic:
        if self._client is None:
            api_key = os.getenv(self.api_key_env)
            if not api_key:
                raise InsightError(match_id, f"{self.api_key_env} not configured")
            self._client = anthropic.AsyncAnthropic(api_key=api_key)
        return self._client

    async def query(self, match_id: str, focus: str = FOCUS_ALL) -> str:
        client = self._get_client(match_id)
        ctx = MatchContext(self.output_dir, match_id)

        try:
            tables = collect_match_tables(ctx, self.max_table_chars)
        except OSError as e:
            raise InsightError(match_id, f"cannot read match tables: {e}") from e

        if not tables:
            logger.warning(f"No CSV tables found for match {match_id}")

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": build_user_prompt(match_id, focus, tables),
                    }
                ],
            )
        except anthropic.APIError as e:
            raise InsightError(match_id, str(e)) from e

        text = "".join(
            block.text for block in response.content if block.type == "text"
        )
        if not text.strip():
            raise InsightError(match_id, "empty response from model")

        logger.info(
            f"Insight for {match_id}: {response.usage.input_tokens} in / "
            f"{response.usage.output_tokens} out tokens"
        )
        return text
