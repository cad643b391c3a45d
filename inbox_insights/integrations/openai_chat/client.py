"""
OpenAI chat completion client for the market analysis pipeline.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from openai import OpenAI

from inbox_insights.integrations.base import CompletionMetrics

logger = logging.getLogger(__name__)


class OpenAIChatClient:
    """Async wrapper around the synchronous OpenAI SDK client. No retries."""

    def __init__(self, api_key: str, client: Optional[OpenAI] = None):
        if not api_key:
            raise ValueError("OPENAI_API_KEY must be provided")

        # SDK-level retries are disabled; a failed call is final for the stage
        self.client = client or OpenAI(api_key=api_key, max_retries=0)
        self.metrics = CompletionMetrics()

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float,
        max_tokens: Optional[int] = None
    ) -> Any:
        params: Dict[str, Any] = {
            'model': model,
            'messages': [{"role": "user", "content": prompt}],
            'temperature': temperature,
        }
        if max_tokens is not None:
            params['max_tokens'] = max_tokens

        start_time = time.monotonic()
        try:
            response = await asyncio.to_thread(self.client.chat.completions.create, **params)
        except Exception as e:
            self.metrics.record_error()
            logger.error(f"OpenAI request failed for model {model}: {str(e)}")
            raise

        self.metrics.record_success(start_time)
        return response

    def get_performance_metrics(self) -> Dict:
        return self.metrics.summary()
