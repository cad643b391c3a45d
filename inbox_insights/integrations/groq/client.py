"""
Groq chat completion client for the email pipeline.

Each prompt is sent as a single user message. Calls are made once: a
failed request propagates to the calling stage, which substitutes its
canned default.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from groq import Groq

from inbox_insights.integrations.base import CompletionMetrics

logger = logging.getLogger(__name__)


class EnhancedGroqClient:
    """Async wrapper around the synchronous Groq SDK client."""

    def __init__(self, api_key: str, client: Optional[Groq] = None):
        """
        Initialize the Groq client.

        Args:
            api_key: Groq API key, validated by the settings layer
            client: Preconfigured SDK client, mainly for tests
        """
        if not api_key:
            raise ValueError("GROQ_API_KEY must be provided")

        self.client = client or Groq(api_key=api_key, max_retries=0)
        self.metrics = CompletionMetrics()

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float,
        max_tokens: Optional[int] = None
    ) -> Any:
        """Send one prompt and return the raw completion object."""
        params: Dict[str, Any] = {
            'model': model,
            'messages': [{"role": "user", "content": prompt}],
            'temperature': temperature,
        }
        if max_tokens is not None:
            params['max_completion_tokens'] = max_tokens

        start_time = time.monotonic()
        try:
            response = await asyncio.to_thread(self.client.chat.completions.create, **params)
        except Exception as e:
            self.metrics.record_error()
            logger.error(f"Groq request failed for model {model}: {str(e)}")
            raise

        self.metrics.record_success(start_time)
        return response

    def get_performance_metrics(self) -> Dict:
        return self.metrics.summary()
