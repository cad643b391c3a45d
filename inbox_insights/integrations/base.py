"""Provider-neutral contract for chat completion clients."""

import time
from typing import Any, Dict, Optional, Protocol


class CompletionClient(Protocol):
    """Anything that can turn a single prompt into a raw model response."""

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float,
        max_tokens: Optional[int] = None
    ) -> Any:
        ...


class CompletionMetrics:
    """In-process request counters kept by the provider clients."""

    def __init__(self):
        self.total_requests = 0
        self.errors = 0
        self.total_duration = 0.0

    def record_success(self, start_time: float) -> None:
        self.total_requests += 1
        self.total_duration += time.monotonic() - start_time

    def record_error(self) -> None:
        self.total_requests += 1
        self.errors += 1

    def summary(self) -> Dict[str, float]:
        succeeded = self.total_requests - self.errors
        return {
            'total_requests': self.total_requests,
            'avg_response_time': self.total_duration / succeeded if succeeded else 0.0,
            'success_rate': succeeded / self.total_requests * 100 if self.total_requests else 100.0,
        }
