"""
Stage abstractions shared by both pipelines.

Every LLM-backed step is an AnalysisStage with a typed request record and
a typed result model. Stages are bound to the pipelines through an explicit
StageRegistry keyed by StageName rather than looked up dynamically.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from inbox_insights.config.analyzer_config import ANALYZER_CONFIG
from inbox_insights.email_processing.parsing import extract_json, extract_text
from inbox_insights.errors import StageError
from inbox_insights.integrations.base import CompletionClient

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")

DebugSink = Callable[[str, str], Any]


class StageName(str, Enum):
    """The fixed set of pipeline stages."""
    CLASSIFY = "classify"
    SUMMARIZE = "summarize"
    EVALUATE = "evaluate"
    IMPROVE = "improve"
    SKILL_DEMAND = "skill_demand"
    PORTFOLIO = "portfolio"


class AnalysisStage(Generic[RequestT, ResultT]):
    """
    Base class defining the contract for one LLM-backed transformation.

    Concrete stages provide the prompt, the parser for the recovered JSON
    and the canned default returned on failure. ``execute`` propagates
    errors; ``run`` is the guarded entry point used by the pipelines and
    always returns a result.

    Attributes:
        name: Stage identifier, also the key into ANALYZER_CONFIG
        config_section: Top-level ANALYZER_CONFIG section holding the stage
        allow_array_pattern: Enable the bracketed-array JSON strategy
        recover_projects: Enable lossy portfolio project recovery
    """

    name: StageName
    config_section: str = "email_pipeline"
    allow_array_pattern: bool = False
    recover_projects: bool = False

    def __init__(
        self,
        client: CompletionClient,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        debug_sink: Optional[DebugSink] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the stage with its provider and model parameters.

        Args:
            client: Chat completion client used for every call
            model: Provider model name
            temperature: Overrides the configured stage temperature
            max_tokens: Overrides the configured completion budget
            debug_sink: Receives raw text dumps as ``(text, filename)``
            logger: Logger for stage progress, defaults to the module logger
        """
        stage_config = ANALYZER_CONFIG[self.config_section]["stages"][self.name.value]
        self.client = client
        self.model = model
        self.temperature = stage_config["temperature"] if temperature is None else temperature
        self.max_tokens = stage_config.get("max_tokens") if max_tokens is None else max_tokens
        self.debug_sink = debug_sink
        self.logger = logger or logging.getLogger(__name__)

    def build_prompt(self, request: RequestT) -> str:
        raise NotImplementedError("Must implement build_prompt")

    def parse(self, data: Any) -> ResultT:
        """Coerce the recovered JSON value into the stage's result type."""
        raise NotImplementedError("Must implement parse")

    def fallback(self) -> ResultT:
        """Canned result substituted when the stage fails."""
        raise NotImplementedError("Must implement fallback")

    def on_response_text(self, text: str) -> None:
        """Hook invoked with the raw response text before parsing."""

    async def execute(self, request: RequestT) -> ResultT:
        """
        Run the stage without any error guard.

        Raises:
            ParseError: If no JSON could be recovered from the response
            pydantic.ValidationError: If the JSON does not fit the result type
            Exception: Whatever the provider client raises
        """
        prompt = self.build_prompt(request)
        self.logger.debug(f"[{self.name.value}] Prompt of length {len(prompt)} for model {self.model}")

        start_time = time.monotonic()
        response = await self.client.complete(
            prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )
        text = extract_text(response)
        self.logger.debug(
            f"[{self.name.value}] Response of length {len(text)} "
            f"in {time.monotonic() - start_time:.3f}s"
        )
        self.on_response_text(text)

        data = extract_json(
            text,
            allow_array_pattern=self.allow_array_pattern,
            recover_projects=self.recover_projects,
            debug_sink=self.debug_sink
        )
        return self.parse(data)

    async def run(self, request: RequestT) -> ResultT:
        """Run the stage, substituting the canned default on any failure."""
        try:
            result = await self.execute(request)
            self.logger.info(f"[{self.name.value}] Stage completed")
            return result
        except Exception as e:
            self.logger.error(f"[{self.name.value}] Stage failed, using default result: {e}", exc_info=True)
            return self.fallback()


class StageRegistry:
    """Explicit mapping from StageName to the stage bound to it."""

    def __init__(self):
        self._stages: Dict[StageName, Any] = {}

    def register(self, name: StageName, stage: Any) -> None:
        """
        Bind a stage implementation to a stage name.

        Raises:
            ValueError: If the stage does not implement ``run``
        """
        if not callable(getattr(stage, "run", None)):
            raise ValueError(f"Stage for {name.value} must implement run method")
        self._stages[name] = stage
        logger.debug(f"Registered stage: {name.value}")

    def get(self, name: StageName) -> Any:
        """
        Look up the stage bound to a name.

        Raises:
            StageError: If no stage is registered under the name
        """
        try:
            return self._stages[name]
        except KeyError:
            raise StageError(name.value, "No stage registered") from None

    def __contains__(self, name: object) -> bool:
        return name in self._stages

    def names(self):
        return list(self._stages)
