"""Prompt complexity scoring with the local model."""

import logging
import math

from pydantic import BaseModel, Field, ValidationError

from relaychat.config.schema import RoutingConfig
from relaychat.errors import ClassificationError, EngineNotReady, StructuredOutputError
from relaychat.llm.client import Message
from relaychat.llm.local import LocalBackend

from .models import ComplexityResult

logger = logging.getLogger(__name__)

COMPLEXITY_SYSTEM_PROMPT = "You are a prompt complexity analyzer."

COMPLEXITY_PROMPT = """Rate how complex the following user prompt is, from {low} to {high}, where:
{low} = casual chat or a short factual question a small local model can answer
{high} = specialized knowledge, multi-step reasoning or long detailed output

Respond in JSON format only:
{{"score": <number from {low} to {high}>, "explanation": "<one short sentence>"}}

User prompt: {prompt}"""


class ComplexityScore(BaseModel):
    """Shape requested from the local model."""

    score: float = Field(description="Complexity score")
    explanation: str = Field(default="", description="Brief reason for the score")


class ComplexityClassifier:
    """Scores prompts and maps the score to a backend choice.

    Malformed model output or a failed call never blocks a turn: the
    classifier answers with a local-route fallback instead. Only a missing
    engine is reported to the caller.
    """

    def __init__(self, local: LocalBackend, config: RoutingConfig | None = None) -> None:
        self.local = local
        self.config = config or RoutingConfig()

    def clamp(self, score: float) -> float:
        return min(float(self.config.score_max), max(float(self.config.score_min), score))

    def _parse(self, data: dict) -> tuple[float, str]:
        try:
            parsed = ComplexityScore.model_validate(data)
        except ValidationError as e:
            raise ClassificationError(f"Unexpected classifier output: {data!r}") from e
        if not math.isfinite(parsed.score):
            raise ClassificationError(f"Non-finite score: {parsed.score!r}")
        return self.clamp(parsed.score), parsed.explanation.strip()

    def _fallback(self, reason: str) -> ComplexityResult:
        return ComplexityResult(
            use_remote=False,
            explanation=f"Classification fallback ({reason}), using the local model",
        )

    async def classify(self, prompt: str) -> ComplexityResult:
        """Score a prompt and decide whether it needs the remote model.

        Args:
            prompt: Original user text

        Returns:
            ComplexityResult with the routing choice and explanation

        Raises:
            EngineNotReady: If the local engine is not initialized
        """
        if not self.local.ready:
            raise EngineNotReady()

        messages = [
            Message(role="system", content=COMPLEXITY_SYSTEM_PROMPT),
            Message(
                role="user",
                content=COMPLEXITY_PROMPT.format(
                    low=self.config.score_min,
                    high=self.config.score_max,
                    prompt=prompt,
                ),
            ),
        ]

        try:
            data = await self.local.complete_json(
                messages,
                ComplexityScore,
                temperature=self.config.classifier_temperature,
                max_tokens=self.config.classifier_max_tokens,
            )
            score, explanation = self._parse(data)
        except EngineNotReady:
            raise
        except (StructuredOutputError, ClassificationError) as e:
            logger.warning("Error parsing complexity analysis: %s", e)
            return self._fallback("unparseable classifier output")
        except Exception as e:
            logger.warning("Error analyzing complexity: %s", e)
            return self._fallback("classifier call failed")

        use_remote = score >= self.config.score_threshold
        return ComplexityResult(
            use_remote=use_remote,
            explanation=explanation or f"Complexity score {score:g}",
            score=score,
        )
