"""Per-turn backend selection."""

import logging

from relaychat.config.schema import RoutingConfig

from .classifier import ComplexityClassifier
from .models import Backend, ClassifiedRoute, ExplicitRoute, RoutingDecision
from .tags import count_words, extract_backend_tag

logger = logging.getLogger(__name__)


class ModelRouter:
    """Resolves one routing decision per turn before any backend call.

    Precedence is: explicit tag, then the word-count rule, then the
    complexity classifier.
    """

    def __init__(
        self, classifier: ComplexityClassifier, config: RoutingConfig | None = None
    ) -> None:
        self.classifier = classifier
        self.config = config or classifier.config

    async def route(self, text: str) -> tuple[RoutingDecision, str]:
        """Decide which backend handles ``text``.

        Args:
            text: Raw user input

        Returns:
            Tuple of (decision, text to send with any tags removed)

        Raises:
            EngineNotReady: If classification is needed and the local engine is not ready
        """
        backend, cleaned = extract_backend_tag(text, self.config.remote_tag, self.config.local_tag)
        if backend is not None:
            decision: RoutingDecision = ExplicitRoute(backend)
            logger.info("Routing to %s: %s", decision.backend.value, decision.reason)
            return decision, cleaned

        words = count_words(text)
        if words > self.config.word_count_threshold:
            decision = ClassifiedRoute(
                Backend.REMOTE,
                f"Prompt exceeds {self.config.word_count_threshold} words ({words}), "
                "using the remote model for better handling of long prompts",
            )
            logger.info("Routing to remote: %s", decision.reason)
            return decision, text

        result = await self.classifier.classify(text)
        decision = ClassifiedRoute(
            Backend.REMOTE if result.use_remote else Backend.LOCAL,
            result.explanation,
            result.score,
        )
        logger.info(
            "Routing to %s (score=%s): %s",
            decision.backend.value,
            decision.score,
            decision.reason,
        )
        return decision, text
