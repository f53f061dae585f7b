"""Per-turn routing between the local and remote models.

Components:

- :class:`ModelRouter` - Resolves a :data:`RoutingDecision` once per turn
- :class:`ComplexityClassifier` - Scores prompts with the local model
- :func:`extract_backend_tag` - Handles explicit ``@openai`` / ``@webllm`` tags
"""

from .classifier import ComplexityClassifier, ComplexityScore
from .models import Backend, ClassifiedRoute, ComplexityResult, ExplicitRoute, RoutingDecision
from .router import ModelRouter
from .tags import count_words, extract_backend_tag

__all__ = [
    "Backend",
    "ClassifiedRoute",
    "ComplexityClassifier",
    "ComplexityResult",
    "ComplexityScore",
    "ExplicitRoute",
    "ModelRouter",
    "RoutingDecision",
    "count_words",
    "extract_backend_tag",
]
