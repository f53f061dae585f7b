"""relaychat - Hybrid local/remote chat routing with privacy redaction.

relaychat routes each chat turn to either a small locally executed model
or a more capable remote completions API, streams partial output back to
the caller, and scrubs person and organization names before anything
leaves the machine.

Key modules:

- :mod:`relaychat.chat` - Conversation state and the per-turn orchestrator
- :mod:`relaychat.routing` - Explicit tags, word-count override and complexity scoring
- :mod:`relaychat.privacy` - Session-scoped reversible name redaction
- :mod:`relaychat.llm` - Local engine and remote SSE streaming adapters
- :mod:`relaychat.config` - YAML configuration with pydantic validation
"""

__version__ = "0.1.0"
