"""Reversible name redaction for text sent to the remote model.

Names of people and organizations are detected by the local model,
replaced with session-stable pseudonyms (``PERSON_1``, ``ORG_2``) and
swapped back in whatever the remote model returns.

Name spans come from a case-insensitive first-occurrence search, so a
name that appears several times in one text only has its first
occurrence replaced, and a name the detector reports twice resolves to
the same span both times, which garbles the substitution. This matches
the detector's contract of listing names rather than positions.
"""

import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

from relaychat.config.schema import PrivacyConfig
from relaychat.errors import RedactionError
from relaychat.llm.client import Message
from relaychat.llm.local import LocalBackend

from .models import EntityType, PIIEntity, RedactionResult, RedactionSession, RemoteRedaction

logger = logging.getLogger(__name__)

DETECTION_SYSTEM_PROMPT = (
    "You are a privacy-focused entity detection system. "
    "You only detect names of people and organizations."
)

DETECTION_PROMPT = """Find the names of people and organizations in the text below.
Rules:
- Report real names of people: first names, last names or full names
- Report names of organizations, companies and institutions
- Never report addresses, phone numbers, emails, ages, dates, locations or job titles
- Never report generic references such as "the company", "my friend" or "the person"
- Reply with the JSON object only

Text: "{text}"

Reply format:
{{"entities": [{{"name": "John Smith", "type": "person"}},
              {{"name": "Microsoft Corporation", "type": "organization"}}]}}"""


class DetectedEntity(BaseModel):
    name: str
    type: EntityType
    context: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class DetectedEntities(BaseModel):
    """Shape requested from the local model."""

    entities: list[DetectedEntity] = Field(default_factory=list)


class PrivacyRedactionService:
    """Detects, pseudonymizes and restores names for one session."""

    def __init__(
        self,
        local: LocalBackend,
        session: RedactionSession | None = None,
        config: PrivacyConfig | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            local: Local backend used for entity detection
            session: Pseudonym session (a fresh one if None)
            config: Privacy configuration
        """
        self.local = local
        self.session = session or RedactionSession()
        self.config = config or PrivacyConfig()

    async def detect_entities(self, text: str) -> list[PIIEntity]:
        """Ask the local model for person and organization names in ``text``.

        Names that cannot be found in the text are dropped. Any failure
        yields an empty list.
        """
        if not text.strip():
            return []

        messages = [
            Message(role="system", content=DETECTION_SYSTEM_PROMPT),
            Message(role="user", content=DETECTION_PROMPT.format(text=text)),
        ]

        try:
            data = await self.local.complete_json(
                messages,
                DetectedEntities,
                temperature=0.0,
                max_tokens=self.config.detection_max_tokens,
            )
        except Exception as e:
            logger.warning("Error detecting PII entities: %s", e)
            return []

        raw_entities = data.get("entities")
        if not isinstance(raw_entities, list):
            logger.warning("PII detection returned no entity list")
            return []

        lowered = text.lower()
        entities: list[PIIEntity] = []
        for raw in raw_entities:
            try:
                detected = DetectedEntity.model_validate(raw)
            except ValidationError:
                logger.debug("Skipping malformed entity: %r", raw)
                continue

            name = detected.name.strip()
            if not name:
                continue
            start = lowered.find(name.lower())
            if start == -1:
                continue
            entities.append(
                PIIEntity(
                    name=name,
                    type=detected.type,
                    start_index=start,
                    end_index=start + len(name),
                )
            )

        return entities

    def assign_macro(self, entity: PIIEntity) -> str:
        """Get or create the session pseudonym for an entity's name."""
        return self.session.assign(entity.name, entity.type)

    async def redact_text(self, text: str) -> RedactionResult:
        """Replace detected names in ``text`` with pseudonyms.

        Args:
            text: Text to redact

        Returns:
            RedactionResult with redacted text, entities and the pseudonyms used
        """
        entities = await self.detect_entities(text)
        if not entities:
            return RedactionResult(redacted_text=text)

        macro_map: dict[str, str] = {}
        macros: list[str] = []
        for entity in entities:
            macro = self.assign_macro(entity)
            macro_map[macro] = entity.name
            macros.append(macro)

        # Replace from the end so pending spans keep their offsets
        redacted = text
        pending = sorted(zip(entities, macros), key=lambda pair: pair[0].start_index, reverse=True)
        for entity, macro in pending:
            redacted = redacted[: entity.start_index] + macro + redacted[entity.end_index :]

        logger.debug(
            "Redacted %d entities (%s)",
            len(entities),
            ", ".join(sorted({e.type.value for e in entities})),
        )
        return RedactionResult(redacted_text=redacted, entities=entities, macro_map=macro_map)

    async def redact_messages(
        self, messages: list[Message]
    ) -> tuple[list[Message], dict[str, str]]:
        """Redact the user turns of a conversation.

        Assistant turns are passed through untouched and never sent to
        the detector.

        Returns:
            Tuple of (redacted messages, merged pseudonym map)
        """
        redacted: list[Message] = []
        combined: dict[str, str] = {}

        for msg in messages:
            if msg.role != "user":
                redacted.append(msg)
                continue
            result = await self.redact_text(msg.content)
            redacted.append(Message(role=msg.role, content=result.redacted_text))
            combined.update(result.macro_map)

        return redacted, combined

    async def redact_for_remote(self, message: str, history: list[Message]) -> RemoteRedaction:
        """Redact an outgoing message together with its conversation history.

        Raises:
            RedactionError: If redaction fails unexpectedly
        """
        try:
            result = await self.redact_text(message)
            redacted_history, history_map = await self.redact_messages(history)
        except Exception as e:
            raise RedactionError(f"Redaction failed: {e}") from e

        return RemoteRedaction(
            message=result.redacted_text,
            history=redacted_history,
            macro_map={**history_map, **result.macro_map},
        )

    def restore_text(self, text: str, macro_map: dict[str, str] | None = None) -> str:
        """Swap pseudonyms in ``text`` back to the original names.

        Safe to call on partial streamed text and to call repeatedly.

        Args:
            text: Text that may contain pseudonyms
            macro_map: Pseudonym -> name mapping (the session map if None)

        Returns:
            Text with every known pseudonym replaced
        """
        mapping = self.session.macro_map() if macro_map is None else macro_map
        restored = text
        # Longest first so PERSON_1 never matches inside PERSON_12
        for macro in sorted(mapping, key=len, reverse=True):
            if macro in restored:
                restored = restored.replace(macro, mapping[macro])
        return restored

    def restore_partial(self, text: str, macro_map: dict[str, str] | None = None) -> str:
        """Restore streamed text, holding back a half-received pseudonym.

        A trailing fragment such as ``PERS`` that could still grow into a
        known pseudonym is cut off so it is never displayed. This includes a
        complete pseudonym that is the start of a longer one, so ``PERSON_1``
        waits while ``PERSON_12`` is also known.
        """
        mapping = self.session.macro_map() if macro_map is None else macro_map

        hold = 0
        for macro in mapping:
            for size in range(min(len(macro) - 1, len(text)), hold, -1):
                if text.endswith(macro[:size]):
                    hold = size
                    break

        visible = text[: len(text) - hold] if hold else text
        return self.restore_text(visible, mapping)

    def clear_session(self) -> None:
        """Forget all pseudonyms and restart numbering."""
        self.session.clear()

    def get_session_macro_map(self) -> dict[str, str]:
        return self.session.macro_map()
