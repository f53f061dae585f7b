"""Data models for name redaction."""

from dataclasses import dataclass, field
from enum import StrEnum

from relaychat.llm.client import Message


class EntityType(StrEnum):
    """Kinds of names the detector reports."""

    PERSON = "person"
    ORGANIZATION = "organization"


MACRO_PREFIXES: dict[EntityType, str] = {
    EntityType.PERSON: "PERSON",
    EntityType.ORGANIZATION: "ORG",
}


@dataclass
class PIIEntity:
    """A detected name with its span in the source text."""

    name: str
    type: EntityType
    start_index: int
    end_index: int


@dataclass
class RedactionResult:
    """Redacted text plus the pseudonyms used in it."""

    redacted_text: str
    entities: list[PIIEntity] = field(default_factory=list)
    macro_map: dict[str, str] = field(default_factory=dict)  # "PERSON_1" -> "John Smith"


@dataclass
class RemoteRedaction:
    """Outgoing message and history prepared for a remote call."""

    message: str
    history: list[Message]
    macro_map: dict[str, str] = field(default_factory=dict)


class RedactionSession:
    """Pseudonym assignments for one conversation session.

    A name keeps the same pseudonym for the lifetime of the session.
    Numbering is per entity type and restarts at 1 after :meth:`clear`.
    """

    def __init__(self) -> None:
        self._macro_to_name: dict[str, str] = {}
        self._name_to_macro: dict[str, str] = {}
        self.person_counter = 0
        self.org_counter = 0

    def __len__(self) -> int:
        return len(self._macro_to_name)

    def macro_for(self, name: str) -> str | None:
        return self._name_to_macro.get(name)

    def name_for(self, macro: str) -> str | None:
        return self._macro_to_name.get(macro)

    def assign(self, name: str, entity_type: EntityType) -> str:
        """Return the pseudonym for ``name``, creating one if needed."""
        existing = self._name_to_macro.get(name)
        if existing is not None:
            return existing

        if entity_type == EntityType.PERSON:
            self.person_counter += 1
            number = self.person_counter
        else:
            self.org_counter += 1
            number = self.org_counter

        macro = f"{MACRO_PREFIXES[entity_type]}_{number}"
        self._macro_to_name[macro] = name
        self._name_to_macro[name] = macro
        return macro

    def macro_map(self) -> dict[str, str]:
        """Copy of the pseudonym -> name mapping."""
        return dict(self._macro_to_name)

    def clear(self) -> None:
        self._macro_to_name.clear()
        self._name_to_macro.clear()
        self.person_counter = 0
        self.org_counter = 0
