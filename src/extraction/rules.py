"""
Ordered field rules and the record builder.

A FieldStep is an ordered list of FieldRules for one field plus the
confidence delta earned when any of them matches. Rules are evaluated in
order and the first rule that yields an accepted value wins; inside one
rule the first accepted match in the text wins.

RecordBuilder applies steps to an immutable record and keeps an audit list
of every confidence adjustment, so the final confidence is always
"base + sum of deltas, times any penalty factors".
"""

import logging
from typing import Any, Callable, List, Optional, Pattern, Tuple, Union
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

EMPTY_VALUES = (None, "", ())


@dataclass(frozen=True)
class FieldRule:
    """One pattern for a field, with optional value transform and acceptance check."""
    pattern: Pattern
    group: int = 1
    transform: Optional[Callable[[str], Any]] = None
    accept: Optional[Callable[[Any], bool]] = None

    def find(self, text: str) -> Optional[Any]:
        for match in self.pattern.finditer(text):
            raw = match.group(self.group)
            if raw is None:
                continue
            value = self.transform(raw) if self.transform else raw.strip()
            if value in EMPTY_VALUES:
                continue
            if self.accept is None or self.accept(value):
                return value
        return None


@dataclass(frozen=True)
class FieldStep:
    """
    Ordered rules for one field.

    ``field`` may be a tuple of field names when one match fills several
    fields (a full name split into first and last). ``note`` is a format
    string receiving ``value``.
    """
    field: Union[str, Tuple[str, ...]]
    rules: Tuple[FieldRule, ...]
    confidence: float = 0.0
    note: Optional[str] = None

    @property
    def name(self) -> str:
        return self.field if isinstance(self.field, str) else '+'.join(self.field)

    def evaluate(self, text: str) -> Optional[Any]:
        for rule in self.rules:
            value = rule.find(text)
            if value is not None:
                return value
        return None


class RecordBuilder:
    """Builds an immutable record one field step at a time."""

    def __init__(self, record: Any):
        self.record = record
        self.adjustments: List[Tuple[str, str, float]] = []

    @property
    def confidence(self) -> float:
        return self.record.extraction_confidence

    def get(self, field: str) -> Any:
        return getattr(self.record, field)

    def set(self, field: str, value: Any, confidence: float = 0.0, note: Optional[str] = None) -> "RecordBuilder":
        self.record = replace(self.record, **{field: value})
        if confidence:
            self.boost(field, confidence)
        if note:
            self.note(note)
        return self

    def boost(self, reason: str, delta: float) -> "RecordBuilder":
        self.record = replace(self.record, extraction_confidence=self.confidence + delta)
        self.adjustments.append(("+", reason, delta))
        return self

    def penalize(self, reason: str, factor: float) -> "RecordBuilder":
        self.record = replace(self.record, extraction_confidence=self.confidence * factor)
        self.adjustments.append(("*", reason, factor))
        return self

    def note(self, note: str) -> "RecordBuilder":
        self.record = replace(self.record, processing_notes=self.record.processing_notes + (note,))
        return self

    def apply(self, step: FieldStep, text: str) -> Optional[Any]:
        """Evaluate a step against the text and set its field(s) when it matches"""
        value = step.evaluate(text)
        if value is None:
            logger.debug(f"[rules] {step.name}: no match")
            return None

        if isinstance(step.field, tuple):
            self.record = replace(self.record, **dict(zip(step.field, value)))
        else:
            self.record = replace(self.record, **{step.field: value})

        if step.confidence:
            self.boost(step.name, step.confidence)
        if step.note:
            self.note(step.note.format(value=value))
        logger.debug(f"[rules] {step.name} = {value!r}")
        return value

    def build(self) -> Any:
        return self.record
