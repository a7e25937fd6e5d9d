"""
Closed enumerations of the domain model.

Each enum is a ``str`` subclass whose values are the wire strings persisted
in the database. Parsing fails closed: an unknown string is a validation
error, never a silent default.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar, Union

from minitracker.errors import ValidationError

E = TypeVar("E", bound=Enum)


class GameSystem(str, Enum):
    age_of_sigmar = "age_of_sigmar"
    horus_heresy = "horus_heresy"
    warhammer_40k = "warhammer_40k"

    @property
    def display_name(self) -> str:
        return _GAME_SYSTEM_LABELS[self][0]

    @property
    def abbreviation(self) -> str:
        return _GAME_SYSTEM_LABELS[self][1]


_GAME_SYSTEM_LABELS = {
    GameSystem.age_of_sigmar: ("Age of Sigmar", "AoS"),
    GameSystem.horus_heresy: ("Horus Heresy", "HH"),
    GameSystem.warhammer_40k: ("Warhammer 40K", "40K"),
}


class MiniatureType(str, Enum):
    troop = "troop"
    character = "character"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class ProgressStatus(str, Enum):
    """Painting stage of a miniature, declared in progression order.

    Comparisons follow the declaration order rather than the string value,
    so ``ProgressStatus.primed < ProgressStatus.detailed``.
    """

    unpainted = "unpainted"
    primed = "primed"
    basecoated = "basecoated"
    detailed = "detailed"
    completed = "completed"

    @property
    def ordinal(self) -> int:
        return list(type(self)).index(self)

    @property
    def progress_percentage(self) -> int:
        return _PROGRESS_PERCENTAGES[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    def next(self) -> "ProgressStatus":
        """Following stage, or ``self`` when already completed."""
        members = list(type(self))
        return members[min(self.ordinal + 1, len(members) - 1)]

    def previous(self) -> "ProgressStatus":
        """Preceding stage, or ``self`` when still unpainted."""
        members = list(type(self))
        return members[max(self.ordinal - 1, 0)]

    def __lt__(self, other):
        if not isinstance(other, ProgressStatus):
            return NotImplemented
        return self.ordinal < other.ordinal

    def __le__(self, other):
        if not isinstance(other, ProgressStatus):
            return NotImplemented
        return self.ordinal <= other.ordinal

    def __gt__(self, other):
        if not isinstance(other, ProgressStatus):
            return NotImplemented
        return self.ordinal > other.ordinal

    def __ge__(self, other):
        if not isinstance(other, ProgressStatus):
            return NotImplemented
        return self.ordinal >= other.ordinal


_PROGRESS_PERCENTAGES = {
    ProgressStatus.unpainted: 0,
    ProgressStatus.primed: 20,
    ProgressStatus.basecoated: 40,
    ProgressStatus.detailed: 80,
    ProgressStatus.completed: 100,
}


def parse_enum(enum_cls: Type[E], value: Union[str, E, None], field: str) -> Optional[E]:
    """Return ``value`` as a member of ``enum_cls``; ``None`` passes through.

    Raises ``ValidationError`` naming ``field`` for any unknown string.
    """
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(field, f"unknown value {value!r}; expected one of: {allowed}") from None
