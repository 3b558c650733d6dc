# rigsim/advisories.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional


class AdvisoryKind(Enum):
    INVALID_TOPOLOGY = "invalid_topology"
    OVERLOAD = "overload"
    NEAR_CAPACITY = "near_capacity"
    LOW_SAFETY_FACTOR = "low_safety_factor"
    STEEP_ANGLE = "steep_angle"
    CRITICAL_ANGLE = "critical_angle"
    DEFLECTION = "deflection"
    VISIBLE_SAG = "visible_sag"


@dataclass(frozen=True)
class Advisory:
    """A non-fatal finding attached to an otherwise valid result."""
    kind: AdvisoryKind
    message: str
    subject_id: Optional[str] = None

    def __str__(self) -> str:
        return self.message


def messages(advisories: Iterable[Advisory]) -> List[str]:
    return [a.message for a in advisories]


def of_kind(advisories: Iterable[Advisory], kind: AdvisoryKind) -> List[Advisory]:
    return [a for a in advisories if a.kind is kind]
