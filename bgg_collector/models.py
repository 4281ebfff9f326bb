"""
Shared data models for the BGG game collector.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Game:
    """One board game record. Zero values mean unknown."""
    id: int
    title: str = ""
    rank: int = 0
    players: int = 0
    duration: int = 0
    age: int = 0
    weight: float = 0.0

    def as_row(self) -> Tuple:
        """Column values in store order."""
        return (self.id, self.title, self.rank, self.players, self.duration, self.age, self.weight)

    def describe(self) -> str:
        return (
            f"id: {self.id}, title: {self.title}, rank: {self.rank}, duration: {self.duration}, "
            f"age: {self.age}, players: {self.players}, weight: {self.weight:.2f}"
        )


@dataclass(frozen=True)
class Failure:
    """A page or game that produced no result, with the error that stopped it."""
    identifier: str
    error: Exception

    @property
    def kind(self) -> str:
        return getattr(self.error, "kind", "unexpected")


class PipelineState(Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    EXTRACTING = "extracting"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class PipelineResult:
    """Outcome of a collector run."""
    records: List[Game] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    identifiers_discovered: int = 0
    pages_scanned: int = 0

    def failure_counts(self) -> Dict[str, int]:
        return dict(Counter(failure.kind for failure in self.failures))

    def summary(self) -> str:
        counts = self.failure_counts()
        kinds = ", ".join(f"{kind}: {count}" for kind, count in sorted(counts.items()))
        text = (
            f"{len(self.records)} game(s) delivered from {self.identifiers_discovered} identifier(s) "
            f"on {self.pages_scanned} page(s); {len(self.failures)} failure(s)"
        )
        return f"{text} ({kinds})" if kinds else text
