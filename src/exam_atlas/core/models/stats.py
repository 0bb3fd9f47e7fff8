"""Per-topic mastery counters."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TopicStats:
    """
    Marks earned against marks available for one topic.

    Attributes:
        correct: Marks awarded across all attempts
        total: Marks available across all attempts
    """
    correct: int = 0
    total: int = 0

    @property
    def mastery(self) -> int:
        """Whole-number percentage, 0 when nothing has been attempted."""
        if self.total <= 0:
            return 0
        return round(self.correct / self.total * 100)

    def add(self, earned: int, possible: int) -> TopicStats:
        return TopicStats(self.correct + earned, self.total + possible)

    def to_dict(self) -> dict:
        return {"correct": self.correct, "total": self.total}

    @classmethod
    def from_dict(cls, data: dict) -> TopicStats:
        return cls(int(data.get("correct", 0)), int(data.get("total", 0)))
