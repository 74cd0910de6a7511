"""Explicit ID allocation for sketches, points, entities and constraints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass
class IdAllocator:
    """Independent monotonically increasing counters.

    Each :class:`~sketchcore.sketch.SketchModel` owns one allocator, so IDs
    never leak between sketches or between tests.
    """

    next_sketch: int = 0
    next_point: int = 0
    next_entity: int = 0
    next_constraint: int = 0

    def allocate_sketch_id(self) -> int:
        value = self.next_sketch
        self.next_sketch += 1
        return value

    def allocate_point_id(self) -> int:
        value = self.next_point
        self.next_point += 1
        return value

    def allocate_entity_id(self) -> int:
        value = self.next_entity
        self.next_entity += 1
        return value

    def allocate_constraint_id(self) -> int:
        value = self.next_constraint
        self.next_constraint += 1
        return value

    def reset(self) -> None:
        self.next_sketch = 0
        self.next_point = 0
        self.next_entity = 0
        self.next_constraint = 0

    def state(self) -> Dict[str, int]:
        return {
            "sketch": self.next_sketch,
            "point": self.next_point,
            "entity": self.next_entity,
            "constraint": self.next_constraint,
        }

    def copy(self) -> "IdAllocator":
        return IdAllocator(
            next_sketch=self.next_sketch,
            next_point=self.next_point,
            next_entity=self.next_entity,
            next_constraint=self.next_constraint,
        )


__all__ = ["IdAllocator"]
