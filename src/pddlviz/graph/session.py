from dataclasses import dataclass, field
from typing import Dict


@dataclass
class LayoutSession:
    """
    Id allocator threaded through one or more conversions.

    Counters only keep generated ids unique; they never affect geometry, so a
    fresh session reproduces identical output for identical input.
    """
    action_groups: int = 0
    problem_groups: int = 0
    _counters: Dict[str, int] = field(default_factory=dict)

    def next_action_group(self) -> int:
        n = self.action_groups
        self.action_groups += 1
        return n

    def next_problem_group(self) -> int:
        n = self.problem_groups
        self.problem_groups += 1
        return n

    def next(self, key: str) -> int:
        n = self._counters.get(key, 0)
        self._counters[key] = n + 1
        return n

    def reset(self) -> None:
        self.action_groups = 0
        self.problem_groups = 0
        self._counters.clear()
