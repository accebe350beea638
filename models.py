from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

Group = List[str]
Grouping = List[Group]
Pair = Tuple[str, str]


@dataclass(frozen=True)
class Component:
    items: Tuple[str, ...]

    @property
    def size(self) -> int:
        return len(self.items)


@dataclass
class GroupingRequest:
    items: List[str]
    pairs: List[Pair]
    num_groups: int
    allow_near: bool = False
    desired: int = 1


@dataclass
class PackResult:
    solutions: List[Grouping] = field(default_factory=list)
    attempts: int = 0
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return bool(self.solutions)


@dataclass
class GroupingOutcome:
    request: GroupingRequest
    groupings: List[Grouping]
    components: List[Component]
    capacities: List[int]
    attempts: int
    elapsed_sec: float
    solved_via: str = "backtracking"
