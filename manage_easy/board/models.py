from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from manage_easy.board.ordering import sort_key


class Lane(str, Enum):
    CREATED = "CREATED"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


# Column order on the board
LANES: Tuple[Lane, ...] = (Lane.CREATED, Lane.TODO, Lane.IN_PROGRESS, Lane.DONE)


class WorkKind(str, Enum):
    TASK = "TASK"
    BUG = "BUG"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class LaneRegion:
    """Screen rectangle of a lane's scrollable card container."""
    lane: Lane
    left: float
    top: float
    right: float
    bottom: float
    scroll_top: float = 0.0

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom


@dataclass(frozen=True)
class WorkItem:
    id: str
    status: Lane
    order: Optional[int]
    kind: WorkKind = WorkKind.TASK
    title: str = ""
    description: str = ""
    tags: Tuple[str, ...] = ()
    idea_id: Optional[str] = None
    feature_id: Optional[str] = None
    archived: bool = False
    assignee_ids: Tuple[str, ...] = ()
    created_at: Any = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "WorkItem":
        return cls(
            id=data["id"],
            status=Lane(data.get("status") or Lane.CREATED.value),
            order=data.get("order"),
            kind=WorkKind(data.get("type") or WorkKind.TASK.value),
            title=data.get("title") or "",
            description=data.get("description") or "",
            tags=tuple(data.get("tags") or ()),
            idea_id=data.get("ideaId"),
            feature_id=data.get("featureId"),
            archived=bool(data.get("archived", False)),
            assignee_ids=tuple(data.get("assigneeIds") or ()),
            created_at=data.get("createdAt"),
        )

    def sort_key(self):
        return sort_key(self.order, self.created_at, self.id)

    def with_fields(self, **changes) -> "WorkItem":
        return replace(self, **changes)


@dataclass(frozen=True)
class DragState:
    active_item_id: str
    source_lane: Lane
    target_lane: Lane
    target_index: int
    # Set once a pointer move lands inside a lane; a release without it is a cancel
    target_established: bool = False


@dataclass(frozen=True)
class OptimisticOrder:
    lane: Lane
    items: Tuple[str, ...]


@dataclass(frozen=True)
class Draft:
    lane: Lane


@dataclass(frozen=True)
class WorkUpdate:
    item_id: str
    fields: Dict[str, Any]


@dataclass(frozen=True)
class LaneEntry:
    """One rendered slot in a lane: a card, the drop placeholder, or the draft."""
    key: str
    item: Optional[WorkItem] = None
    is_placeholder: bool = False
    is_draft: bool = False
    matches_filter: bool = True


@dataclass
class BoardFilter:
    feature_ids: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    def matches(self, item: WorkItem) -> bool:
        matches_feature = not self.feature_ids or item.feature_id in self.feature_ids
        matches_tags = not self.tags or any(tag in item.tags for tag in self.tags)
        return matches_feature and matches_tags

    @property
    def active_count(self) -> int:
        return len(self.feature_ids) + len(self.tags)
