"""Board session: drag-and-drop reordering with optimistic lane order.

One ``BoardSession`` backs one board view. A gesture moves the session from
``IDLE`` to ``DRAGGING``; pointer moves retarget the drop slot, and the release
publishes an optimistic lane order, then reconciles it with the store through
concurrent ``update_work`` calls. The optimistic order is cleared once every
write has settled, whether the writes succeeded or not.
"""
import asyncio
import logging
from contextlib import ExitStack
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from manage_easy.board.events import PointerEvents, POINTER_MOVE, POINTER_UP
from manage_easy.board.models import (
    Lane, LANES, WorkItem, WorkKind, Point, LaneRegion, DragState, OptimisticOrder,
    Draft, WorkUpdate, LaneEntry, BoardFilter,
)
from manage_easy.config.settings import Settings

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class BoardStateError(Exception):
    """Operation not allowed in the session's current state."""


@dataclass(frozen=True)
class ReconciliationPlan:
    overlay: OptimisticOrder
    updates: Tuple[WorkUpdate, ...]
    moved_item_id: str
    cross_lane: bool


def plan_reconciliation(target_items: List[WorkItem], dragged: WorkItem, target_index: int,
                        source_lane: Lane, target_lane: Lane) -> ReconciliationPlan:
    """Splice ``dragged`` into the target lane and list the writes that persist it.

    Only items whose new index differs from their known ``order`` are written.
    The moved item also carries the new status when it changes lanes, and no
    other item ever gets a status write.
    """
    items = [item for item in target_items if item.id != dragged.id]
    items.insert(min(max(target_index, 0), len(items)), dragged)

    cross_lane = source_lane != target_lane
    updates = []
    for index, item in enumerate(items):
        if item.id == dragged.id and cross_lane:
            updates.append(WorkUpdate(item.id, {"status": target_lane.value, "order": index}))
        elif item.order != index:
            updates.append(WorkUpdate(item.id, {"order": index}))

    return ReconciliationPlan(
        overlay=OptimisticOrder(lane=target_lane, items=tuple(item.id for item in items)),
        updates=tuple(updates),
        moved_item_id=dragged.id,
        cross_lane=cross_lane,
    )


def _log_notification(severity: str, message: str):
    level = logging.ERROR if severity == "error" else logging.INFO
    logger.log(level, message)


class BoardSession:
    def __init__(self, store, idea_id: str = None, feature_id: str = None, owner_id: str = None,
                 creator_name: str = "", events: PointerEvents = None, notify: Notifier = None,
                 card_height: int = None, card_gap: int = None):
        self.store = store
        self.idea_id = idea_id
        self.feature_id = feature_id
        self.owner_id = owner_id
        self.creator_name = creator_name
        self.events = events or PointerEvents()
        self.notify = notify or _log_notification
        self.card_height = card_height if card_height is not None else Settings.CARD_HEIGHT
        self.card_gap = card_gap if card_gap is not None else Settings.CARD_GAP
        self.filter = BoardFilter()

        self.drag_state: Optional[DragState] = None
        self.drag_position: Optional[Point] = None
        # One overlay per reconciliation still in flight, oldest first
        self._overlays: List[OptimisticOrder] = []
        self.draft: Optional[Draft] = None
        self.focus_item_id: Optional[str] = None

        self._items: Dict[str, WorkItem] = {}
        self._regions: Dict[Lane, LaneRegion] = {}
        self._lane_counts: Dict[Lane, int] = {}
        self._gesture_handlers: Optional[ExitStack] = None
        self._pending: Set[asyncio.Task] = set()
        self._draft_committing = False
        self._closed = False

    @property
    def state(self) -> GestureState:
        return GestureState.DRAGGING if self.drag_state is not None else GestureState.IDLE

    @property
    def optimistic_order(self) -> Optional[OptimisticOrder]:
        """Most recently published overlay, or None once every reconciliation has settled."""
        return self._overlays[-1] if self._overlays else None

    # -- snapshot -----------------------------------------------------------

    def set_items(self, works: Iterable[Union[WorkItem, Dict[str, Any]]]):
        """Replace the local read-only view of the store."""
        items = {}
        for work in works:
            item = work if isinstance(work, WorkItem) else WorkItem.from_json(work)
            items[item.id] = item
        self._items = items
        if self.drag_state is not None:
            if self.drag_state.active_item_id not in self._items:
                logger.info("Dragged item disappeared from the board; cancelling gesture")
                self._discard_gesture()
            else:
                self._lane_counts = self._counts_excluding(self.drag_state.active_item_id)

    def _list_kwargs(self) -> Dict[str, Any]:
        return {"feature_id": self.feature_id, "idea_id": self.idea_id, "owner_id": self.owner_id}

    async def refresh(self):
        works = await asyncio.to_thread(self.store.list_works, **self._list_kwargs())
        self.set_items(works)

    def get_item(self, item_id: str) -> Optional[WorkItem]:
        return self._items.get(item_id)

    # -- geometry -----------------------------------------------------------

    def set_lane_region(self, lane: Lane, left: float, top: float, right: float, bottom: float,
                        scroll_top: float = 0.0):
        self._regions[Lane(lane)] = LaneRegion(Lane(lane), left, top, right, bottom, scroll_top)

    def set_lane_scroll(self, lane: Lane, scroll_top: float):
        region = self._regions.get(Lane(lane))
        if region is not None:
            self._regions[region.lane] = replace(region, scroll_top=scroll_top)

    # -- views --------------------------------------------------------------

    def _visible_items(self) -> List[WorkItem]:
        positions = {}
        for overlay in self._overlays:
            # Newer overlays win for items they both place
            positions.update((item_id, (overlay.lane, i)) for i, item_id in enumerate(overlay.items))
        visible = []
        for item in self._items.values():
            if item.archived:
                continue
            if item.id in positions:
                lane, index = positions[item.id]
                item = item.with_fields(status=lane, order=index)
            visible.append(item)
        return visible

    def base_lane_items(self, lane: Lane) -> List[WorkItem]:
        """Lane members in display order, optimistic order applied."""
        lane = Lane(lane)
        return sorted((i for i in self._visible_items() if i.status == lane), key=WorkItem.sort_key)

    def get_lane_items(self, lane: Lane) -> List[LaneEntry]:
        """What the presentation layer renders for ``lane``."""
        lane = Lane(lane)
        entries = [
            LaneEntry(key=f"work-{item.id}-{lane.value}", item=item,
                      matches_filter=self.filter.matches(item))
            for item in self.base_lane_items(lane)
        ]

        drag = self.drag_state
        if drag is not None and lane in (drag.source_lane, drag.target_lane):
            entries = [e for e in entries if e.item.id != drag.active_item_id]
            if drag.target_lane == lane:
                entries.insert(min(drag.target_index, len(entries)),
                               LaneEntry(key="placeholder", is_placeholder=True))

        if self.draft is not None and self.draft.lane == lane:
            entries.append(LaneEntry(key="draft-work", is_draft=True))
        return entries

    def lane_count(self, lane: Lane) -> int:
        lane = Lane(lane)
        return sum(1 for item in self._visible_items() if item.status == lane)

    def all_tags(self) -> List[str]:
        return sorted({tag for item in self._visible_items() for tag in item.tags})

    @property
    def dragged_item(self) -> Optional[WorkItem]:
        """Item rendered in the floating overlay."""
        if self.drag_state is None:
            return None
        return self._items.get(self.drag_state.active_item_id)

    # -- gesture ------------------------------------------------------------

    def _counts_excluding(self, item_id: str) -> Dict[Lane, int]:
        counts = {lane: 0 for lane in LANES}
        for item in self._visible_items():
            if item.id != item_id:
                counts[item.status] += 1
        return counts

    def on_card_pointer_down(self, item_id: str, x: float, y: float) -> Optional[DragState]:
        """Pointer pressed on a card; starts a gesture unless one is already open."""
        if self.state is GestureState.DRAGGING or self._closed:
            return None
        item = self._items.get(item_id)
        if item is None:
            return None
        return self.begin_drag(item, Point(x, y))

    def begin_drag(self, item: WorkItem, pointer: Point) -> DragState:
        if self._closed:
            raise BoardStateError("Board session is closed")
        if self.drag_state is not None:
            raise BoardStateError("A drag gesture is already in progress")

        # Optimistic view wins over the raw snapshot
        current = next((i for i in self._visible_items() if i.id == item.id), item)
        lane_ids = [i.id for i in self.base_lane_items(current.status)]
        self.drag_state = DragState(
            active_item_id=current.id,
            source_lane=current.status,
            target_lane=current.status,
            target_index=lane_ids.index(current.id) if current.id in lane_ids else len(lane_ids),
        )
        self.drag_position = pointer
        self._lane_counts = self._counts_excluding(current.id)

        handlers = ExitStack()
        handlers.callback(self.events.add_listener(POINTER_MOVE, self._on_pointer_move))
        handlers.callback(self.events.add_listener(POINTER_UP, self._on_pointer_up))
        self._gesture_handlers = handlers
        logger.debug(f"Drag started for {current.id} in {current.status.value}")
        return self.drag_state

    def update_drag_target(self, pointer: Point) -> Optional[DragState]:
        """Retarget the drop slot; returns the new state, or None when nothing changed."""
        drag = self.drag_state
        if drag is None:
            return None
        self.drag_position = pointer

        region = next((r for r in self._regions.values() if r.contains(pointer)), None)
        if region is None:
            # Outside every lane the last target sticks
            return None

        slot = self.card_height + self.card_gap
        relative_y = pointer.y - region.top + region.scroll_top
        index = max(0, int(relative_y // slot))
        index = min(index, self._lane_counts.get(region.lane, 0))

        if drag.target_established and drag.target_lane == region.lane and drag.target_index == index:
            return None
        self.drag_state = replace(drag, target_lane=region.lane, target_index=index, target_established=True)
        return self.drag_state

    def _detach_gesture_handlers(self):
        handlers, self._gesture_handlers = self._gesture_handlers, None
        if handlers is not None:
            handlers.close()

    def _discard_gesture(self):
        self.drag_state = None
        self.drag_position = None
        self._lane_counts = {}
        self._detach_gesture_handlers()

    def release(self) -> Optional[ReconciliationPlan]:
        """Synchronous half of ``end_drag``: publish the optimistic order and drop the drag state."""
        drag = self.drag_state
        if drag is None:
            return None
        dragged = next((i for i in self._visible_items() if i.id == drag.active_item_id), None)
        if not drag.target_established or dragged is None:
            self._discard_gesture()
            return None

        target_items = self.base_lane_items(drag.target_lane)
        plan = plan_reconciliation(target_items, dragged, drag.target_index, drag.source_lane, drag.target_lane)
        self._overlays.append(plan.overlay)
        self._discard_gesture()
        return plan

    async def end_drag(self) -> bool:
        """Finish the gesture; returns False when it was a cancel."""
        plan = self.release()
        if plan is None:
            return False
        await self.reconcile(plan)
        return True

    async def _write(self, update: WorkUpdate):
        fields = dict(update.fields)
        if self.owner_id:
            fields["ownerId"] = self.owner_id
        await asyncio.to_thread(self.store.update_work, update.item_id, fields)

        item = self._items.get(update.item_id)
        if item is not None:
            changes = {"order": update.fields["order"]}
            if "status" in update.fields:
                changes["status"] = Lane(update.fields["status"])
            self._items[item.id] = item.with_fields(**changes)

    async def reconcile(self, plan: ReconciliationPlan):
        failures = []
        try:
            results = await asyncio.gather(*(self._write(u) for u in plan.updates), return_exceptions=True)
            failures = [r for r in results if isinstance(r, Exception)]
            if failures:
                for failure in failures:
                    logger.error(f"Reorder write failed: {failure}")
                self.notify("error", f"Error: {failures[0]}")
            elif plan.cross_lane:
                self.notify("success", "Item moved successfully!")
        finally:
            # Only this plan's overlay; later gestures keep theirs
            self._overlays = [o for o in self._overlays if o is not plan.overlay]

        if failures:
            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"Refresh after failed reorder failed: {e}")

    def _on_pointer_move(self, point: Point):
        self.update_drag_target(point)

    def _on_pointer_up(self, point: Point):
        self.drag_position = point
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._discard_gesture()
            raise BoardStateError("Pointer release needs a running event loop to reconcile")
        plan = self.release()
        if plan is None:
            return
        task = loop.create_task(self.reconcile(plan))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_settled(self):
        """Wait for every reconciliation started from pointer events."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self):
        """Tear down the view: drop any open gesture; issued writes still run to completion."""
        self._discard_gesture()
        self.draft = None
        self._closed = True

    # -- drafts -------------------------------------------------------------

    def on_lane_double_click(self, lane: Lane) -> Optional[Draft]:
        """Open the board's single draft at the end of ``lane``."""
        lane = Lane(lane)
        if self.draft is not None or self.drag_state is not None or self._closed:
            return None

        untitled = next((i for i in self.base_lane_items(lane) if not i.title.strip()), None)
        if untitled is not None:
            self.focus_item_id = untitled.id
            return None

        self.draft = Draft(lane=lane)
        return self.draft

    def cancel_draft(self):
        self.draft = None

    async def commit_draft(self, title: str) -> Optional[str]:
        """Create the draft's work item; a blank title cancels instead."""
        draft = self.draft
        if draft is None or self._draft_committing:
            return None
        title = (title or "").strip()
        if not title:
            self.cancel_draft()
            return None

        data = {
            "title": title,
            "description": "",
            "status": draft.lane.value,
            "type": WorkKind.TASK.value,
            "ideaId": self.idea_id,
            "featureId": self.feature_id,
            "creatorName": self.creator_name,
            "ownerId": self.owner_id,
        }
        self._draft_committing = True
        try:
            response = await asyncio.to_thread(self.store.create_work, {k: v for k, v in data.items() if v is not None})
        except Exception as e:
            logger.error(f"Creating draft work failed: {e}")
            self.notify("error", f"Error: {e}")
            return None
        finally:
            self._draft_committing = False

        if self.draft is draft:
            self.draft = None
        try:
            await self.refresh()
        except Exception as e:
            logger.error(f"Refresh after create failed: {e}")
        return (response or {}).get("id")
