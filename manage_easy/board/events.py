"""Document-level pointer event bus the presentation layer feeds."""
from typing import Callable, Dict, List

from manage_easy.board.models import Point

POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"

Handler = Callable[[Point], None]


class PointerEvents:
    def __init__(self):
        self._listeners: Dict[str, List[Handler]] = {POINTER_MOVE: [], POINTER_UP: []}

    def add_listener(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register handler; returns a callable that removes it (safe to call twice)."""
        if event not in self._listeners:
            raise ValueError(f"Unknown pointer event: {event}")
        self._listeners[event].append(handler)

        def remove():
            if handler in self._listeners[event]:
                self._listeners[event].remove(handler)

        return remove

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def dispatch(self, event: str, point: Point):
        # Copy: a handler may detach itself (pointer up ends the gesture)
        for handler in list(self._listeners.get(event, [])):
            handler(point)

    def move(self, x: float, y: float):
        self.dispatch(POINTER_MOVE, Point(x, y))

    def up(self, x: float, y: float):
        self.dispatch(POINTER_UP, Point(x, y))
