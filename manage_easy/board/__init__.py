from manage_easy.board.models import Lane, LANES, WorkItem, WorkKind, BoardFilter
from manage_easy.board.session import BoardSession, BoardStateError, GestureState, plan_reconciliation

__all__ = [
    "Lane", "LANES", "WorkItem", "WorkKind", "BoardFilter",
    "BoardSession", "BoardStateError", "GestureState", "plan_reconciliation",
]
