"""Case-scoped WebSocket rooms used to push verdict and argument events."""
from typing import Any, Dict, Set

from fastapi import WebSocket

from .logger import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = {}

    def join(self, case_id: str, websocket: WebSocket):
        self.rooms.setdefault(case_id, set()).add(websocket)
        logger.info("Client joined case room", case_id=case_id)

    def leave(self, case_id: str, websocket: WebSocket):
        members = self.rooms.get(case_id)
        if not members:
            return
        members.discard(websocket)
        if not members:
            del self.rooms[case_id]
        logger.info("Client left case room", case_id=case_id)

    def disconnect(self, websocket: WebSocket):
        for case_id in [cid for cid, members in self.rooms.items() if websocket in members]:
            self.leave(case_id, websocket)

    def room_size(self, case_id: str) -> int:
        return len(self.rooms.get(case_id, ()))

    async def broadcast(self, case_id: str, event: str, data: Any) -> int:
        """Send ``event`` to every client in the case room; returns deliveries."""
        message = {"event": event, "caseId": case_id, "data": data}
        delivered = 0
        for websocket in list(self.rooms.get(case_id, ())):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping client that failed to receive '{event}': {e}", case_id=case_id)
                self.leave(case_id, websocket)
        return delivered
