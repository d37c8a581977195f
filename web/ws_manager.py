"""
WebSocket connections per game. Every message is {"type": ..., "data": ...}.
"""

import json
import logging
from typing import Callable, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WSManager:
    def __init__(self):
        # game_id -> {viewer_id -> WebSocket}
        self.connections: dict[str, dict[str, WebSocket]] = {}

    async def connect(self, game_id: str, viewer_id: str, ws: WebSocket):
        await ws.accept()
        self.connections.setdefault(game_id, {})[viewer_id] = ws
        logger.info(f"WS connected: game={game_id}, viewer={viewer_id}")

    def disconnect(self, game_id: str, viewer_id: str):
        viewers = self.connections.get(game_id)
        if viewers is None:
            return
        viewers.pop(viewer_id, None)
        if not viewers:
            del self.connections[game_id]
        logger.info(f"WS disconnected: game={game_id}, viewer={viewer_id}")

    def viewer_count(self, game_id: str) -> int:
        return len(self.connections.get(game_id, {}))

    async def _send(self, game_id: str, viewer_id: str, ws: WebSocket, event_type: str, data: dict):
        try:
            await ws.send_text(json.dumps({"type": event_type, "data": data}))
        except Exception as e:
            logger.error(f"WS send error to {viewer_id} in {game_id}: {e}")
            self.disconnect(game_id, viewer_id)

    async def broadcast_game_state(self, game_id: str, game_state_fn: Callable[[str], Optional[dict]]):
        """Send each viewer the state as they are allowed to see it."""
        for viewer_id, ws in list(self.connections.get(game_id, {}).items()):
            state = game_state_fn(viewer_id)
            if state:
                await self._send(game_id, viewer_id, ws, "game_state", state)

    async def broadcast_event(self, game_id: str, event_type: str, data: dict):
        for viewer_id, ws in list(self.connections.get(game_id, {}).items()):
            await self._send(game_id, viewer_id, ws, event_type, data)

    def cleanup_game(self, game_id: str):
        self.connections.pop(game_id, None)


ws_manager = WSManager()
