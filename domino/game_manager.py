"""
Manages active games and their lifecycle.
Acts as the bridge between the web server and the game engine: engine
exceptions for rejected actions come back as {"success": False, "error": ...}.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Optional

from domino.config import COMPUTER_ID, HUMAN_ID
from domino.errors import AmbiguousPlacement, GameError
from domino.game_engine import MoveChooser, Rules, TurnController, TurnResult

logger = logging.getLogger(__name__)


@dataclass
class ActiveSession:
    game_id: str
    player_infos: list[dict]
    rules: Rules
    engine: TurnController
    rng: random.Random
    round_number: int = 1
    results: list[dict] = field(default_factory=list)  # Results of each finished round
    match_scores: dict[str, int] = field(default_factory=dict)  # Points from finished rounds
    result_recorded: bool = False
    bot_task: Optional[asyncio.Task] = None


def _error(e: GameError) -> dict:
    result = {"success": False, "error": str(e), "code": e.code, "game_over": False}
    if isinstance(e, AmbiguousPlacement):
        result["options"] = e.options
    return result


def _ok(result: TurnResult, for_player_id: Optional[str] = None) -> dict:
    reveal = for_player_id is None or result.player_id == for_player_id
    return {"success": True, "error": None, **result.to_dict(reveal_drawn=reveal)}


class GameManager:
    """Singleton managing all games in progress."""

    def __init__(self):
        self.sessions: dict[str, ActiveSession] = {}  # game_id -> ActiveSession
        self._id_counter = 0

    def _next_id(self) -> str:
        self._id_counter += 1
        return f"game_{int(time.time())}_{self._id_counter}"

    def create_game(self, player_name: str = "Player", seed: Optional[int] = None,
                    rules: Optional[Rules] = None) -> str:
        """Start a new human-vs-computer game. Returns the game_id."""
        player_infos = [
            {"player_id": HUMAN_ID, "display_name": player_name},
            {"player_id": COMPUTER_ID, "display_name": "Computer"},
        ]
        rules = rules or Rules()
        rng = random.Random(seed)
        engine = TurnController.new_game(player_infos, rng=rng, rules=rules)

        game_id = self._next_id()
        self.sessions[game_id] = ActiveSession(
            game_id=game_id,
            player_infos=player_infos,
            rules=rules,
            engine=engine,
            rng=rng,
        )
        logger.info(f"Game created: {game_id} (seed={seed}, rules={rules})")
        return game_id

    def restore_game(self, snapshot: dict) -> str:
        """Resume a saved game under a new game_id."""
        engine = TurnController.from_snapshot(snapshot)
        player_infos = [
            {"player_id": p.player_id, "display_name": p.display_name}
            for p in engine.state.players
        ]
        game_id = self._next_id()
        self.sessions[game_id] = ActiveSession(
            game_id=game_id,
            player_infos=player_infos,
            rules=engine.rules,
            engine=engine,
            rng=random.Random(),
            round_number=snapshot.get("round_number", 1),
            match_scores=dict(snapshot.get("match_scores", {})),
        )
        session = self.sessions[game_id]
        recorded = snapshot.get("recorded_result")
        if recorded is not None and engine.is_over:
            # The round was already stored before saving; do not record it again
            session.results.append(dict(recorded, game_id=game_id))
            for p in engine.state.players:
                session.match_scores[p.player_id] = session.match_scores.get(p.player_id, 0) + p.score
            session.result_recorded = True
        logger.info(f"Game restored: {game_id}")
        return game_id

    def snapshot(self, game_id: str) -> Optional[dict]:
        session = self.sessions.get(game_id)
        if not session:
            return None
        data = session.engine.snapshot()
        data["round_number"] = session.round_number
        # Points from earlier rounds only; the current round's are in the engine snapshot
        earlier = dict(session.match_scores)
        if session.result_recorded:
            for p in session.engine.state.players:
                earlier[p.player_id] = earlier.get(p.player_id, 0) - p.score
            data["recorded_result"] = session.results[-1]
        data["match_scores"] = earlier
        return data

    def play_move(self, game_id: str, player_id: str, tile, side: Optional[str]) -> dict:
        """
        Play a tile move.
        Returns the turn result dict.
        """
        session = self.sessions.get(game_id)
        if not session:
            return {"success": False, "error": "Game not found"}

        try:
            result = session.engine.play(player_id, tile, side)
        except GameError as e:
            return _error(e)
        return _ok(result)

    def draw_tile(self, game_id: str, player_id: str) -> dict:
        """Draw until playable, or pass once the boneyard is empty."""
        session = self.sessions.get(game_id)
        if not session:
            return {"success": False, "error": "Game not found"}

        try:
            result = session.engine.draw(player_id)
        except GameError as e:
            return _error(e)
        return _ok(result)

    def take_turn(self, game_id: str, player_id: str, chooser: MoveChooser) -> dict:
        """Let ``chooser`` play a whole turn for the player. Drawn tiles stay hidden."""
        session = self.sessions.get(game_id)
        if not session:
            return {"success": False, "error": "Game not found"}

        try:
            result = session.engine.take_turn(player_id, chooser)
        except GameError as e:
            return _error(e)
        return _ok(result, for_player_id=HUMAN_ID)

    def get_game_state(self, game_id: str, for_player_id: Optional[str] = None) -> Optional[dict]:
        """Get the current game state."""
        session = self.sessions.get(game_id)
        if not session:
            return None

        state = session.engine.to_dict(for_player_id=for_player_id)
        state["game_id"] = game_id
        state["round_number"] = session.round_number
        state["match_scores"] = self._match_totals(session)
        return state

    def get_valid_moves(self, game_id: str, player_id: str) -> list[dict]:
        """Get valid moves for a player."""
        session = self.sessions.get(game_id)
        if not session:
            return []

        return [m.to_dict() for m in session.engine.legal_moves(player_id)]

    def handle_game_over(self, game_id: str) -> Optional[dict]:
        """
        Record the finished round once.
        Returns the round result, or None if the game is unknown or still running.
        """
        session = self.sessions.get(game_id)
        if not session or not session.engine.is_over:
            return None
        if session.result_recorded:
            return session.results[-1]

        engine = session.engine
        winner_name = None
        if engine.state.winner_id is not None:
            winner_name = engine.get_player(engine.state.winner_id).display_name
        round_result = {
            "game_id": game_id,
            "round_number": session.round_number,
            "winner_id": engine.state.winner_id,
            "winner_name": winner_name,
            "is_blocked": engine.state.is_blocked,
            "pip_totals": {p.player_id: p.pip_total() for p in engine.state.players},
            "scores": {p.player_id: p.score for p in engine.state.players},
            "players": {p.player_id: p.display_name for p in engine.state.players},
        }
        session.results.append(round_result)
        for p in engine.state.players:
            session.match_scores[p.player_id] = session.match_scores.get(p.player_id, 0) + p.score
        session.result_recorded = True
        logger.info(f"Round over in {game_id}: {round_result}")
        return round_result

    def next_round(self, game_id: str) -> tuple[bool, str]:
        """Deal a fresh round in the same session once the current one is finished."""
        session = self.sessions.get(game_id)
        if not session:
            return False, "Game not found"
        if not session.engine.is_over:
            return False, "Current round is still in progress"

        self.handle_game_over(game_id)
        self.cancel_bot_task(game_id)
        session.round_number += 1
        session.engine = TurnController.new_game(session.player_infos, rng=session.rng, rules=session.rules)
        session.result_recorded = False
        return True, f"Round {session.round_number} started"

    def set_bot_task(self, game_id: str, task: asyncio.Task):
        """Track the computer's pacing task, replacing any previous one."""
        session = self.sessions.get(game_id)
        if not session:
            task.cancel()
            return
        self.cancel_bot_task(game_id)
        session.bot_task = task

    def cancel_bot_task(self, game_id: str):
        session = self.sessions.get(game_id)
        if session and session.bot_task and not session.bot_task.done():
            session.bot_task.cancel()

    def close_game(self, game_id: str) -> bool:
        """Drop a game and stop its computer player. Returns True if it existed."""
        if game_id not in self.sessions:
            return False
        self.cancel_bot_task(game_id)
        del self.sessions[game_id]
        logger.info(f"Game closed: {game_id}")
        return True

    def get_session(self, game_id: str) -> Optional[ActiveSession]:
        return self.sessions.get(game_id)

    @staticmethod
    def _match_totals(session: ActiveSession) -> dict[str, int]:
        totals = dict(session.match_scores)
        if not session.result_recorded:
            for p in session.engine.state.players:
                totals[p.player_id] = totals.get(p.player_id, 0) + p.score
        return totals


# Singleton instance
game_manager = GameManager()
