"""
Computer opponent.
The move policy is a plain function; the pacing loop runs as an async background
task after each human action so the computer's moves arrive after a short delay.
"""

import asyncio
import logging

from domino.config import BOT_DELAY, COMPUTER_ID
from domino.game_engine import Move
from domino.game_manager import game_manager

logger = logging.getLogger(__name__)


def is_bot_player(player_id: str) -> bool:
    return player_id == COMPUTER_ID


def greedy_chooser(moves: list[Move], view: dict) -> Move:
    """Play the heaviest tile. Among equal pip sums the first listed move wins."""
    best = moves[0]
    for move in moves[1:]:
        if move.tile.pips > best.tile.pips:
            best = move
    return best


async def maybe_play_bot_turns(game_id: str, broadcast_fn, handle_game_over_fn, delay: float = BOT_DELAY):
    """
    If the current player is the computer, play its turn after a short delay.
    Keeps playing as long as the current player is the computer (it can be
    handed the turn back when the human passes).
    """
    while True:
        session = game_manager.get_session(game_id)
        if not session or session.engine.is_over:
            return

        current = session.engine.current_player
        if not is_bot_player(current.player_id):
            return  # It's a human's turn now

        await asyncio.sleep(delay)

        # Re-check state hasn't changed while we slept
        session = game_manager.get_session(game_id)
        if not session or session.engine.is_over:
            return
        current = session.engine.current_player
        if not is_bot_player(current.player_id):
            return

        result = game_manager.take_turn(game_id, current.player_id, greedy_chooser)
        logger.info(f"Bot {current.display_name} in {game_id}: {result}")
        if not result.get("success"):
            return

        if broadcast_fn:
            await broadcast_fn(game_id)

        if result.get("game_over"):
            if handle_game_over_fn:
                await handle_game_over_fn(game_id)
            return

        # Loop to check if the computer moves again
