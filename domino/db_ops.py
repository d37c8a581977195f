"""
Database operations for saved games and round results.
"""

import logging
from typing import Optional

from sqlalchemy import select, func
from domino.models import async_session_factory, GameResult, SavedGame

logger = logging.getLogger(__name__)


async def save_snapshot(game_id: str, snapshot: dict) -> int:
    """Store a game snapshot. Returns the save id."""
    async with async_session_factory() as session:
        saved = SavedGame(game_id=game_id, snapshot=snapshot)
        session.add(saved)
        await session.commit()
        logger.info(f"Saved snapshot {saved.id} for {game_id}")
        return saved.id


async def load_snapshot(save_id: int) -> Optional[dict]:
    async with async_session_factory() as session:
        saved = await session.get(SavedGame, save_id)
        return saved.snapshot if saved else None


async def save_game_result(result: dict):
    """
    Save one finished round.
    result: the dict returned by GameManager.handle_game_over
    """
    async with async_session_factory() as session:
        session.add(GameResult(
            game_id=result["game_id"],
            round_number=result.get("round_number", 1),
            winner_id=result.get("winner_id"),
            winner_name=result.get("winner_name"),
            is_blocked=result.get("is_blocked", False),
            pip_totals=result.get("pip_totals"),
            scores=result.get("scores"),
        ))
        await session.commit()
        logger.info(f"Saved result for {result['game_id']} round {result.get('round_number', 1)}")


async def get_leaderboard() -> list[dict]:
    """
    Wins per player name, most first. Tied blocked games are listed as "Tie".
    Returns list of {"display_name": str, "wins": int, "is_tie": bool}.
    """
    async with async_session_factory() as session:
        result = await session.execute(
            select(
                GameResult.winner_name,
                func.count().label("wins"),
            )
            .group_by(GameResult.winner_name)
            .order_by(func.count().desc())
        )
        rows = result.all()

    leaderboard = []
    for winner_name, wins in rows:
        leaderboard.append({
            "display_name": winner_name if winner_name is not None else "Tie",
            "wins": wins,
            "is_tie": winner_name is None,
        })

    # Sort by wins descending, ties last among equals
    leaderboard.sort(key=lambda x: (-x["wins"], x["is_tie"], x["display_name"]))
    return leaderboard
