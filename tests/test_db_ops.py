"""Tests for saved games and round results, against the temporary SQLite file from conftest."""

import asyncio
import uuid

from domino import db_ops
from domino.models import init_db
from helpers import make_game


def _run(coro):
    return asyncio.run(coro)


def setup_module(module) -> None:
    _run(init_db())


def test_snapshot_round_trip() -> None:
    snapshot = make_game("6-6 6-2", "3-4 6-5", "0-0").snapshot()
    save_id = _run(db_ops.save_snapshot("game_test", snapshot))
    assert isinstance(save_id, int)
    assert _run(db_ops.load_snapshot(save_id)) == snapshot


def test_missing_snapshot() -> None:
    assert _run(db_ops.load_snapshot(987654)) is None


def test_leaderboard_counts_wins() -> None:
    winner = f"Winner-{uuid.uuid4().hex[:8]}"
    for round_number in (1, 2):
        _run(db_ops.save_game_result({
            "game_id": "game_lb",
            "round_number": round_number,
            "winner_id": "player",
            "winner_name": winner,
            "is_blocked": False,
            "pip_totals": {"player": 0, "computer": 12},
            "scores": {"player": 15, "computer": 5},
        }))
    _run(db_ops.save_game_result({
        "game_id": "game_lb",
        "round_number": 3,
        "winner_id": None,
        "winner_name": None,
        "is_blocked": True,
    }))

    board = _run(db_ops.get_leaderboard())
    entry = next(e for e in board if e["display_name"] == winner)
    assert entry["wins"] == 2
    assert not entry["is_tie"]
    tie = next(e for e in board if e["is_tie"])
    assert tie["display_name"] == "Tie"
    assert tie["wins"] >= 1
    assert [e["wins"] for e in board] == sorted((e["wins"] for e in board), reverse=True)
