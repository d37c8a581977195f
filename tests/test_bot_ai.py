"""Tests for the computer's move policy and its pacing loop."""

import asyncio

from domino.bot_ai import greedy_chooser, is_bot_player, maybe_play_bot_turns
from domino.chain import Placement
from domino.config import COMPUTER_ID, HUMAN_ID
from domino.game_engine import Move
from domino.game_manager import game_manager
from domino.tiles import Tile


def _move(tile: Tile, side: str = "left") -> Move:
    return Move(tile, Placement(side, tile.left, tile.right, False))


class TestGreedyChooser:
    def test_heaviest_tile(self) -> None:
        moves = [_move(Tile(1, 2)), _move(Tile(6, 5)), _move(Tile(3, 3))]
        assert greedy_chooser(moves, {}).tile == Tile(5, 6)

    def test_ties_keep_list_order(self) -> None:
        moves = [_move(Tile(3, 3), "left"), _move(Tile(2, 4), "right"), _move(Tile(3, 3), "right")]
        assert greedy_chooser(moves, {}) == moves[0]

    def test_single_move(self) -> None:
        moves = [_move(Tile(0, 0))]
        assert greedy_chooser(moves, {}) is moves[0]


def test_is_bot_player() -> None:
    assert is_bot_player(COMPUTER_ID)
    assert not is_bot_player(HUMAN_ID)


class TestPacingLoop:
    def test_plays_until_human_turn(self, installed_game) -> None:
        game_id = installed_game("6-6 6-2", "3-4 6-5")
        broadcasts: list[str] = []
        finished: list[str] = []

        async def broadcast(gid):
            broadcasts.append(gid)

        async def over(gid):
            finished.append(gid)

        asyncio.run(maybe_play_bot_turns(game_id, broadcast, over, delay=0))

        engine = game_manager.get_session(game_id).engine
        assert engine.current_player.player_id == HUMAN_ID
        assert engine.get_player(COMPUTER_ID).hand == [Tile(3, 4)]
        assert broadcasts == [game_id]
        assert finished == []

    def test_reports_game_over(self, installed_game) -> None:
        game_id = installed_game("6-6 1-1", "6-5")
        finished: list[str] = []

        async def over(gid):
            finished.append(gid)

        asyncio.run(maybe_play_bot_turns(game_id, None, over, delay=0))

        engine = game_manager.get_session(game_id).engine
        assert engine.is_over
        assert engine.state.winner_id == COMPUTER_ID
        assert finished == [game_id]

    def test_nothing_to_do_on_human_turn(self, installed_game) -> None:
        # Computer opens with 6-6, so the human is to move
        game_id = installed_game("3-4 6-5", "6-6 6-2")
        asyncio.run(maybe_play_bot_turns(game_id, None, None, delay=0))
        assert game_manager.get_session(game_id).engine.current_player.player_id == HUMAN_ID

    def test_unknown_game(self) -> None:
        asyncio.run(maybe_play_bot_turns("missing", None, None, delay=0))

    def test_cancellable(self, installed_game) -> None:
        game_id = installed_game("6-6 6-2", "3-4 6-5")

        async def scenario():
            task = asyncio.create_task(maybe_play_bot_turns(game_id, None, None, delay=30))
            game_manager.set_bot_task(game_id, task)
            await asyncio.sleep(0)
            game_manager.close_game(game_id)
            try:
                await task
            except asyncio.CancelledError:
                pass
            return task

        task = asyncio.run(scenario())
        assert task.cancelled()
