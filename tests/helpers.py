"""Small builders shared by the test modules."""

import random

from domino.config import COMPUTER_ID, HUMAN_ID
from domino.game_engine import Rules, TurnController
from domino.game_manager import ActiveSession, GameManager
from domino.tiles import Tile, tile_from_id

PLAYERS = [
    {"player_id": "a", "display_name": "Alice"},
    {"player_id": "b", "display_name": "Bob"},
]


def tiles(ids: str) -> list[Tile]:
    """tiles("6-6 6-2") -> [Tile(6, 6), Tile(2, 6)]"""
    return [tile_from_id(part) for part in ids.split()]


def rules(**overrides) -> Rules:
    base = dict(spinner=False, spinner_immediate=False, scoring=True, doubles_count_double=True)
    base.update(overrides)
    return Rules(**base)


def make_game(hand_a: str, hand_b: str, boneyard: str = "", **rule_overrides) -> TurnController:
    """Alice/Bob game with fixed hands. The opening tile is already down when this returns."""
    return TurnController(PLAYERS, [tiles(hand_a), tiles(hand_b)], tiles(boneyard), rules(**rule_overrides))


def install_game(manager: GameManager, player_hand: str, computer_hand: str, boneyard: str = "",
                 **rule_overrides) -> str:
    infos = [
        {"player_id": HUMAN_ID, "display_name": "Ann"},
        {"player_id": COMPUTER_ID, "display_name": "Computer"},
    ]
    engine = TurnController(infos, [tiles(player_hand), tiles(computer_hand)], tiles(boneyard),
                            rules(**rule_overrides))
    game_id = manager._next_id()
    manager.sessions[game_id] = ActiveSession(
        game_id=game_id,
        player_infos=infos,
        rules=engine.rules,
        engine=engine,
        rng=random.Random(0),
    )
    return game_id
