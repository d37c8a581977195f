"""
Domino rules engine: dealing, turns, drawing, blocking and scoring. No I/O.
Two players, standard double-six set (28 tiles), draw from the boneyard when stuck.
"""

import logging
import random
from dataclasses import asdict, dataclass, field, fields
from typing import Callable, Optional, Union

from domino import config
from domino.chain import CENTER, ChainEngine, PlacedTile, Placement
from domino.errors import (
    AmbiguousPlacement,
    DrawNotAllowed,
    GameOverError,
    IllegalPlacement,
    OutOfTurn,
    UnknownPlayerError,
    UnknownTileError,
)
from domino.scoring import ScoreRule
from domino.tiles import Tile, deal, pip_total, tile_from_id

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class Rules:
    spinner: bool = config.SPINNER
    spinner_immediate: bool = config.SPINNER_IMMEDIATE
    scoring: bool = config.SCORING
    doubles_count_double: bool = config.DOUBLES_COUNT_DOUBLE
    hand_size: int = config.HAND_SIZE

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(d: dict) -> "Rules":
        known = {f.name for f in fields(Rules)}
        return Rules(**{k: v for k, v in d.items() if k in known})


@dataclass(frozen=True)
class Move:
    tile: Tile
    placement: Placement

    @property
    def side(self) -> str:
        return self.placement.side

    def to_dict(self) -> dict:
        return {"tile": self.tile.to_dict(), **self.placement.to_dict()}

    def __repr__(self):
        return f"{self.tile}@{self.side}"


@dataclass
class TurnResult:
    """What happened during one action. No legal move and an empty boneyard show up as ``passed``."""
    player_id: str
    played: Optional[Move] = None
    drawn: list[Tile] = field(default_factory=list)
    passed: bool = False
    points: int = 0
    game_over: bool = False

    @property
    def drew_count(self) -> int:
        return len(self.drawn)

    def to_dict(self, reveal_drawn: bool = True) -> dict:
        return {
            "player_id": self.player_id,
            "played": self.played.to_dict() if self.played else None,
            "drawn": [t.to_dict() for t in self.drawn] if reveal_drawn else [],
            "drew_count": self.drew_count,
            "passed": self.passed,
            "points": self.points,
            "game_over": self.game_over,
        }


# Picks one of the legal moves; receives the chooser's own view of the game.
MoveChooser = Callable[[list[Move], dict], Move]


@dataclass
class PlayerState:
    player_id: str
    display_name: str
    hand: list[Tile] = field(default_factory=list)
    score: int = 0
    passed_last_turn: bool = False

    def tile_count(self) -> int:
        return len(self.hand)

    def pip_total(self) -> int:
        return pip_total(self.hand)

    def remove_tile(self, tile: Tile) -> bool:
        """Remove a tile from hand. Returns True if found and removed."""
        for i, t in enumerate(self.hand):
            if t == tile:
                self.hand.pop(i)
                return True
        return False


@dataclass
class GameState:
    players: list[PlayerState]
    chain: ChainEngine
    boneyard: list[Tile] = field(default_factory=list)
    current_player_index: int = 0
    starter_index: int = 0
    status: str = "waiting"  # waiting, active, finished
    winner_id: Optional[str] = None
    is_blocked: bool = False
    last_result: Optional[TurnResult] = None

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    def next_turn(self):
        """Advance to the next player."""
        self.current_player_index = (self.current_player_index + 1) % len(self.players)


def choose_starter(hand_a: list[Tile], hand_b: list[Tile]) -> tuple[int, Tile]:
    """
    Pick who opens and with which tile.
    The highest double in either hand (6-6 down to 0-0) opens. Without doubles, the
    highest pip sum opens; inside one hand the higher single half settles equal sums.
    Equal sums across the two hands go to hand A (index 0).
    """
    best: Optional[tuple[int, Tile]] = None
    for index, hand in enumerate((hand_a, hand_b)):
        for tile in hand:
            if tile.is_double() and (best is None or tile.left > best[1].left):
                best = (index, tile)
    if best is not None:
        return best

    heaviest = [max(hand, key=lambda t: (t.pips, t.right)) if hand else None for hand in (hand_a, hand_b)]
    a, b = heaviest
    if a is None and b is None:
        raise ValueError("Both hands are empty")
    if b is None or (a is not None and a.pips >= b.pips):
        return 0, a
    return 1, b


TileRef = Union[Tile, str, dict]


class TurnController:
    """Runs one two-player game: opening, turns, drawing, passing and the end."""

    def __init__(self, players: list[dict], hands: list[list[Tile]], boneyard: list[Tile],
                 rules: Optional[Rules] = None):
        """
        players: [{"player_id": str, "display_name": str}, ...] (exactly two)
        hands: one list of tiles per player, same order
        The opening tile is played straight away; the other player moves next.
        """
        self._build(players, hands, boneyard, rules)
        self._open()

    @classmethod
    def new_game(cls, players: list[dict], rng: Optional[random.Random] = None,
                 rules: Optional[Rules] = None) -> "TurnController":
        """Shuffle and deal with ``rng`` (a fresh unseeded Random if omitted)."""
        rules = rules or Rules()
        hand_a, hand_b, pile = deal(rng if rng is not None else random.Random(), rules.hand_size)
        return cls(players, [hand_a, hand_b], pile, rules)

    def _build(self, players, hands, boneyard, rules):
        if len(players) != 2 or len(hands) != 2:
            raise ValueError(f"Need exactly 2 players, got {len(players)}")

        everything = [t for hand in hands for t in hand] + list(boneyard)
        if len(set(everything)) != len(everything):
            raise ValueError("A tile appears more than once")

        self.rules = rules or Rules()
        self.score_rule = ScoreRule(doubles_count_double=self.rules.doubles_count_double)

        player_states = []
        for info, hand in zip(players, hands):
            player_id = str(info["player_id"])
            player_states.append(PlayerState(
                player_id=player_id,
                display_name=info.get("display_name") or player_id,
                hand=list(hand),
            ))
        if player_states[0].player_id == player_states[1].player_id:
            raise ValueError("Player ids must be unique")

        self.state = GameState(
            players=player_states,
            chain=ChainEngine(spinner=self.rules.spinner, spinner_immediate=self.rules.spinner_immediate),
            boneyard=list(boneyard),
        )

    def _open(self):
        a, b = self.state.players
        index, tile = choose_starter(a.hand, b.hand)
        starter = self.state.players[index]

        starter.remove_tile(tile)
        self.state.chain.start(tile)
        self.state.starter_index = index
        self.state.current_player_index = index
        self.state.status = "active"
        logger.info(f"{starter.display_name} opens with {tile}")

        opening = Move(tile=tile, placement=Placement(side=CENTER, inner=tile.left, outer=tile.right, flipped=False))
        self._after_play(starter, TurnResult(player_id=starter.player_id, played=opening))

    # --- queries ---

    @property
    def chain(self) -> ChainEngine:
        return self.state.chain

    @property
    def current_player(self) -> PlayerState:
        return self.state.current_player

    @property
    def is_over(self) -> bool:
        return self.state.status == "finished"

    def get_player(self, player_id: str) -> PlayerState:
        for p in self.state.players:
            if p.player_id == player_id:
                return p
        raise UnknownPlayerError(f"No player {player_id!r} in this game")

    def legal_moves(self, player_id: str) -> list[Move]:
        """Every (tile, side) the player could play right now, hand order then side order."""
        return self._moves_for(self.get_player(player_id))

    def _moves_for(self, player: PlayerState) -> list[Move]:
        moves = []
        for tile in player.hand:
            for placement in self.state.chain.legal_placements(tile):
                moves.append(Move(tile=tile, placement=placement))
        return moves

    # --- actions ---

    def play(self, player_id: str, tile: TileRef, side: Optional[str] = None) -> TurnResult:
        """
        Play a tile from the player's hand.
        Without ``side`` the tile must fit exactly one open end.
        """
        player = self._require_turn(player_id)
        tile = self._tile_in_hand(player, tile)

        if side is None:
            placements = self.state.chain.legal_placements(tile)
            if not placements:
                raise IllegalPlacement(f"Can't play {tile} here")
            if len(placements) > 1:
                options = [p.side for p in placements]
                raise AmbiguousPlacement(f"{tile} fits more than one end, choose a side", options)
            side = placements[0].side

        return self._apply(player, tile, side, TurnResult(player_id=player.player_id))

    def draw(self, player_id: str) -> TurnResult:
        """
        Draw for a player with nothing to play: one tile at a time until a playable tile
        turns up (the turn stays with them) or the boneyard runs out (the turn is passed).
        """
        player = self._require_turn(player_id)
        if self._moves_for(player):
            raise DrawNotAllowed("You have playable tiles, cannot draw")

        result = TurnResult(player_id=player.player_id)
        if self._draw_until_playable(player, result):
            self.state.last_result = result
            return result
        return self._pass(player, result)

    def take_turn(self, player_id: str, chooser: MoveChooser) -> TurnResult:
        """Play a whole turn for ``player_id``, letting ``chooser`` pick among the legal moves."""
        player = self._require_turn(player_id)
        result = TurnResult(player_id=player.player_id)

        moves = self._moves_for(player)
        if not moves:
            if not self._draw_until_playable(player, result):
                return self._pass(player, result)
            moves = self._moves_for(player)

        move = chooser(moves, self.to_dict(for_player_id=player.player_id))
        if move not in moves:
            raise IllegalPlacement(f"{move} is not a legal move")
        return self._apply(player, move.tile, move.side, result)

    # --- internals ---

    def _require_turn(self, player_id: str) -> PlayerState:
        player = self.get_player(player_id)
        if self.state.status != "active":
            raise GameOverError("Game is not active")
        if player.player_id != self.state.current_player.player_id:
            raise OutOfTurn("Not your turn")
        return player

    def _tile_in_hand(self, player: PlayerState, ref: TileRef) -> Tile:
        if isinstance(ref, Tile):
            tile = ref
        elif isinstance(ref, dict):
            tile = Tile.from_dict(ref)
        else:
            tile = tile_from_id(ref)
        if tile not in player.hand:
            raise UnknownTileError(f"{player.display_name} doesn't have {tile}")
        return tile

    def _apply(self, player: PlayerState, tile: Tile, side: str, result: TurnResult) -> TurnResult:
        placement = next((p for p in self.state.chain.legal_placements(tile) if p.side == side), None)
        # Raises IllegalPlacement before anything changes
        self.state.chain.play(tile, side)
        player.remove_tile(tile)
        result.played = Move(tile=tile, placement=placement)
        logger.debug(f"{player.display_name} plays {tile} on {side}")
        return self._after_play(player, result)

    def _draw_until_playable(self, player: PlayerState, result: TurnResult) -> bool:
        while self.state.boneyard:
            tile = self.state.boneyard.pop(0)
            player.hand.append(tile)
            result.drawn.append(tile)
            if self.state.chain.legal_placements(tile):
                logger.debug(f"{player.display_name} drew {len(result.drawn)}, {tile} is playable")
                return True
        return False

    def _after_play(self, player: PlayerState, result: TurnResult) -> TurnResult:
        """Score, check the win and advance the turn after a successful play."""
        player.passed_last_turn = False

        if self.rules.scoring:
            result.points = self.score_rule.evaluate(self.state.chain.open_ends)
            player.score += result.points

        if player.tile_count() == 0:
            self._finish(winner=player, blocked=False)
        else:
            self.state.next_turn()
            self._check_block()

        result.game_over = self.is_over
        self.state.last_result = result
        return result

    def _pass(self, player: PlayerState, result: TurnResult) -> TurnResult:
        result.passed = True
        player.passed_last_turn = True
        logger.debug(f"{player.display_name} passes (drew {result.drew_count})")

        self.state.next_turn()
        self._check_block()

        result.game_over = self.is_over
        self.state.last_result = result
        return result

    def _check_block(self):
        """End the game when the boneyard is empty and nobody can move."""
        if self.state.status != "active" or self.state.boneyard:
            return
        if any(self._moves_for(p) for p in self.state.players):
            return

        a, b = self.state.players
        if a.pip_total() < b.pip_total():
            winner = a
        elif b.pip_total() < a.pip_total():
            winner = b
        else:
            winner = None
        self._finish(winner=winner, blocked=True)

    def _finish(self, winner: Optional[PlayerState], blocked: bool):
        self.state.status = "finished"
        self.state.is_blocked = blocked
        self.state.winner_id = winner.player_id if winner else None
        if blocked:
            totals = ", ".join(f"{p.display_name}={p.pip_total()}" for p in self.state.players)
            logger.info(f"Game blocked ({totals}), winner: {winner.display_name if winner else 'tie'}")
        else:
            logger.info(f"{winner.display_name} is out of tiles and wins")

    # --- views and persistence ---

    def to_dict(self, for_player_id: Optional[str] = None) -> dict:
        """Serialize game state. If for_player_id is given, only show that player's hand."""
        finished = self.is_over
        players_data = []
        for p in self.state.players:
            pd = {
                "player_id": p.player_id,
                "display_name": p.display_name,
                "tile_count": p.tile_count(),
                "score": p.score,
                "passed_last_turn": p.passed_last_turn,
            }
            if finished or (for_player_id is not None and p.player_id == for_player_id):
                pd["hand"] = [t.to_dict() for t in p.hand]
            if finished:
                pd["pip_total"] = p.pip_total()
            players_data.append(pd)

        last = self.state.last_result
        return {
            "players": players_data,
            "chain": self.state.chain.to_dict(),
            "open_ends": [e.to_dict() for e in self.state.chain.open_ends],
            "current_player_id": self.state.current_player.player_id,
            "status": self.state.status,
            "winner_id": self.state.winner_id,
            "is_blocked": self.state.is_blocked,
            "boneyard_count": len(self.state.boneyard),
            "rules": self.rules.to_dict(),
            "last_action": last.to_dict(reveal_drawn=last.player_id == for_player_id) if last else None,
        }

    def snapshot(self) -> dict:
        """JSON-safe copy of everything needed to resume this game."""
        return {
            "version": SNAPSHOT_VERSION,
            "rules": self.rules.to_dict(),
            "players": [
                {
                    "player_id": p.player_id,
                    "display_name": p.display_name,
                    "hand": [t.id for t in p.hand],
                    "score": p.score,
                    "passed_last_turn": p.passed_last_turn,
                }
                for p in self.state.players
            ],
            "boneyard": [t.id for t in self.state.boneyard],
            "placed": [p.to_dict() for p in self.state.chain.placed],
            "current_player_index": self.state.current_player_index,
            "starter_index": self.state.starter_index,
            "status": self.state.status,
            "winner_id": self.state.winner_id,
            "is_blocked": self.state.is_blocked,
        }

    @classmethod
    def from_snapshot(cls, data: dict) -> "TurnController":
        if data.get("version") != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {data.get('version')!r}")

        rules = Rules.from_dict(data["rules"])
        players = [{"player_id": p["player_id"], "display_name": p["display_name"]} for p in data["players"]]
        hands = [[tile_from_id(t) for t in p["hand"]] for p in data["players"]]
        boneyard = [tile_from_id(t) for t in data["boneyard"]]
        placed = [PlacedTile.from_dict(p) for p in data["placed"]]

        game = cls.__new__(cls)
        game._build(players, hands, boneyard, rules)
        game.state.chain = ChainEngine.replay(placed, spinner=rules.spinner,
                                              spinner_immediate=rules.spinner_immediate)
        for p, saved in zip(game.state.players, data["players"]):
            p.score = saved.get("score", 0)
            p.passed_last_turn = saved.get("passed_last_turn", False)
        for key in ("current_player_index", "starter_index"):
            index = data.get(key, 0)
            if not isinstance(index, int) or not 0 <= index < len(game.state.players):
                raise ValueError(f"Bad {key} in snapshot: {index!r}")
        game.state.current_player_index = data.get("current_player_index", 0)
        game.state.starter_index = data.get("starter_index", 0)
        game.state.status = data["status"]
        game.state.winner_id = data.get("winner_id")
        game.state.is_blocked = data.get("is_blocked", False)
        return game
