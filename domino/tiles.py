"""
The double-six tile set and dealing.
"""

import random
from dataclasses import dataclass

from domino.config import HAND_SIZE
from domino.errors import UnknownTileError

MAX_PIP = 6


@dataclass(frozen=True, order=True)
class Tile:
    """A domino. Stored low pip first so [5|3] and [3|5] are the same tile."""
    left: int
    right: int

    def __post_init__(self):
        if not (0 <= self.left <= MAX_PIP and 0 <= self.right <= MAX_PIP):
            raise UnknownTileError(f"No such tile: {self.left}-{self.right}")
        if self.left > self.right:
            low, high = self.right, self.left
            object.__setattr__(self, "left", low)
            object.__setattr__(self, "right", high)

    @property
    def id(self) -> str:
        return f"{self.left}-{self.right}"

    @property
    def pips(self) -> int:
        return self.left + self.right

    def has_value(self, value: int) -> bool:
        return self.left == value or self.right == value

    def is_double(self) -> bool:
        return self.left == self.right

    def other_value(self, value: int) -> int:
        """The pip on the opposite half from ``value``."""
        if self.left == value:
            return self.right
        if self.right == value:
            return self.left
        raise ValueError(f"{self} has no {value}")

    def to_dict(self) -> dict:
        return {"id": self.id, "left": self.left, "right": self.right}

    @staticmethod
    def from_dict(d: dict) -> "Tile":
        try:
            return Tile(left=int(d["left"]), right=int(d["right"]))
        except (KeyError, TypeError, ValueError) as e:
            raise UnknownTileError(f"Bad tile: {d!r}") from e

    def __repr__(self):
        return f"[{self.left}|{self.right}]"


def tile_from_id(tile_id: str) -> Tile:
    """Parse an id like ``"6-2"`` (either pip order)."""
    parts = str(tile_id).split("-")
    if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
        raise UnknownTileError(f"Bad tile id: {tile_id!r}")
    return Tile(left=int(parts[0]), right=int(parts[1]))


def create_full_set() -> list[Tile]:
    """Create a standard double-six domino set (28 tiles)."""
    tiles = []
    for i in range(MAX_PIP + 1):
        for j in range(i, MAX_PIP + 1):
            tiles.append(Tile(left=i, right=j))
    return tiles


def deal(rng: random.Random, hand_size: int = HAND_SIZE) -> tuple[list[Tile], list[Tile], list[Tile]]:
    """
    Shuffle a fresh set with ``rng`` and split it into two hands and a draw pile.
    The pile is consumed from index 0.
    """
    all_tiles = create_full_set()
    rng.shuffle(all_tiles)
    hand_a = all_tiles[:hand_size]
    hand_b = all_tiles[hand_size:2 * hand_size]
    pile = all_tiles[2 * hand_size:]
    return hand_a, hand_b, pile


def pip_total(tiles) -> int:
    return sum(t.pips for t in tiles)
