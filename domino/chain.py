"""
The line of play: placed tiles and the open ends they leave.

Open ends are always derived from the seed tile and the last tile on each
branch. Nothing outside ``play``/``start`` changes them.
"""

from dataclasses import dataclass
from typing import Optional

from domino.errors import ChainStateError, IllegalPlacement
from domino.tiles import Tile

CENTER = "center"
LEFT = "left"
RIGHT = "right"
UP = "up"
DOWN = "down"
SIDES = (LEFT, RIGHT, UP, DOWN)


@dataclass(frozen=True)
class OpenEnd:
    side: str
    value: int
    # True when a double is exposed here and nowhere else
    double: bool = False

    def to_dict(self) -> dict:
        return {"side": self.side, "value": self.value, "double": self.double}


@dataclass(frozen=True)
class Placement:
    """Where a tile can go and which way round."""
    side: str
    inner: int  # pip that touches the chain
    outer: int  # pip left exposed
    flipped: bool  # the tile's higher half faces the chain

    def to_dict(self) -> dict:
        return {"side": self.side, "inner": self.inner, "outer": self.outer, "flipped": self.flipped}


@dataclass(frozen=True)
class PlacedTile:
    """A tile on the table. The seed has side ``center``, inner=left, outer=right."""
    tile: Tile
    side: str
    inner: int
    outer: int

    def to_dict(self) -> dict:
        return {
            "tile": self.tile.to_dict(),
            "side": self.side,
            "inner": self.inner,
            "outer": self.outer,
        }

    @staticmethod
    def from_dict(d: dict) -> "PlacedTile":
        return PlacedTile(
            tile=Tile.from_dict(d["tile"]),
            side=d["side"],
            inner=d["inner"],
            outer=d["outer"],
        )


class ChainEngine:
    """
    Single source of truth for what is on the table.

    With ``spinner`` on, a double used as the first tile also opens ``up`` and
    ``down`` once both ``left`` and ``right`` hold a tile, or straight away
    when ``spinner_immediate`` is set.
    """

    def __init__(self, spinner: bool = False, spinner_immediate: bool = False):
        self.spinner = spinner
        self.spinner_immediate = spinner_immediate
        self._placed: list[PlacedTile] = []
        self._branches: dict[str, list[PlacedTile]] = {side: [] for side in SIDES}

    def __len__(self):
        return len(self._placed)

    def __contains__(self, tile: Tile) -> bool:
        return any(p.tile == tile for p in self._placed)

    @property
    def is_empty(self) -> bool:
        return not self._placed

    @property
    def seed(self) -> Optional[PlacedTile]:
        return self._placed[0] if self._placed else None

    @property
    def placed(self) -> tuple[PlacedTile, ...]:
        """Every tile in the order it was put down."""
        return tuple(self._placed)

    @property
    def spinner_active(self) -> bool:
        seed = self.seed
        if not self.spinner or seed is None or not seed.tile.is_double():
            return False
        if self.spinner_immediate:
            return True
        return bool(self._branches[LEFT]) and bool(self._branches[RIGHT])

    @property
    def open_ends(self) -> tuple[OpenEnd, ...]:
        seed = self.seed
        if seed is None:
            return ()

        sides = [LEFT, RIGHT]
        if self.spinner_active:
            sides += [UP, DOWN]

        exposed = []
        for side in sides:
            branch = self._branches[side]
            if branch:
                exposed.append((side, branch[-1].outer, branch[-1]))
            elif side == RIGHT:
                exposed.append((side, seed.outer, seed))
            else:
                exposed.append((side, seed.inner, seed))

        ends = []
        for side, value, source in exposed:
            faces = sum(1 for _, _, other in exposed if other is source)
            ends.append(OpenEnd(side=side, value=value, double=source.tile.is_double() and faces == 1))
        return tuple(ends)

    def pip_values(self) -> list[int]:
        return [end.value for end in self.open_ends]

    def start(self, tile: Tile) -> tuple[OpenEnd, ...]:
        """Seed the chain with its first tile."""
        if self._placed:
            raise ChainStateError("Chain already started")
        self._placed.append(PlacedTile(tile=tile, side=CENTER, inner=tile.left, outer=tile.right))
        return self.open_ends

    def legal_placements(self, tile: Tile) -> list[Placement]:
        """Every open end ``tile`` fits, in side order. Does not change anything."""
        if tile in self:
            return []
        placements = []
        for end in self.open_ends:
            if tile.has_value(end.value):
                placements.append(Placement(
                    side=end.side,
                    inner=end.value,
                    outer=tile.other_value(end.value),
                    flipped=tile.left != end.value,
                ))
        return placements

    def play(self, tile: Tile, side: str) -> tuple[OpenEnd, ...]:
        """
        Attach ``tile`` to the open end on ``side``.
        The half matching that end goes against the chain; the other half becomes the new end.
        Raises IllegalPlacement and leaves the chain untouched if it does not fit.
        """
        if tile in self:
            raise ChainStateError(f"{tile} is already on the table")

        end = next((e for e in self.open_ends if e.side == side), None)
        if end is None:
            raise IllegalPlacement(f"No open end on side {side!r}")
        if not tile.has_value(end.value):
            raise IllegalPlacement(f"Tile {tile} doesn't match {side} end ({end.value})")

        placed = PlacedTile(tile=tile, side=side, inner=end.value, outer=tile.other_value(end.value))
        self._branches[side].append(placed)
        self._placed.append(placed)
        return self.open_ends

    def branch(self, side: str) -> list[PlacedTile]:
        """Tiles on one branch, nearest the seed first."""
        return list(self._branches[side])

    def line(self) -> list[PlacedTile]:
        """The main line read left to right."""
        if self.seed is None:
            return []
        return list(reversed(self._branches[LEFT])) + [self.seed] + list(self._branches[RIGHT])

    def to_dict(self) -> dict:
        return {
            "open_ends": [e.to_dict() for e in self.open_ends],
            "line": [p.to_dict() for p in self.line()],
            "branches": {side: [p.to_dict() for p in self._branches[side]] for side in (UP, DOWN)},
            "spinner_active": self.spinner_active,
            "tile_count": len(self._placed),
        }

    @classmethod
    def replay(cls, placed: list[PlacedTile], spinner: bool = False,
               spinner_immediate: bool = False) -> "ChainEngine":
        """Rebuild a chain by starting with the first tile and playing the rest in order."""
        chain = cls(spinner=spinner, spinner_immediate=spinner_immediate)
        if not placed:
            return chain
        chain.start(placed[0].tile)
        for p in placed[1:]:
            chain.play(p.tile, p.side)
        return chain
