"""Tests for ChainEngine: open ends, legality and the spinner."""

import pytest

from domino.chain import ChainEngine, OpenEnd
from domino.errors import ChainStateError, IllegalPlacement
from domino.tiles import Tile
from helpers import tiles


def _ends(chain: ChainEngine) -> dict[str, int]:
    return {e.side: e.value for e in chain.open_ends}


class TestStart:
    def test_empty_chain_has_no_ends(self) -> None:
        chain = ChainEngine()
        assert chain.is_empty
        assert chain.open_ends == ()
        assert chain.legal_placements(Tile(1, 2)) == []

    def test_non_double(self) -> None:
        chain = ChainEngine()
        ends = chain.start(Tile(6, 2))
        assert [(e.side, e.value) for e in ends] == [("left", 2), ("right", 6)]

    def test_double_gives_two_ends(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        assert _ends(chain) == {"left": 6, "right": 6}

    def test_start_twice(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        with pytest.raises(ChainStateError):
            chain.start(Tile(5, 5))


class TestLegalPlacements:
    def test_both_ends_listed(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        placements = chain.legal_placements(Tile(6, 2))
        assert [p.side for p in placements] == ["left", "right"]
        assert all(p.inner == 6 and p.outer == 2 for p in placements)

    def test_flipped_when_high_half_touches(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        assert chain.legal_placements(Tile(2, 6))[0].flipped
        chain2 = ChainEngine()
        chain2.start(Tile(2, 2))
        assert not chain2.legal_placements(Tile(2, 6))[0].flipped

    def test_no_match(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 2))
        assert chain.legal_placements(Tile(5, 3)) == []

    def test_idempotent(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(3, 4))
        first = chain.legal_placements(Tile(4, 1))
        assert first == chain.legal_placements(Tile(4, 1))
        assert [p.side for p in first] == ["right"]
        assert len(chain) == 1

    def test_tile_already_down(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        assert chain.legal_placements(Tile(6, 6)) == []


class TestPlay:
    @pytest.mark.parametrize("side", ["left", "right"])
    def test_six_two_on_double_six(self, side: str) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        chain.play(Tile(6, 2), side)
        assert sorted(chain.pip_values()) == [2, 6]
        assert _ends(chain)[side] == 2

    def test_orientation_fixed_by_end_value(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(1, 4))
        chain.play(Tile(4, 5), "right")
        placed = chain.placed[-1]
        assert (placed.inner, placed.outer) == (4, 5)
        assert _ends(chain) == {"left": 1, "right": 5}

    def test_missing_side_does_not_mutate(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        before = chain.open_ends
        with pytest.raises(IllegalPlacement):
            chain.play(Tile(6, 2), "up")
        assert chain.open_ends == before
        assert len(chain) == 1

    def test_mismatch_does_not_mutate(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 2))
        with pytest.raises(IllegalPlacement):
            chain.play(Tile(5, 3), "left")
        assert _ends(chain) == {"left": 2, "right": 6}
        assert chain.placed == (chain.seed,)

    def test_play_on_empty_chain(self) -> None:
        with pytest.raises(IllegalPlacement):
            ChainEngine().play(Tile(1, 1), "left")

    def test_same_tile_twice(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        chain.play(Tile(6, 2), "left")
        with pytest.raises(ChainStateError):
            chain.play(Tile(6, 2), "right")

    def test_line_reads_left_to_right(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        chain.play(Tile(6, 2), "left")
        chain.play(Tile(6, 1), "right")
        chain.play(Tile(2, 3), "left")
        assert [p.tile.id for p in chain.line()] == ["2-3", "2-6", "6-6", "1-6"]
        assert [p.tile.id for p in chain.branch("left")] == ["2-6", "2-3"]


class TestDoubleFlag:
    def test_seed_double_alone_is_not_flagged(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(5, 5))
        assert all(not e.double for e in chain.open_ends)

    def test_seed_double_with_one_side_covered(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(6, 6))
        chain.play(Tile(6, 2), "left")
        assert chain.open_ends == (OpenEnd("left", 2, False), OpenEnd("right", 6, True))

    def test_double_at_branch_end(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(2, 6))
        chain.play(Tile(2, 2), "left")
        assert chain.open_ends[0] == OpenEnd("left", 2, True)


class TestSpinner:
    def test_off_by_default(self) -> None:
        chain = ChainEngine()
        chain.start(Tile(5, 5))
        chain.play(Tile(5, 1), "left")
        chain.play(Tile(5, 3), "right")
        assert not chain.spinner_active
        assert len(chain.open_ends) == 2

    def test_opens_after_both_sides(self) -> None:
        chain = ChainEngine(spinner=True)
        chain.start(Tile(5, 5))
        assert len(chain.open_ends) == 2
        chain.play(Tile(5, 1), "left")
        assert len(chain.open_ends) == 2
        chain.play(Tile(5, 3), "right")
        assert chain.spinner_active
        assert _ends(chain) == {"left": 1, "right": 3, "up": 5, "down": 5}
        # the spinner shows two faces, so neither counts as a lone double
        assert not any(e.double for e in chain.open_ends)

    def test_play_on_spinner_side(self) -> None:
        chain = ChainEngine(spinner=True)
        chain.start(Tile(5, 5))
        chain.play(Tile(5, 1), "left")
        chain.play(Tile(5, 3), "right")
        chain.play(Tile(5, 4), "up")
        assert _ends(chain) == {"left": 1, "right": 3, "up": 4, "down": 5}
        assert chain.open_ends[-1].double
        assert [p.tile.id for p in chain.branch("up")] == ["4-5"]

    def test_immediate(self) -> None:
        chain = ChainEngine(spinner=True, spinner_immediate=True)
        chain.start(Tile(4, 4))
        assert _ends(chain) == {"left": 4, "right": 4, "up": 4, "down": 4}

    def test_non_double_seed_never_spins(self) -> None:
        chain = ChainEngine(spinner=True, spinner_immediate=True)
        chain.start(Tile(4, 3))
        assert not chain.spinner_active
        assert len(chain.open_ends) == 2


class TestReplay:
    def test_same_plays_same_ends(self) -> None:
        plays = [("left", "6-2"), ("right", "6-1"), ("left", "2-3"), ("right", "1-1")]

        def build() -> ChainEngine:
            chain = ChainEngine()
            chain.start(Tile(6, 6))
            for side, tile in plays:
                chain.play(tiles(tile)[0], side)
            return chain

        first, second = build(), build()
        assert first.open_ends == second.open_ends
        assert ChainEngine.replay(list(first.placed)).open_ends == first.open_ends

    def test_replay_with_spinner(self) -> None:
        chain = ChainEngine(spinner=True)
        chain.start(Tile(3, 3))
        for side, tile in [("left", "3-1"), ("right", "3-2"), ("down", "3-6")]:
            chain.play(tiles(tile)[0], side)
        rebuilt = ChainEngine.replay(list(chain.placed), spinner=True)
        assert rebuilt.open_ends == chain.open_ends
        assert rebuilt.to_dict() == chain.to_dict()
