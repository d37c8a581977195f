"""
"Fives" scoring: after a play, the open ends are added up and the player
scores that total when it is a multiple of 5.
"""

from dataclasses import dataclass
from typing import Iterable

from domino.chain import OpenEnd


@dataclass(frozen=True)
class ScoreRule:
    # A double sitting alone at the end of a branch counts both halves
    doubles_count_double: bool = True

    def end_total(self, open_ends: Iterable[OpenEnd]) -> int:
        total = 0
        for end in open_ends:
            if end.double and self.doubles_count_double:
                total += end.value * 2
            else:
                total += end.value
        return total

    def evaluate(self, open_ends: Iterable[OpenEnd]) -> int:
        total = self.end_total(open_ends)
        if total > 0 and total % 5 == 0:
            return total
        return 0
