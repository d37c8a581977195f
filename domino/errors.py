"""
Exceptions raised by the domino engine.

GameError subclasses are rule violations: the request is rejected, state is
left untouched and the caller may try again. EngineMisuse subclasses mean the
host passed something that cannot exist (unknown player, unknown tile, a
chain seeded twice) and should be fixed on the caller's side.
"""


class GameError(Exception):
    """A move or action rejected by the rules."""

    code = "game_error"


class IllegalPlacement(GameError):
    code = "illegal_placement"


class AmbiguousPlacement(IllegalPlacement):
    """The tile fits more than one open end and no side was given."""

    code = "ambiguous_placement"

    def __init__(self, message: str, options: list[str]):
        super().__init__(message)
        self.options = options


class OutOfTurn(GameError):
    code = "out_of_turn"


class DrawNotAllowed(GameError):
    code = "draw_not_allowed"


class GameOverError(GameError):
    code = "game_over"


class EngineMisuse(Exception):
    """Programming error on the host side."""


class UnknownPlayerError(EngineMisuse, LookupError):
    pass


class UnknownTileError(EngineMisuse, LookupError):
    pass


class ChainStateError(EngineMisuse):
    pass
