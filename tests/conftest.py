"""Shared pytest setup. Environment is fixed before any domino module reads its config."""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="domino-tests-")
os.environ["DB_PATH"] = os.path.join(_DB_DIR, "domino.db")
# Keep the computer from moving on its own while a test is talking to the server
os.environ["BOT_DELAY"] = "60"
os.environ["SPINNER"] = "false"
os.environ["SPINNER_IMMEDIATE"] = "false"
os.environ["SCORING"] = "true"
os.environ["DOUBLES_COUNT_DOUBLE"] = "true"

from collections.abc import Callable, Iterator  # noqa: E402

import pytest  # noqa: E402

from domino.game_manager import game_manager  # noqa: E402
from helpers import install_game  # noqa: E402


@pytest.fixture
def installed_game() -> Iterator[Callable[..., str]]:
    """Register hand-picked games with the shared game manager and close them afterwards."""
    created: list[str] = []

    def _install(player_hand: str, computer_hand: str, boneyard: str = "", **rules) -> str:
        game_id = install_game(game_manager, player_hand, computer_hand, boneyard, **rules)
        created.append(game_id)
        return game_id

    yield _install

    for game_id in created:
        game_manager.close_game(game_id)
