import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("WEB_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DB_PATH = os.getenv(
    "DB_PATH",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "domino.db"),
)
DATABASE_URL = f"sqlite+aiosqlite:///{DB_PATH}"

# Game settings
HAND_SIZE = 7
BOT_DELAY = float(os.getenv("BOT_DELAY", "1.5"))  # seconds before the computer moves

# Rule variants
SPINNER = _flag("SPINNER", "false")
SPINNER_IMMEDIATE = _flag("SPINNER_IMMEDIATE", "false")
SCORING = _flag("SCORING", "true")
DOUBLES_COUNT_DOUBLE = _flag("DOUBLES_COUNT_DOUBLE", "true")

# Player ids used by the web host
HUMAN_ID = "player"
COMPUTER_ID = "computer"
