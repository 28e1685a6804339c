import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
STATE_DIR = PROJECT_ROOT / "matches"

STORAGE_KEY = "DARTS_GAME_STATE_V2"
STATE_FILENAME = "state.json"
SYNC_FILENAME = "sync.json"

DEFAULT_STARTING_SCORE = 501
DEFAULT_FIRST_TO_LEGS = 6
DEFAULT_MATCH_TITLE = "QUARTER FINAL"
DEFAULT_TOURNAMENT_INFO = "WORLD DARTS CHAMPIONSHIP"
DEFAULT_PLAYERS = (
    ("LUKE LITTLER", "🇬🇧"),
    ("MICHAEL SMITH", "🇬🇧"),
)

# lowest score a player may be left on without finishing
MIN_REMAINING = 2


def state_path() -> Path:
    override = os.environ.get("DARTS_SYNC_STATE")
    if override:
        return Path(override)
    return STATE_DIR / STATE_FILENAME
