import json
import logging
import os
from pathlib import Path
from typing import Optional

from darts_sync.exceptions import StateFormatError
from darts_sync.models import MatchState, default_state

logger = logging.getLogger(__name__)


def dumps_state(state: MatchState) -> str:
    return json.dumps(state.to_dict(), indent=4, ensure_ascii=False)


def loads_state(text: str) -> MatchState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StateFormatError(f"state is not valid JSON: {e}") from e
    return MatchState.from_dict(data)


def load_state(path: Path) -> MatchState:
    with open(path, "r", encoding="utf-8") as f:
        return loads_state(f.read())


def save_state(path: Path, state: MatchState):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # replace in one step so a concurrent reader never sees half a file
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(dumps_state(state))
    os.replace(tmp_path, path)


class JsonFileStore:
    """
    Persistence adapter backed by a single JSON file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[MatchState]:
        if not self.path.exists():
            logger.debug("No saved state at %s", self.path)
            return None

        state = load_state(self.path)
        logger.debug("Loaded state from %s", self.path)
        return state

    def save(self, state: MatchState):
        save_state(self.path, state)
        logger.debug("Saved state to %s", self.path)


def load_or_default(store: Optional[JsonFileStore]) -> MatchState:
    if store is not None:
        state = store.load()
        if state is not None:
            return state
    return default_state()
