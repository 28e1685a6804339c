from enum import Enum
from typing import Dict, List, Tuple
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from darts_sync.models import MatchState

TURN_HISTORY_LIMIT = 8


class ViewMode(str, Enum):
    SELECTION = "selection"
    OVERLAY = "overlay"
    CONTROLLER = "controller"


def parse_view_mode(url_or_query: str) -> ViewMode:
    """
    "?view=overlay" or a full URL -> ViewMode.
    Anything unrecognised falls back to the selection screen.
    """
    query = urlsplit(url_or_query).query if "://" in url_or_query else url_or_query
    values = parse_qs(query.lstrip("?")).get("view", [])

    if values and values[0] == ViewMode.OVERLAY.value:
        return ViewMode.OVERLAY
    if values and values[0] == ViewMode.CONTROLLER.value:
        return ViewMode.CONTROLLER
    return ViewMode.SELECTION


def build_view_links(base_url: str) -> Dict[str, str]:
    parts = urlsplit(base_url)

    def link(mode: ViewMode) -> str:
        query = urlencode({"view": mode.value})
        return urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))

    return {
        ViewMode.OVERLAY.value: link(ViewMode.OVERLAY),
        ViewMode.CONTROLLER.value: link(ViewMode.CONTROLLER),
    }


def turn_history(state: MatchState, limit: int = TURN_HISTORY_LIMIT) -> List[Tuple[str, int]]:
    """
    Both players' throws as one log, latest first: (player name, amount).

    Ordered by visit number, then player 1 before player 0 within a visit.
    """
    entries = [
        (i, p, amount)
        for p, throws in enumerate(state.history)
        for i, amount in enumerate(throws)
    ]
    entries.sort(key=lambda e: (e[0], e[1]), reverse=True)

    return [(state.players[p].name, amount) for i, p, amount in entries[:limit]]
