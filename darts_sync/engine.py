from dataclasses import replace
from typing import Any, Dict

from darts_sync.config import MIN_REMAINING
from darts_sync.exceptions import InvalidActionError, StateFormatError
from darts_sync.models import (
    Action,
    MatchState,
    NextLeg,
    PLAYER_FIELDS,
    ResetGame,
    STATE_FIELDS,
    SubtractScore,
    Undo,
    UpdateConfig,
    UpdatePlayer,
    coerce_history,
    coerce_players,
    default_state,
)


def apply(state: MatchState, action: Action) -> MatchState:
    """
    Pure match transition.

    Returns a new MatchState; the input is never mutated.
    Bust and undo-with-empty-history are ordinary outcomes, not errors.
    Raises InvalidActionError when the action itself is malformed.
    """
    _validate_action(action)

    if isinstance(action, SubtractScore):
        return _subtract_score(state, action.amount)
    if isinstance(action, Undo):
        return _undo(state)
    if isinstance(action, NextLeg):
        return _next_leg(state)
    if isinstance(action, UpdatePlayer):
        return _update_player(state, action.index, action.data)
    if isinstance(action, UpdateConfig):
        return _update_config(state, action.data)
    if isinstance(action, ResetGame):
        return default_state()

    raise InvalidActionError(f"Unsupported action: {action!r}")


def other(index: int) -> int:
    return 1 if index == 0 else 0


def can_undo(state: MatchState) -> bool:
    return len(state.history[other(state.active_player_index)]) > 0


# =========================================================
# VALIDATION
# =========================================================

def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_action(action: Action):
    if isinstance(action, SubtractScore):
        if not _is_int(action.amount):
            raise InvalidActionError(f"amount must be an integer: {action.amount!r}")
        if action.amount < 0:
            raise InvalidActionError(f"amount must be >= 0: {action.amount}")

    elif isinstance(action, UpdatePlayer):
        if not _is_int(action.index) or action.index not in (0, 1):
            raise InvalidActionError(f"Invalid player index: {action.index!r}")
        unknown = set(action.data) - set(PLAYER_FIELDS)
        if unknown:
            raise InvalidActionError(f"Unknown player field(s): {sorted(unknown)}")
        for key, value in action.data.items():
            _check_field(key, value, PLAYER_FIELD_TYPES[key])

    elif isinstance(action, UpdateConfig):
        allowed = set(STATE_FIELDS) | set(STATE_FIELDS.values())
        unknown = set(action.data) - allowed
        if unknown:
            raise InvalidActionError(f"Unknown config field(s): {sorted(unknown)}")
        for key, value in action.data.items():
            _check_config_value(STATE_FIELDS.get(key, key), value)

    elif not isinstance(action, (Undo, NextLeg, ResetGame)):
        raise InvalidActionError(f"Unsupported action: {action!r}")


# merged values must stay loadable from the saved JSON record
PLAYER_FIELD_TYPES = {
    "name": str,
    "flag": str,
    "legs": int,
    "score": int,
    "sets": int,
}

CONFIG_FIELD_TYPES = {
    "active_player_index": int,
    "starting_score": int,
    "first_to_legs": int,
    "match_title": str,
    "tournament_info": str,
}


def _check_field(key: str, value, expected: type):
    ok = _is_int(value) if expected is int else isinstance(value, expected)
    if not ok:
        raise InvalidActionError(f"{key} must be {expected.__name__}: {value!r}")


def _check_config_value(attr: str, value):
    if attr == "players":
        try:
            players = coerce_players(value)
        except StateFormatError as e:
            raise InvalidActionError(f"players: {e}") from e
        if len(players) != 2:
            raise InvalidActionError("players must have exactly two entries")
        for player in players:
            for key in PLAYER_FIELDS:
                _check_field(key, getattr(player, key), PLAYER_FIELD_TYPES[key])

    elif attr == "history":
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise InvalidActionError("history must be two lists of integers")
        entries = list(value)
        if len(entries) != 2:
            raise InvalidActionError("history must have exactly two entries")
        for entry in entries:
            if isinstance(entry, (str, bytes)) or not hasattr(entry, "__iter__"):
                raise InvalidActionError("history must be two lists of integers")
            for v in entry:
                _check_field("history", v, int)

    elif attr == "active_player_index":
        if not _is_int(value) or value not in (0, 1):
            raise InvalidActionError(f"Invalid active player index: {value!r}")

    else:
        _check_field(attr, value, CONFIG_FIELD_TYPES[attr])


# =========================================================
# SCORING
# =========================================================

def _subtract_score(state: MatchState, amount: int) -> MatchState:
    p = state.active_player_index
    player = state.players[p]
    remaining = player.score - amount

    if remaining == 0:
        # leg won; the finisher stays active until NEXT_LEG
        return replace(
            state,
            players=_with_player(state, p, replace(player, score=0, legs=player.legs + 1)),
            history=_with_history(state, p, state.history[p] + (amount,)),
        )

    if remaining < MIN_REMAINING:
        # bust
        return replace(state, active_player_index=other(p))

    return replace(
        state,
        players=_with_player(state, p, replace(player, score=remaining)),
        history=_with_history(state, p, state.history[p] + (amount,)),
        active_player_index=other(p),
    )


def _undo(state: MatchState) -> MatchState:
    # Undoing a leg-winning throw leaves legs untouched: the finisher is still
    # active, so this reaches into the opponent's history instead.
    q = other(state.active_player_index)
    hist = state.history[q]

    if not hist:
        return state

    last = hist[-1]
    player = state.players[q]

    return replace(
        state,
        players=_with_player(state, q, replace(player, score=player.score + last)),
        history=_with_history(state, q, hist[:-1]),
        active_player_index=q,
    )


def _next_leg(state: MatchState) -> MatchState:
    players = tuple(replace(p, score=state.starting_score) for p in state.players)
    total_legs = players[0].legs + players[1].legs

    return replace(
        state,
        players=players,
        history=((), ()),
        active_player_index=total_legs % 2,
    )


# =========================================================
# CONFIGURATION
# =========================================================

def _update_player(state: MatchState, index: int, data) -> MatchState:
    player = replace(state.players[index], **dict(data))
    return replace(state, players=_with_player(state, index, player))


def _update_config(state: MatchState, data) -> MatchState:
    changes: Dict[str, Any] = {}

    for key, value in data.items():
        attr = STATE_FIELDS.get(key, key)

        if attr == "players":
            value = coerce_players(value)
        elif attr == "history":
            value = coerce_history(value)

        changes[attr] = value

    return replace(state, **changes)


# =========================================================
# HELPERS
# =========================================================

def _with_player(state: MatchState, index: int, player):
    players = list(state.players)
    players[index] = player
    return tuple(players)


def _with_history(state: MatchState, index: int, entries):
    history = list(state.history)
    history[index] = tuple(entries)
    return tuple(history)
