from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Tuple, Union

from darts_sync.config import (
    DEFAULT_FIRST_TO_LEGS,
    DEFAULT_MATCH_TITLE,
    DEFAULT_PLAYERS,
    DEFAULT_STARTING_SCORE,
    DEFAULT_TOURNAMENT_INFO,
)
from darts_sync.exceptions import InvalidActionError, StateFormatError


# =========================================================
# MATCH STATE
# =========================================================

@dataclass(frozen=True)
class Player:
    name: str
    flag: str
    legs: int = 0
    score: int = DEFAULT_STARTING_SCORE
    sets: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "flag": self.flag,
            "legs": self.legs,
            "score": self.score,
            "sets": self.sets,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Player":
        try:
            return Player(
                name=str(d["name"]),
                flag=str(d["flag"]),
                legs=int(d["legs"]),
                score=int(d["score"]),
                sets=int(d["sets"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StateFormatError(f"invalid player record: {e!r}") from e


History = Tuple[Tuple[int, ...], Tuple[int, ...]]

# serialized (camelCase) key -> attribute name
STATE_FIELDS = {
    "players": "players",
    "activePlayerIndex": "active_player_index",
    "startingScore": "starting_score",
    "firstToLegs": "first_to_legs",
    "matchTitle": "match_title",
    "tournamentInfo": "tournament_info",
    "history": "history",
}

PLAYER_FIELDS = ("name", "flag", "legs", "score", "sets")


@dataclass(frozen=True)
class MatchState:
    """
    Full snapshot of a two-player match.

    Immutable: transitions build a new value with dataclasses.replace.
    players and history are tuples indexed by player (0 or 1).
    """
    players: Tuple[Player, Player]
    active_player_index: int = 0
    starting_score: int = DEFAULT_STARTING_SCORE
    first_to_legs: int = DEFAULT_FIRST_TO_LEGS
    match_title: str = DEFAULT_MATCH_TITLE
    tournament_info: str = DEFAULT_TOURNAMENT_INFO
    history: History = field(default_factory=lambda: ((), ()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "players": [p.to_dict() for p in self.players],
            "activePlayerIndex": self.active_player_index,
            "startingScore": self.starting_score,
            "firstToLegs": self.first_to_legs,
            "matchTitle": self.match_title,
            "tournamentInfo": self.tournament_info,
            "history": [list(h) for h in self.history],
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "MatchState":
        if not isinstance(d, Mapping):
            raise StateFormatError("match state must be an object")

        missing = set(STATE_FIELDS) - set(d.keys())
        if missing:
            raise StateFormatError(f"Missing field(s): {sorted(missing)}")

        players = coerce_players(d["players"])
        history = coerce_history(d["history"])

        if len(players) != 2 or len(history) != 2:
            raise StateFormatError("players and history must have exactly two entries")

        try:
            return MatchState(
                players=players,
                active_player_index=int(d["activePlayerIndex"]),
                starting_score=int(d["startingScore"]),
                first_to_legs=int(d["firstToLegs"]),
                match_title=str(d["matchTitle"]),
                tournament_info=str(d["tournamentInfo"]),
                history=history,
            )
        except (TypeError, ValueError) as e:
            raise StateFormatError(f"invalid match state: {e!r}") from e


def coerce_players(raw) -> Tuple[Player, ...]:
    if isinstance(raw, (str, bytes)) or not hasattr(raw, "__iter__"):
        raise StateFormatError("players must be a list")
    return tuple(p if isinstance(p, Player) else Player.from_dict(p) for p in raw)


def coerce_history(raw) -> Tuple[Tuple[int, ...], ...]:
    try:
        return tuple(tuple(int(v) for v in h) for h in raw)
    except (TypeError, ValueError) as e:
        raise StateFormatError(f"history must be two lists of integers: {e!r}") from e


def default_state() -> MatchState:
    return MatchState(
        players=tuple(
            Player(name=name, flag=flag, score=DEFAULT_STARTING_SCORE)
            for name, flag in DEFAULT_PLAYERS
        ),
        active_player_index=0,
        starting_score=DEFAULT_STARTING_SCORE,
        first_to_legs=DEFAULT_FIRST_TO_LEGS,
        match_title=DEFAULT_MATCH_TITLE,
        tournament_info=DEFAULT_TOURNAMENT_INFO,
        history=((), ()),
    )


# =========================================================
# ACTIONS
# =========================================================

@dataclass(frozen=True)
class SubtractScore:
    amount: int
    type: ClassVar[str] = "SUBTRACT_SCORE"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "amount": self.amount}


@dataclass(frozen=True)
class Undo:
    type: ClassVar[str] = "UNDO"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class NextLeg:
    type: ClassVar[str] = "NEXT_LEG"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class UpdatePlayer:
    index: int
    data: Mapping[str, Any]
    type: ClassVar[str] = "UPDATE_PLAYER"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "index": self.index, "data": dict(self.data)}


@dataclass(frozen=True)
class UpdateConfig:
    data: Mapping[str, Any]
    type: ClassVar[str] = "UPDATE_CONFIG"

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for key, value in self.data.items():
            if key == "players":
                value = [p.to_dict() if isinstance(p, Player) else dict(p) for p in value]
            elif key == "history":
                value = [list(h) for h in value]
            data[key] = value
        return {"type": self.type, "data": data}


@dataclass(frozen=True)
class ResetGame:
    type: ClassVar[str] = "RESET_GAME"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


Action = Union[SubtractScore, Undo, NextLeg, UpdatePlayer, UpdateConfig, ResetGame]


def action_from_dict(d: Mapping[str, Any]) -> Action:
    """
    Decode the wire form emitted by the operator surface,
    e.g. {"type": "SUBTRACT_SCORE", "amount": 60}.
    """
    if not isinstance(d, Mapping) or "type" not in d:
        raise InvalidActionError("invalid action format")

    kind = d["type"]
    try:
        if kind == SubtractScore.type:
            return SubtractScore(amount=d["amount"])
        if kind == UpdatePlayer.type:
            return UpdatePlayer(index=d["index"], data=dict(d["data"]))
        if kind == UpdateConfig.type:
            return UpdateConfig(data=dict(d["data"]))
    except KeyError as e:
        raise InvalidActionError(f"{kind} action missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise InvalidActionError(f"{kind} action has malformed data") from e

    if kind == Undo.type:
        return Undo()
    if kind == NextLeg.type:
        return NextLeg()
    if kind == ResetGame.type:
        return ResetGame()

    raise InvalidActionError(f"Unknown action type: {kind}")
