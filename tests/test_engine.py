from dataclasses import replace

import pytest

from darts_sync.engine import apply
from darts_sync.exceptions import InvalidActionError
from darts_sync.models import (
    MatchState,
    NextLeg,
    Player,
    ResetGame,
    SubtractScore,
    Undo,
    UpdateConfig,
    UpdatePlayer,
    default_state,
)


def make_state(score_a=501, score_b=501, active=0, legs=(0, 0), history=((), ())):
    return MatchState(
        players=(
            Player(name="A", flag="X", score=score_a, legs=legs[0]),
            Player(name="B", flag="Y", score=score_b, legs=legs[1]),
        ),
        active_player_index=active,
        starting_score=501,
        first_to_legs=6,
        match_title="FINAL",
        tournament_info="OPEN",
        history=history,
    )


# ---------- FINISHING THROW ----------

def test_finishing_throw_wins_leg():
    state = make_state(score_a=40)

    nxt = apply(state, SubtractScore(amount=40))

    assert nxt.players[0].score == 0
    assert nxt.players[0].legs == 1
    assert nxt.history[0] == (40,)
    assert nxt.active_player_index == 0


@pytest.mark.parametrize("active", [0, 1])
def test_finishing_throw_keeps_active_player(active):
    state = make_state(score_a=100, score_b=100, active=active)

    nxt = apply(state, SubtractScore(amount=100))

    assert nxt.active_player_index == active
    assert nxt.players[active].legs == 1
    assert nxt.players[1 - active].legs == 0


# ---------- BUST ----------

@pytest.mark.parametrize("score, amount", [
    (32, 31),    # leaves 1
    (2, 1),      # leaves 1
    (40, 60),    # below zero
    (1, 180),    # below zero
])
def test_bust_discards_throw_and_passes_turn(score, amount):
    state = make_state(score_a=score)

    nxt = apply(state, SubtractScore(amount=amount))

    assert nxt.players[0].score == score
    assert nxt.history == ((), ())
    assert nxt.active_player_index == 1


def test_bust_for_second_player_returns_turn_to_first():
    state = make_state(score_b=10, active=1)

    nxt = apply(state, SubtractScore(amount=9))

    assert nxt.players[1].score == 10
    assert nxt.active_player_index == 0


# ---------- ORDINARY THROW ----------

@pytest.mark.parametrize("score, amount, remaining", [
    (501, 60, 441),
    (501, 180, 321),
    (50, 48, 2),
    (501, 0, 501),
])
def test_valid_throw_subtracts_and_flips(score, amount, remaining):
    state = make_state(score_a=score)

    nxt = apply(state, SubtractScore(amount=amount))

    assert nxt.players[0].score == remaining
    assert nxt.history[0] == (amount,)
    assert nxt.active_player_index == 1


def test_history_keeps_order():
    state = make_state()

    for amount in (60, 45, 100, 26):
        state = apply(state, SubtractScore(amount=amount))

    assert state.history == ((60, 100), (45, 26))
    assert state.players[0].score == 341
    assert state.players[1].score == 430


# ---------- UNDO ----------

def test_undo_with_empty_history_is_noop():
    state = make_state()

    assert apply(state, Undo()) == state


def test_undo_restores_last_throw():
    state = make_state()
    thrown = apply(state, SubtractScore(amount=60))

    undone = apply(thrown, Undo())

    assert undone == state


def test_undo_walks_back_alternating_players():
    state = make_state()
    for amount in (60, 45):
        state = apply(state, SubtractScore(amount=amount))

    state = apply(state, Undo())
    assert state.players[1].score == 501
    assert state.active_player_index == 1

    state = apply(state, Undo())
    assert state.players[0].score == 501
    assert state.active_player_index == 0

    assert apply(state, Undo()) == state


def test_undo_after_bust_reaches_previous_valid_throw():
    state = make_state(score_a=100, score_b=32, active=1, history=((401,), ()))

    busted = apply(state, SubtractScore(amount=31))
    assert busted.active_player_index == 0

    undone = apply(busted, Undo())

    # player 1 has no accepted throws, so nothing changes
    assert undone == busted


def test_undo_after_leg_win_does_not_touch_legs():
    state = make_state(score_a=40, score_b=300, history=((461,), (201,)))

    won = apply(state, SubtractScore(amount=40))
    undone = apply(won, Undo())

    # the finisher stays active, so undo reaches player 1's last throw
    assert undone.players[0].legs == 1
    assert undone.players[0].score == 0
    assert undone.players[1].score == 501
    assert undone.history == ((461, 40), ())
    assert undone.active_player_index == 1


# ---------- NEXT LEG ----------

@pytest.mark.parametrize("legs, expected_active", [
    ((0, 0), 0),
    ((1, 0), 1),
    ((0, 1), 1),
    ((1, 1), 0),
    ((3, 2), 1),
])
def test_next_leg_alternates_by_total_legs(legs, expected_active):
    state = make_state(score_a=0, score_b=120, legs=legs, history=((501,), (381,)))

    nxt = apply(state, NextLeg())

    assert nxt.players[0].score == 501
    assert nxt.players[1].score == 501
    assert nxt.history == ((), ())
    assert nxt.active_player_index == expected_active
    assert (nxt.players[0].legs, nxt.players[1].legs) == legs


def test_next_leg_uses_current_starting_score():
    state = replace(make_state(score_a=0), starting_score=301)

    nxt = apply(state, NextLeg())

    assert [p.score for p in nxt.players] == [301, 301]


# ---------- UPDATE PLAYER / CONFIG ----------

def test_update_player_merges_fields():
    state = make_state()

    nxt = apply(state, UpdatePlayer(index=1, data={"name": "NEW", "sets": 2}))

    assert nxt.players[1].name == "NEW"
    assert nxt.players[1].sets == 2
    assert nxt.players[1].flag == "Y"
    assert nxt.players[0] == state.players[0]


def test_update_config_accepts_wire_and_attribute_names():
    state = make_state()

    nxt = apply(state, UpdateConfig(data={"startingScore": 301, "match_title": "SEMI"}))

    assert nxt.starting_score == 301
    assert nxt.match_title == "SEMI"
    # no clamping of running scores
    assert nxt.players[0].score == 501


def test_update_config_replaces_players_and_history_wholesale():
    state = make_state()

    nxt = apply(state, UpdateConfig(data={
        "players": [
            {"name": "C", "flag": "", "legs": 2, "score": 90, "sets": 0},
            {"name": "D", "flag": "", "legs": 1, "score": 70, "sets": 0},
        ],
        "history": [[411], [431]],
    }))

    assert nxt.players[0].name == "C"
    assert nxt.players[1].score == 70
    assert nxt.history == ((411,), (431,))


# ---------- RESET ----------

def test_reset_returns_default_state():
    state = make_state(score_a=12, legs=(4, 5), history=((489,), ()))

    assert apply(state, ResetGame()) == default_state()


# ---------- PURITY ----------

def test_apply_never_mutates_input():
    state = make_state()
    snapshot = state.to_dict()

    for action in (SubtractScore(amount=60), Undo(), NextLeg(),
                   UpdatePlayer(index=0, data={"name": "Z"}),
                   UpdateConfig(data={"firstToLegs": 3}), ResetGame()):
        apply(state, action)

    assert state.to_dict() == snapshot


# ---------- PRECONDITIONS ----------

@pytest.mark.parametrize("action", [
    SubtractScore(amount=-1),
    SubtractScore(amount=2.5),
    SubtractScore(amount=True),
    UpdatePlayer(index=2, data={}),
    UpdatePlayer(index=0, data={"colour": "red"}),
    UpdateConfig(data={"bestOf": 5}),
    "SUBTRACT_SCORE",
])
def test_malformed_actions_fail_fast(action):
    with pytest.raises(InvalidActionError):
        apply(make_state(), action)


# ---------- MERGED VALUES STAY LOADABLE ----------

@pytest.mark.parametrize("action", [
    UpdatePlayer(index=0, data={"legs": None}),
    UpdatePlayer(index=0, data={"score": "40"}),
    UpdatePlayer(index=1, data={"name": 7}),
    UpdateConfig(data={"players": [{"name": "A", "flag": "", "legs": 0, "score": 501, "sets": 0}]}),
    UpdateConfig(data={"players": [{"name": "A"}, {"name": "B"}]}),
    UpdateConfig(data={"history": [[60]]}),
    UpdateConfig(data={"history": [[60], ["x"]]}),
    UpdateConfig(data={"activePlayerIndex": 2}),
    UpdateConfig(data={"startingScore": "301"}),
    UpdateConfig(data={"matchTitle": None}),
])
def test_merges_that_cannot_be_reloaded_are_rejected(action):
    with pytest.raises(InvalidActionError):
        apply(make_state(), action)
