from typing import Iterable, List, Mapping, Optional, Union

from darts_sync.engine import apply
from darts_sync.models import Action, MatchState, action_from_dict, default_state


def build_match_timeline(
    actions: Iterable[Union[Action, Mapping]],
    initial_state: Optional[MatchState] = None,
) -> List[MatchState]:
    """
    Replays a match from initial_state (default: a fresh match).
    Returns the state after each action.
    Does NOT mutate external state.
    """

    state = initial_state if initial_state is not None else default_state()

    timeline: List[MatchState] = []

    for action in actions:
        if isinstance(action, Mapping):
            action = action_from_dict(action)

        state = apply(state, action)
        timeline.append(state)

    return timeline
