import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from darts_sync.engine import apply, can_undo
from darts_sync.models import Action, MatchState, ResetGame, action_from_dict
from darts_sync.storage import JsonFileStore, load_or_default
from darts_sync.sync import SyncChannel

logger = logging.getLogger(__name__)


class MatchSession:
    """
    One viewer's copy of the match.

    Responsibilities:
    - Hold the current MatchState (the engine itself stays pure)
    - Persist and broadcast after every dispatched action
    - Accept whole states arriving from other viewers (last write wins)
    - Replay action logs atomically
    """

    def __init__(
        self,
        store: Optional[JsonFileStore] = None,
        channel: Optional[SyncChannel] = None,
        initial_state: Optional[MatchState] = None,
    ):
        self._store = store
        self._channel = channel
        self._state = initial_state if initial_state is not None else load_or_default(store)
        self._actions: List[Action] = []
        self._unsubscribe = channel.subscribe(self.receive) if channel is not None else None

    @property
    def state(self) -> MatchState:
        return self._state

    # ---------------------------------------------------------
    # Core API
    # ---------------------------------------------------------

    def dispatch(self, action: Union[Action, Mapping[str, Any]]) -> MatchState:
        if isinstance(action, Mapping):
            action = action_from_dict(action)

        next_state = apply(self._state, action)

        logger.debug("%s -> active player %d", action.type, next_state.active_player_index)

        self._commit(next_state, broadcast=True)
        self._actions.append(action)
        return next_state

    def receive(self, state: MatchState):
        """
        Replace the held state with one from another viewer.
        Not re-broadcast, and not checked against the match invariants.
        """
        logger.debug("Replacing state with externally received snapshot")
        self._commit(state, broadcast=False)

    def can_undo(self) -> bool:
        return can_undo(self._state)

    def load_actions(self, actions: List[Dict]) -> List[MatchState]:
        """
        Bulk apply actions from their wire form.
        Atomic: if any action fails -> no state mutation.
        """
        if not isinstance(actions, list):
            raise ValueError("actions must be a list")

        # Convert first (validation stage)
        decoded = [action_from_dict(a) for a in actions]

        state = self._state
        timeline: List[MatchState] = []
        for action in decoded:
            state = apply(state, action)
            timeline.append(state)

        # If everything succeeds → commit
        if timeline:
            self._commit(state, broadcast=True)
        self._actions.extend(decoded)

        return timeline

    def export_actions(self) -> List[Dict]:
        return [a.to_dict() for a in self._actions]

    def reset(self) -> MatchState:
        state = self.dispatch(ResetGame())
        self._actions = []
        return state

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        if self._channel is not None:
            self._channel.close()

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------

    def _commit(self, state: MatchState, broadcast: bool):
        # a failed save leaves the held state and the action log untouched
        if self._store is not None:
            self._store.save(state)

        self._state = state

        if broadcast and self._channel is not None:
            self._channel.publish(state)
