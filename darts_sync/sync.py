import json
import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from darts_sync.config import STORAGE_KEY
from darts_sync.exceptions import StateFormatError
from darts_sync.models import MatchState

logger = logging.getLogger(__name__)

Subscriber = Callable[[MatchState], None]


class SyncChannel(Protocol):
    """
    Full-snapshot publish/subscribe between viewers.

    Delivery is at-least-once and unordered; whichever state arrives
    last wins. Publishers never receive their own snapshots.
    """

    def publish(self, state: MatchState) -> None: ...

    def subscribe(self, callback: Subscriber) -> Callable[[], None]: ...

    def close(self) -> None: ...


class _Subscribers:

    def __init__(self):
        self._callbacks: List[Subscriber] = []

    def add(self, callback: Subscriber) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def deliver(self, state: MatchState):
        for callback in list(self._callbacks):
            callback(state)

    def clear(self):
        self._callbacks = []


# =========================================================
# IN-PROCESS BUS
# =========================================================

class InMemorySyncBus:
    """
    Shared bus for viewers living in one process.
    Each viewer takes its own endpoint().
    """

    def __init__(self):
        self._endpoints: List["BusEndpoint"] = []

    def endpoint(self) -> "BusEndpoint":
        ep = BusEndpoint(self)
        self._endpoints.append(ep)
        return ep

    def detach(self, ep: "BusEndpoint"):
        if ep in self._endpoints:
            self._endpoints.remove(ep)

    def __len__(self):
        return len(self._endpoints)

    def _broadcast(self, sender: "BusEndpoint", state: MatchState):
        targets = [ep for ep in self._endpoints if ep is not sender]
        logger.debug("Broadcasting state to %d endpoint(s)", len(targets))
        for ep in targets:
            ep._subscribers.deliver(state)


class BusEndpoint:

    def __init__(self, bus: InMemorySyncBus):
        self._bus = bus
        self._subscribers = _Subscribers()

    def publish(self, state: MatchState) -> None:
        self._bus._broadcast(self, state)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self._subscribers.add(callback)

    def close(self) -> None:
        """
        Stop receiving. Publishing from a closed endpoint still reaches
        the others.
        """
        self._subscribers.clear()
        self._bus.detach(self)


# =========================================================
# SHARED FILE CHANNEL
# =========================================================

class FileSyncChannel:
    """
    Sync through a shared JSON file, one channel per viewer.

    publish() writes {STORAGE_KEY: state}. poll() re-reads the file and
    delivers the state only when the content changed since this channel
    last wrote or saw it, so a viewer is never notified of its own write.
    """

    def __init__(self, path: Path, key: str = STORAGE_KEY):
        self.path = Path(path)
        self.key = key
        self._subscribers = _Subscribers()
        self._last_seen: Optional[str] = self._read_raw()

    def publish(self, state: MatchState) -> None:
        raw = json.dumps({self.key: state.to_dict()}, ensure_ascii=False)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(raw, encoding="utf-8")
        tmp_path.replace(self.path)

        self._last_seen = raw

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self._subscribers.add(callback)

    def close(self) -> None:
        self._subscribers.clear()

    def poll(self) -> Optional[MatchState]:
        """
        Deliver the shared state if another viewer changed it.
        Returns the delivered state, or None when nothing changed.
        """
        raw = self._read_raw()
        if raw is None or raw == self._last_seen:
            return None

        self._last_seen = raw

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StateFormatError(f"sync file is not valid JSON: {e}") from e

        if not isinstance(payload, dict) or self.key not in payload:
            logger.debug("Sync file has no %s entry, ignoring", self.key)
            return None

        state = MatchState.from_dict(payload[self.key])
        logger.debug("Received state from %s", self.path)
        self._subscribers.deliver(state)
        return state

    def _read_raw(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")
