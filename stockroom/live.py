"""Change notification and live, re-evaluating query results.

The ledger store publishes a :class:`ChangeEvent` after every committed write.
A :class:`LiveResult` wraps a loader function; subscribing to it emits
``Loading`` once, then a fresh ``Success``/``Error`` on every relevant change
until the subscription is closed.
"""
import enum
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional

from stockroom.errors import LedgerError
from stockroom.schemas.result import Error, Loading, Result, Success

logger = logging.getLogger(__name__)


class ChangeKind(str, enum.Enum):
    STOCK = "STOCK"
    THRESHOLD = "THRESHOLD"
    PRODUCT_ADDED = "PRODUCT_ADDED"
    RESET = "RESET"


@dataclass(frozen=True)
class ChangeEvent:
    # None means the change touched every product (ledger reset)
    product_id: Optional[int]
    kind: ChangeKind


class ChangeNotifier:
    """Listener registry keyed by product id, plus wildcard listeners."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._listeners = {}  # token -> (product_id or None, callback)

    def add_listener(self, callback: Callable[[ChangeEvent], None], product_id: Optional[int] = None) -> int:
        with self._lock:
            token = next(self._tokens)
            self._listeners[token] = (product_id, callback)
        return token

    def remove_listener(self, token: int) -> None:
        with self._lock:
            self._listeners.pop(token, None)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [
                callback
                for key, callback in self._listeners.values()
                if key is None or event.product_id is None or key == event.product_id
            ]
        # Called outside the lock so listeners may (un)subscribe re-entrantly
        for callback in targets:
            try:
                callback(event)
            except Exception:
                logger.exception("Change listener failed for %s", event)


class LiveResult:
    def __init__(
        self,
        loader: Callable[[], object],
        notifier: ChangeNotifier,
        *,
        product_id: Optional[int] = None,
        kinds: Optional[FrozenSet[ChangeKind]] = None,
    ):
        self._loader = loader
        self.notifier = notifier
        self.product_id = product_id
        self.kinds = frozenset(kinds) if kinds else frozenset(ChangeKind)

    def accepts(self, event: ChangeEvent) -> bool:
        return event.kind in self.kinds

    def current(self) -> Result:
        try:
            return Success(data=self._loader())
        except LedgerError as exc:
            return Error(message=str(exc), cause=exc)

    def map(self, transform: Callable) -> "LiveResult":
        loader = self._loader
        return LiveResult(lambda: transform(loader()), self.notifier,
                          product_id=self.product_id, kinds=self.kinds)

    def subscribe(self, callback: Callable[[Result], None]) -> "Subscription":
        subscription = Subscription(self, callback)
        subscription.start()
        return subscription


class Subscription:
    """Handle for one live subscriber. ``close()`` is the only way to stop it."""

    def __init__(self, source: LiveResult, callback: Callable[[Result], None]):
        self._source = source
        self._callback = callback
        self._lock = threading.RLock()
        self._token = None
        self._closed = False
        self.last: Optional[Result] = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def source(self) -> LiveResult:
        return self._source

    def start(self) -> None:
        with self._lock:
            self._callback(Loading())
            self._register()
            self.refresh()

    def refresh(self) -> None:
        with self._lock:
            if self._closed:
                return
            result = self._source.current()
            self.last = result
            self._callback(result)

    def replace_source(self, source: LiveResult) -> None:
        """Swap what is being watched and emit its value straight away."""
        with self._lock:
            if self._closed:
                return
            rekey = source.product_id != self._source.product_id
            self._source = source
            if rekey:
                self._source.notifier.remove_listener(self._token)
                self._register()
            self.refresh()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._source.notifier.remove_listener(self._token)

    def _register(self) -> None:
        self._token = self._source.notifier.add_listener(self._on_change, product_id=self._source.product_id)

    def _on_change(self, event: ChangeEvent) -> None:
        if self._source.accepts(event):
            self.refresh()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
