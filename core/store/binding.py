"""
Live Read Binding - Subscribe a View to a Locator

A binding exposes ``ReadState(data, is_loading, error)`` for one locator:

- Null locator: nothing is subscribed, ``data`` is None and ``is_loading``
  is False ("not applicable", not "loading").
- Non-null locator: a subscription opens and ``is_loading`` stays True until
  the first snapshot arrives. Each snapshot replaces ``data`` whole.
- Errors populate ``error`` and leave the last ``data`` in place.

The caller owns the lifecycle: ``close()`` must be called on teardown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from core.errors import StoreError
from core.store.backend import DocumentSnapshot, DocumentStore, Snapshot, Unsubscribe
from core.store.locator import Locator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadState:
    """Immutable state of a read binding."""

    data: Any = None
    is_loading: bool = False
    error: Optional[StoreError] = None

    @property
    def has_data(self) -> bool:
        return self.data is not None


IDLE = ReadState()

StateListener = Callable[[ReadState], None]


def _materialise(snapshot: Snapshot) -> Any:
    if snapshot is None:
        return None
    if isinstance(snapshot, DocumentSnapshot):
        return snapshot.to_dict()
    return [doc.to_dict() for doc in snapshot]


class LiveReadBinding:
    """Keeps a ReadState in sync with one document or query."""

    def __init__(self, store: DocumentStore, locator: Optional[Locator] = None):
        self._store = store
        self._locator: Optional[Locator] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._state = IDLE
        self._listeners: list[StateListener] = []
        # Bumped on every rebind so late callbacks from a closed
        # subscription are ignored
        self._generation = 0
        if locator is not None:
            self.bind(locator)

    @property
    def state(self) -> ReadState:
        return self._state

    @property
    def locator(self) -> Optional[Locator]:
        return self._locator

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register for state changes; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _set_state(self, state: ReadState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _teardown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def bind(self, locator: Optional[Locator]) -> None:
        """
        Point the binding at a new locator.

        Rebinding to an equal locator is a no-op; otherwise the previous
        subscription is closed before the new one opens.
        """
        if locator == self._locator and (locator is None or self.is_subscribed):
            return

        self._teardown()
        self._generation += 1
        self._locator = locator

        if locator is None:
            self._set_state(IDLE)
            return

        generation = self._generation
        self._set_state(ReadState(data=None, is_loading=True))

        def on_snapshot(snapshot: Snapshot) -> None:
            if generation == self._generation:
                self._set_state(ReadState(data=_materialise(snapshot), is_loading=False))

        def on_error(error: StoreError) -> None:
            if generation == self._generation:
                logger.warning("Read failed for %s: %s", locator.path, error)
                self._set_state(ReadState(data=self._state.data, is_loading=False, error=error))

        unsubscribe = self._store.subscribe(locator, on_snapshot, on_error)
        if generation == self._generation:
            self._unsubscribe = unsubscribe
        else:
            unsubscribe()

    def close(self) -> None:
        """Dispose of the subscription."""
        self._teardown()
        self._generation += 1
        self._locator = None


# =============================================================================
# Joined Reads
# =============================================================================


class ReadGroup:
    """
    Several independent bindings backing one view.

    Each binding resolves on its own; the group reports which parts are
    ready so the view can render any subset.
    """

    def __init__(self, store: DocumentStore, locators: Mapping[str, Optional[Locator]]):
        self.bindings: dict[str, LiveReadBinding] = {
            name: LiveReadBinding(store, locator) for name, locator in locators.items()
        }

    def rebind(self, locators: Mapping[str, Optional[Locator]]) -> None:
        for name, locator in locators.items():
            self.bindings[name].bind(locator)

    def state(self, name: str) -> ReadState:
        return self.bindings[name].state

    @property
    def pending(self) -> list[str]:
        return [name for name, b in self.bindings.items() if b.state.is_loading]

    @property
    def resolved(self) -> dict[str, Any]:
        return {
            name: b.state.data
            for name, b in self.bindings.items()
            if not b.state.is_loading and b.locator is not None
        }

    @property
    def errors(self) -> dict[str, StoreError]:
        return {name: b.state.error for name, b in self.bindings.items() if b.state.error}

    def close(self) -> None:
        for binding in self.bindings.values():
            binding.close()
