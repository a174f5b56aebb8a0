"""
StreamStore Binding - Lifecycle of One Bound Instance
=====================================================

A ``Binding`` ties one composed stream graph to one owner lifetime. It moves
through three states::

    UNBOUND --bind()--> BOUND --release()--> RELEASED

- ``bind()`` creates the dependency-tuple stream (seeded with the current
  tuple), composes the definition and subscribes to the visible state stream.
- ``re_evaluate(deps)`` pushes ``deps`` into the dependency stream when it
  differs positionally from the last pushed tuple, and does nothing
  otherwise. It is the only trigger of the dependency channel after bind.
- ``release()`` unsubscribes (cancelling any pending asynchronous work inside
  channels), completes the dependency stream and stops every channel emitter.

Failures inside the stream graph terminate the visible stream. The binding
then keeps showing the last snapshot it received, records the exception on
``error`` and logs it; nothing is raised to the owner.

Example:
    ```python
    with Binding(counter, on_change=lambda s: print("now", s)) as binding:
        binding.actions.increment()   # now {'count': 1}
        print(binding.snapshot)       # {'count': 1}
    ```
"""

import logging
from enum import Enum
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

from reactivex.abc import DisposableBase
from reactivex.subject import BehaviorSubject

from .compose import Actions, ComposedStore, compose
from .definition import StoreDefinition
from .exceptions import BindingStateError
from .types import DependencyTuple

logger = logging.getLogger(__name__)

S = TypeVar("S")


class BindingState(Enum):
    """Lifecycle states of a ``Binding``."""

    UNBOUND = "unbound"
    BOUND = "bound"
    RELEASED = "released"


def dependencies_changed(previous: DependencyTuple, current: DependencyTuple) -> bool:
    """
    Shallow positional comparison of two dependency tuples.

    Returns:
        True if the lengths differ or any pair of elements is neither the
        same object nor equal.
    """
    if len(previous) != len(current):
        return True
    return any(old is not new and old != new for old, new in zip(previous, current))


def _as_tuple(deps: Optional[DependencyTuple]) -> Tuple[Any, ...]:
    return () if deps is None else tuple(deps)


class Binding(Generic[S]):
    """
    One bound instance of a ``StoreDefinition``.

    Args:
        definition: The store to bind.
        deps: Initial dependency tuple; ``None`` is the same as ``()``.
        on_change: Called with the new visible snapshot every time it changes
            after ``bind()`` returned. Hosts use it to re-evaluate the owner.
    """

    def __init__(
        self,
        definition: StoreDefinition[S],
        deps: Optional[DependencyTuple] = None,
        on_change: Optional[Callable[[S], None]] = None,
    ) -> None:
        self._definition = definition
        self._deps = _as_tuple(deps)
        self._on_change = on_change
        self._state = BindingState.UNBOUND
        self._snapshot: S = definition.initial_state
        self._error: Optional[Exception] = None
        self._completed = False
        self._dependencies: Optional[BehaviorSubject] = None
        self._composed: Optional[ComposedStore] = None
        self._subscription: Optional[DisposableBase] = None
        self._binding = False

    @property
    def definition(self) -> StoreDefinition[S]:
        return self._definition

    @property
    def state(self) -> BindingState:
        """Current lifecycle state."""
        return self._state

    @property
    def snapshot(self) -> S:
        """The latest visible snapshot."""
        return self._snapshot

    @property
    def deps(self) -> Tuple[Any, ...]:
        """The last dependency tuple pushed into the dependency stream."""
        return self._deps

    @property
    def error(self) -> Optional[Exception]:
        """The failure that terminated the stream graph, if any."""
        return self._error

    @property
    def is_active(self) -> bool:
        """True while bound and the visible stream is still running."""
        return (
            self._state is BindingState.BOUND
            and self._error is None
            and not self._completed
        )

    @property
    def actions(self) -> Actions:
        """Channel callbacks. Only available once bound."""
        if self._composed is None:
            raise BindingStateError("Binding has no actions until bind() is called")
        return self._composed.actions

    def bind(self) -> "Binding[S]":
        """
        Construct the stream graph and start listening to it.

        Returns:
            This binding, for chaining.

        Raises:
            BindingStateError: If already bound or released.
        """
        if self._state is not BindingState.UNBOUND:
            raise BindingStateError(f"Cannot bind a binding that is {self._state.value}")

        self._dependencies = BehaviorSubject(self._deps)
        self._composed = compose(self._definition, self._dependencies)
        self._state = BindingState.BOUND

        # Synchronous emissions during subscribe are the initial value, not changes
        self._binding = True
        try:
            self._subscription = self._composed.state.subscribe(
                self._on_next, self._on_error, self._on_completed
            )
        finally:
            self._binding = False

        logger.debug("Bound %r with deps %r", self._definition, self._deps)
        return self

    def re_evaluate(self, deps: Optional[DependencyTuple] = None) -> bool:
        """
        Feed the owner's current dependency tuple.

        Args:
            deps: The dependency tuple; ``None`` is the same as ``()``.

        Returns:
            True if the tuple changed and was pushed, False otherwise.

        Raises:
            BindingStateError: If not bound.
        """
        if self._state is not BindingState.BOUND:
            raise BindingStateError(
                f"Cannot re-evaluate a binding that is {self._state.value}"
            )

        current = _as_tuple(deps)
        if not dependencies_changed(self._deps, current):
            return False

        logger.debug("Dependencies changed %r -> %r", self._deps, current)
        self._deps = current
        self._dependencies.on_next(current)
        return True

    def release(self) -> None:
        """
        Tear the stream graph down. Calling it again has no effect.

        An unbound binding goes straight to RELEASED.
        """
        if self._state is BindingState.RELEASED:
            return

        previous, self._state = self._state, BindingState.RELEASED
        if previous is BindingState.UNBOUND:
            return

        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        self._dependencies.on_completed()
        self._composed.close()
        logger.debug("Released %r at snapshot %r", self._definition, self._snapshot)

    def _on_next(self, snapshot: S) -> None:
        self._snapshot = snapshot
        if self._on_change is not None and not self._binding:
            self._on_change(snapshot)

    def _on_error(self, error: Exception) -> None:
        self._error = error
        logger.error(
            "Store %r stopped updating after a stream failure; "
            "keeping last snapshot %r",
            self._definition,
            self._snapshot,
            exc_info=(type(error), error, error.__traceback__),
        )

    def _on_completed(self) -> None:
        self._completed = True
        logger.debug("Visible state stream of %r completed", self._definition)

    def __enter__(self) -> "Binding[S]":
        if self._state is BindingState.UNBOUND:
            self.bind()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    def __repr__(self) -> str:
        return (
            f"Binding({self._definition!r}, state={self._state.value}, "
            f"snapshot={self._snapshot!r})"
        )
