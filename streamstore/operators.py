"""
StreamStore Operators - Merge, Fold and Combine Primitives
==========================================================

This module provides the three stream primitives the compose engine is built
from. Each one is a plain function returning a ``reactivex.Observable`` so it
can be tested, and reused, on its own:

- ``merge_reducers``: interleaves several reducer streams into one timeline,
  in arrival order, with no priority between sources.
- ``fold``: left fold over a reducer stream that emits its seed synchronously
  at subscription time, so subscribers always have a current value.
- ``combine_view``: pairs the latest snapshot with the latest view reducer and
  emits ``reducer(snapshot)`` whenever either side updates.

``share_latest`` additionally multicasts one upstream subscription to many
subscribers and replays the most recent value to late subscribers. The engine
uses it so that the accumulated state is folded exactly once per bound
instance, even when the output channel and the combine stage both read it.

All primitives propagate synchronously in the context that delivers the
event. None of them schedule work, and none buffer more than the single most
recent value they need.

Example:
    ```python
    from reactivex.subject import Subject
    from streamstore.operators import fold, merge_reducers

    inc, dec = Subject(), Subject()
    states = fold(merge_reducers(inc, dec), 0)
    states.subscribe(print)        # 0
    inc.on_next(lambda n: n + 1)   # 1
    dec.on_next(lambda n: n - 1)   # 0
    ```
"""

from typing import Any, Callable, List, Optional

import reactivex
from reactivex import Observable, abc
from reactivex.disposable import (
    CompositeDisposable,
    Disposable,
    SingleAssignmentDisposable,
)

from .types import Reducer, identity

# Marks "no value seen yet"; None is a legitimate snapshot.
_NOTHING = object()


def merge_reducers(*sources: Observable) -> Observable:
    """
    Merge reducer streams into a single timeline.

    Events are forwarded in the order the substrate delivers them. Relative
    order of events from the same source is preserved exactly; order across
    sources is real delivery order, nothing stronger.

    The merged stream errors as soon as any source errors (which disposes
    every other source) and completes once all sources have completed. With
    no sources it completes immediately.

    Args:
        *sources: Reducer streams to interleave.

    Returns:
        An Observable emitting every reducer from every source.
    """

    def subscribe(
        observer: abc.ObserverBase, scheduler: Optional[abc.SchedulerBase] = None
    ) -> abc.DisposableBase:
        group = CompositeDisposable()
        active = len(sources)

        if not sources:
            observer.on_completed()
            return group

        def on_completed() -> None:
            nonlocal active
            active -= 1
            if active == 0:
                observer.on_completed()

        for source in sources:
            group.add(
                source.subscribe(
                    observer.on_next,
                    observer.on_error,
                    on_completed,
                    scheduler=scheduler,
                )
            )
        return group

    return reactivex.create(subscribe)


def fold(reducers: Observable, seed: Any) -> Observable:
    """
    Fold a reducer stream over ``seed``.

    The seed is emitted synchronously on subscription, before any reducer has
    arrived. Each reducer is then applied to the previous snapshot and the
    result emitted. A reducer that raises terminates the stream with that
    exception and the previous snapshot stays the last emitted one.

    Args:
        reducers: Stream of ``state -> state`` functions.
        seed: The initial snapshot.

    Returns:
        An Observable of snapshots, starting with ``seed``.
    """

    def subscribe(
        observer: abc.ObserverBase, scheduler: Optional[abc.SchedulerBase] = None
    ) -> abc.DisposableBase:
        state = seed
        observer.on_next(state)

        def on_next(reducer: Reducer) -> None:
            nonlocal state
            try:
                next_state = reducer(state)
            except Exception as error:  # forwarded, not swallowed
                observer.on_error(error)
                return
            state = next_state
            observer.on_next(state)

        return reducers.subscribe(
            on_next, observer.on_error, observer.on_completed, scheduler=scheduler
        )

    return reactivex.create(subscribe)


def share_latest(source: Observable) -> Observable:
    """
    Share one subscription to ``source`` between all subscribers.

    The upstream subscription is made when the first subscriber arrives and
    disposed when the last one leaves. Subscribers that arrive while it is
    connected receive the most recent value immediately. A terminal
    notification (error or completion) is replayed to later subscribers until
    the connection is re-established.

    Args:
        source: The stream to multicast.

    Returns:
        A ref-counted Observable replaying the latest value.
    """
    observers: List[abc.ObserverBase] = []
    connection: Optional[SingleAssignmentDisposable] = None
    latest: Any = _NOTHING
    terminal: Optional[Callable[[abc.ObserverBase], None]] = None

    def on_next(value: Any) -> None:
        nonlocal latest
        latest = value
        for observer in list(observers):
            observer.on_next(value)

    def on_error(error: Exception) -> None:
        nonlocal terminal
        terminal = lambda obs: obs.on_error(error)
        for observer in list(observers):
            observer.on_error(error)

    def on_completed() -> None:
        nonlocal terminal
        terminal = lambda obs: obs.on_completed()
        for observer in list(observers):
            observer.on_completed()

    def subscribe(
        observer: abc.ObserverBase, scheduler: Optional[abc.SchedulerBase] = None
    ) -> abc.DisposableBase:
        nonlocal connection, latest, terminal

        if connection is not None:
            if latest is not _NOTHING:
                observer.on_next(latest)
            if terminal is not None:
                terminal(observer)
                return Disposable()

        observers.append(observer)

        if connection is None:
            latest, terminal = _NOTHING, None
            connection = SingleAssignmentDisposable()
            connection.disposable = source.subscribe(
                on_next, on_error, on_completed, scheduler=scheduler
            )

        def dispose() -> None:
            nonlocal connection
            if observer in observers:
                observers.remove(observer)
            if not observers and connection is not None:
                current, connection = connection, None
                current.dispose()

        return Disposable(dispose)

    return reactivex.create(subscribe)


def combine_view(
    states: Observable,
    view_reducers: Observable,
    default: Callable[[Any], Any] = identity,
) -> Observable:
    """
    Apply the latest view reducer to the latest snapshot.

    ``default`` stands in for the view reducer until ``view_reducers`` emits,
    so a value is produced as soon as the first snapshot arrives. After that
    the view is recomputed whenever either input updates; reusing an older
    view reducer against a newer snapshot is intended. The computed value is
    emitted only and never fed back into ``states``.

    The combined stream errors when either input errors (or a view reducer
    raises), and completes once both inputs have completed.

    Args:
        states: Stream of snapshots.
        view_reducers: Stream of ``snapshot -> view`` functions.
        default: View reducer used before the first one arrives.

    Returns:
        An Observable of views.
    """

    def subscribe(
        observer: abc.ObserverBase, scheduler: Optional[abc.SchedulerBase] = None
    ) -> abc.DisposableBase:
        state: Any = _NOTHING
        reducer = default
        pending = 2

        def emit() -> None:
            if state is _NOTHING:
                return
            try:
                view = reducer(state)
            except Exception as error:  # forwarded, not swallowed
                observer.on_error(error)
                return
            observer.on_next(view)

        def on_state(value: Any) -> None:
            nonlocal state
            state = value
            emit()

        def on_reducer(value: Callable[[Any], Any]) -> None:
            nonlocal reducer
            reducer = value
            emit()

        def on_completed() -> None:
            nonlocal pending
            pending -= 1
            if pending == 0:
                observer.on_completed()

        group = CompositeDisposable()
        group.add(
            states.subscribe(
                on_state, observer.on_error, on_completed, scheduler=scheduler
            )
        )
        group.add(
            view_reducers.subscribe(
                on_reducer, observer.on_error, on_completed, scheduler=scheduler
            )
        )
        return group

    return reactivex.create(subscribe)
