"""
StreamStore Compose Engine
==========================

This module turns a ``StoreDefinition`` into a live stream graph:

1. one ``Subject`` per declared channel, plus a callback that pushes the
   callback's arguments (as a tuple) into it;
2. every channel definition applied to its subject, and the dependency
   channel (if any) applied to the dependency-tuple stream;
3. all resulting reducer streams merged into one timeline;
4. the timeline accumulated into states, by the default fold or by the
   definition's custom accumulator;
5. optionally, the output channel applied to the accumulated states and the
   latest view reducer combined with the latest state.

Nothing runs until the returned state stream is subscribed; the binding
manager in ``streamstore.binding`` owns that subscription.
"""

import logging
from typing import Any, Callable, Dict, Iterator, Mapping, NamedTuple, Optional

import reactivex
from reactivex import Observable
from reactivex.subject import Subject

from .definition import StoreDefinition
from .exceptions import UnknownChannelError
from .operators import combine_view, fold, merge_reducers, share_latest
from .types import Callback

logger = logging.getLogger(__name__)


def default_composer(reducers: Observable, initial_state: Any) -> Observable:
    """
    The default accumulation: fold ``reducers`` over ``initial_state``.

    The result emits ``initial_state`` synchronously on subscription. Custom
    accumulators can wrap it instead of re-implementing the fold:

    ```python
    def with_validation(reducers, initial_state):
        return default_composer(reducers, initial_state).pipe(
            ops.map(lambda s: {**s, "valid": "@" in (s.get("email") or "")})
        )
    ```
    """
    return fold(reducers, initial_state)


class Actions(Mapping):
    """
    Read-only mapping of channel name to invocation callback.

    Callbacks are reachable both by key and as attributes:

    ```python
    actions["increment"]()
    actions.increment()
    ```
    """

    __slots__ = ("_callbacks",)

    def __init__(self, callbacks: Dict[str, Callback]):
        object.__setattr__(self, "_callbacks", dict(callbacks))

    def __getitem__(self, name: str) -> Callback:
        try:
            return self._callbacks[name]
        except KeyError:
            raise UnknownChannelError(name, self._callbacks) from None

    def __getattr__(self, name: str) -> Callback:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Actions are read-only")

    def __iter__(self) -> Iterator[str]:
        return iter(self._callbacks)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __repr__(self) -> str:
        return f"Actions({', '.join(self._callbacks)})"


class ComposedStore(NamedTuple):
    """The result of composing a definition: callbacks and visible states."""

    actions: Actions
    state: Observable
    emitters: Mapping[str, Subject]

    def close(self) -> None:
        """Complete every channel emitter; later callback invocations are ignored."""
        for emitter in self.emitters.values():
            emitter.on_completed()


def _make_callback(name: str, emitter: Subject) -> Callback:
    def invoke(*args: Any) -> None:
        if emitter.is_stopped:
            logger.debug("Ignoring call to '%s': store has been released", name)
            return
        emitter.on_next(args)

    invoke.__name__ = name
    invoke.__qualname__ = f"Actions.{name}"
    return invoke


def compose(
    definition: StoreDefinition,
    dependencies: Optional[Observable] = None,
) -> ComposedStore:
    """
    Build the stream graph for one bound instance of ``definition``.

    Every channel definition (and the dependency and output channels) is
    called exactly once here.

    Args:
        definition: The store to compose.
        dependencies: Stream of dependency tuples fed to the dependency
            channel. Ignored when the definition declares none.

    Returns:
        A ``ComposedStore`` of callbacks and the externally visible state
        stream: the accumulated states, or the combined view when an output
        channel is declared.
    """
    registry: Dict[str, Subject] = {}
    reducer_streams = []

    for name, channel_definition in definition.channels.items():
        emitter = Subject()
        registry[name] = emitter
        reducer_streams.append(channel_definition(emitter))

    if definition.dependency_channel is not None:
        reducer_streams.insert(
            0,
            definition.dependency_channel(
                reactivex.empty() if dependencies is None else dependencies
            ),
        )

    reducers = merge_reducers(*reducer_streams)
    accumulate: Callable[[Observable, Any], Observable] = (
        definition.accumulator or default_composer
    )
    states = accumulate(reducers, definition.initial_state)

    if definition.output_channel is not None:
        shared = share_latest(states)
        visible = combine_view(shared, definition.output_channel(shared))
    else:
        visible = states

    actions = Actions(
        {name: _make_callback(name, emitter) for name, emitter in registry.items()}
    )
    logger.debug(
        "Composed store with channels [%s] (dependency=%s, output=%s, accumulator=%s)",
        ", ".join(registry),
        definition.dependency_channel is not None,
        definition.output_channel is not None,
        definition.accumulator is not None,
    )
    return ComposedStore(actions, visible, registry)
