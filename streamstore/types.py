"""
Type aliases shared across StreamStore.

Streams are ``reactivex.Observable`` instances; everything else is a plain
callable so that channel authors never have to subclass anything.
"""

from typing import Any, Callable, Sequence, TypeVar

from reactivex import Observable

S = TypeVar("S")

# A pure state transition.
Reducer = Callable[[S], S]

DependencyTuple = Sequence[Any]

# Maps the stream of invocation arguments to a stream of reducers.
ChannelDefinition = Callable[[Observable], Observable]

# Replaces the default fold: (reducer stream, initial state) -> state stream.
Accumulator = Callable[[Observable, Any], Observable]

Callback = Callable[..., None]


def identity(state: S) -> S:
    """Reducer that leaves the state untouched."""
    return state
