"""
StreamStore Definition - Declarative Store Descriptions
=======================================================

A ``StoreDefinition`` describes *what* a store is, without creating any live
streams: an initial snapshot, a mapping of named channels, and three optional
extension points. Definitions are immutable and can be bound any number of
times; every binding gets its own independent stream graph.

Channels
--------

A channel definition receives the stream of argument tuples produced by its
callback and returns a stream of reducers. It is called once per bound
instance, so it should set up persistent pipelines rather than one-shot
handlers:

```python
from reactivex import operators as ops

def increment(args):
    return args.pipe(ops.map(lambda _: lambda s: {**s, "count": s["count"] + 1}))
```

For the common "one invocation, one reducer" case, ``channel`` builds the
pipeline from a reducer factory:

```python
increment = channel(lambda: lambda s: {**s, "count": s["count"] + 1})
rename = channel(lambda name: lambda s: {**s, "name": name})
```

Extension Points
----------------

- **dependency_channel**: same shape as a channel, but its input stream emits
  the owner's dependency tuple on bind and whenever it changes.
- **output_channel**: receives the accumulated state stream and returns view
  reducers; their result is shown to the owner but never stored.
- **accumulator**: replaces the default fold entirely. See
  ``streamstore.compose.default_composer``.
"""

from collections import abc
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar

from reactivex import Observable
from reactivex import operators as ops

from .exceptions import StoreDefinitionError
from .types import Accumulator, ChannelDefinition

S = TypeVar("S")


@dataclass(frozen=True, eq=False)
class StoreDefinition(Generic[S]):
    """
    Immutable description of a store.

    Attributes:
        initial_state: The snapshot every bound instance starts from.
        channels: Channel name to channel definition, in declaration order.
        dependency_channel: Optional channel fed with dependency tuples.
        output_channel: Optional channel fed with accumulated snapshots,
            producing non-persisted view reducers.
        accumulator: Optional replacement for the default fold.

    Raises:
        StoreDefinitionError: If a channel name is not a string or any
            channel or extension point is not callable.
    """

    initial_state: S
    channels: Mapping[str, ChannelDefinition] = field(default_factory=dict)
    dependency_channel: Optional[ChannelDefinition] = None
    output_channel: Optional[ChannelDefinition] = None
    accumulator: Optional[Accumulator] = None

    def __post_init__(self) -> None:
        if not isinstance(self.channels, Mapping):
            raise StoreDefinitionError(
                f"channels must be a mapping, got {type(self.channels).__name__}"
            )

        for name, definition in self.channels.items():
            if not isinstance(name, str) or not name:
                raise StoreDefinitionError(
                    f"Channel names must be non-empty strings, got {name!r}"
                )
            if hasattr(abc.Mapping, name):
                raise StoreDefinitionError(
                    f"Channel name '{name}' is reserved by the actions mapping"
                )
            if not callable(definition):
                raise StoreDefinitionError(
                    f"Channel '{name}' must be callable, got {type(definition).__name__}"
                )

        for option in ("dependency_channel", "output_channel", "accumulator"):
            value = getattr(self, option)
            if value is not None and not callable(value):
                raise StoreDefinitionError(
                    f"{option} must be callable, got {type(value).__name__}"
                )

        # Freeze a private copy so later edits to the caller's dict are not seen
        object.__setattr__(self, "channels", MappingProxyType(dict(self.channels)))

    @property
    def channel_names(self):
        """Declared channel names, in declaration order."""
        return tuple(self.channels)

    def __repr__(self) -> str:
        extras = [
            option
            for option in ("dependency_channel", "output_channel", "accumulator")
            if getattr(self, option) is not None
        ]
        parts = [f"initial_state={self.initial_state!r}"]
        parts.append(f"channels=[{', '.join(self.channels)}]")
        if extras:
            parts.append(f"with={'+'.join(extras)}")
        return f"StoreDefinition({', '.join(parts)})"


def make_store(
    initial_state: S,
    channels: Mapping[str, ChannelDefinition],
    *,
    dependency_channel: Optional[ChannelDefinition] = None,
    output_channel: Optional[ChannelDefinition] = None,
    accumulator: Optional[Accumulator] = None,
) -> StoreDefinition[S]:
    """
    Convenience constructor for ``StoreDefinition``.

    Example:
        ```python
        counter = make_store(
            {"count": 0},
            {
                "increment": channel(lambda: lambda s: {"count": s["count"] + 1}),
                "decrement": channel(lambda: lambda s: {"count": s["count"] - 1}),
            },
        )
        ```
    """
    return StoreDefinition(
        initial_state=initial_state,
        channels=channels,
        dependency_channel=dependency_channel,
        output_channel=output_channel,
        accumulator=accumulator,
    )


def channel(make_reducer: Callable[..., Callable[[Any], Any]]) -> ChannelDefinition:
    """
    Build a channel that turns every invocation into exactly one reducer.

    ``make_reducer`` is called with the callback's positional arguments and
    must return a reducer.

    Args:
        make_reducer: Reducer factory, e.g. ``lambda name: lambda s: ...``.

    Returns:
        A channel definition.
    """
    if not callable(make_reducer):
        raise StoreDefinitionError(
            f"channel() expects a callable, got {type(make_reducer).__name__}"
        )

    def definition(invocations: Observable) -> Observable:
        return invocations.pipe(ops.map(lambda args: make_reducer(*args)))

    definition.__name__ = getattr(make_reducer, "__name__", "channel")
    return definition
