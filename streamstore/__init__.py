"""
StreamStore - Channel-Composed Reactive State
=============================================

Compose one piece of state out of independent, named channels. Each channel
turns its invocations into reducers; the engine merges every channel's
reducers into one timeline and folds it into a live snapshot.

```python
from streamstore import Owner, channel, make_store

counter = make_store(
    {"count": 0},
    {
        "increment": channel(lambda: lambda s: {"count": s["count"] + 1}),
        "decrement": channel(lambda: lambda s: {"count": s["count"] - 1}),
    },
)

with Owner() as owner:
    actions, state = owner.use_store(counter)
    actions.increment()
    actions.increment()
    actions.decrement()
    print(owner.use_store(counter)[1])  # {'count': 1}
```
"""

__version__ = "0.1.0"

from .binding import Binding, BindingState, dependencies_changed
from .compose import Actions, ComposedStore, compose, default_composer
from .definition import StoreDefinition, channel, make_store
from .exceptions import (
    BindingStateError,
    StoreDefinitionError,
    StreamStoreError,
    UnknownChannelError,
)
from .operators import combine_view, fold, merge_reducers, share_latest
from .owner import Owner
from .types import identity

__all__ = [
    # Definitions
    "StoreDefinition",
    "make_store",
    "channel",
    # Compose engine
    "compose",
    "default_composer",
    "Actions",
    "ComposedStore",
    # Lifecycle
    "Binding",
    "BindingState",
    "Owner",
    "dependencies_changed",
    # Stream primitives
    "merge_reducers",
    "fold",
    "share_latest",
    "combine_view",
    "identity",
    # Exceptions
    "StreamStoreError",
    "StoreDefinitionError",
    "UnknownChannelError",
    "BindingStateError",
]
