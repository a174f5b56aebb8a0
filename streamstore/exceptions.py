"""
StreamStore Exceptions
======================

Errors raised synchronously by the StreamStore API.

Failures that happen *inside* a running stream graph (a channel stream
erroring, a reducer raising) are never raised to callers: they terminate the
bound instance and are recorded on ``Binding.error`` instead.
"""


class StreamStoreError(Exception):
    """Base class for all StreamStore errors."""


class StoreDefinitionError(StreamStoreError, ValueError):
    """Raised when a store definition is malformed."""


class UnknownChannelError(StreamStoreError, AttributeError, KeyError):
    """Raised when looking up a callback for a channel that was never declared."""

    def __init__(self, name: str, known=()):
        known = tuple(known)
        super().__init__(
            f"Unknown channel '{name}'. Declared channels: {', '.join(known) or '<none>'}"
        )
        # set after __init__, which resets AttributeError.name
        self.name = name
        self.known = known

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class BindingStateError(StreamStoreError, RuntimeError):
    """Raised when a binding lifecycle method is called in the wrong state."""
