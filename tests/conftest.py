"""
Shared pytest fixtures and configuration for StreamStore tests.
"""

import pytest
from reactivex import operators as ops
from reactivex.testing import TestScheduler

from streamstore import channel, make_store


@pytest.fixture
def scheduler():
    """Provide a virtual-time scheduler; time only moves on advance_by()."""
    return TestScheduler()


@pytest.fixture
def counter_store():
    """The classic counter: increment and decrement ignore their arguments."""
    return make_store(
        {"count": 0},
        {
            "increment": channel(lambda *_: lambda s: {**s, "count": s["count"] + 1}),
            "decrement": channel(lambda *_: lambda s: {**s, "count": s["count"] - 1}),
        },
    )


@pytest.fixture
def text_store():
    """A store with a number and a string, where ``scream`` takes an argument."""
    return make_store(
        {"number": 0, "text": ""},
        {
            "increment": lambda args: args.pipe(
                ops.map(lambda _: lambda s: {**s, "number": s["number"] + 1})
            ),
            "scream": lambda args: args.pipe(
                ops.map(lambda a: lambda s: {**s, "text": s["text"] + a[0].upper()})
            ),
        },
    )
