"""Unit tests for the compose engine."""

import pytest
import reactivex
from reactivex import operators as ops
from reactivex.subject import BehaviorSubject, Subject

from streamstore import (
    Actions,
    UnknownChannelError,
    channel,
    compose,
    default_composer,
    make_store,
)
from tests.utils import Recorder


def counter_channel(step):
    return channel(lambda *_: lambda s: {**s, "count": s["count"] + step})


@pytest.mark.unit
@pytest.mark.compose
def test_compose_creates_one_callback_per_channel_in_declaration_order(counter_store):
    """The actions mapping mirrors the declared channels"""
    actions, _, _ = compose(counter_store)

    assert isinstance(actions, Actions)
    assert list(actions) == ["increment", "decrement"]
    assert len(actions) == 2


@pytest.mark.unit
@pytest.mark.compose
def test_compose_is_lazy_until_state_is_subscribed():
    """Channel pipelines are built but nothing is subscribed yet"""
    seen = []
    definition = make_store(
        0,
        {"tap": lambda args: args.pipe(ops.do_action(seen.append), ops.map(lambda _: lambda s: s))},
    )

    composed = compose(definition)
    composed.actions.tap("before subscribe")
    Recorder().attach(composed.state)
    composed.actions.tap("after subscribe")

    assert seen == [("after subscribe",)]


@pytest.mark.unit
@pytest.mark.compose
def test_compose_calls_each_channel_definition_exactly_once():
    """Channel definitions are construction-time transforms, not per-call handlers"""
    calls = []

    def tracked(args):
        calls.append("tracked")
        return args.pipe(ops.map(lambda _: lambda s: s + 1))

    composed = compose(make_store(0, {"tracked": tracked}))
    rec = Recorder().attach(composed.state)
    for _ in range(3):
        composed.actions.tracked()

    assert calls == ["tracked"]
    assert rec.values == [0, 1, 2, 3]


@pytest.mark.unit
@pytest.mark.compose
def test_state_stream_starts_with_initial_state(counter_store):
    """The visible stream yields the initial snapshot synchronously"""
    composed = compose(counter_store)

    rec = Recorder().attach(composed.state)

    assert rec.values == [{"count": 0}]


@pytest.mark.unit
@pytest.mark.compose
def test_callbacks_push_their_arguments_as_a_tuple():
    """A callback forwards exactly the arguments it was called with"""
    received = []
    definition = make_store(
        None,
        {"record": lambda args: args.pipe(ops.do_action(received.append), ops.map(lambda _: lambda s: s))},
    )
    composed = compose(definition)
    Recorder().attach(composed.state)

    composed.actions.record()
    composed.actions.record(1)
    composed.actions.record("a", {"b": 2})

    assert received == [(), (1,), ("a", {"b": 2})]


@pytest.mark.unit
@pytest.mark.compose
def test_invocations_only_reach_their_own_channel():
    """Calling one channel does not emit on any other channel's input"""
    seen = {"a": [], "b": []}

    def recorder(name):
        return lambda args: args.pipe(
            ops.do_action(seen[name].append), ops.map(lambda _: lambda s: s)
        )

    composed = compose(make_store(0, {"a": recorder("a"), "b": recorder("b")}))
    Recorder().attach(composed.state)

    composed.actions.a(1)
    composed.actions.a(2)

    assert seen == {"a": [(1,), (2,)], "b": []}


@pytest.mark.unit
@pytest.mark.compose
def test_counter_folds_reducers_in_invocation_order(counter_store):
    """increment, increment, decrement leaves the counter at one"""
    composed = compose(counter_store)
    rec = Recorder().attach(composed.state)

    composed.actions.increment()
    composed.actions.increment()
    composed.actions.decrement()

    assert rec.values == [{"count": 0}, {"count": 1}, {"count": 2}, {"count": 1}]


@pytest.mark.unit
@pytest.mark.compose
def test_cross_channel_reducers_apply_in_real_time_order():
    """C1 then C2 applies C1's reducer first, then C2's"""
    definition = make_store(
        "",
        {
            "c1": channel(lambda: lambda s: s + "1"),
            "c2": channel(lambda: lambda s: s + "2"),
        },
    )
    composed = compose(definition)
    rec = Recorder().attach(composed.state)

    composed.actions.c1()
    composed.actions.c2()
    composed.actions.c1()

    assert rec.last == "121"


@pytest.mark.unit
@pytest.mark.compose
def test_one_invocation_can_yield_many_reducers():
    """A channel may emit several reducers for a single call"""
    definition = make_store(
        0,
        {
            "burst": lambda args: args.pipe(
                ops.flat_map(lambda a: reactivex.from_iterable([lambda s: s + 1] * a[0]))
            )
        },
    )
    composed = compose(definition)
    rec = Recorder().attach(composed.state)

    composed.actions.burst(3)

    assert rec.values == [0, 1, 2, 3]


@pytest.mark.unit
@pytest.mark.compose
def test_one_invocation_can_yield_no_reducer():
    """A channel may filter invocations out entirely"""
    definition = make_store(
        0,
        {
            "positive": lambda args: args.pipe(
                ops.filter(lambda a: a[0] > 0), ops.map(lambda a: lambda s: s + a[0])
            )
        },
    )
    composed = compose(definition)
    rec = Recorder().attach(composed.state)

    composed.actions.positive(-4)
    composed.actions.positive(4)

    assert rec.values == [0, 4]


@pytest.mark.unit
@pytest.mark.compose
def test_dependency_channel_receives_dependency_tuples():
    """The dependency channel is fed from the given dependency stream"""
    deps = BehaviorSubject(("1",))
    definition = make_store(
        {"b": None},
        {},
        dependency_channel=lambda d: d.pipe(ops.map(lambda t: lambda s: {**s, "b": t[0]})),
    )
    composed = compose(definition, deps)
    rec = Recorder().attach(composed.state)

    deps.on_next(("2",))

    assert rec.values == [{"b": None}, {"b": "1"}, {"b": "2"}]


@pytest.mark.unit
@pytest.mark.compose
def test_dependency_channel_without_dependency_stream_sees_an_empty_stream():
    """No dependency stream means the dependency channel never fires"""
    fired = []
    definition = make_store(
        0,
        {"inc": channel(lambda: lambda s: s + 1)},
        dependency_channel=lambda d: d.pipe(ops.do_action(fired.append), ops.map(lambda _: lambda s: s)),
    )
    composed = compose(definition)
    rec = Recorder().attach(composed.state)
    composed.actions.inc()

    assert fired == []
    assert rec.values == [0, 1]


@pytest.mark.unit
@pytest.mark.compose
def test_custom_accumulator_replaces_the_default_fold():
    """The accumulator receives merged reducers and the initial state"""
    received = {}

    def accumulator(reducers, initial_state):
        received["initial"] = initial_state
        return default_composer(reducers, initial_state).pipe(
            ops.map(lambda s: {**s, "doubled": s["count"] * 2})
        )

    definition = make_store(
        {"count": 0},
        {"increment": counter_channel(1)},
        accumulator=accumulator,
    )
    composed = compose(definition)
    rec = Recorder().attach(composed.state)
    composed.actions.increment()

    assert received["initial"] == {"count": 0}
    assert rec.values == [{"count": 0, "doubled": 0}, {"count": 1, "doubled": 2}]


@pytest.mark.unit
@pytest.mark.compose
def test_output_channel_view_is_not_persisted():
    """View reducers change what is shown, never the accumulated base"""
    bases = []

    def output(states):
        return states.pipe(
            ops.do_action(bases.append),
            ops.map(lambda s: lambda latest: {**latest, "label": f"#{s['count']}"}),
        )

    definition = make_store(
        {"count": 0},
        {"increment": counter_channel(1)},
        output_channel=output,
    )
    composed = compose(definition)
    rec = Recorder().attach(composed.state)
    composed.actions.increment()

    assert rec.last == {"count": 1, "label": "#1"}
    assert all("label" not in base for base in bases)


@pytest.mark.unit
@pytest.mark.compose
def test_output_channel_shares_a_single_accumulation():
    """Reducers are applied once even though two stages read the states"""
    applied = []

    def increment(_args):
        def reducer(s):
            applied.append(s)
            return s + 1

        return reducer

    definition = make_store(
        0,
        {"increment": channel(increment)},
        output_channel=lambda states: states.pipe(ops.map(lambda s: lambda latest: latest)),
    )
    composed = compose(definition)
    Recorder().attach(composed.state)
    composed.actions.increment(None)

    assert applied == [0]


@pytest.mark.unit
@pytest.mark.compose
def test_unknown_channel_lookup_raises(counter_store):
    """Looking up an undeclared channel fails loudly, by key or attribute"""
    actions = compose(counter_store).actions

    with pytest.raises(UnknownChannelError, match="Unknown channel 'reset'"):
        actions.reset
    with pytest.raises(KeyError):
        actions["reset"]
    assert "reset" not in actions
    assert "increment" in actions


@pytest.mark.unit
@pytest.mark.compose
def test_actions_are_read_only(counter_store):
    """Callbacks cannot be replaced on the actions mapping"""
    actions = compose(counter_store).actions

    with pytest.raises(AttributeError):
        actions.increment = lambda: None


@pytest.mark.unit
@pytest.mark.compose
def test_close_stops_all_emitters(counter_store):
    """After close() callbacks are ignored"""
    composed = compose(counter_store)
    rec = Recorder().attach(composed.state)

    composed.close()
    composed.actions.increment()

    assert rec.values == [{"count": 0}]
    assert all(emitter.is_stopped for emitter in composed.emitters.values())


@pytest.mark.unit
@pytest.mark.compose
def test_definition_can_be_composed_many_times_independently(counter_store):
    """Each composition owns its own emitters and state"""
    first = compose(counter_store)
    second = compose(counter_store)
    rec_first = Recorder().attach(first.state)
    rec_second = Recorder().attach(second.state)

    first.actions.increment()
    first.actions.increment()
    second.actions.decrement()

    assert rec_first.last == {"count": 2}
    assert rec_second.last == {"count": -1}


@pytest.mark.unit
@pytest.mark.compose
def test_compose_with_no_channels_emits_initial_state_then_completes():
    """A store without any channel is a constant"""
    composed = compose(make_store("constant", {}))

    rec = Recorder().attach(composed.state)

    assert rec.values == ["constant"]
    assert rec.completed


@pytest.mark.unit
@pytest.mark.compose
def test_channel_error_terminates_the_state_stream(counter_store):
    """An erroring channel stream ends the whole state stream"""
    failing = Subject()
    definition = make_store(
        {"count": 0},
        {**counter_store.channels, "fail": lambda _args: failing},
    )
    composed = compose(definition)
    rec = Recorder().attach(composed.state)
    composed.actions.increment()

    failing.on_error(RuntimeError("channel broke"))
    composed.actions.increment()

    assert rec.last == {"count": 1}
    assert str(rec.error) == "channel broke"
