import logging
import time

import reactivex
from reactivex import operators as ops

from streamstore import Owner, channel, make_store

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

TICK = 0.1  # seconds

INITIAL = {"time": 0.0, "splits": (), "running": False}


def toggle(invocations):
    """Start an interval while running; switching to a new call stops the old one."""

    def run(running):
        if not running:
            return reactivex.of(lambda s: {**s, "running": False})
        return reactivex.interval(TICK).pipe(
            ops.map(lambda _: lambda s: {**s, "time": round(s["time"] + TICK, 1)}),
            ops.start_with(lambda s: {**s, "running": True}),
        )

    return invocations.pipe(
        ops.map(lambda args: run(args[0])),
        ops.switch_latest(),
    )


stop_watch = make_store(
    INITIAL,
    {
        "toggle": toggle,
        "split": channel(lambda: lambda s: {**s, "splits": s["splits"] + (s["time"],)}),
        "reset": lambda invocations: invocations.pipe(ops.map(lambda _: lambda s: INITIAL)),
    },
)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Running the stop-watch")
print("-" * 100)
print()

with Owner() as owner:
    actions, state = owner.use_store(stop_watch)
    print(state)

    actions.toggle(True)
    time.sleep(0.55)
    actions.split()
    time.sleep(0.3)
    actions.toggle(False)

    _, state = owner.use_store(stop_watch)
    print(f"stopped at {state['time']}s, splits {state['splits']}")

    time.sleep(0.3)
    _, state = owner.use_store(stop_watch)
    print(f"still {state['time']}s while stopped")

    actions.reset()
    print(owner.use_store(stop_watch)[1])
