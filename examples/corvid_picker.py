import logging
import re
import time

import reactivex
from reactivex import operators as ops

from streamstore import Owner, channel, make_store

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

CORVIDAE = [
    "Crow",
    "Raven",
    "Rook",
    "Jackdaw",
    "Jay",
    "Magpie",
    "Treepie",
    "Chough",
    "Nutcracker",
]
DEBOUNCE = 0.3  # seconds


def search(text):
    return [corvid for corvid in CORVIDAE if re.search(re.escape(text), corvid, re.I)]


def text_changed(invocations):
    """Show what was typed at once, and search only once typing pauses."""
    text = invocations.pipe(ops.map(lambda args: args[0]))
    return reactivex.merge(
        text.pipe(
            ops.map(lambda value: lambda s: {**s, "current": value, "searching": True})
        ),
        text.pipe(
            ops.debounce(DEBOUNCE),
            ops.map(search),
            ops.map(lambda found: lambda s: {**s, "searching": False, "results": found}),
        ),
    )


def picker(selected):
    # The selection comes in through the dependency tuple, so the store follows
    # whatever the host passes in.
    return make_store(
        {"current": "", "searching": False, "results": [], "selected": selected},
        {
            "text_changed": text_changed,
            "pick": channel(lambda corvid: lambda s: {**s, "selected": corvid}),
        },
        dependency_channel=lambda deps: deps.pipe(
            ops.map(lambda d: lambda s: {**s, "selected": d[0]})
        ),
    )


props = {"selected": "Jay"}


def render():
    selected = props["selected"]
    actions, state = owner.use_store(picker(selected), [selected], site="picker")
    status = "searching..." if state["searching"] else f"{len(state['results'])} found"
    print(
        f"[{state['current']:<6}] {status:<13} "
        f"results={state['results']} selected={state['selected']}"
    )
    return actions


# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Typing a search")
print("-" * 100)
print()

owner = Owner(on_update=render)
actions = render()

for prefix in ("r", "ro", "roo"):
    actions.text_changed(prefix)
    time.sleep(DEBOUNCE / 3)
time.sleep(DEBOUNCE * 2)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Picking")
print("-" * 100)
print()

actions.pick("Rook")
props["selected"] = "Magpie"
render()  # a new selection from the host wins again

owner.release()
