import logging

from streamstore import Owner, channel, make_store

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Defining a store")
print("-" * 100)
print()

# A store is an initial state plus named channels. channel() turns a reducer factory
# into a channel: every call becomes one reducer applied to the current state.
counter = make_store(
    {"count": 0},
    {
        "increment": channel(lambda: lambda s: {**s, "count": s["count"] + 1}),
        "decrement": channel(lambda: lambda s: {**s, "count": s["count"] - 1}),
        "add": channel(lambda amount: lambda s: {**s, "count": s["count"] + amount}),
    },
)
print(counter)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Using the store from an owner")
print("-" * 100)
print()


# The owner calls render again whenever a callback changes the visible state.
def render():
    actions, state = owner.use_store(counter)
    print(f"count = {state['count']}")
    return actions


owner = Owner(on_update=render)
actions = render()  # count = 0

actions.increment()  # count = 1
actions.increment()  # count = 2
actions.decrement()  # count = 1
actions.add(10)  # count = 11

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Releasing")
print("-" * 100)
print()

owner.release()

# Callbacks kept around after release are ignored, nothing is printed.
actions.increment()
print("released, last value stays at 11")
