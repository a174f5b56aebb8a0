import logging
import re
import time

import reactivex
from reactivex import operators as ops

from streamstore import Owner, channel, make_store

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

EMAIL = re.compile(r"^\S+@\S+$")
CHECK_DELAY = 0.5  # seconds, stands in for a server round-trip


def check_email(email):
    """Pretend to ask a server whether ``email`` is acceptable."""
    return reactivex.of(bool(EMAIL.match(email or ""))).pipe(ops.delay(CHECK_DELAY))


# The output channel sees every accumulated state. It starts a check for the latest
# one, drops checks for older states, and turns the answer into a view reducer. The
# "valid" flag is only shown, never stored.
def validation(states):
    return states.pipe(
        ops.map(lambda s: check_email(s["email"])),
        ops.switch_latest(),
        ops.map(lambda valid: lambda latest: {**latest, "valid": valid}),
    )


form = make_store(
    {"name": None, "email": None, "valid": False},
    {
        "set_name": channel(lambda name: lambda s: {**s, "name": name}),
        "set_email": channel(lambda email: lambda s: {**s, "email": email}),
    },
    output_channel=validation,
)


def render():
    actions, state = owner.use_store(form)
    mark = "✓" if state["valid"] else "✗"
    print(f"{mark} name={state['name']!r} email={state['email']!r}")
    return actions


# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Typing into the form")
print("-" * 100)
print()

owner = Owner(on_update=render)
actions = render()

actions.set_name("Bob Ross")
actions.set_email("bob")
actions.set_email("bob@")
actions.set_email("bob@ross.art")  # only this check gets to answer

time.sleep(CHECK_DELAY * 2)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Breaking the address again")
print("-" * 100)
print()

# The previous verdict is shown until the new check lands.
actions.set_email("bob ross")
time.sleep(CHECK_DELAY * 2)

owner.release()
