"""
StreamStore Owner - Binding Cache for One Owner Lifetime
========================================================

An ``Owner`` stands for one lifetime of whatever hosts the stores: a UI
component instance, a CLI session, a long-lived service object, a test. The
host calls ``use_store`` every time it (re-)evaluates and ``release`` when the
lifetime ends.

Each call site is identified by an explicit, stable *site token*. The first
``use_store`` for a token binds a new instance; every later call with the same
token reuses that instance and only forwards the dependency tuple. A token
defaults to the definition object itself, which is fine as long as the host
keeps passing the same definition.

Example:
    ```python
    def render():
        actions, state = owner.use_store(counter, site="counter")
        print(f"count = {state['count']}")

    owner = Owner(on_update=render)
    render()                                    # count = 0
    owner.use_store(counter, site="counter")[0].increment()   # count = 1
    owner.release()
    ```
"""

import logging
from typing import Any, Callable, Dict, Hashable, Optional, Sequence, Tuple

from .binding import Binding
from .compose import Actions
from .definition import StoreDefinition
from .exceptions import BindingStateError

logger = logging.getLogger(__name__)


class Owner:
    """
    Explicit instance cache for the stores used by one owner lifetime.

    Args:
        on_update: Called without arguments whenever the visible snapshot of
            any owned store changes outside a ``use_store`` call. This is the
            host's "re-evaluate me" hook.
    """

    def __init__(self, on_update: Optional[Callable[[], None]] = None) -> None:
        self._on_update = on_update
        self._bindings: Dict[Hashable, Binding] = {}
        self._released = False
        self._evaluating = 0

    @property
    def released(self) -> bool:
        return self._released

    @property
    def bindings(self) -> Dict[Hashable, Binding]:
        """Site token to binding, for inspection."""
        return dict(self._bindings)

    def use_store(
        self,
        definition: StoreDefinition,
        deps: Optional[Sequence[Any]] = None,
        *,
        site: Optional[Hashable] = None,
    ) -> Tuple[Actions, Any]:
        """
        Bind ``definition`` at ``site`` on first use, re-evaluate it afterwards.

        When a binding already exists for ``site`` it is reused even if a
        different definition object is passed; the definition only matters
        for the first call.

        Args:
            definition: The store to bind.
            deps: Current dependency tuple, ``None`` meaning ``()``.
            site: Stable token identifying this call site. Defaults to
                ``definition``.

        Returns:
            ``(actions, snapshot)`` where ``snapshot`` is the current visible
            value, including any change caused by ``deps``.

        Raises:
            BindingStateError: If the owner has been released.
        """
        if self._released:
            raise BindingStateError("Owner has been released")

        key = definition if site is None else site
        self._evaluating += 1
        try:
            binding = self._bindings.get(key)
            if binding is None:
                binding = Binding(definition, deps, on_change=self._changed)
                try:
                    binding.bind()
                except Exception:
                    binding.release()
                    raise
                self._bindings[key] = binding
            else:
                logger.debug("Reusing binding for site %r", key)
                binding.re_evaluate(deps)
        finally:
            self._evaluating -= 1

        return binding.actions, binding.snapshot

    def release(self) -> None:
        """Release every owned binding. Calling it again has no effect."""
        if self._released:
            return
        self._released = True
        bindings, self._bindings = self._bindings, {}
        for binding in bindings.values():
            binding.release()
        logger.debug("Owner released %d binding(s)", len(bindings))

    def _changed(self, _snapshot: Any) -> None:
        if self._evaluating or self._on_update is None:
            return
        self._on_update()

    def __enter__(self) -> "Owner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
