"""Setup callbacks run by the harness before tests."""

from __future__ import annotations

from typing import Callable, List

from compose_harness.core.logging import get_logger

logger = get_logger("hooks")

GlobalHook = Callable[[], None]
PerRunHook = Callable[[str], None]


class HookRegistry:
    """
    Ordered setup callbacks.

    Global hooks take no arguments and run once, before the first run.
    Per-run hooks receive the resolved target address and run before every
    test body. Both run in registration order; an exception from a hook
    propagates and aborts the run. Register hooks before the first run.
    """

    def __init__(self):
        self._global: List[GlobalHook] = []
        self._per_run: List[PerRunHook] = []

    def register_global_hook(self, fn: GlobalHook) -> GlobalHook:
        self._global.append(fn)
        return fn

    def register_per_run_hook(self, fn: PerRunHook) -> PerRunHook:
        self._per_run.append(fn)
        return fn

    @property
    def global_hooks(self) -> tuple[GlobalHook, ...]:
        return tuple(self._global)

    @property
    def per_run_hooks(self) -> tuple[PerRunHook, ...]:
        return tuple(self._per_run)

    def run_global(self) -> None:
        for fn in self._global:
            logger.debug("Running global hook %s", getattr(fn, "__name__", fn))
            fn()

    def run_per_run(self, address: str) -> None:
        for fn in self._per_run:
            logger.debug("Running per-run hook %s", getattr(fn, "__name__", fn))
            fn(address)
