"""Cascading highlight transitions between two options of an ordered list.

When the selection jumps from one option to another, every option lying
between them is briefly highlighted in the direction of travel. The
selection itself is committed immediately; the highlight is cosmetic.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from storefront.config import settings
from storefront.services.transitions.scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeStep:
    option: str
    add_at: float
    remove_at: float


@dataclass(frozen=True)
class CascadePlan:
    steps: tuple[CascadeStep, ...] = ()
    step_delay: float | None = None

    @property
    def between(self) -> list[str]:
        return [step.option for step in self.steps]

    @property
    def duration(self) -> float:
        return max((step.remove_at for step in self.steps), default=0.0)


def cascade_between(
    options: Sequence[str],
    current: str | None,
    new_value: str,
) -> list[str] | None:
    """Options strictly between ``current`` and ``new_value``, in travel order.

    Returns None when either end is not part of ``options``.
    """

    options = list(options)
    current_index = options.index(current) if current in options else -1
    new_index = options.index(new_value) if new_value in options else -1
    if current_index == -1 or new_index == -1:
        return None

    start = min(current_index, new_index)
    end = max(current_index, new_index)
    between = options[start + 1 : end]
    if current_index > new_index:
        between.reverse()
    return between


def plan_cascade(
    options: Sequence[str],
    current: str | None,
    new_value: str,
    budget: float | None = None,
    lead_out: float | None = None,
) -> CascadePlan:
    if new_value == current:
        return CascadePlan()

    between = cascade_between(options, current, new_value)
    if between is None:
        return CascadePlan()

    budget = settings.CASCADE_BUDGET_MS if budget is None else budget
    lead_out = settings.CASCADE_LEAD_OUT_MS if lead_out is None else lead_out
    step_delay = budget / (len(between) + 1)

    steps = tuple(
        CascadeStep(
            option=option,
            add_at=idx * step_delay,
            remove_at=(idx + 1) * step_delay + lead_out,
        )
        for idx, option in enumerate(between)
    )
    return CascadePlan(steps=steps, step_delay=step_delay)


class CascadingSelection:
    """Drives the transition set for selections resolved by ``is_checked``.

    Each selection starts a new generation. Pending callbacks of the
    superseded generation are cancelled, and any that still fire are
    ignored, so the transition set is empty once all timers have run.
    """

    def __init__(
        self,
        options: Sequence[str],
        is_checked: Callable[[str], bool],
        scheduler: Scheduler,
        *,
        budget: float | None = None,
        lead_out: float | None = None,
    ) -> None:
        self.options = list(options)
        self._is_checked = is_checked
        self._scheduler = scheduler
        self._budget = budget
        self._lead_out = lead_out
        self._transitioning: set[str] = set()
        self._generation = 0

    @property
    def transitioning(self) -> frozenset[str]:
        return frozenset(self._transitioning)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_idle(self) -> bool:
        return not self._transitioning

    def current_selection(self) -> str | None:
        for option in self.options:
            if self._is_checked(option):
                return option
        return None

    def handle_selection(
        self,
        new_value: str,
        on_select: Callable[[str], None],
    ) -> CascadePlan | None:
        """Select ``new_value``; returns the scheduled plan, or None if unchanged."""

        current = self.current_selection()
        if new_value == current:
            return None

        self._scheduler.cancel_all(self._generation)
        self._generation += 1
        self._transitioning.clear()

        plan = plan_cascade(
            self.options,
            current,
            new_value,
            budget=self._budget,
            lead_out=self._lead_out,
        )
        for step in plan.steps:
            self._scheduler.schedule(
                step.add_at,
                self._guarded(self._transitioning.add, step.option),
                self._generation,
            )
            self._scheduler.schedule(
                step.remove_at,
                self._guarded(self._transitioning.discard, step.option),
                self._generation,
            )

        logger.debug(
            "Selection %s -> %s cascades through %d options",
            current,
            new_value,
            len(plan.steps),
        )
        on_select(new_value)
        return plan

    def _guarded(
        self,
        action: Callable[[str], None],
        option: str,
    ) -> Callable[[], None]:
        generation = self._generation

        def _callback() -> None:
            if generation == self._generation:
                action(option)

        return _callback


class TrackedCascadingSelection(CascadingSelection):
    """Cascading selection that keeps the selected value itself."""

    def __init__(
        self,
        options: Sequence[str],
        initial: str | None,
        scheduler: Scheduler,
        **kwargs,
    ) -> None:
        self.selected = initial
        super().__init__(options, self.is_checked, scheduler, **kwargs)

    def is_checked(self, value: str) -> bool:
        return self.selected == value

    def select(
        self,
        new_value: str,
        on_select: Callable[[str], None] | None = None,
    ) -> CascadePlan | None:
        def _commit(value: str) -> None:
            self.selected = value
            if on_select is not None:
                on_select(value)

        return self.handle_selection(new_value, _commit)
