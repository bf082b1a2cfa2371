"""Per-suite buffering and selection of the next suite to show."""

from typing import Iterable, Optional

from .models import SuiteAggregate, TestEvent


class SuiteState:
    """Results buffered for one suite until they are rendered."""

    def __init__(self, suite_id: str, order: int):
        self.suite_id = suite_id
        self.order = order
        self.events: list[TestEvent] = []
        self.aggregate: Optional[SuiteAggregate] = None

    @property
    def complete(self) -> bool:
        return self.aggregate is not None

    def __repr__(self) -> str:
        return (f"SuiteState({self.suite_id!r}, events={len(self.events)}, "
                f"complete={self.complete})")


class SuiteStore:
    """Suites seen in this run, in registration order.

    Not thread-safe on its own; the engine's lock guards every call.
    """

    def __init__(self):
        self._states: dict[str, SuiteState] = {}
        self._registered = 0

    def get_or_create(self, suite_id: str) -> SuiteState:
        state = self._states.get(suite_id)
        if state is None:
            state = SuiteState(suite_id, self._registered)
            self._registered += 1
            self._states[suite_id] = state
        return state

    def get(self, suite_id: str) -> Optional[SuiteState]:
        return self._states.get(suite_id)

    def add_event(self, event: TestEvent) -> SuiteState:
        state = self.get_or_create(event.suite_id)
        state.events.append(event)
        return state

    def set_aggregate(self, aggregate: SuiteAggregate) -> SuiteState:
        state = self.get_or_create(aggregate.suite_id)
        state.aggregate = aggregate
        return state

    def discard(self, suite_id: str) -> None:
        self._states.pop(suite_id, None)

    def pending(self) -> list[SuiteState]:
        return list(self._states.values())

    def clear(self) -> None:
        self._states.clear()
        self._registered = 0

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, suite_id: str) -> bool:
        return suite_id in self._states


def select_next_suite(states: Iterable[SuiteState]) -> Optional[SuiteState]:
    """Pick the suite to show next.

    Complete suites come first, then the one with the most buffered results,
    then the one registered first.
    """
    candidates = list(states)
    if not candidates:
        return None
    return min(candidates, key=lambda s: (not s.complete, -len(s.events), s.order))
