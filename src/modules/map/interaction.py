"""Hover/click interaction state machine for map markers.

One machine per map instance. Hover previews are debounced through a
cancellable timer; every timer remembers the generation it was scheduled in
and a callback from an older generation does nothing. Selecting a marker
always wins over hovering.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Protocol, Union

from src.modules.map.constants import HOVER_DELAY_MS
from src.utils.logger import get_logger

logger = get_logger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Single-threaded scheduling of delayed callbacks."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def now(self) -> float: ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

    def now(self) -> float:
        return time.monotonic()


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class HoverPending:
    marker_id: str
    started_at: float
    generation: int


@dataclass(frozen=True)
class HoverShown:
    marker_id: str


@dataclass(frozen=True)
class Selected:
    marker_id: str


InteractionState = Union[Idle, HoverPending, HoverShown, Selected]
StateListener = Callable[[InteractionState], None]


class InteractionMachine:
    """Marker hover/click lifecycle with a debounced preview."""

    def __init__(
        self,
        scheduler: Scheduler,
        hover_delay_ms: int = HOVER_DELAY_MS,
    ):
        self._scheduler = scheduler
        self._hover_delay = hover_delay_ms / 1000.0
        self._state: InteractionState = Idle()
        self._generation = 0
        self._timer: TimerHandle | None = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    @property
    def is_preview_shown(self) -> bool:
        return isinstance(self._state, HoverShown)

    @property
    def is_panel_open(self) -> bool:
        return isinstance(self._state, Selected)

    @property
    def selected_marker_id(self) -> str | None:
        if isinstance(self._state, Selected):
            return self._state.marker_id
        return None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Events

    def pointer_enter(self, marker_id: str) -> None:
        if isinstance(self._state, Selected):
            # the detail panel suppresses previews
            return
        if isinstance(self._state, (HoverPending, HoverShown)):
            if self._state.marker_id == marker_id:
                return
        self._cancel_timer()

        self._generation += 1
        generation = self._generation
        self._timer = self._scheduler.call_later(
            self._hover_delay, lambda: self._on_hover_elapsed(generation)
        )
        self._transition(
            HoverPending(
                marker_id=marker_id,
                started_at=self._scheduler.now(),
                generation=generation,
            )
        )

    def pointer_leave(self, marker_id: str) -> None:
        if not isinstance(self._state, (HoverPending, HoverShown)):
            return
        if self._state.marker_id != marker_id:
            return
        self._cancel_timer()
        self._transition(Idle())

    def click(self, marker_id: str) -> None:
        """Open the detail panel for ``marker_id``; always beats hovering."""
        self._cancel_timer()
        if self._state == Selected(marker_id):
            return
        self._transition(Selected(marker_id))

    def click_outside(self) -> None:
        if isinstance(self._state, Selected):
            self._transition(Idle())

    def close_panel(self) -> None:
        if isinstance(self._state, Selected):
            self._transition(Idle())

    def reset(self) -> None:
        self._cancel_timer()
        if not isinstance(self._state, Idle):
            self._transition(Idle())

    # Internals

    def _on_hover_elapsed(self, generation: int) -> None:
        state = self._state
        if (
            generation != self._generation
            or not isinstance(state, HoverPending)
            or state.generation != generation
        ):
            logger.debug(
                "Ignoring stale hover timer",
                timer_generation=generation,
                current_generation=self._generation,
            )
            return
        self._timer = None
        self._transition(HoverShown(state.marker_id))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            # invalidate anything the cancelled timer might still deliver
            self._generation += 1

    def _transition(self, new_state: InteractionState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
