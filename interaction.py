"""
Pointer and touch interaction with the particle field.

The front end translates toolkit events into ``PointerEvent`` records and
hands them to ``InteractionController.handle``.  The controller keeps the
pointer position, resolves which particle is hovered each frame and which
one is selected, and owns the one timed action a gesture may leave pending
(the long-press selection of a touch, or the delayed release after a touch
ends).  Every new pointer event cancels the pending action before it arms
another one.
"""

from __future__ import annotations

import enum
import logging
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Sequence, Tuple

from particle import DEFAULT_HOVER_THRESHOLD, Particle

if TYPE_CHECKING:
    from simulation import SimulationField

logger = logging.getLogger("particle_field.interaction")

LONG_PRESS_MS: float = 300.0
TOUCH_RELEASE_MS: float = 1000.0
PULSE_MS: float = 1000.0


class PointerEventType(enum.Enum):
    MOVE = 'move'
    LEAVE = 'leave'
    CLICK = 'click'
    DOUBLE_CLICK = 'double_click'
    TOUCH_START = 'touch_start'
    TOUCH_MOVE = 'touch_move'
    TOUCH_END = 'touch_end'


@dataclass(frozen=True)
class PointerEvent:
    """A toolkit-independent pointer or touch event in field coordinates."""

    kind: PointerEventType
    x: float = 0.0
    y: float = 0.0
    timestamp_ms: float = 0.0


class DeferredAction:
    """A one-shot callback due at ``due_ms`` that can be cancelled."""

    def __init__(self, due_ms: float, callback: Callable[[], None], label: str = ''):
        self.due_ms = float(due_ms)
        self.label = label
        self._callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def fire_if_due(self, now_ms: float) -> bool:
        """Run the callback once ``now_ms`` reaches the deadline."""
        if not self.pending or now_ms < self.due_ms:
            return False
        self.fired = True
        self._callback()
        return True


class InteractionController:
    """Hover/select state machine driven by pointer and touch events.

    ``hovered`` is recomputed every frame by ``resolve_hover``; ``selected``
    sticks until another particle is selected or ``deselect`` is called, so
    at most one particle carries the selection flag at a time.

    Both are held through weak references: once the field drops a particle
    (a regeneration, for instance) the controller reports ``None`` for it.
    """

    def __init__(
        self,
        hover_threshold: float = DEFAULT_HOVER_THRESHOLD,
        long_press_ms: float = LONG_PRESS_MS,
        touch_release_ms: float = TOUCH_RELEASE_MS,
        pulse_ms: float = PULSE_MS,
    ):
        self.hover_threshold = float(hover_threshold)
        self.long_press_ms = float(long_press_ms)
        self.touch_release_ms = float(touch_release_ms)
        self.pulse_ms = float(pulse_ms)

        self.pointer: Optional[Tuple[float, float]] = None
        self.active: bool = False
        self._hovered: Optional[weakref.ref] = None
        self._selected: Optional[weakref.ref] = None
        self.pending: Optional[DeferredAction] = None

    @staticmethod
    def _deref(ref: Optional[weakref.ref]) -> Optional[Particle]:
        return ref() if ref is not None else None

    @property
    def hovered(self) -> Optional[Particle]:
        return self._deref(self._hovered)

    @hovered.setter
    def hovered(self, particle: Optional[Particle]) -> None:
        self._hovered = weakref.ref(particle) if particle is not None else None

    @property
    def selected(self) -> Optional[Particle]:
        return self._deref(self._selected)

    @selected.setter
    def selected(self, particle: Optional[Particle]) -> None:
        self._selected = weakref.ref(particle) if particle is not None else None

    # -------------------------------------------------------------------------
    def set_pointer(self, x: float, y: float) -> None:
        self.pointer = (float(x), float(y))
        self.active = True

    def clear_pointer(self) -> None:
        self.active = False

    def _clear_hover(self) -> None:
        hovered = self.hovered
        if hovered is not None:
            hovered.unhighlight()
        self.hovered = None

    def resolve_hover(
        self,
        particles: Sequence[Particle],
        threshold: Optional[float] = None,
    ) -> Optional[Particle]:
        """Highlight the first particle near the pointer and unhighlight the rest.

        Iteration order decides between several candidates; the closest one
        does not win on its own.
        """
        threshold = self.hover_threshold if threshold is None else threshold
        hovered: Optional[Particle] = None
        if self.active and self.pointer is not None:
            px, py = self.pointer
            for particle in particles:
                if particle.is_near(px, py, threshold):
                    hovered = particle
                    break
        for particle in particles:
            if particle is hovered:
                particle.highlight()
            else:
                particle.unhighlight()
        self.hovered = hovered
        return hovered

    def resolve_click(self, particles: Sequence[Particle], x: float, y: float) -> Optional[Particle]:
        """Select the first particle whose hit area contains ``(x, y)``.

        A miss keeps whatever was selected before.
        """
        hit: Optional[Particle] = None
        for particle in particles:
            if particle.is_near(x, y, particle.hit_radius):
                hit = particle
                break
        if hit is None:
            return None
        previous = self.selected
        if previous is not None and previous is not hit:
            previous.deselect()
        hit.select()
        self.selected = hit
        logger.debug("Selected particle %d", hit.id)
        return hit

    def deselect(self) -> None:
        selected = self.selected
        if selected is not None:
            selected.deselect()
            logger.debug("Deselected particle %d", selected.id)
        self.selected = None

    def create_at_point(self, field: 'SimulationField', x: float, y: float, now_ms: float) -> Particle:
        """Add a particle at ``(x, y)`` with a short full-glow pulse."""
        particle = field.add_particle(x, y)
        particle.pulse(now_ms + self.pulse_ms)
        return particle

    def forget_particles(self) -> None:
        """Drop references to the previous population right away."""
        self.hovered = None
        self.selected = None

    # -------------------------------------------------------------------------
    def _cancel_pending(self) -> None:
        if self.pending is not None and self.pending.pending:
            logger.debug("Cancelled pending %s", self.pending.label)
            self.pending.cancel()
        self.pending = None

    def _schedule(self, due_ms: float, callback: Callable[[], None], label: str) -> DeferredAction:
        self._cancel_pending()
        self.pending = DeferredAction(due_ms, callback, label)
        return self.pending

    def tick(self, now_ms: float) -> bool:
        """Run the pending action if its deadline has passed."""
        if self.pending is None:
            return False
        fired = self.pending.fire_if_due(now_ms)
        if not self.pending.pending:
            self.pending = None
        return fired

    def handle(self, event: PointerEvent, field: 'SimulationField') -> None:
        """Apply one pointer event to the controller state."""
        kind = event.kind
        if kind is PointerEventType.MOVE:
            self._cancel_pending()
            self.set_pointer(event.x, event.y)
        elif kind is PointerEventType.LEAVE:
            self._cancel_pending()
            self.clear_pointer()
            self._clear_hover()
        elif kind is PointerEventType.CLICK:
            self._cancel_pending()
            self.resolve_click(field.particles, event.x, event.y)
        elif kind is PointerEventType.DOUBLE_CLICK:
            self._cancel_pending()
            self.create_at_point(field, event.x, event.y, event.timestamp_ms)
        elif kind is PointerEventType.TOUCH_START:
            self.set_pointer(event.x, event.y)
            x, y = event.x, event.y
            self._schedule(
                event.timestamp_ms + self.long_press_ms,
                lambda: self.resolve_click(field.particles, x, y),
                'long-press selection',
            )
        elif kind is PointerEventType.TOUCH_MOVE:
            self._cancel_pending()
            self.set_pointer(event.x, event.y)
        elif kind is PointerEventType.TOUCH_END:
            self._schedule(
                event.timestamp_ms + self.touch_release_ms,
                self._release_touch,
                'touch release',
            )
        else:
            raise ValueError(f"Unsupported pointer event: {kind!r}")

    def _release_touch(self) -> None:
        self.clear_pointer()
        self._clear_hover()
