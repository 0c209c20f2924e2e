"""
A single particle of the field.

Particles drift with a constant velocity, bounce elastically off the field
bounds and pulsate with a per-particle rate and phase.  Interaction state
(hover highlight, sticky selection, decaying glow and timed pulses) lives on
the particle, but deciding *which* particle is hovered or selected is the
controller's job.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from surface import DrawSurface

# Fraction of the base radius added or removed at the oscillation peaks,
# multiplied by the particle's own ``max_radius_multiplier``.
OSCILLATION_AMPLITUDE: float = 0.2
# Glow lost per update once a selection/pulse is over.
GLOW_DECAY: float = 0.05
# Halo grows by this fraction of the radius at full intensity.
GLOW_SPREAD: float = 0.7
HIGHLIGHT_INTENSITY: float = 0.7
# Hit area for clicks and touches, as a multiple of the base radius.
HIT_RADIUS_FACTOR: float = 3.0
# Rotation speed (radians per millisecond) of the selection indicator.
INDICATOR_SPEED: float = 0.003
INDICATOR_COLOR: Tuple[int, int, int] = (255, 255, 255)
INDICATOR_WIDTH: float = 2.0
HALO_EDGE_COLOR: Tuple[int, int, int, int] = (255, 255, 255, 0)
DEFAULT_HOVER_THRESHOLD: float = 50.0

# Shared random source; tests and callers may pass their own generator.
rng: np.random.Generator = np.random.default_rng()


@dataclass(frozen=True)
class Bounds:
    """Width and height of the field, each clamped to at least one pixel."""

    width: float
    height: float

    def __post_init__(self):
        object.__setattr__(self, 'width', self._sanitize(self.width))
        object.__setattr__(self, 'height', self._sanitize(self.height))

    @staticmethod
    def _sanitize(value) -> float:
        try:
            value = float(value)
        except (TypeError, ValueError):
            return 1.0
        if not math.isfinite(value):
            return 1.0
        return max(1.0, value)


class Particle:
    """One drifting, pulsating particle."""

    _ids = itertools.count()

    def __init__(
        self,
        x: float,
        y: float,
        radius: float,
        color: Tuple[int, int, int],
        bounds: Bounds,
        speed_factor: float = 1.0,
        generator: Optional[np.random.Generator] = None,
    ):
        """
        Parameters
        ----------
        x, y: float
            Initial position in pixels.
        radius: float
            Base radius, must be positive.
        color: tuple
            RGB colour taken from the active theme.
        bounds: Bounds
            Field extent the particle bounces inside.
        speed_factor: float
            Each velocity component is drawn uniformly from
            ``[-speed_factor, speed_factor)``.
        generator: numpy.random.Generator, optional
            Random source; the module generator is used when omitted.
        """
        radius = float(radius)
        if not radius > 0.0:
            raise ValueError("radius must be > 0")
        generator = generator if generator is not None else rng

        self.id: int = next(Particle._ids)
        self.x: float = float(x)
        self.y: float = float(y)
        self.radius: float = radius
        self.current_radius: float = radius
        self.color: Tuple[int, int, int] = tuple(color)
        self.bounds: Bounds = bounds

        self.vx: float = (float(generator.random()) - 0.5) * 2.0 * speed_factor
        self.vy: float = (float(generator.random()) - 0.5) * 2.0 * speed_factor

        self.oscillation_rate: float = float(generator.random()) * 0.02 + 0.01
        self.oscillation_offset: float = float(generator.random()) * math.pi * 2.0
        self.max_radius_multiplier: float = float(generator.random()) * 0.5 + 1.0

        self.is_highlighted: bool = False
        self.is_selected: bool = False
        self.glow_amount: float = 0.0
        self.pulse_until: Optional[float] = None
        self.connected_particles: int = 0

        self.speed: float = 0.0
        self.heading: float = 0.0
        self._refresh_metadata()

    def __repr__(self) -> str:
        return f"Particle(id={self.id}, x={self.x:.1f}, y={self.y:.1f}, r={self.radius:.2f})"

    # -------------------------------------------------------------------------
    @property
    def hit_radius(self) -> float:
        """Click/touch hit area; larger particles are easier to grab."""
        return self.radius * HIT_RADIUS_FACTOR

    @property
    def radius_range(self) -> Tuple[float, float]:
        """Smallest and largest ``current_radius`` the oscillation can produce."""
        swing = OSCILLATION_AMPLITUDE * self.max_radius_multiplier
        return self.radius * (1.0 - swing), self.radius * (1.0 + swing)

    def _refresh_metadata(self) -> None:
        self.speed = math.hypot(self.vx, self.vy)
        self.heading = math.degrees(math.atan2(self.vy, self.vx))

    # -------------------------------------------------------------------------
    def update(self, now_ms: float) -> None:
        """Advance one frame: move, bounce, pulsate and fade the glow."""
        self.x += self.vx
        self.y += self.vy

        width = self.bounds.width
        height = self.bounds.height
        if self.x < self.radius:
            self.x = self.radius
            self.vx = -self.vx
        elif self.x > width - self.radius:
            self.x = width - self.radius
            self.vx = -self.vx

        if self.y < self.radius:
            self.y = self.radius
            self.vy = -self.vy
        elif self.y > height - self.radius:
            self.y = height - self.radius
            self.vy = -self.vy

        oscillation = math.sin(now_ms * self.oscillation_rate + self.oscillation_offset)
        self.current_radius = self.radius * (1.0 + oscillation * OSCILLATION_AMPLITUDE * self.max_radius_multiplier)

        if self.pulse_until is not None and now_ms < self.pulse_until:
            self.glow_amount = 1.0
        else:
            self.pulse_until = None
            if self.glow_amount > 0.0:
                self.glow_amount = max(0.0, self.glow_amount - GLOW_DECAY)

        self._refresh_metadata()

    def is_near(self, x: float, y: float, threshold: float = DEFAULT_HOVER_THRESHOLD) -> bool:
        """True when the point lies strictly closer than ``threshold``."""
        return math.hypot(self.x - x, self.y - y) < threshold

    def distance_to(self, other: 'Particle') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    # -------------------------------------------------------------------------
    def highlight(self) -> None:
        self.is_highlighted = True

    def unhighlight(self) -> None:
        self.is_highlighted = False

    def select(self) -> None:
        """Mark as selected and light the glow at full strength."""
        self.is_selected = True
        self.glow_amount = 1.0

    def deselect(self) -> None:
        """Clear the selection; the glow fades over the following updates."""
        self.is_selected = False

    def pulse(self, until_ms: float) -> None:
        """Hold the glow at full strength until ``until_ms`` without selecting."""
        self.pulse_until = float(until_ms)
        self.glow_amount = 1.0

    # -------------------------------------------------------------------------
    def glow_intensity(self) -> float:
        if self.is_selected:
            return 1.0
        if self.is_highlighted:
            return HIGHLIGHT_INTENSITY
        return self.glow_amount

    def draw(self, surface: DrawSurface, now_ms: float) -> None:
        """Emit the body, the halo and the selection indicator."""
        center = (self.x, self.y)
        surface.fill_circle(center, self.current_radius, self.color)

        if not (self.is_highlighted or self.is_selected or self.glow_amount > 0.0):
            return

        intensity = self.glow_intensity()
        glow_size = self.current_radius * (1.0 + intensity * GLOW_SPREAD)
        surface.radial_gradient(center, self.current_radius, glow_size, self.color, HALO_EDGE_COLOR)

        if self.is_selected:
            angle = (now_ms * INDICATOR_SPEED) % (2.0 * math.pi)
            end = (
                self.x + math.cos(angle) * self.current_radius,
                self.y + math.sin(angle) * self.current_radius,
            )
            surface.line(center, end, INDICATOR_COLOR, INDICATOR_WIDTH)

    def describe(self) -> list[str]:
        """Lines shown in the info panel while the particle is hovered."""
        return [
            f"ID: {self.id}",
            f"Position: ({round(self.x)}, {round(self.y)})",
            f"Speed: {self.speed:.2f} px/frame",
            f"Direction: {self.heading:.1f}°",
            f"Connections: {self.connected_particles}",
            f"Oscillation: {self.oscillation_rate:.3f} Hz",
        ]
