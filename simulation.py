"""
Particle field simulation.

This module defines the ``SimulationField`` class that owns the particles
of one canvas together with its bounds.  Each frame the field moves every
particle, finds all pairs closer than the connection radius and keeps the
aggregate statistics (active connections, frames per second) the HUD shows.

The connection pass compares every unordered pair of particles, so its cost
grows quadratically with the particle count.  There is no spatial index: the
particle count and connection radius controls are kept small by the UI and
are the knobs to turn when a machine struggles.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

import config
from particle import Bounds, Particle, rng as particle_rng
from surface import DrawSurface

logger = logging.getLogger("particle_field.simulation")

# Base particle radius is drawn uniformly from [MIN_RADIUS, MIN_RADIUS + RADIUS_SPREAD).
MIN_RADIUS: float = 2.0
RADIUS_SPREAD: float = 3.0
# Connections are drawn in white with this peak opacity.
CONNECTION_COLOR: Tuple[int, int, int] = (255, 255, 255)
CONNECTION_ALPHA: float = 0.3
CONNECTION_MIN_WIDTH: float = 0.5
CONNECTION_MAX_WIDTH: float = 2.0
# The FPS figure is refreshed once this many milliseconds have passed.
FPS_SAMPLE_MS: float = 1000.0

DEFAULT_THEMES: Dict[str, List[Tuple[int, int, int]]] = config.parse_themes(config.DEFAULTS['themes'])
DEFAULT_PRESETS: Dict[str, Tuple[int, float]] = config.parse_presets(config.DEFAULTS['performance_presets'])


@dataclass(frozen=True)
class Connection:
    """A pair of particles closer than the connection radius."""

    a: Particle
    b: Particle
    distance: float
    opacity: float


@dataclass
class FrameStats:
    """Aggregate figures of the most recent frame."""

    active_connections: int = 0
    fps: int = 0
    particle_count: int = 0


class FpsMeter:
    """Count frames and publish a rounded rate roughly once per second."""

    def __init__(self, sample_ms: float = FPS_SAMPLE_MS):
        self.sample_ms = float(sample_ms)
        self.fps: int = 0
        self._frames: int = 0
        self._last_sample: Optional[float] = None

    def reset(self) -> None:
        self.fps = 0
        self._frames = 0
        self._last_sample = None

    def tick(self, now_ms: float) -> int:
        if self._last_sample is None:
            self._last_sample = now_ms
        elapsed = now_ms - self._last_sample
        if elapsed >= self.sample_ms:
            self.fps = int(round(self._frames * 1000.0 / elapsed))
            self._frames = 0
            self._last_sample = now_ms
            logger.debug("FPS sample: %d", self.fps)
        self._frames += 1
        return self.fps


class SimulationField:
    """Own the particles of one canvas and advance them frame by frame.

    Particles are kept in creation order, which is also their drawing
    order.  Changing the particle count, the theme or the bounds recreates
    the whole population; speed and connection radius changes apply to the
    existing particles in place.
    """

    def __init__(
        self,
        bounds: Bounds,
        particle_count: int = 100,
        connection_radius: float = 150.0,
        speed_factor: float = 1.0,
        theme: str = 'blue',
        themes: Optional[Dict[str, Sequence[Tuple[int, int, int]]]] = None,
        presets: Optional[Dict[str, Tuple[int, float]]] = None,
        generator: Optional[np.random.Generator] = None,
    ):
        """Create a field and populate it.

        Parameters
        ----------
        bounds: Bounds
            Canvas extent in pixels.
        particle_count: int
            Number of particles created by every regeneration.
        connection_radius: float
            Pairs closer than this distance are connected.
        speed_factor: float
            Global velocity scale.
        theme: str
            Key into ``themes`` naming the palette new particles use.
        themes: dict, optional
            Palette name to list of RGB colours; defaults to the built-in set.
        presets: dict, optional
            Performance preset name to ``(particle_count, connection_radius)``.
        generator: numpy.random.Generator, optional
            Random source shared by the field and the particles it creates.
        """
        self._themes: Dict[str, List[Tuple[int, int, int]]] = {
            name: [tuple(c) for c in palette] for name, palette in (themes or DEFAULT_THEMES).items()
        }
        self._presets: Dict[str, Tuple[int, float]] = dict(presets or DEFAULT_PRESETS)
        self._rng: np.random.Generator = generator if generator is not None else particle_rng

        self.bounds: Bounds = bounds
        self.particle_count: int = 0
        self.theme: str = theme
        self.speed_factor: float = 1.0
        self.connection_radius: float = 1.0
        self.set_connection_radius(connection_radius)
        self.speed_factor = self._positive(speed_factor, 'speed_factor')

        self.particles: List[Particle] = []
        self.connections: List[Connection] = []
        self.active_connections: int = 0
        self.fps_meter = FpsMeter()
        self.stats = FrameStats()

        self.regenerate(particle_count, theme, self.speed_factor, bounds)

    # -------------------------------------------------------------------------
    @staticmethod
    def _positive(value: float, name: str) -> float:
        value = float(value)
        if not math.isfinite(value) or value <= 0.0:
            raise ValueError(f"{name} must be a positive number")
        return value

    @property
    def themes(self) -> List[str]:
        return list(self._themes)

    @property
    def presets(self) -> List[str]:
        return list(self._presets)

    def palette(self, theme: Optional[str] = None) -> List[Tuple[int, int, int]]:
        """Return the colours of ``theme`` (the active one by default)."""
        return list(self._themes[theme or self.theme])

    def _random_color(self) -> Tuple[int, int, int]:
        palette = self._themes[self.theme]
        return palette[int(self._rng.integers(0, len(palette)))]

    def _random_radius(self) -> float:
        return float(self._rng.random()) * RADIUS_SPREAD + MIN_RADIUS

    # -------------------------------------------------------------------------
    def regenerate(
        self,
        count: int,
        theme: Optional[str] = None,
        speed_factor: Optional[float] = None,
        bounds: Optional[Bounds] = None,
    ) -> None:
        """Discard every particle and create ``count`` fresh ones."""
        theme = self.theme if theme is None else theme
        if theme not in self._themes:
            raise KeyError(f"Unknown colour theme: {theme!r}")
        if speed_factor is not None:
            self.speed_factor = self._positive(speed_factor, 'speed_factor')
        if bounds is not None:
            self.bounds = bounds
        self.theme = theme
        self.particle_count = max(0, int(count))

        width = self.bounds.width
        height = self.bounds.height
        particles: List[Particle] = []
        for _ in range(self.particle_count):
            x = float(self._rng.random()) * width
            y = float(self._rng.random()) * height
            particles.append(
                Particle(
                    x,
                    y,
                    self._random_radius(),
                    self._random_color(),
                    self.bounds,
                    self.speed_factor,
                    generator=self._rng,
                )
            )
        self.particles = particles
        self.connections = []
        self.active_connections = 0
        self.stats = FrameStats(active_connections=0, fps=self.fps_meter.fps, particle_count=len(particles))
        logger.info(
            "Regenerated %d particles (theme=%s, speed=%.2f, bounds=%gx%g)",
            self.particle_count,
            self.theme,
            self.speed_factor,
            width,
            height,
        )

    def resize(self, bounds: Bounds) -> None:
        """Adopt new bounds; the population is recreated rather than rescaled."""
        logger.info("Resizing field to %gx%g", bounds.width, bounds.height)
        self.regenerate(self.particle_count, self.theme, self.speed_factor, bounds)

    def set_theme(self, theme: str) -> None:
        self.regenerate(self.particle_count, theme)

    def set_particle_count(self, count: int) -> None:
        self.regenerate(count)

    def set_connection_radius(self, radius: float) -> None:
        self.connection_radius = self._positive(radius, 'connection_radius')

    def set_speed_factor(self, factor: float) -> None:
        """Rescale every velocity to ``factor`` while keeping its heading.

        A particle standing exactly still has no heading to keep and is left
        unchanged.
        """
        factor = self._positive(factor, 'speed_factor')
        self.speed_factor = factor
        for particle in self.particles:
            speed = math.hypot(particle.vx, particle.vy)
            if speed == 0.0:
                continue
            particle.vx = particle.vx / speed * factor
            particle.vy = particle.vy / speed * factor

    def apply_preset(self, name: str) -> None:
        """Switch to a performance preset (particle count and connection radius)."""
        if name not in self._presets:
            raise KeyError(f"Unknown performance preset: {name!r}")
        count, radius = self._presets[name]
        logger.info("Applying %s preset: %d particles, radius %g", name, count, radius)
        self.set_connection_radius(radius)
        self.regenerate(count)

    def add_particle(
        self,
        x: float,
        y: float,
        color: Optional[Tuple[int, int, int]] = None,
        radius: Optional[float] = None,
    ) -> Particle:
        """Append a single particle at ``(x, y)`` without touching the others."""
        particle = Particle(
            x,
            y,
            self._random_radius() if radius is None else radius,
            self._random_color() if color is None else color,
            self.bounds,
            self.speed_factor,
            generator=self._rng,
        )
        self.particles.append(particle)
        self.particle_count = len(self.particles)
        logger.debug("Added particle %d", particle.id)
        return particle

    # -------------------------------------------------------------------------
    def _positions(self) -> np.ndarray:
        """Return particle positions as a 2×N array."""
        if not self.particles:
            return np.zeros((2, 0), dtype=float)
        return np.array([[p.x for p in self.particles], [p.y for p in self.particles]], dtype=float)

    def compute_connections(self) -> List[Connection]:
        """Find every pair closer than ``connection_radius``.

        Counters on the field and on each particle are reset first.  Pairs are
        reported as ``(i, j)`` with ``i < j`` in creation order.
        """
        for particle in self.particles:
            particle.connected_particles = 0
        self.active_connections = 0
        self.connections = []

        count = len(self.particles)
        if count < 2:
            return self.connections

        r = self._positions()
        idx_i, idx_j = np.triu_indices(count, k=1)
        dx = r[0, idx_i] - r[0, idx_j]
        dy = r[1, idx_i] - r[1, idx_j]
        distances = np.hypot(dx, dy)
        mask = distances < self.connection_radius
        if not np.any(mask):
            return self.connections

        pair_i = idx_i[mask]
        pair_j = idx_j[mask]
        pair_d = distances[mask]
        opacities = 1.0 - pair_d / self.connection_radius
        self.connections = [
            Connection(self.particles[i], self.particles[j], float(d), float(o))
            for i, j, d, o in zip(pair_i, pair_j, pair_d, opacities)
        ]

        per_particle = np.bincount(np.concatenate((pair_i, pair_j)), minlength=count)
        for particle, connected in zip(self.particles, per_particle):
            particle.connected_particles = int(connected)
        self.active_connections = len(self.connections)
        return self.connections

    def step(self, now_ms: float) -> Tuple[List[Connection], FrameStats]:
        """Advance every particle one frame and recompute connections."""
        for particle in self.particles:
            particle.update(now_ms)
        connections = self.compute_connections()
        fps = self.fps_meter.tick(now_ms)
        self.stats = FrameStats(
            active_connections=self.active_connections,
            fps=fps,
            particle_count=len(self.particles),
        )
        return connections, self.stats

    def draw(self, surface: DrawSurface, now_ms: float) -> None:
        """Clear ``surface`` and render connections below particles."""
        surface.clear()
        for connection in self.connections:
            alpha = int(round(connection.opacity * CONNECTION_ALPHA * 255))
            width = max(CONNECTION_MIN_WIDTH, CONNECTION_MAX_WIDTH * connection.opacity)
            surface.line(
                (connection.a.x, connection.a.y),
                (connection.b.x, connection.b.y),
                (*CONNECTION_COLOR, alpha),
                width,
            )
        for particle in self.particles:
            particle.draw(surface, now_ms)
