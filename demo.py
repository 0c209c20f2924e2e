"""
Rendering of the particle field inside a pygame window.

``Demo`` owns the ``SimulationField`` and ``InteractionController`` pair of
one window, advances them once per frame and draws the result together with
the statistics bar and the info panel of the hovered particle.  Input
translation and the main loop live in ``demo_screen``.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import pygame

import config
from interaction import InteractionController
from particle import Bounds, Particle
from simulation import FrameStats, SimulationField
from surface import PygameSurface

logger = logging.getLogger("particle_field.demo")

HUD_TEXT_COLOR = (225, 232, 245)
HUD_MUTED_COLOR = (140, 152, 176)
PANEL_COLOR = (18, 24, 42)
PANEL_BORDER_COLOR = (72, 104, 255)
PANEL_OFFSET = 20
PANEL_PADDING = 10


def get_font(size: int, bold: bool = False) -> pygame.font.Font:
    font = pygame.font.Font(None, size)
    font.set_bold(bold)
    return font


class Demo:
    def __init__(self, screen: pygame.Surface, loader: Optional[config.ConfigLoader] = None):
        """
        Build the field for ``screen`` from the configuration.

        Parameters
        ----------
        screen : pygame.Surface
            Window (or off-screen) surface the field fills completely.
        loader : config.ConfigLoader, optional
            Source of defaults, themes and presets.
        """
        self.screen = screen
        self.loader = loader or config.ConfigLoader()
        self.surface = PygameSurface(screen, self.loader.background_color())

        themes = self.loader.themes()
        theme = str(self.loader['theme'])
        if theme not in themes:
            logger.warning("Configured theme %r is unknown, using %r", theme, next(iter(themes)))
            theme = next(iter(themes))
        width, height = screen.get_size()
        self.field = SimulationField(
            Bounds(width, height),
            particle_count=self._clamp_count(self.loader['particle_count']),
            connection_radius=self._clamp_radius(self.loader['connection_radius']),
            speed_factor=self._clamp_speed(self.loader['speed_factor']),
            theme=theme,
            themes=themes,
            presets=self.loader.presets(),
        )
        self.controller = InteractionController(
            hover_threshold=float(self.loader['hover_threshold']),
            long_press_ms=float(self.loader['long_press_ms']),
            touch_release_ms=float(self.loader['touch_release_ms']),
            pulse_ms=float(self.loader['pulse_ms']),
        )
        self.stats = FrameStats(particle_count=len(self.field.particles))
        self.show_hud = True
        self.title_font = get_font(22, bold=True)
        self.text_font = get_font(18)

    # ------------------------------------------------------------------ Limits
    @staticmethod
    def _clamp(value: float, bounds, fallback: float) -> float:
        try:
            value = float(value)
        except (TypeError, ValueError):
            value = fallback
        if not math.isfinite(value):
            value = fallback
        low, high = float(bounds[0]), float(bounds[1])
        return max(low, min(high, value))

    def _clamp_count(self, value) -> int:
        return int(round(self._clamp(value, self.loader['particle_count_bounds'], 100)))

    def _clamp_radius(self, value) -> float:
        return self._clamp(value, self.loader['connection_radius_bounds'], 150.0)

    def _clamp_speed(self, value) -> float:
        return self._clamp(value, self.loader['speed_factor_bounds'], 1.0)

    # ------------------------------------------------------------------ Controls
    def change_particle_count(self, delta: int) -> int:
        count = self._clamp_count(self.field.particle_count + delta)
        if count != self.field.particle_count:
            self.field.set_particle_count(count)
            self.controller.forget_particles()
        return self.field.particle_count

    def change_connection_radius(self, delta: float) -> float:
        self.field.set_connection_radius(self._clamp_radius(self.field.connection_radius + delta))
        return self.field.connection_radius

    def change_speed(self, delta: float) -> float:
        speed = round(self._clamp_speed(self.field.speed_factor + delta), 2)
        self.field.set_speed_factor(speed)
        return self.field.speed_factor

    def next_theme(self) -> str:
        themes = self.field.themes
        idx = themes.index(self.field.theme) if self.field.theme in themes else -1
        self.field.set_theme(themes[(idx + 1) % len(themes)])
        self.controller.forget_particles()
        return self.field.theme

    def apply_preset(self, name: str) -> None:
        self.field.apply_preset(name)
        self.controller.forget_particles()

    def field_size(self) -> tuple[int, int]:
        return int(self.field.bounds.width), int(self.field.bounds.height)

    def resize_viewport(self, screen: pygame.Surface) -> None:
        """Adopt a new window surface and restart the field at its size."""
        self.screen = screen
        self.surface.target = screen
        width, height = screen.get_size()
        self.field.resize(Bounds(width, height))
        self.controller.forget_particles()

    # ------------------------------------------------------------------ Frame
    def update(self, now_ms: float) -> FrameStats:
        """Advance the field and resolve hover for ``now_ms``."""
        self.controller.tick(now_ms)
        _, self.stats = self.field.step(now_ms)
        self.controller.resolve_hover(self.field.particles)
        return self.stats

    def draw(self, now_ms: float) -> None:
        self.field.draw(self.surface, now_ms)
        if self.show_hud:
            self._draw_stats_bar()
        hovered = self.controller.hovered
        if hovered is not None and self.controller.pointer is not None:
            self._draw_info_panel(hovered, self.controller.pointer)

    def _draw_stats_bar(self) -> None:
        font = self.title_font
        small = self.text_font
        field = self.field
        lines = [
            (f"FPS: {self.stats.fps}", font, HUD_TEXT_COLOR),
            (f"Active Connections: {self.stats.active_connections}", font, HUD_TEXT_COLOR),
            (
                f"Particles: {field.particle_count}   Radius: {int(field.connection_radius)}px   "
                f"Speed: {field.speed_factor:.1f}x   Theme: {field.theme}",
                small,
                HUD_MUTED_COLOR,
            ),
        ]
        y = 10
        for text, text_font, color in lines:
            rendered = text_font.render(text, True, color)
            self.screen.blit(rendered, (12, y))
            y += rendered.get_height() + 4

    def _draw_info_panel(self, particle: Particle, pointer: tuple[float, float]) -> None:
        font = self.text_font
        rendered = [font.render(line, True, HUD_TEXT_COLOR) for line in particle.describe()]
        width = max(r.get_width() for r in rendered) + PANEL_PADDING * 2
        height = sum(r.get_height() + 2 for r in rendered) + PANEL_PADDING * 2
        screen_w, screen_h = self.screen.get_size()

        # Beside the pointer, flipped to the other side when it would leave the window
        left = int(pointer[0]) + PANEL_OFFSET
        top = int(pointer[1]) - PANEL_OFFSET
        if left + width > screen_w:
            left = int(pointer[0]) - width - PANEL_OFFSET
        if top + height > screen_h:
            top = int(pointer[1]) - height - PANEL_OFFSET
        left = max(0, left)
        top = max(0, top)

        rect = pygame.Rect(left, top, width, height)
        pygame.draw.rect(self.screen, PANEL_COLOR, rect, border_radius=8)
        pygame.draw.rect(self.screen, PANEL_BORDER_COLOR, rect, width=1, border_radius=8)
        y = top + PANEL_PADDING
        for line in rendered:
            self.screen.blit(line, (left + PANEL_PADDING, y))
            y += line.get_height() + 2
