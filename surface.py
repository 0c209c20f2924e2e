"""
Drawing surfaces used by the particle field.

The simulation core only emits immediate-mode primitives (clear, filled
circle, radial gradient, stroked line) through ``DrawSurface``.  The pygame
implementation below turns them into ``pygame.draw`` calls on a window or
off-screen surface.
"""

from __future__ import annotations

import math
from abc import ABCMeta, abstractmethod
from typing import Tuple, Union

import pygame

Point = Tuple[float, float]
RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]
Color = Union[RGB, RGBA]


def _split_alpha(color: Color) -> tuple[RGB, int]:
    """Return ``(rgb, alpha)`` with alpha defaulting to fully opaque."""
    rgb = (int(color[0]), int(color[1]), int(color[2]))
    alpha = int(color[3]) if len(color) > 3 else 255
    return rgb, max(0, min(255, alpha))


def blend_colors(color: RGB, background: RGB, alpha: float) -> RGB:
    """Composite ``color`` with coverage ``alpha`` (0..1) over ``background``."""
    alpha = max(0.0, min(1.0, alpha))
    return tuple(
        int(round(bg + (c - bg) * alpha)) for c, bg in zip(color, background)
    )


class DrawSurface(metaclass=ABCMeta):
    """Immediate-mode 2D target the field renders into."""

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def fill_circle(self, center: Point, radius: float, color: Color) -> None:
        pass

    @abstractmethod
    def radial_gradient(
        self,
        center: Point,
        inner_radius: float,
        outer_radius: float,
        inner_color: Color,
        outer_color: Color,
    ) -> None:
        """Fill the disc of ``outer_radius`` fading from ``inner_color`` to ``outer_color``."""

    @abstractmethod
    def line(self, start: Point, end: Point, color: Color, width: float) -> None:
        pass


class PygameSurface(DrawSurface):
    """``DrawSurface`` backed by a ``pygame.Surface``.

    Translucent lines are blended against the background colour, which is
    exact on the uniform background the field is drawn on.  Gradients are
    built as concentric rings on a temporary per-pixel-alpha surface.
    """

    def __init__(self, target: pygame.Surface, background: RGB = (10, 14, 26)):
        self.target = target
        self.background = tuple(background)

    def get_size(self) -> tuple[int, int]:
        return self.target.get_size()

    def clear(self) -> None:
        self.target.fill(self.background)

    def fill_circle(self, center: Point, radius: float, color: Color) -> None:
        rgb, alpha = _split_alpha(color)
        radius_px = max(1, int(round(radius)))
        if alpha >= 255:
            pygame.draw.circle(self.target, rgb, (int(round(center[0])), int(round(center[1]))), radius_px)
            return
        if alpha == 0:
            return
        size = radius_px * 2 + 2
        overlay = pygame.Surface((size, size), pygame.SRCALPHA)
        pygame.draw.circle(overlay, (*rgb, alpha), (size // 2, size // 2), radius_px)
        self.target.blit(overlay, (int(round(center[0])) - size // 2, int(round(center[1])) - size // 2))

    def radial_gradient(
        self,
        center: Point,
        inner_radius: float,
        outer_radius: float,
        inner_color: Color,
        outer_color: Color,
    ) -> None:
        inner_rgb, inner_alpha = _split_alpha(inner_color)
        outer_rgb, outer_alpha = _split_alpha(outer_color)
        inner_radius = max(0.0, float(inner_radius))
        outer_radius = max(inner_radius, float(outer_radius))
        outer_px = max(1, int(math.ceil(outer_radius)))
        size = outer_px * 2 + 2
        overlay = pygame.Surface((size, size), pygame.SRCALPHA)
        mid = (size // 2, size // 2)

        span = outer_radius - inner_radius
        rings = max(2, int(math.ceil(span)))
        # Outermost ring first so each smaller ring paints over the previous one
        for i in range(rings, 0, -1):
            t = i / rings
            radius = inner_radius + span * t
            color = (
                int(round(inner_rgb[0] + (outer_rgb[0] - inner_rgb[0]) * t)),
                int(round(inner_rgb[1] + (outer_rgb[1] - inner_rgb[1]) * t)),
                int(round(inner_rgb[2] + (outer_rgb[2] - inner_rgb[2]) * t)),
                int(round(inner_alpha + (outer_alpha - inner_alpha) * t)),
            )
            pygame.draw.circle(overlay, color, mid, max(1, int(round(radius))))
        if inner_radius >= 0.5:
            pygame.draw.circle(overlay, (*inner_rgb, inner_alpha), mid, max(1, int(round(inner_radius))))
        self.target.blit(overlay, (int(round(center[0])) - mid[0], int(round(center[1])) - mid[1]))

    def line(self, start: Point, end: Point, color: Color, width: float) -> None:
        rgb, alpha = _split_alpha(color)
        if alpha == 0:
            return
        if alpha < 255:
            rgb = blend_colors(rgb, self.background, alpha / 255.0)
        width_px = max(1, int(round(width)))
        pygame.draw.line(
            self.target,
            rgb,
            (int(round(start[0])), int(round(start[1]))),
            (int(round(end[0])), int(round(end[1]))),
            width_px,
        )
