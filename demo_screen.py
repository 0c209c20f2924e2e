from __future__ import annotations

import logging
import math
from typing import List, Optional

import pygame

import config
from demo import Demo
from interaction import PointerEvent, PointerEventType

logger = logging.getLogger("particle_field.demo_screen")

WINDOW_TITLE = "Interactive Particle Field"
# Two clicks closer than this many pixels may form a double click.
DOUBLE_CLICK_SLOP_PX = 6
PRESET_KEYS = {
    pygame.K_1: 'low',
    pygame.K_2: 'medium',
    pygame.K_3: 'high',
}


class DemoScreen:
    """Window, frame loop and the translation of pygame input into field actions."""

    def __init__(self, screen: pygame.Surface, loader: Optional[config.ConfigLoader] = None):
        self.loader = loader or config.ConfigLoader()
        self.screen = screen
        self.demo = Demo(screen, self.loader)
        self.clock = pygame.time.Clock()
        self.fps_cap = int(self.loader['fps_cap'])
        self.double_click_ms = float(self.loader['double_click_ms'])
        self.count_step = int(self.loader['particle_count_step'])
        self.radius_step = float(self.loader['connection_radius_step'])
        self.speed_step = float(self.loader['speed_factor_step'])
        self.running = True
        self._last_click: Optional[tuple[float, float, float]] = None

    # ------------------------------------------------------------------ Loop
    def run(self) -> None:
        logger.info("Starting frame loop at up to %d FPS", self.fps_cap)
        while self.running:
            now_ms = float(pygame.time.get_ticks())
            self._check_events(pygame.event.get(), now_ms)
            self.demo.update(now_ms)
            self.demo.draw(now_ms)
            pygame.display.flip()
            self.clock.tick(self.fps_cap)
        logger.info("Frame loop finished")

    # ------------------------------------------------------------------ Events
    def _pointer(self, kind: PointerEventType, x: float, y: float, now_ms: float) -> None:
        self.demo.controller.handle(PointerEvent(kind, x, y, now_ms), self.demo.field)

    def _touch_position(self, event: pygame.event.Event) -> tuple[float, float]:
        # Finger coordinates are normalised to 0..1 of the window
        width, height = self.screen.get_size()
        return event.x * width, event.y * height

    def _is_double_click(self, x: float, y: float, now_ms: float) -> bool:
        last = self._last_click
        self._last_click = (x, y, now_ms)
        if last is None:
            return False
        lx, ly, lt = last
        if now_ms - lt > self.double_click_ms:
            return False
        if math.hypot(x - lx, y - ly) > DOUBLE_CLICK_SLOP_PX:
            return False
        self._last_click = None
        return True

    def _check_events(self, events: List[pygame.event.Event], now_ms: float) -> None:
        for event in events:
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type in (pygame.VIDEORESIZE, pygame.WINDOWSIZECHANGED):
                self._handle_resize()
            elif event.type == pygame.WINDOWLEAVE:
                self._pointer(PointerEventType.LEAVE, 0.0, 0.0, now_ms)
            elif event.type == pygame.MOUSEMOTION:
                if getattr(event, 'touch', False):
                    continue
                self._pointer(PointerEventType.MOVE, event.pos[0], event.pos[1], now_ms)
            elif event.type == pygame.MOUSEBUTTONDOWN:
                if getattr(event, 'touch', False) or event.button != 1:
                    continue
                x, y = event.pos
                self._pointer(PointerEventType.CLICK, x, y, now_ms)
                if self._is_double_click(x, y, now_ms):
                    self._pointer(PointerEventType.DOUBLE_CLICK, x, y, now_ms)
            elif event.type == pygame.FINGERDOWN:
                self._pointer(PointerEventType.TOUCH_START, *self._touch_position(event), now_ms)
            elif event.type == pygame.FINGERMOTION:
                self._pointer(PointerEventType.TOUCH_MOVE, *self._touch_position(event), now_ms)
            elif event.type == pygame.FINGERUP:
                self._pointer(PointerEventType.TOUCH_END, *self._touch_position(event), now_ms)
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key)

    def _handle_key(self, key: int) -> None:
        demo = self.demo
        if key == pygame.K_ESCAPE:
            if demo.controller.selected is not None:
                demo.controller.deselect()
            else:
                self.running = False
        elif key in (pygame.K_UP, pygame.K_RIGHT):
            demo.change_particle_count(self.count_step)
        elif key in (pygame.K_DOWN, pygame.K_LEFT):
            demo.change_particle_count(-self.count_step)
        elif key == pygame.K_RIGHTBRACKET:
            demo.change_connection_radius(self.radius_step)
        elif key == pygame.K_LEFTBRACKET:
            demo.change_connection_radius(-self.radius_step)
        elif key in (pygame.K_EQUALS, pygame.K_PLUS, pygame.K_KP_PLUS):
            demo.change_speed(self.speed_step)
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            demo.change_speed(-self.speed_step)
        elif key == pygame.K_t:
            demo.next_theme()
        elif key == pygame.K_h:
            demo.show_hud = not demo.show_hud
        elif key in PRESET_KEYS:
            demo.apply_preset(PRESET_KEYS[key])

    def _handle_resize(self) -> None:
        surface = pygame.display.get_surface()
        if surface is None:
            return
        if surface.get_size() == self.demo.field_size():
            return
        self.screen = surface
        self.demo.resize_viewport(surface)


def main() -> None:
    loader = config.ConfigLoader()
    config.setup_logging(loader)
    pygame.init()
    try:
        width, height = (int(v) for v in loader['window_size'])
        screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        pygame.display.set_caption(WINDOW_TITLE)
        DemoScreen(screen, loader).run()
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
