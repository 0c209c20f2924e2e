"""
Tests for the Particle entity: motion, bouncing, pulsation, glow and drawing.
"""

import math
import unittest

import numpy as np

from particle import GLOW_DECAY, Bounds, Particle
from recording import RecordingSurface

RED = (255, 0, 0)


def make_particle(x=100.0, y=100.0, radius=5.0, bounds=None, speed_factor=1.0, seed=0):
    return Particle(
        x,
        y,
        radius,
        RED,
        bounds or Bounds(800, 600),
        speed_factor,
        generator=np.random.default_rng(seed),
    )


class TestParticleCreation(unittest.TestCase):

    def test_ids_are_unique_and_increasing(self):
        first = make_particle()
        second = make_particle()
        self.assertGreater(second.id, first.id)

    def test_velocity_bounded_by_speed_factor(self):
        rng = np.random.default_rng(3)
        for _ in range(200):
            p = Particle(10, 10, 3, RED, Bounds(100, 100), 2.5, generator=rng)
            self.assertLessEqual(abs(p.vx), 2.5)
            self.assertLessEqual(abs(p.vy), 2.5)

    def test_initial_state(self):
        p = make_particle()
        self.assertFalse(p.is_highlighted)
        self.assertFalse(p.is_selected)
        self.assertEqual(p.glow_amount, 0.0)
        self.assertEqual(p.connected_particles, 0)
        self.assertEqual(p.current_radius, p.radius)
        self.assertTrue(0.01 <= p.oscillation_rate < 0.03)
        self.assertTrue(0.0 <= p.oscillation_offset < 2 * math.pi)
        self.assertTrue(1.0 <= p.max_radius_multiplier < 1.5)

    def test_non_positive_radius_rejected(self):
        with self.assertRaises(ValueError):
            make_particle(radius=0.0)
        with self.assertRaises(ValueError):
            make_particle(radius=-1.0)

    def test_bounds_clamped_to_one_pixel(self):
        bounds = Bounds(0, -20)
        self.assertEqual(bounds.width, 1.0)
        self.assertEqual(bounds.height, 1.0)
        self.assertEqual(Bounds(float('nan'), 50).width, 1.0)


class TestParticleUpdate(unittest.TestCase):

    def test_bounce_off_left_wall(self):
        p = make_particle(x=5, y=300, radius=5)
        p.vx, p.vy = -2.0, 0.0
        p.update(0.0)
        self.assertEqual((p.x, p.y), (5.0, 300.0))
        self.assertEqual((p.vx, p.vy), (2.0, 0.0))

    def test_bounce_off_bottom_wall_keeps_other_axis(self):
        p = make_particle(x=400, y=594, radius=5)
        p.vx, p.vy = 1.5, 3.0
        p.update(0.0)
        self.assertEqual(p.y, 595.0)
        self.assertEqual(p.vy, -3.0)
        self.assertEqual(p.vx, 1.5)
        self.assertAlmostEqual(p.x, 401.5)

    def test_position_stays_inside_bounds(self):
        bounds = Bounds(200, 120)
        rng = np.random.default_rng(11)
        particles = [
            Particle(rng.random() * 200, rng.random() * 120, 2 + rng.random() * 3, RED, bounds, 6.0, generator=rng)
            for _ in range(40)
        ]
        for frame in range(300):
            for p in particles:
                p.update(frame * 16.0)
                self.assertGreaterEqual(p.x, p.radius)
                self.assertLessEqual(p.x, bounds.width - p.radius)
                self.assertGreaterEqual(p.y, p.radius)
                self.assertLessEqual(p.y, bounds.height - p.radius)

    def test_current_radius_within_oscillation_range(self):
        p = make_particle(radius=4)
        low, high = p.radius_range
        for now in np.linspace(0, 20000, 500):
            p.update(float(now))
            self.assertGreaterEqual(p.current_radius, low - 1e-9)
            self.assertLessEqual(p.current_radius, high + 1e-9)

    def test_current_radius_formula(self):
        p = make_particle(radius=4)
        now = 1234.0
        p.update(now)
        expected = 4 * (1 + math.sin(now * p.oscillation_rate + p.oscillation_offset) * 0.2 * p.max_radius_multiplier)
        self.assertAlmostEqual(p.current_radius, expected)

    def test_metadata_refreshed(self):
        p = make_particle()
        p.vx, p.vy = 0.0, 2.0
        p.update(0.0)
        self.assertAlmostEqual(p.speed, 2.0)
        self.assertAlmostEqual(p.heading, 90.0)


class TestParticleGeometry(unittest.TestCase):

    def test_is_near_is_strict(self):
        p = make_particle(x=3, y=4)
        self.assertFalse(p.is_near(0, 0, 5.0))
        self.assertTrue(p.is_near(0, 0, 5.0001))

    def test_is_near_default_threshold(self):
        p = make_particle(x=100, y=100)
        self.assertTrue(p.is_near(149, 100))
        self.assertFalse(p.is_near(150, 100))

    def test_distance_is_symmetric(self):
        a = make_particle(x=10, y=10)
        b = make_particle(x=13, y=14)
        self.assertAlmostEqual(a.distance_to(b), 5.0)
        self.assertEqual(a.distance_to(b), b.distance_to(a))

    def test_hit_radius_scales_with_size(self):
        self.assertEqual(make_particle(radius=2).hit_radius, 6.0)
        self.assertEqual(make_particle(radius=5).hit_radius, 15.0)


class TestParticleGlow(unittest.TestCase):

    def test_select_sets_full_glow(self):
        p = make_particle()
        p.select()
        self.assertTrue(p.is_selected)
        self.assertEqual(p.glow_amount, 1.0)

    def test_deselect_keeps_glow_until_update(self):
        p = make_particle()
        p.select()
        p.deselect()
        self.assertFalse(p.is_selected)
        self.assertEqual(p.glow_amount, 1.0)
        p.update(0.0)
        self.assertAlmostEqual(p.glow_amount, 1.0 - GLOW_DECAY)

    def test_glow_decays_to_zero_and_stays(self):
        p = make_particle()
        p.select()
        p.deselect()
        for _ in range(25):
            p.update(0.0)
        self.assertEqual(p.glow_amount, 0.0)

    def test_highlight_does_not_touch_glow(self):
        p = make_particle()
        p.highlight()
        self.assertTrue(p.is_highlighted)
        self.assertEqual(p.glow_amount, 0.0)
        p.unhighlight()
        self.assertFalse(p.is_highlighted)

    def test_pulse_holds_glow_without_selecting(self):
        p = make_particle()
        p.pulse(1000.0)
        self.assertEqual(p.glow_amount, 1.0)
        p.update(500.0)
        self.assertEqual(p.glow_amount, 1.0)
        self.assertFalse(p.is_selected)
        p.update(1000.0)
        self.assertIsNone(p.pulse_until)
        self.assertAlmostEqual(p.glow_amount, 1.0 - GLOW_DECAY)


class TestParticleDraw(unittest.TestCase):

    def test_plain_particle_draws_only_body(self):
        p = make_particle()
        surface = RecordingSurface()
        p.draw(surface, 0.0)
        self.assertEqual(surface.kinds(), ['circle'])
        _, center, radius, color = surface.calls[0]
        self.assertEqual(center, (p.x, p.y))
        self.assertEqual(radius, p.current_radius)
        self.assertEqual(color, RED)

    def test_highlighted_particle_draws_halo(self):
        p = make_particle(radius=4)
        p.highlight()
        surface = RecordingSurface()
        p.draw(surface, 0.0)
        self.assertEqual(surface.kinds(), ['circle', 'gradient'])
        _, _, inner, outer, inner_color, outer_color = surface.calls[1]
        self.assertEqual(inner, 4.0)
        self.assertAlmostEqual(outer, 4.0 * (1 + 0.7 * 0.7))
        self.assertEqual(inner_color, RED)
        self.assertEqual(outer_color[3], 0)

    def test_residual_glow_sizes_halo(self):
        p = make_particle(radius=4)
        p.glow_amount = 0.5
        surface = RecordingSurface()
        p.draw(surface, 0.0)
        self.assertAlmostEqual(surface.calls[1][3], 4.0 * (1 + 0.5 * 0.7))

    def test_selected_particle_draws_indicator(self):
        p = make_particle(radius=4)
        p.select()
        surface = RecordingSurface()
        p.draw(surface, 500.0)
        self.assertEqual(surface.kinds(), ['circle', 'gradient', 'line'])
        _, start, end, color, width = surface.calls[2]
        self.assertEqual(start, (p.x, p.y))
        self.assertAlmostEqual(math.hypot(end[0] - p.x, end[1] - p.y), p.current_radius)
        self.assertAlmostEqual(surface.calls[1][3], 4.0 * 1.7)
        self.assertEqual(color, (255, 255, 255))
        self.assertEqual(width, 2.0)

    def test_indicator_moves_continuously(self):
        p = make_particle(radius=4)
        p.select()
        ends = []
        # Straddle the 2*pi wrap of the indicator angle
        wrap_ms = 2 * math.pi / 0.003
        for now in (wrap_ms - 8, wrap_ms + 8):
            surface = RecordingSurface()
            p.draw(surface, now)
            ends.append(surface.calls[2][2])
        self.assertLess(math.hypot(ends[0][0] - ends[1][0], ends[0][1] - ends[1][1]), 0.5)

    def test_describe_lists_metadata(self):
        p = make_particle()
        p.connected_particles = 3
        lines = p.describe()
        self.assertIn(f"ID: {p.id}", lines)
        self.assertIn("Connections: 3", lines)


if __name__ == "__main__":
    unittest.main()
