"""
Tests for the configuration loader.
"""

import logging
import unittest

import config


class TestParseHexColor(unittest.TestCase):

    def test_valid_colours(self):
        self.assertEqual(config.parse_hex_color('#0066ff'), (0, 102, 255))
        self.assertEqual(config.parse_hex_color('  80dfff '), (128, 223, 255))

    def test_invalid_colours_fall_back(self):
        self.assertEqual(config.parse_hex_color('#12345'), (255, 255, 255))
        self.assertEqual(config.parse_hex_color('#zzzzzz', fallback=(1, 2, 3)), (1, 2, 3))
        self.assertEqual(config.parse_hex_color(None, fallback=(4, 5, 6)), (4, 5, 6))


class TestConfigLoader(unittest.TestCase):

    def setUp(self):
        config.reset_cache()

    def tearDown(self):
        config.reset_cache()

    def test_defaults_present(self):
        loader = config.ConfigLoader()
        for key in config.DEFAULTS:
            self.assertIn(key, loader)
        self.assertEqual(loader['theme'], 'blue')

    def test_overrides_win(self):
        loader = config.ConfigLoader(overrides={'particle_count': 42})
        self.assertEqual(loader['particle_count'], 42)

    def test_missing_key_raises(self):
        with self.assertRaises(KeyError):
            config.ConfigLoader()['no_such_key']

    def test_themes_parsed_to_rgb(self):
        themes = config.ConfigLoader().themes()
        self.assertEqual(set(themes), {'blue', 'green', 'purple', 'sunset', 'grayscale'})
        self.assertEqual(themes['blue'][0], (0, 102, 255))

    def test_broken_themes_fall_back_to_defaults(self):
        themes = config.ConfigLoader(overrides={'themes': 'oops'}).themes()
        self.assertIn('blue', themes)

    def test_all_unusable_themes_fall_back_to_defaults(self):
        loader = config.ConfigLoader(overrides={'themes': {'blue': [], 'green': 'not a list'}})
        themes = loader.themes()
        self.assertEqual(set(themes), set(config.DEFAULTS['themes']))
        self.assertEqual(themes['blue'][0], (0, 102, 255))

    def test_all_unusable_presets_fall_back_to_defaults(self):
        loader = config.ConfigLoader(overrides={
            'performance_presets': {'bad': {'particle_count': 'many'}, 'worse': 7},
        })
        self.assertEqual(loader.presets()['medium'], (100, 150.0))

    def test_presets(self):
        presets = config.ConfigLoader().presets()
        self.assertEqual(presets['low'], (50, 100.0))
        self.assertEqual(presets['medium'], (100, 150.0))
        self.assertEqual(presets['high'], (200, 200.0))

    def test_malformed_preset_skipped(self):
        loader = config.ConfigLoader(overrides={
            'performance_presets': {
                'ok': {'particle_count': 10, 'connection_radius': 80},
                'bad': {'particle_count': 'many'},
            },
        })
        self.assertEqual(loader.presets(), {'ok': (10, 80.0)})

    def test_background_colour(self):
        loader = config.ConfigLoader(overrides={'background_color': '#010203'})
        self.assertEqual(loader.background_color(), (1, 2, 3))

    def test_setup_logging_accepts_unknown_level(self):
        config.setup_logging(config.ConfigLoader(overrides={'log_level': 'chatty'}))
        self.assertIsInstance(logging.getLogger().level, int)


if __name__ == "__main__":
    unittest.main()
