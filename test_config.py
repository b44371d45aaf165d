import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from strikes.config import CONFIG_ENV_VAR, DEFAULTS, get_bounds, get_frame, load_settings


class TestSettings(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "strikes.yaml"

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, text):
        self.path.write_text(text, encoding='utf-8')
        return self.path

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = load_settings()
        self.assertEqual(settings, DEFAULTS)
        self.assertIsNot(settings['source'], DEFAULTS['source'])
        bounds = get_bounds(settings)
        self.assertEqual((bounds.north, bounds.south, bounds.west, bounds.east), (14.2, 0.2, -75.8, -54.9))
        self.assertEqual((get_frame(settings).width, get_frame(settings).height), (800, 600))

    def test_recalibration_override(self):
        """Only the overridden keys change"""
        settings = load_settings(self.write("calibration_bounds:\n  north: 14.5\n"))
        self.assertEqual(settings['calibration_bounds']['north'], 14.5)
        self.assertEqual(settings['calibration_bounds']['south'], 0.2)
        self.assertEqual(settings['pixel_frame'], DEFAULTS['pixel_frame'])

    def test_override_from_environment(self):
        self.write("schedule:\n  refresh_interval: 60\noutput:\n  snapshot_file: public/rayos.json\n")
        with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: str(self.path)}):
            settings = load_settings()
        self.assertEqual(settings['schedule']['refresh_interval'], 60)
        self.assertEqual(settings['output']['snapshot_file'], Path("public/rayos.json"))

    def test_unknown_section(self):
        with self.assertRaises(ValueError):
            load_settings(self.write("calibration:\n  north: 1\n"))

    def test_invalid_bounds(self):
        settings = load_settings(self.write("calibration_bounds:\n  north: 0.1\n"))
        with self.assertRaises(ValueError):
            get_bounds(settings)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_settings(Path(self.tmp.name) / "missing.yaml")


if __name__ == '__main__':
    unittest.main()
