import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from strikes.models import GeoStrike
from strikes.snapshot import export_snapshot, read_snapshot, serialize_snapshot, write_snapshot


class TestSnapshotFile(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "api" / "datos_rayos.json"
        self.strikes = [GeoStrike(7.2, -65.35, 15), GeoStrike(10.5, -60.125, 0)]

    def tearDown(self):
        self.tmp.cleanup()

    def test_artifact_shape(self):
        """JSON array of {lat, lng, age} with 2-space indentation"""
        text = serialize_snapshot(self.strikes)
        self.assertEqual(json.loads(text), [
            {'lat': 7.2, 'lng': -65.35, 'age': 15},
            {'lat': 10.5, 'lng': -60.125, 'age': 0},
        ])
        self.assertTrue(text.startswith('[\n  {\n    "lat": 7.2'))

    def test_empty_snapshot(self):
        self.assertEqual(serialize_snapshot([]), '[]')

    def test_write_creates_directory(self):
        write_snapshot(self.strikes, self.path)
        self.assertEqual(read_snapshot(self.path), self.strikes)

    def test_write_replaces_previous_snapshot(self):
        write_snapshot(self.strikes, self.path)
        write_snapshot(self.strikes[:1], self.path)
        self.assertEqual(read_snapshot(self.path), self.strikes[:1])
        self.assertEqual(list(self.path.parent.glob('*.tmp')), [])

    def test_failed_write_keeps_previous_snapshot(self):
        write_snapshot(self.strikes, self.path)
        before = self.path.read_bytes()
        with mock.patch('strikes.snapshot.os.replace', side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                write_snapshot([], self.path)
        self.assertEqual(self.path.read_bytes(), before)
        self.assertEqual(list(self.path.parent.glob('*.tmp')), [])

    def test_export(self):
        target = Path(self.tmp.name) / "export.json"
        export_snapshot(iter(self.strikes), target)
        self.assertEqual(target.read_text(encoding='utf-8'), serialize_snapshot(self.strikes))


if __name__ == '__main__':
    unittest.main()
