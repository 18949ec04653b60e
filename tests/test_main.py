"""
Tests for the command-line entry point.
"""

import json
import logging
import tempfile
import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from main import analyze_scene_file


class TestAnalyzeSceneFile(unittest.TestCase):
    """Scene file in, layout JSON out."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.config = {}

    def write_scene(self, data) -> str:
        path = Path(self.tmpdir.name) / 'scene.json'
        path.write_text(json.dumps(data), encoding='utf-8')
        return str(path)

    def test_writes_layout(self):
        scene_path = self.write_scene({
            'width': 612,
            'height': 792,
            'elements': [{'kind': 'text', 'text': 'Hello', 'x': 72, 'y': 72,
                          'width': 40, 'height': 12, 'font_size': 10}],
        })
        output_path = str(Path(self.tmpdir.name) / 'layout.json')

        self.assertTrue(analyze_scene_file(scene_path, output_path, self.config, rasterize=False))

        with open(output_path, 'r', encoding='utf-8') as f:
            layout = json.load(f)
        self.assertEqual([e['type'] for e in layout['elements']], ['paragraph'])

    def test_non_object_element_fails_cleanly(self):
        scene_path = self.write_scene({'width': 612, 'height': 792, 'elements': ['oops']})
        output_path = str(Path(self.tmpdir.name) / 'layout.json')

        with self.assertLogs('main', level=logging.ERROR):
            self.assertFalse(analyze_scene_file(scene_path, output_path, self.config))
        self.assertFalse(Path(output_path).exists())

    def test_invalid_json_fails_cleanly(self):
        path = Path(self.tmpdir.name) / 'broken.json'
        path.write_text('{"width": 612,', encoding='utf-8')

        with self.assertLogs('main', level=logging.ERROR):
            self.assertFalse(analyze_scene_file(str(path), None, self.config))

    def test_null_stroke_width_is_analyzed(self):
        scene_path = self.write_scene({
            'width': 612,
            'height': 792,
            'elements': [{'kind': 'rect', 'x': 50, 'y': 100, 'width': 100, 'height': 20,
                          'stroke_color': '#000000', 'line_width': None}],
        })
        output_path = str(Path(self.tmpdir.name) / 'layout.json')

        self.assertTrue(analyze_scene_file(scene_path, output_path, self.config, rasterize=False))


if __name__ == '__main__':
    unittest.main()
