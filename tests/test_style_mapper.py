"""
Tests for paragraph background and bottom-border mapping.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfstruct.parser.scene import PageScene, RectElement, TextElement
from pdfstruct.parser.rect_classifier import classify_rectangles
from pdfstruct.rebuilder.layout_model import ParagraphGroup
from pdfstruct.mapper.style_mapper import StyleMapper, apply_paragraph_styles


class TestStyleMapper(unittest.TestCase):
    """Rect-derived paragraph styling."""

    def setUp(self):
        self.text = TextElement('Section title', 60, 100, 150, 12, 10)
        self.paragraph = ParagraphGroup(texts=[self.text], x=60, y=100)

    def style(self, rects):
        scene = PageScene(612, 792, rects + [self.text])
        StyleMapper().apply([self.paragraph], classify_rectangles(scene), scene.width)
        return self.paragraph

    def test_background_from_tall_fill(self):
        banner = RectElement(50, 95, 300, 22, fill_color='#1F4E79')
        paragraph = self.style([banner])
        self.assertEqual(paragraph.background_color, '#1F4E79')
        self.assertIsNone(paragraph.bottom_border)

    def test_smallest_background_wins(self):
        outer = RectElement(45, 50, 400, 200, fill_color='#EEEE00')
        inner = RectElement(50, 95, 300, 22, fill_color='#1F4E79')
        self.assertEqual(self.style([outer, inner]).background_color, '#1F4E79')

    def test_near_white_fill_is_ignored(self):
        self.assertIsNone(self.style([RectElement(50, 95, 300, 22, fill_color='#FAFAFA')]).background_color)

    def test_offset_fill_is_ignored(self):
        self.assertIsNone(self.style([RectElement(200, 95, 300, 22, fill_color='#1F4E79')]).background_color)

    def test_thin_fill_underline(self):
        underline = RectElement(60, 115, 200, 1, fill_color='#C00000')
        paragraph = self.style([underline])
        self.assertEqual(paragraph.bottom_border, {'color': '#C00000', 'width': 1})
        self.assertIsNone(paragraph.background_color)

    def test_nearest_underline_wins(self):
        near = RectElement(60, 114, 200, 1, fill_color='#C00000')
        far = RectElement(60, 124, 200, 2, fill_color='#0000C0')
        self.assertEqual(self.style([far, near]).bottom_border['color'], '#C00000')

    def test_separator_fallback(self):
        rule = RectElement(40, 116, 500, 1, stroke_color='#333333', line_width=0.5)
        self.assertEqual(self.style([rule]).bottom_border, {'color': '#333333', 'width': 0.5})

    def test_filled_separator_uses_height(self):
        rule = RectElement(40, 116, 500, 1.5, fill_color='#333333')
        self.assertEqual(self.style([rule]).bottom_border, {'color': '#333333', 'width': 1.5})

    def test_distant_rule_is_ignored(self):
        rule = RectElement(60, 142, 200, 1, fill_color='#C00000')
        self.assertIsNone(self.style([rule]).bottom_border)

    def test_rule_without_overlap_is_ignored(self):
        rule = RectElement(300, 115, 100, 1, fill_color='#C00000')
        self.assertIsNone(self.style([rule]).bottom_border)

    def test_module_function_returns_paragraphs(self):
        scene = PageScene(612, 792, [self.text])
        result = apply_paragraph_styles([self.paragraph], classify_rectangles(scene), 612)
        self.assertEqual(result, [self.paragraph])


if __name__ == '__main__':
    unittest.main()
