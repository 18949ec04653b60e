"""
Tests for vector table reconstruction from border rectangles.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfstruct.parser.scene import PageScene, RectElement, TextElement
from pdfstruct.parser.rect_classifier import classify_rectangles
from pdfstruct.parser.table_detector import TableDetector, detect_tables


def bordered_grid(x0, y0, rows, cols, width=100, height=20, gap=7, stroke='#000000'):
    """Grid of stroked rects, row-major, separated by ``gap``."""
    rects = []
    for r in range(rows):
        for c in range(cols):
            rects.append(RectElement(x0 + c * (width + gap), y0 + r * (height + gap), width, height,
                                     stroke_color=stroke, line_width=1.0))
    return rects


def text_in(rect, label, dx=5, dy=5):
    return TextElement(label, rect.x + dx, rect.y + dy, 40, 10, 10)


def detect(elements, config=None):
    scene = PageScene(612, 792, elements)
    return TableDetector(config).detect_tables(scene, classify_rectangles(scene))


def covered_positions(table):
    positions = []
    for cell in table.cells:
        for r in range(cell.row, cell.row + cell.row_span):
            for c in range(cell.col, cell.col + cell.col_span):
                positions.append((r, c))
    return positions


class TestGridReconstruction(unittest.TestCase):
    """Grid lines, gap collapsing and content assignment."""

    def test_gap_separated_grid(self):
        rects = bordered_grid(50, 100, 2, 3)
        texts = [text_in(rect, f"R{i // 3}C{i % 3}") for i, rect in enumerate(rects)]

        tables = detect(rects + texts)

        self.assertEqual(len(tables), 1)
        table = tables[0]
        self.assertEqual((table.rows, table.cols), (2, 3))
        self.assertEqual(table.column_widths, [100, 107, 107])
        self.assertEqual(table.row_heights, [20, 27])
        self.assertEqual((table.x, table.y, table.width, table.height), (50, 100, 314, 47))
        self.assertEqual(table.source, 'vector')
        self.assertEqual(len(table.cells), 6)

        for r in range(2):
            for c in range(3):
                cell = table.cell_at(r, c)
                self.assertEqual([t.text for t in cell.texts], [f"R{r}C{c}"])

    def test_dominant_border(self):
        rects = bordered_grid(50, 100, 2, 2, gap=0)
        rects[3].stroke_color = '#999999'
        rects[3].line_width = 2.0

        table = detect(rects)[0]
        self.assertEqual(table.border_color, '#000000')
        self.assertEqual(table.border_width, 1.0)

    def test_single_row_is_rejected(self):
        self.assertEqual(detect(bordered_grid(50, 100, 1, 3)), [])

    def test_sparse_cluster_is_rejected(self):
        # Diagonal chain of boxes: connected, but most grid cells are empty
        rects = [RectElement(i * 55, i * 55, 50, 50, stroke_color='#000000') for i in range(6)]
        self.assertEqual(detect(rects), [])

    def test_separate_tables(self):
        first = bordered_grid(50, 100, 2, 2, gap=0)
        second = bordered_grid(50, 400, 3, 2, gap=0)
        label = text_in(second[4], 'bottom-left')

        tables = detect(first + second + [label])

        self.assertEqual(len(tables), 2)
        self.assertEqual((tables[0].rows, tables[0].cols), (2, 2))
        self.assertEqual((tables[1].rows, tables[1].cols), (3, 2))
        self.assertEqual(tables[1].cell_at(2, 0).texts, [label])
        self.assertEqual(tables[0].all_texts(), [])

    def test_cell_fill(self):
        rects = bordered_grid(50, 100, 2, 2, gap=0)
        fill = RectElement(152, 122, 96, 16, fill_color='#DDEEFF')

        table = detect(rects + [fill])[0]
        self.assertEqual(table.cell_at(1, 1).fill_color, '#DDEEFF')
        self.assertIsNone(table.cell_at(0, 0).fill_color)

    def test_redetection_is_stable(self):
        table = detect(bordered_grid(50, 100, 2, 3))[0]
        synthetic = [RectElement(cell.x, cell.y, cell.width, cell.height, stroke_color='#000000')
                     for cell in table.cells]

        again = detect(synthetic)[0]
        self.assertEqual((again.rows, again.cols), (table.rows, table.cols))
        self.assertEqual(again.column_widths, table.column_widths)

    def test_module_function(self):
        scene = PageScene(612, 792, bordered_grid(50, 100, 2, 2))
        self.assertEqual(len(detect_tables(scene, classify_rectangles(scene))), 1)


class TestMergedCells(unittest.TestCase):
    """Row and column spans detected from missing borders."""

    def assert_full_coverage(self, table):
        positions = covered_positions(table)
        expected = [(r, c) for r in range(table.rows) for c in range(table.cols)]
        self.assertEqual(sorted(positions), expected)
        self.assertEqual(len(positions), len(set(positions)))

    def test_column_span(self):
        rects = [
            RectElement(50, 100, 200, 20, stroke_color='#000000'),
            RectElement(50, 120, 100, 20, stroke_color='#000000'),
            RectElement(150, 120, 100, 20, stroke_color='#000000'),
        ]
        table = detect(rects)[0]

        self.assertEqual((table.rows, table.cols), (2, 2))
        self.assertEqual(len(table.cells), 3)
        header = table.cell_at(0, 1)
        self.assertEqual((header.row, header.col, header.row_span, header.col_span), (0, 0, 1, 2))
        self.assertEqual(header.width, 200)
        self.assert_full_coverage(table)

    def test_row_span(self):
        rects = [
            RectElement(50, 100, 100, 40, stroke_color='#000000'),
            RectElement(150, 100, 100, 20, stroke_color='#000000'),
            RectElement(150, 120, 100, 20, stroke_color='#000000'),
        ]
        table = detect(rects)[0]

        self.assertEqual(len(table.cells), 3)
        tall = table.cell_at(1, 0)
        self.assertEqual((tall.row, tall.col, tall.row_span, tall.col_span), (0, 0, 2, 1))
        self.assertEqual(tall.height, 40)
        self.assert_full_coverage(table)

    def test_column_span_across_collapsed_gap(self):
        rects = [
            RectElement(50, 100, 207, 20, stroke_color='#000000'),
            RectElement(50, 127, 100, 20, stroke_color='#000000'),
            RectElement(157, 127, 100, 20, stroke_color='#000000'),
        ]
        table = detect(rects)[0]

        self.assertEqual((table.rows, table.cols), (2, 2))
        spans = sorted((c.row, c.col, c.row_span, c.col_span) for c in table.cells)
        self.assertEqual(spans, [(0, 0, 1, 2), (1, 0, 1, 1), (1, 1, 1, 1)])
        self.assert_full_coverage(table)

    def test_plain_grid_has_no_spans(self):
        table = detect(bordered_grid(50, 100, 3, 3))[0]
        self.assertTrue(all(c.row_span == 1 and c.col_span == 1 for c in table.cells))
        self.assert_full_coverage(table)


class TestOutsideLabels(unittest.TestCase):
    """Labels captured from just outside the bordered grid."""

    def test_left_label_widens_first_column(self):
        rects = bordered_grid(150, 100, 2, 2, gap=0)
        label = TextElement('Name', 100, 105, 40, 10, 10)

        table = detect(rects + [label])[0]

        self.assertIn(label, table.cell_at(0, 0).texts)
        self.assertEqual(table.x, 100)
        self.assertEqual(table.column_widths, [150, 100])
        self.assertEqual(table.cell_at(1, 0).x, 100)

    def test_far_left_text_is_ignored(self):
        rects = bordered_grid(250, 100, 2, 2, gap=0)
        far = TextElement('Far away', 50, 105, 40, 10, 10)

        table = detect(rects + [far])[0]
        self.assertEqual(table.all_texts(), [])
        self.assertEqual(table.x, 250)

    def test_header_and_footer_text(self):
        rects = bordered_grid(150, 100, 2, 2, gap=0)
        header = TextElement('Qty', 260, 85, 40, 10, 10)
        footer = TextElement('Total', 160, 145, 40, 10, 10)

        table = detect(rects + [header, footer])[0]

        self.assertIn(header, table.cell_at(0, 1).texts)
        self.assertIn(footer, table.cell_at(1, 0).texts)

    def test_misaligned_header_is_ignored(self):
        rects = bordered_grid(150, 100, 2, 2, gap=0)
        straddling = TextElement('Straddles both columns', 200, 85, 100, 10, 10)

        table = detect(rects + [straddling])[0]
        self.assertEqual(table.all_texts(), [])


class TestCellStyling(unittest.TestCase):
    """Per-cell borders, padding and vertical alignment."""

    def test_cell_borders(self):
        rects = bordered_grid(50, 100, 2, 2, gap=0)
        rects[0].stroke_color = '#FF0000'
        rects[0].line_width = 2.0

        table = detect(rects)[0]
        cell = table.cell_at(0, 0)
        self.assertEqual(cell.borders['top'], {'color': '#FF0000', 'width': 2.0})
        self.assertEqual(cell.borders['left'], {'color': '#FF0000', 'width': 2.0})
        self.assertEqual(table.cell_at(1, 1).borders['bottom'], {'color': '#000000', 'width': 1.0})

    def test_padding_and_center_alignment(self):
        rects = bordered_grid(50, 100, 2, 2, gap=0)
        text = text_in(rects[0], 'centered')

        cell = detect(rects + [text])[0].cell_at(0, 0)
        self.assertEqual(cell.padding, {'left': 5, 'top': 5, 'right': 55, 'bottom': 5})
        self.assertEqual(cell.vertical_alignment, 'center')

    def test_top_alignment(self):
        rects = bordered_grid(50, 100, 2, 2, height=40, gap=0)
        text = text_in(rects[0], 'top', dy=2)

        cell = detect(rects + [text])[0].cell_at(0, 0)
        self.assertEqual(cell.vertical_alignment, 'top')
        self.assertNotIn('top', cell.padding)

    def test_bottom_alignment(self):
        rects = bordered_grid(50, 100, 2, 2, height=40, gap=0)
        text = text_in(rects[0], 'bottom', dy=28)

        cell = detect(rects + [text])[0].cell_at(0, 0)
        self.assertEqual(cell.vertical_alignment, 'bottom')

    def test_no_alignment_without_slack(self):
        rects = bordered_grid(50, 100, 2, 2, height=14, gap=0)
        text = text_in(rects[0], 'tight', dy=2)

        cell = detect(rects + [text])[0].cell_at(0, 0)
        self.assertIsNone(cell.vertical_alignment)


if __name__ == '__main__':
    unittest.main()
