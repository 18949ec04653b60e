"""
Tests for borderless tables inferred from aligned text-input fields.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfstruct.parser.scene import FormField, TextElement
from pdfstruct.parser.form_table_detector import FormTableDetector, detect_form_tables


def field_row(y, xs, width=150, height=20, field_type='Tx'):
    return [FormField(x, y, width, height, field_type=field_type, field_name=f"f_{x}_{y}") for x in xs]


class TestFormTableDetector(unittest.TestCase):
    """Run-based, header-based and paired-row detection."""

    def setUp(self):
        self.detector = FormTableDetector()

    def test_run_with_header_row(self):
        fields = field_row(100, [100, 300]) + field_row(130, [100, 300]) + field_row(160, [100, 300])
        name = TextElement('Name', 100, 80, 40, 10, 10)
        email = TextElement('Email', 300, 80, 40, 10, 10)

        tables = self.detector.detect_tables(fields, [name, email])

        self.assertEqual(len(tables), 1)
        table = tables[0]
        self.assertEqual(table.source, 'form')
        self.assertEqual((table.rows, table.cols), (4, 2))
        self.assertEqual(table.column_widths, [175, 175])
        self.assertEqual(table.row_heights, [15, 30, 30, 25])
        self.assertEqual(table.cell_at(0, 0).texts, [name])
        self.assertEqual(table.cell_at(0, 1).texts, [email])
        self.assertEqual(table.cell_at(1, 0).form_fields, [fields[0]])
        self.assertEqual(table.cell_at(3, 1).form_fields, [fields[5]])

    def test_run_without_header(self):
        fields = field_row(100, [100, 300, 500], width=80) + field_row(130, [102, 298, 505], width=80)

        tables = detect_form_tables(fields, [])

        self.assertEqual(len(tables), 1)
        self.assertEqual((tables[0].rows, tables[0].cols), (2, 3))
        self.assertEqual(len(tables[0].all_form_fields()), 6)

    def test_too_few_fields(self):
        fields = field_row(100, [100, 300]) + field_row(130, [100])
        self.assertEqual(self.detector.detect_tables(fields, []), [])

    def test_non_text_fields_are_ignored(self):
        fields = (field_row(100, [100, 300], field_type='Btn') +
                  field_row(130, [100, 300], field_type='Btn'))
        self.assertEqual(self.detector.detect_tables(fields, []), [])

    def test_mismatched_columns_are_not_a_table(self):
        fields = field_row(100, [100, 300]) + field_row(130, [160, 400])
        self.assertEqual(self.detector.detect_tables(fields, []), [])

    def test_single_row_with_header(self):
        fields = field_row(100, [100, 300]) + field_row(300, [100]) + field_row(400, [300])
        headers = [TextElement('First', 110, 80, 40, 10, 10), TextElement('Last', 310, 80, 40, 10, 10)]

        tables = self.detector.detect_tables(fields, headers)

        self.assertEqual(len(tables), 1)
        self.assertEqual((tables[0].rows, tables[0].cols), (2, 2))
        self.assertEqual(tables[0].all_texts(), headers)

    def test_single_row_without_header_is_not_a_table(self):
        fields = field_row(100, [100, 300]) + field_row(300, [100]) + field_row(400, [300])
        self.assertEqual(self.detector.detect_tables(fields, []), [])

    def test_paired_rows(self):
        fields = field_row(100, [100, 300]) + field_row(130, [120, 320])

        tables = self.detector.detect_tables(fields, [])

        self.assertEqual(len(tables), 1)
        self.assertEqual((tables[0].rows, tables[0].cols), (2, 2))
        self.assertEqual(tables[0].source, 'form')

    def test_wide_header_text_is_excluded(self):
        fields = field_row(100, [100, 300]) + field_row(130, [100, 300])
        banner = TextElement('A long section title spanning the table', 100, 85, 300, 12, 10)
        qty = TextElement('Qty', 300, 85, 30, 10, 10)

        tables = self.detector.detect_tables(fields, [banner, qty])

        self.assertEqual(tables[0].rows, 2)

    def test_labels_join_nearest_cell(self):
        fields = field_row(100, [100, 300]) + field_row(130, [100, 300])
        label = TextElement('Qty', 60, 135, 30, 10, 10)
        section = TextElement('SECTION', 100, 85, 300, 12, 20)

        tables = self.detector.detect_tables(fields, [label, section])

        table = tables[0]
        self.assertEqual(table.cell_at(1, 0).texts, [label])
        self.assertNotIn(section, table.all_texts())

    def test_cluster_rows(self):
        fields = field_row(100, [300, 100]) + field_row(104, [500]) + field_row(140, [100])
        rows = self.detector.cluster_rows(fields)

        self.assertEqual([len(r) for r in rows], [3, 1])
        self.assertEqual([f.x for f in rows[0]], [100, 300, 500])


if __name__ == '__main__':
    unittest.main()
