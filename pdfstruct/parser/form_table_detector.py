"""
Form Table Detector - Infers tables from the spatial layout of text-input fields

Many forms draw no borders at all: a table is only implied by text fields
repeating in aligned rows. This detector clusters fields into rows, finds
runs of rows with matching column structure, and builds a DetectedTable
whose grid lines sit between the fields.
"""

import logging
from typing import List, Dict, Any, Optional, Tuple

import numpy as np

from .scene import FormField, TextElement
from .element_extractor import ElementExtractor
from ..rebuilder.layout_model import DetectedTable, DetectedCell
from ..utils.geometry import element_bbox, element_center

logger = logging.getLogger(__name__)


class FormTableDetector:
    """
    Detects borderless tables formed by aligned text-input fields.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize Form Table Detector.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.min_fields = self.config.get('min_fields', 4)
        self.row_tolerance = self.config.get('row_tolerance', 8.0)
        self.column_tolerance = self.config.get('column_tolerance', 15.0)
        self.header_max_distance = self.config.get('header_max_distance', 30.0)
        self.header_baseline_tolerance = self.config.get('header_baseline_tolerance', 3.0)
        self.header_max_width_ratio = self.config.get('header_max_width_ratio', 1.5)
        self.header_font_tolerance = self.config.get('header_font_tolerance', 0.2)
        self.min_header_texts = self.config.get('min_header_texts', 2)
        self.label_y_tolerance = self.config.get('label_y_tolerance', 10.0)
        self.label_x_tolerance = self.config.get('label_x_tolerance', 40.0)
        self.section_header_font_ratio = self.config.get('section_header_font_ratio', 1.2)
        self.paired_column_tolerance = self.config.get('paired_column_tolerance', 40.0)

    def detect_tables(self, form_fields: List[FormField], texts: List[TextElement]) -> List[DetectedTable]:
        """
        Detect field-aligned tables.

        Args:
            form_fields: Form fields not claimed by vector tables
            texts: Text elements not claimed by vector tables

        Returns:
            Detected tables sorted top to bottom
        """
        fields = ElementExtractor.get_text_input_fields(form_fields)
        if len(fields) < self.min_fields:
            logger.debug(f"Skipping form table detection: only {len(fields)} text fields")
            return []

        rows = self.cluster_rows(fields)
        used_texts = set()
        consumed = [False] * len(rows)
        tables: List[DetectedTable] = []

        i = 0
        while i < len(rows):
            run_end = i + 1
            while run_end < len(rows) and self._rows_aligned(rows[i], rows[run_end], self.column_tolerance):
                run_end += 1

            if len(rows[i]) >= 2:
                header = self._find_header_row(rows[i], texts, used_texts)
                if run_end - i >= 2 or header:
                    table = self._build_table(rows[i:run_end], header)
                    used_texts.update(id(t) for t, _ in header or [])
                    tables.append(table)
                    for k in range(i, run_end):
                        consumed[k] = True
                    i = run_end
                    continue
            i += 1

        tables.extend(self._detect_paired_rows(rows, consumed))

        if tables:
            self._assign_labels(tables, texts, used_texts)

        tables.sort(key=lambda t: (t.y, t.x))
        for table in tables:
            logger.info(f"Detected form-field table: {table.rows}x{table.cols} at y={table.y:.1f}")
        return tables

    def cluster_rows(self, fields: List[FormField]) -> List[List[FormField]]:
        """
        Group fields into visual rows by Y-center.

        A field joins the current row while its center lies within the row
        tolerance of the row's running mean center.

        Args:
            fields: Text-input fields

        Returns:
            Rows top to bottom, each sorted by X
        """
        rows: List[List[FormField]] = []
        row_center = 0.0

        for field in sorted(fields, key=lambda f: element_center(f)[1]):
            center_y = element_center(field)[1]
            if rows and abs(center_y - row_center) <= self.row_tolerance:
                rows[-1].append(field)
                row_center += (center_y - row_center) / len(rows[-1])
            else:
                rows.append([field])
                row_center = center_y

        for row in rows:
            row.sort(key=lambda f: f.x)
        return rows

    @staticmethod
    def _rows_aligned(first: List[FormField], other: List[FormField], tolerance: float) -> bool:
        if len(first) != len(other) or len(first) < 2:
            return False
        return all(abs(a.x - b.x) <= tolerance for a, b in zip(first, other))

    def _find_header_row(self, row: List[FormField], texts: List[TextElement],
                         used_texts: set) -> Optional[List[Tuple[TextElement, int]]]:
        """
        Find a line of column headers just above a field row.

        Args:
            row: First field row of the candidate table
            texts: Candidate text elements
            used_texts: ids of texts already placed in a table

        Returns:
            (text, column) pairs, or None when no valid header exists
        """
        row_top = min(element_bbox(f)[1] for f in row)

        above = []
        for text in texts:
            if id(text) in used_texts:
                continue
            bottom = element_bbox(text)[3]
            if bottom <= row_top and row_top - bottom <= self.header_max_distance:
                above.append(text)
        if not above:
            return None

        # Keep only the line nearest to the row
        nearest = max(above, key=lambda t: element_bbox(t)[3])
        line = [t for t in above if abs(t.y - nearest.y) <= self.header_baseline_tolerance]

        avg_field_width = sum(f.width for f in row) / len(row)
        aligned = []
        for text in line:
            if text.width > avg_field_width * self.header_max_width_ratio:
                continue
            col = self._column_of(text, row)
            if col is not None:
                aligned.append((text, col))
        if not aligned:
            return None

        median_size = float(np.median([t.font_size for t, _ in aligned]))
        header = [(t, c) for t, c in aligned
                  if median_size <= 0 or abs(t.font_size - median_size) <= median_size * self.header_font_tolerance]

        if len(header) < self.min_header_texts:
            return None
        logger.debug(f"Found header row of {len(header)} texts above field row at y={row_top:.1f}")
        return header

    def _column_of(self, text: TextElement, row: List[FormField]) -> Optional[int]:
        """Column whose field X-extent (widened by the column tolerance) holds the text center."""
        center_x = element_center(text)[0]
        for k, field in enumerate(row):
            x0, _, x1, _ = element_bbox(field)
            if x0 - self.column_tolerance <= center_x <= x1 + self.column_tolerance:
                return k
        return None

    def _build_table(self, rows: List[List[FormField]],
                     header: Optional[List[Tuple[TextElement, int]]]) -> DetectedTable:
        """Build a table from aligned field rows and an optional header line."""
        num_cols = len(rows[0])
        starts = [sum(row[k].x for row in rows) / len(rows) for k in range(num_cols)]
        ends = [sum(row[k].x + row[k].width for row in rows) / len(rows) for k in range(num_cols)]

        col_bounds = [starts[0]]
        for k in range(1, num_cols):
            col_bounds.append((ends[k - 1] + starts[k]) / 2)
        col_bounds.append(ends[-1])

        extents = []
        if header:
            boxes = [element_bbox(t) for t, _ in header]
            extents.append((min(b[1] for b in boxes), max(b[3] for b in boxes)))
        for row in rows:
            boxes = [element_bbox(f) for f in row]
            extents.append((min(b[1] for b in boxes), max(b[3] for b in boxes)))

        row_bounds = [extents[0][0]]
        for k in range(1, len(extents)):
            boundary = (extents[k - 1][1] + extents[k][0]) / 2
            row_bounds.append(max(boundary, row_bounds[-1]))
        row_bounds.append(max(extents[-1][1], row_bounds[-1]))

        num_rows = len(extents)
        cells = []
        for r in range(num_rows):
            for c in range(num_cols):
                cells.append(DetectedCell(
                    row=r,
                    col=c,
                    x=col_bounds[c],
                    y=row_bounds[r],
                    width=col_bounds[c + 1] - col_bounds[c],
                    height=row_bounds[r + 1] - row_bounds[r],
                ))

        offset = 1 if header else 0
        if header:
            for text, col in header:
                cells[col].texts.append(text)
        for r, row in enumerate(rows):
            for c, field in enumerate(row):
                cells[(r + offset) * num_cols + c].form_fields.append(field)

        table = DetectedTable(
            rows=num_rows,
            cols=num_cols,
            column_widths=[col_bounds[c + 1] - col_bounds[c] for c in range(num_cols)],
            row_heights=[row_bounds[r + 1] - row_bounds[r] for r in range(num_rows)],
            x=col_bounds[0],
            y=row_bounds[0],
            width=col_bounds[-1] - col_bounds[0],
            height=row_bounds[-1] - row_bounds[0],
            cells=cells,
        )
        table.source = 'form'
        return table

    def _detect_paired_rows(self, rows: List[List[FormField]], consumed: List[bool]) -> List[DetectedTable]:
        """Two-field rows (label/value pairs side by side) repeated over consecutive rows."""
        tables = []
        i = 0
        while i < len(rows):
            if consumed[i] or len(rows[i]) != 2:
                i += 1
                continue

            run_end = i + 1
            while (run_end < len(rows) and not consumed[run_end] and
                   self._rows_aligned(rows[i], rows[run_end], self.paired_column_tolerance)):
                run_end += 1

            if run_end - i >= 2:
                tables.append(self._build_table(rows[i:run_end], None))
                for k in range(i, run_end):
                    consumed[k] = True
                logger.debug(f"Detected paired-field table of {run_end - i} rows")
                i = run_end
            else:
                i += 1
        return tables

    def _assign_labels(self, tables: List[DetectedTable], texts: List[TextElement], used_texts: set):
        """
        Attach leftover labels to the nearest cell of any detected table.

        Text noticeably larger than the body size is a section header and
        stays out of the tables.
        """
        free = [t for t in texts if id(t) not in used_texts]
        if not free:
            return

        body_size = float(np.median([t.font_size for t in free]))
        candidates = ElementExtractor.filter_by_size(free, max_size=body_size * self.section_header_font_ratio)

        cells = [cell for table in tables for cell in table.cells]
        for text in candidates:
            center_x, center_y = element_center(text)
            best = None
            best_distance = None
            for cell in cells:
                dx = max(cell.x - center_x, 0.0, center_x - (cell.x + cell.width))
                dy = max(cell.y - center_y, 0.0, center_y - (cell.y + cell.height))
                if dx > self.label_x_tolerance or dy > self.label_y_tolerance:
                    continue
                distance = dx * dx + dy * dy
                if best_distance is None or distance < best_distance:
                    best = cell
                    best_distance = distance
            if best is not None:
                best.texts.append(text)
                used_texts.add(id(text))

        for cell in cells:
            cell.texts.sort(key=lambda t: (t.y, t.x))


def detect_form_tables(form_fields: List[FormField], texts: List[TextElement],
                       config: Dict[str, Any] = None) -> List[DetectedTable]:
    """Detect field-aligned tables with default or given tolerances."""
    return FormTableDetector(config).detect_tables(form_fields, texts)
