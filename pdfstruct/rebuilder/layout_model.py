"""
Layout Model - Structured, reading-order representation of a page

The output side of the pipeline: tables with cells, paragraph groups,
images and two-column regions, wrapped as LayoutElements inside a PageLayout.
A downstream document writer consumes this instead of positioned text.
"""

import logging
from typing import List, Dict, Any, Optional, Tuple

from ..utils.geometry import element_bbox, union_bbox

logger = logging.getLogger(__name__)


class DetectedCell:
    """A table cell anchored at (row, col), possibly spanning several grid positions."""

    def __init__(self, row: int, col: int, x: float, y: float, width: float, height: float,
                 row_span: int = 1, col_span: int = 1):
        self.row = row
        self.col = col
        self.row_span = row_span
        self.col_span = col_span
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.texts: List[Any] = []
        self.form_fields: List[Any] = []
        self.fill_color: Optional[str] = None
        # Per-edge override: {'top': {'color': '#000000', 'width': 1.0}, ...}
        self.borders: Dict[str, Dict[str, Any]] = {}
        # Per-edge padding: {'left': 4.0, 'top': 3.0, ...}
        self.padding: Dict[str, float] = {}
        self.vertical_alignment: Optional[str] = None

    def covers(self, row: int, col: int) -> bool:
        """True if the grid position (row, col) lies inside this cell's span."""
        return (self.row <= row < self.row + self.row_span and
                self.col <= col < self.col + self.col_span)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'row': self.row,
            'col': self.col,
            'row_span': self.row_span,
            'col_span': self.col_span,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'texts': [t.text for t in self.texts],
            'form_fields': [f.field_name for f in self.form_fields],
            'fill_color': self.fill_color,
            'borders': self.borders or None,
            'padding': self.padding or None,
            'vertical_alignment': self.vertical_alignment,
        }

    def __repr__(self) -> str:
        return (f"DetectedCell(r={self.row}, c={self.col}, span={self.row_span}x{self.col_span}, "
                f"texts={len(self.texts)}, fields={len(self.form_fields)})")


class DetectedTable:
    """
    A reconstructed table grid.

    Cells never overlap: a spanning cell consumes the grid positions it covers
    and only the anchor cell appears in ``cells``.
    """

    def __init__(self, rows: int, cols: int, column_widths: List[float], row_heights: List[float],
                 x: float, y: float, width: float, height: float,
                 cells: Optional[List[DetectedCell]] = None):
        self.rows = rows
        self.cols = cols
        self.column_widths = column_widths
        self.row_heights = row_heights
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.cells: List[DetectedCell] = cells or []
        self.border_color: Optional[str] = None
        self.border_width: Optional[float] = None
        self.source = 'vector'

    def cell_at(self, row: int, col: int) -> Optional[DetectedCell]:
        """Cell whose span covers the grid position, or None."""
        for cell in self.cells:
            if cell.covers(row, col):
                return cell
        return None

    def all_texts(self) -> List[Any]:
        return [t for cell in self.cells for t in cell.texts]

    def all_form_fields(self) -> List[Any]:
        return [f for cell in self.cells for f in cell.form_fields]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rows': self.rows,
            'cols': self.cols,
            'column_widths': self.column_widths,
            'row_heights': self.row_heights,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'border_color': self.border_color,
            'border_width': self.border_width,
            'source': self.source,
            'cells': [c.to_dict() for c in self.cells],
        }

    def __repr__(self) -> str:
        return f"DetectedTable({self.rows}x{self.cols}, cells={len(self.cells)}, source={self.source})"


class ParagraphGroup:
    """Text runs and form fields that read as one paragraph."""

    def __init__(self, texts: Optional[List[Any]] = None, form_fields: Optional[List[Any]] = None,
                 x: float = 0.0, y: float = 0.0):
        self.texts: List[Any] = texts or []
        self.form_fields: List[Any] = form_fields or []
        self.x = x
        self.y = y
        self.line_spacing: Optional[float] = None
        self.heading_level: Optional[int] = None
        self.background_color: Optional[str] = None
        # {'color': '#RRGGBB', 'width': float}
        self.bottom_border: Optional[Dict[str, Any]] = None
        self.spacing_before: Optional[float] = None
        self.spacing_after: Optional[float] = None
        self.right_x: Optional[float] = None

    def bbox(self) -> Optional[Tuple[float, float, float, float]]:
        """Bounding box of all assigned texts and fields."""
        return union_bbox([element_bbox(e) for e in self.texts + self.form_fields])

    def update_anchor(self):
        """Move the (x, y) anchor to the top-left of the assigned content."""
        box = self.bbox()
        if box:
            self.x, self.y = box[0], box[1]

    def first_text(self):
        """Top-most, then left-most text run (None for field-only paragraphs)."""
        if not self.texts:
            return None
        return min(self.texts, key=lambda t: (t.y, t.x))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': ' '.join(t.text for t in sorted(self.texts, key=lambda t: (t.y, t.x))),
            'form_fields': [f.field_name for f in self.form_fields],
            'x': self.x,
            'y': self.y,
            'line_spacing': self.line_spacing,
            'heading_level': self.heading_level,
            'background_color': self.background_color,
            'bottom_border': self.bottom_border,
            'spacing_before': self.spacing_before,
            'spacing_after': self.spacing_after,
            'right_x': self.right_x,
        }

    def __repr__(self) -> str:
        return (f"ParagraphGroup(y={self.y:.1f}, texts={len(self.texts)}, "
                f"fields={len(self.form_fields)}, heading={self.heading_level})")


class TwoColumnRegion:
    """Side-by-side layout elements split at a vertical gutter."""

    def __init__(self, left_elements: List['LayoutElement'], right_elements: List['LayoutElement'],
                 gap_x: float, y: float, height: float, page_width: float):
        self.left_elements = left_elements
        self.right_elements = right_elements
        self.gap_x = gap_x
        self.y = y
        self.height = height
        self.page_width = page_width

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gap_x': self.gap_x,
            'y': self.y,
            'height': self.height,
            'page_width': self.page_width,
            'left': [e.to_dict() for e in self.left_elements],
            'right': [e.to_dict() for e in self.right_elements],
        }

    def __repr__(self) -> str:
        return (f"TwoColumnRegion(y={self.y:.1f}, gap_x={self.gap_x:.1f}, "
                f"left={len(self.left_elements)}, right={len(self.right_elements)})")


class LayoutElement:
    """
    Tagged union over the structural element kinds.

    ``type`` is one of 'table', 'paragraph', 'image' or 'two_column' and
    ``element`` holds the matching payload object.
    """

    TYPES = ('table', 'paragraph', 'image', 'two_column')

    def __init__(self, element_type: str, element: Any):
        if element_type not in self.TYPES:
            raise ValueError(f"Unknown layout element type: {element_type}")
        self.type = element_type
        self.element = element

    def bbox(self) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) of the element."""
        el = self.element
        if self.type == 'paragraph':
            box = el.bbox()
            if box is None:
                return (el.x, el.y, el.x, el.y)
            return box
        if self.type == 'two_column':
            children = [e.bbox() for e in el.left_elements + el.right_elements]
            left = min(b[0] for b in children) if children else 0.0
            right = max(b[2] for b in children) if children else el.page_width
            return (left, el.y, right, el.y + el.height)
        # table and image share the x/y/width/height shape
        return element_bbox(el)

    @property
    def top(self) -> float:
        return self.bbox()[1]

    @property
    def bottom(self) -> float:
        return self.bbox()[3]

    @property
    def left(self) -> float:
        return self.bbox()[0]

    @property
    def right(self) -> float:
        return self.bbox()[2]

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'element': self.element.to_dict()}

    def __repr__(self) -> str:
        return f"LayoutElement({self.type}, top={self.top:.1f})"


class PageLayout:
    """Structured output for one page."""

    def __init__(self, width: float, height: float, elements: Optional[List[LayoutElement]] = None,
                 content_bounds: Optional[Dict[str, float]] = None):
        self.width = width
        self.height = height
        self.elements: List[LayoutElement] = elements or []
        # Inferred page margins: {'top', 'right', 'bottom', 'left'}
        self.content_bounds = content_bounds
        # Modal paragraph font size, set by the layout analyzer
        self.body_font_size: Optional[float] = None

    def elements_of_type(self, element_type: str) -> List[Any]:
        """Payloads of the top-level elements with the given type."""
        return [e.element for e in self.elements if e.type == element_type]

    def summary(self) -> Dict[str, int]:
        counts = {t: 0 for t in LayoutElement.TYPES}
        for e in self.elements:
            counts[e.type] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            'width': self.width,
            'height': self.height,
            'content_bounds': self.content_bounds,
            'body_font_size': self.body_font_size,
            'elements': [e.to_dict() for e in self.elements],
        }

    def __repr__(self) -> str:
        return f"PageLayout({self.width:.0f}x{self.height:.0f}, elements={len(self.elements)})"
