"""
Table Detector - Reconstructs table grids from stroked border rectangles

Tables are identified by connected groups of 'table-border' rectangles. Each
group's rectangle edges are clustered into grid lines; merged cells are found
where no border edge separates neighbouring grid positions. Cell shading comes
from 'cell-fill' rectangles, and text/fields are assigned by center point.
"""

import logging
from typing import List, Dict, Any, Optional, Tuple, Sequence

from .scene import PageScene, RectElement
from .element_extractor import ElementExtractor
from .rect_classifier import RectRole, rects_with_role
from ..rebuilder.layout_model import DetectedTable, DetectedCell
from ..utils.color_utils import luminance
from ..utils.geometry import (
    BBox, element_bbox, element_center, rects_overlap, horizontal_overlap,
    cluster_values, collapse_boundaries, snap_to_boundary, find_containing_cell,
    group_touching_boxes,
)

logger = logging.getLogger(__name__)


class TableDetector:
    """
    Detects tables from vector border rectangles.

    Supports merged cells (row and column spans), labels that sit just
    outside the bordered grid, per-cell border overrides, padding and
    vertical alignment.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize Table Detector.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        # Edge coordinates within this distance snap to the same grid line
        self.edge_tolerance = self.config.get('edge_tolerance', 2.0)
        # Bridges the spacing many forms leave between adjacent field boxes
        self.gap_bridge_tolerance = self.config.get('gap_bridge_tolerance', 8.0)
        self.min_cell_size = self.config.get('min_cell_size', 10.0)
        self.min_verified_ratio = self.config.get('min_verified_ratio', 0.5)
        self.left_label_max_distance = self.config.get('left_label_max_distance', 120.0)
        self.header_label_max_distance = self.config.get('header_label_max_distance', 12.0)
        self.label_align_tolerance = self.config.get('label_align_tolerance', 5.0)
        self.border_edge_overlap_ratio = self.config.get('border_edge_overlap_ratio', 0.3)
        self.min_padding = self.config.get('min_padding', 2.0)
        self.min_alignment_slack = self.config.get('min_alignment_slack', 6.0)
        self.align_top_ratio = self.config.get('align_top_ratio', 0.3)
        self.align_bottom_ratio = self.config.get('align_bottom_ratio', 0.7)

    def detect_tables(self, scene: PageScene, rect_roles: Dict[RectElement, str],
                      texts: List[Any] = None, form_fields: List[Any] = None) -> List[DetectedTable]:
        """
        Detect all tables on the page from border rectangles.

        Args:
            scene: Page scene
            rect_roles: Output of the rect classifier
            texts: Candidate text elements (defaults to every text in the scene)
            form_fields: Candidate form fields (defaults to every field in the scene)

        Returns:
            List of detected tables, in border-group order
        """
        border_rects = rects_with_role(rect_roles, RectRole.TABLE_BORDER)
        cell_fills = rects_with_role(rect_roles, RectRole.CELL_FILL)

        if not border_rects:
            return []

        if texts is None:
            texts = ElementExtractor.get_text_elements(scene)
        if form_fields is None:
            form_fields = list(scene.form_fields)

        groups = self.identify_separate_tables(border_rects)
        logger.debug(f"Found {len(groups)} border group(s) from {len(border_rects)} border rects")

        tables = []
        claimed_texts = set()
        claimed_fields = set()

        for group in groups:
            free_texts = [t for t in texts if id(t) not in claimed_texts]
            free_fields = [f for f in form_fields if id(f) not in claimed_fields]

            table = self.build_table(group, free_texts, free_fields, cell_fills)
            if table is None:
                continue

            claimed_texts.update(id(t) for t in table.all_texts())
            claimed_fields.update(id(f) for f in table.all_form_fields())
            tables.append(table)
            logger.info(f"Detected table region: bbox=({table.x:.1f}, {table.y:.1f}, "
                        f"{table.x + table.width:.1f}, {table.y + table.height:.1f}), "
                        f"{table.rows}x{table.cols} grid, {len(table.cells)} cells")

        return tables

    def identify_separate_tables(self, border_rects: List[RectElement]) -> List[List[RectElement]]:
        """
        Partition border rects into connected components.

        Two rects are connected when their boxes, grown by the gap-bridging
        tolerance, intersect or touch.

        Args:
            border_rects: Rects classified as table borders

        Returns:
            One list of rects per table candidate
        """
        boxes = [element_bbox(r) for r in border_rects]
        groups = group_touching_boxes(boxes, self.gap_bridge_tolerance)
        return [[border_rects[i] for i in group] for group in groups]

    def build_table(self, border_rects: List[RectElement], texts: List[Any],
                    form_fields: List[Any], cell_fills: List[RectElement]) -> Optional[DetectedTable]:
        """
        Build a table from one connected group of border rects.

        Algorithm:
        1. Cluster rect edges into grid lines, collapse gap rows/columns
        2. Validate minimum grid dimensions (2 cols, 2 rows)
        3. Verify provisional cells are backed by border rects
        4. Detect merged cells where no border separates grid positions
        5. Assign fills, text and form fields by center point
        6. Capture labels just outside the grid
        7. Derive dimensions, dominant border, per-cell borders, padding, alignment

        Args:
            border_rects: Border rects of one connected component
            texts: Unclaimed text elements on the page
            form_fields: Unclaimed form fields on the page
            cell_fills: Rects classified as cell fills

        Returns:
            DetectedTable or None if the group is not a table
        """
        boxes = [element_bbox(r) for r in border_rects]

        x_edges = [v for b in boxes for v in (b[0], b[2])]
        y_edges = [v for b in boxes for v in (b[1], b[3])]

        col_bounds = collapse_boundaries(cluster_values(x_edges, self.edge_tolerance), self.min_cell_size)
        row_bounds = collapse_boundaries(cluster_values(y_edges, self.edge_tolerance), self.min_cell_size)

        # Need at least 3 boundaries = 2 columns/rows
        if len(col_bounds) < 3 or len(row_bounds) < 3:
            logger.debug(f"Rejected border group of {len(border_rects)} rects: "
                         f"{len(col_bounds)} col / {len(row_bounds)} row boundaries")
            return None

        num_rows = len(row_bounds) - 1
        num_cols = len(col_bounds) - 1

        verified = self._count_verified_cells(boxes, col_bounds, row_bounds)
        total = num_rows * num_cols
        if verified < total * self.min_verified_ratio:
            logger.debug(f"Rejected {num_rows}x{num_cols} candidate: only {verified}/{total} cells verified")
            return None

        # Grid-line indices of every rect edge: (left, right, top, bottom)
        spans = [self._snap_box(b, col_bounds, row_bounds) for b in boxes]

        cells, owner = self._detect_merged_cells(spans, col_bounds, row_bounds)
        if not cells:
            return None

        def cell_for(point_x: float, point_y: float) -> Optional[DetectedCell]:
            loc = find_containing_cell(point_x, point_y, col_bounds, row_bounds, self.edge_tolerance)
            if loc is None:
                return None
            return cells[owner[loc[0] * num_cols + loc[1]]]

        for fill in cell_fills:
            if fill.fill_color is None:
                continue
            target = cell_for(*element_center(fill))
            if target is not None:
                target.fill_color = fill.fill_color

        leftover_texts = []
        for text in texts:
            target = cell_for(*element_center(text))
            if target is not None:
                target.texts.append(text)
            else:
                leftover_texts.append(text)

        for field in form_fields:
            target = cell_for(*element_center(field))
            if target is not None:
                target.form_fields.append(field)

        self._capture_outside_labels(leftover_texts, cells, owner, col_bounds, row_bounds)

        for cell in cells:
            cell.texts.sort(key=lambda t: (t.y, t.x))
            cell.form_fields.sort(key=lambda f: (f.y, f.x))

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
        table.border_color, table.border_width = self._dominant_border(border_rects)

        self._assign_cell_borders(cells, border_rects, boxes, spans)
        for cell in cells:
            self._assign_padding_and_alignment(cell)

        return table

    def _count_verified_cells(self, boxes: List[BBox], col_bounds: List[float],
                              row_bounds: List[float]) -> int:
        """Count provisional cells overlapped by at least one border rect."""
        tol = self.edge_tolerance
        verified = 0
        for r in range(len(row_bounds) - 1):
            for c in range(len(col_bounds) - 1):
                cell_box = (col_bounds[c] - tol, row_bounds[r] - tol,
                            col_bounds[c + 1] + tol, row_bounds[r + 1] + tol)
                if any(rects_overlap(cell_box, b) for b in boxes):
                    verified += 1
        return verified

    def _snap_box(self, box: BBox, col_bounds: List[float],
                  row_bounds: List[float]) -> Tuple[int, int, int, int]:
        tol = self.edge_tolerance
        return (
            snap_to_boundary(box[0], col_bounds, tol),
            snap_to_boundary(box[2], col_bounds, tol),
            snap_to_boundary(box[1], row_bounds, tol),
            snap_to_boundary(box[3], row_bounds, tol),
        )

    @staticmethod
    def _has_vertical_border(spans: Sequence[Tuple[int, int, int, int]], boundary: int, row: int) -> bool:
        """True if some rect has a left/right edge on column line ``boundary`` covering ``row``."""
        for left, right, top, bottom in spans:
            if (left == boundary or right == boundary) and top <= row and bottom >= row + 1:
                return True
        return False

    @staticmethod
    def _has_horizontal_border(spans: Sequence[Tuple[int, int, int, int]], boundary: int, col: int) -> bool:
        """True if some rect has a top/bottom edge on row line ``boundary`` covering ``col``."""
        for left, right, top, bottom in spans:
            if (top == boundary or bottom == boundary) and left <= col and right >= col + 1:
                return True
        return False

    def _detect_merged_cells(self, spans: List[Tuple[int, int, int, int]], col_bounds: List[float],
                             row_bounds: List[float]) -> Tuple[List[DetectedCell], List[int]]:
        """
        Greedily grow each unconsumed grid position into a spanning cell.

        The grid is a flat occupancy array indexed by ``row * cols + col``
        holding the index of the owning cell (-1 while unconsumed).

        Returns:
            (anchor cells, occupancy array)
        """
        num_rows = len(row_bounds) - 1
        num_cols = len(col_bounds) - 1
        owner = [-1] * (num_rows * num_cols)
        cells: List[DetectedCell] = []

        for r in range(num_rows):
            for c in range(num_cols):
                if owner[r * num_cols + c] >= 0:
                    continue

                col_span = 1
                while (c + col_span < num_cols and
                       owner[r * num_cols + c + col_span] < 0 and
                       not self._has_vertical_border(spans, c + col_span, r)):
                    col_span += 1

                row_span = 1
                while r + row_span < num_rows:
                    next_row = r + row_span
                    cols_in_span = range(c, c + col_span)
                    if any(owner[next_row * num_cols + cc] >= 0 for cc in cols_in_span):
                        break
                    if any(self._has_horizontal_border(spans, next_row, cc) for cc in cols_in_span):
                        break
                    row_span += 1

                cell = DetectedCell(
                    row=r,
                    col=c,
                    x=col_bounds[c],
                    y=row_bounds[r],
                    width=col_bounds[c + col_span] - col_bounds[c],
                    height=row_bounds[r + row_span] - row_bounds[r],
                    row_span=row_span,
                    col_span=col_span,
                )
                index = len(cells)
                cells.append(cell)
                for rr in range(r, r + row_span):
                    for cc in range(c, c + col_span):
                        owner[rr * num_cols + cc] = index

                if row_span > 1 or col_span > 1:
                    logger.debug(f"Merged cell at ({r}, {c}): span {row_span}x{col_span}")

        return cells, owner

    def _capture_outside_labels(self, texts: List[Any], cells: List[DetectedCell], owner: List[int],
                                col_bounds: List[float], row_bounds: List[float]):
        """
        Attach labels that sit just outside the bordered grid.

        Text left of the first column joins the leftmost cell of its row and
        widens the first column. Text immediately above/below the grid that
        fits a column joins the first/last row as header/footer text.
        Mutates ``cells`` and ``col_bounds`` in place.
        """
        num_rows = len(row_bounds) - 1
        num_cols = len(col_bounds) - 1
        tol = self.edge_tolerance

        remaining = []
        new_left = col_bounds[0]
        for text in texts:
            x0, y0, x1, y1 = element_bbox(text)
            center_y = (y0 + y1) / 2
            if x1 > col_bounds[0] + tol or col_bounds[0] - x0 > self.left_label_max_distance:
                remaining.append(text)
                continue

            row = None
            for r in range(num_rows):
                if row_bounds[r] - tol <= center_y <= row_bounds[r + 1] + tol:
                    row = r
                    break
            if row is None:
                remaining.append(text)
                continue

            cells[owner[row * num_cols]].texts.append(text)
            new_left = min(new_left, x0)

        if new_left < col_bounds[0]:
            logger.debug(f"Widened first column from {col_bounds[0]:.1f} to {new_left:.1f} for left labels")
            for cell in cells:
                if cell.col == 0:
                    cell.width += cell.x - new_left
                    cell.x = new_left
            col_bounds[0] = new_left

        top = row_bounds[0]
        bottom = row_bounds[-1]
        align = self.label_align_tolerance
        for text in remaining:
            x0, y0, x1, y1 = element_bbox(text)

            if y1 <= top + tol and top - y1 <= self.header_label_max_distance:
                row = 0
            elif y0 >= bottom - tol and y0 - bottom <= self.header_label_max_distance:
                row = num_rows - 1
            else:
                continue

            for c in range(num_cols):
                if x0 >= col_bounds[c] - align and x1 <= col_bounds[c + 1] + align:
                    cells[owner[row * num_cols + c]].texts.append(text)
                    break

    @staticmethod
    def _dominant_border(border_rects: List[RectElement]) -> Tuple[Optional[str], Optional[float]]:
        """Median stroke color (by luminance) and median line width of the group."""
        colors = sorted((r.stroke_color for r in border_rects if r.stroke_color), key=luminance)
        widths = sorted(r.line_width for r in border_rects if r.line_width and r.line_width > 0)
        color = colors[len(colors) // 2] if colors else None
        width = widths[len(widths) // 2] if widths else None
        return color, width

    def _assign_cell_borders(self, cells: List[DetectedCell], border_rects: List[RectElement],
                             boxes: List[BBox], spans: List[Tuple[int, int, int, int]]):
        """Record, per cell edge, the first border rect lying along that edge."""
        ratio = self.border_edge_overlap_ratio
        for cell in cells:
            cell_box = (cell.x, cell.y, cell.x + cell.width, cell.y + cell.height)
            edges = {
                'top': cell.row,
                'bottom': cell.row + cell.row_span,
                'left': cell.col,
                'right': cell.col + cell.col_span,
            }
            for rect, box, (left, right, top, bottom) in zip(border_rects, boxes, spans):
                for edge, line in edges.items():
                    if edge in cell.borders:
                        continue
                    if edge in ('top', 'bottom'):
                        on_line = top == line or bottom == line
                        overlap = horizontal_overlap(box, cell_box)
                        length = cell.width
                    else:
                        on_line = left == line or right == line
                        overlap = max(0.0, min(box[3], cell_box[3]) - max(box[1], cell_box[1]))
                        length = cell.height
                    if on_line and length > 0 and overlap > length * ratio:
                        cell.borders[edge] = {'color': rect.stroke_color, 'width': rect.line_width}

    def _assign_padding_and_alignment(self, cell: DetectedCell):
        """Derive padding and vertical alignment from the cell's text block."""
        if not cell.texts:
            return

        boxes = [element_bbox(t) for t in cell.texts]
        tx0 = min(b[0] for b in boxes)
        ty0 = min(b[1] for b in boxes)
        tx1 = max(b[2] for b in boxes)
        ty1 = max(b[3] for b in boxes)

        gaps = {
            'left': tx0 - cell.x,
            'top': ty0 - cell.y,
            'right': cell.x + cell.width - tx1,
            'bottom': cell.y + cell.height - ty1,
        }
        for edge, gap in gaps.items():
            if gap > self.min_padding:
                cell.padding[edge] = gap

        slack = cell.height - (ty1 - ty0)
        if slack <= self.min_alignment_slack:
            return

        above = max(0.0, gaps['top'])
        below = max(0.0, gaps['bottom'])
        if above + below <= 0:
            return

        ratio = above / (above + below)
        if ratio < self.align_top_ratio:
            cell.vertical_alignment = 'top'
        elif ratio > self.align_bottom_ratio:
            cell.vertical_alignment = 'bottom'
        else:
            cell.vertical_alignment = 'center'


def detect_tables(scene: PageScene, rect_roles: Dict[RectElement, str],
                  config: Dict[str, Any] = None) -> List[DetectedTable]:
    """Detect vector tables on ``scene`` with default or given tolerances."""
    return TableDetector(config).detect_tables(scene, rect_roles)
