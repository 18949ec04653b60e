"""
Geometry Utilities - Bounding boxes, value clustering and grid lookups

Shared by every detector. All boxes are (x0, y0, x1, y1) tuples in page-space
units with a top-left origin.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Dict, Any

logger = logging.getLogger(__name__)

BBox = Tuple[float, float, float, float]


def normalized_bbox(x: float, y: float, width: float, height: float) -> BBox:
    """
    Build a bounding box from a position and a possibly signed size.

    Upstream extraction may report negative width/height when a shape was
    drawn right-to-left or bottom-to-top.

    Args:
        x: X position
        y: Y position
        width: Width (sign reflects drawing direction)
        height: Height (sign reflects drawing direction)

    Returns:
        (x0, y0, x1, y1) with x0 <= x1 and y0 <= y1
    """
    x0 = min(x, x + width)
    y0 = min(y, y + height)
    return (x0, y0, x0 + abs(width), y0 + abs(height))


def element_bbox(element: Any) -> BBox:
    """Bounding box of any element exposing x/y/width/height."""
    return normalized_bbox(element.x, element.y, element.width, element.height)


def element_center(element: Any) -> Tuple[float, float]:
    """Center point of any element exposing x/y/width/height."""
    x0, y0, x1, y1 = element_bbox(element)
    return ((x0 + x1) / 2, (y0 + y1) / 2)


def union_bbox(boxes: Sequence[BBox]) -> Optional[BBox]:
    """Smallest box enclosing all given boxes, or None for an empty input."""
    if not boxes:
        return None
    return (
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )


def rects_overlap(a: BBox, b: BBox) -> bool:
    """True if two boxes share a non-zero intersection area."""
    return a[0] < b[2] and a[2] > b[0] and a[1] < b[3] and a[3] > b[1]


def boxes_touch(a: BBox, b: BBox, tolerance: float) -> bool:
    """
    True if two boxes overlap or touch once each is grown by ``tolerance``.

    Args:
        a: First box
        b: Second box
        tolerance: Gap allowed between the boxes

    Returns:
        True if the expanded boxes intersect or touch
    """
    return (
        a[0] - tolerance <= b[2] and
        a[2] + tolerance >= b[0] and
        a[1] - tolerance <= b[3] and
        a[3] + tolerance >= b[1]
    )


def horizontal_overlap(a: BBox, b: BBox) -> float:
    """Length of the X-range shared by two boxes (0 when disjoint)."""
    return max(0.0, min(a[2], b[2]) - max(a[0], b[0]))


def cluster_values(values: Sequence[float], tolerance: float) -> List[float]:
    """
    Cluster nearby numeric values within the given tolerance.

    Values are sorted and swept once; a value joins the current cluster when
    it lies within ``tolerance`` of that cluster's running mean.

    Args:
        values: Raw coordinates (any order)
        tolerance: Maximum distance from the cluster mean

    Returns:
        Sorted representative values (mean of each cluster)
    """
    if not values:
        return []

    ordered = sorted(values)
    clusters: List[List[float]] = [[ordered[0]]]

    for value in ordered[1:]:
        current = clusters[-1]
        mean = sum(current) / len(current)
        if abs(value - mean) <= tolerance:
            current.append(value)
        else:
            clusters.append([value])

    return sorted(sum(c) / len(c) for c in clusters)


def collapse_boundaries(bounds: Sequence[float], min_size: float) -> List[float]:
    """
    Drop boundaries closer than ``min_size`` to the previously kept one.

    Removes the thin "gap" columns/rows created by visual spacing between
    adjacent boxes.

    Args:
        bounds: Sorted boundary values
        min_size: Minimum distance between kept boundaries

    Returns:
        Sorted kept boundaries
    """
    kept: List[float] = []
    for value in bounds:
        if kept and value - kept[-1] < min_size:
            logger.debug(f"Collapsed boundary {value:.1f} into {kept[-1]:.1f}")
            continue
        kept.append(value)
    return kept


def snap_to_boundary(value: float, bounds: Sequence[float], tolerance: float) -> int:
    """
    Index of the boundary a coordinate belongs to.

    A coordinate belongs to the last boundary at or before it (within
    tolerance), which is the boundary any collapsed neighbour was folded into.

    Args:
        value: Coordinate to snap
        bounds: Sorted kept boundaries
        tolerance: Slack allowed when comparing to a boundary

    Returns:
        Boundary index (0 when the value lies before every boundary)
    """
    index = 0
    for i, bound in enumerate(bounds):
        if bound <= value + tolerance:
            index = i
        else:
            break
    return index


def find_containing_cell(center_x: float, center_y: float,
                         col_bounds: Sequence[float], row_bounds: Sequence[float],
                         tolerance: float = 2.0) -> Optional[Tuple[int, int]]:
    """
    Find which grid cell contains the given point.

    Each cell is expanded by ``tolerance`` on every side; the first matching
    column and row win, so a point exactly on a shared boundary resolves to
    the earlier cell.

    Args:
        center_x: Query X
        center_y: Query Y
        col_bounds: Monotonic column boundaries (cols + 1 values)
        row_bounds: Monotonic row boundaries (rows + 1 values)
        tolerance: Expansion applied to every cell

    Returns:
        (row, col) or None when the point lies outside all cells
    """
    col = -1
    for c in range(len(col_bounds) - 1):
        if col_bounds[c] - tolerance <= center_x <= col_bounds[c + 1] + tolerance:
            col = c
            break

    row = -1
    for r in range(len(row_bounds) - 1):
        if row_bounds[r] - tolerance <= center_y <= row_bounds[r + 1] + tolerance:
            row = r
            break

    if row >= 0 and col >= 0:
        return (row, col)
    return None


class UnionFind:
    """
    Disjoint-set forest over the index space 0..n-1.

    Used for connected-component grouping of border rectangles and of
    vector path clusters.
    """

    def __init__(self, size: int):
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int):
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return
        if self.rank[ra] < self.rank[rb]:
            self.parent[ra] = rb
        elif self.rank[ra] > self.rank[rb]:
            self.parent[rb] = ra
        else:
            self.parent[rb] = ra
            self.rank[ra] += 1

    def groups(self) -> List[List[int]]:
        """Member indices per component, ordered by each component's first member."""
        components: Dict[int, List[int]] = {}
        for i in range(len(self.parent)):
            components.setdefault(self.find(i), []).append(i)
        return list(components.values())


def group_touching_boxes(boxes: Sequence[BBox], tolerance: float) -> List[List[int]]:
    """
    Connected components of boxes that touch within ``tolerance``.

    Args:
        boxes: Bounding boxes
        tolerance: Gap bridged between neighbouring boxes

    Returns:
        Lists of box indices, one per component
    """
    uf = UnionFind(len(boxes))
    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            if boxes_touch(boxes[i], boxes[j], tolerance):
                uf.union(i, j)
    return uf.groups()
