"""
Column Detector - Finds side-by-side layout regions

Elements are banded by vertical overlap. A band whose members split at a
wide horizontal gutter becomes a TwoColumnRegion that replaces its members
in the element list.
"""

import logging
from typing import List, Dict, Any, Optional, Tuple

from ..rebuilder.layout_model import LayoutElement, TwoColumnRegion

logger = logging.getLogger(__name__)


class ColumnDetector:
    """
    Detects two-column regions among top-level layout elements.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize Column Detector.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.band_tolerance = self.config.get('band_tolerance', 20.0)
        self.min_gap = self.config.get('min_gap', 40.0)

    def detect(self, elements: List[LayoutElement], page_width: float) -> List[LayoutElement]:
        """
        Replace side-by-side element groups with TwoColumnRegions.

        Args:
            elements: Layout elements (tables, paragraphs, images)
            page_width: Page width recorded on each region

        Returns:
            New element list; unchanged and in original order when no region is found
        """
        if len(elements) < 2:
            return list(elements)

        boxes = [e.bbox() for e in elements]
        regions: Dict[int, TwoColumnRegion] = {}
        consumed = set()

        for band in self.cluster_bands(boxes):
            split = self._split_band(band, boxes)
            if split is None:
                continue

            left, right, gap_x = split
            top = min(boxes[i][1] for i in band)
            bottom = max(boxes[i][3] for i in band)
            region = TwoColumnRegion(
                left_elements=[elements[i] for i in sorted(left, key=lambda i: boxes[i][1])],
                right_elements=[elements[i] for i in sorted(right, key=lambda i: boxes[i][1])],
                gap_x=gap_x,
                y=top,
                height=bottom - top,
                page_width=page_width,
            )
            regions[min(band)] = region
            consumed.update(band)
            logger.info(f"Detected two-column region at y={top:.1f}: "
                        f"{len(left)} left / {len(right)} right, gap at x={gap_x:.1f}")

        if not regions:
            return list(elements)

        result = []
        for i, element in enumerate(elements):
            if i in regions:
                result.append(LayoutElement('two_column', regions[i]))
            elif i not in consumed:
                result.append(element)
        return result

    def cluster_bands(self, boxes: List[Tuple[float, float, float, float]]) -> List[List[int]]:
        """
        Cluster element indices into vertically overlapping bands.

        Starting from the topmost unassigned element, any unassigned element
        overlapping the band (widened by ``band_tolerance``) is absorbed and
        the band grows, until nothing more joins.

        Args:
            boxes: (left, top, right, bottom) per element

        Returns:
            Bands with at least two members
        """
        unassigned = sorted(range(len(boxes)), key=lambda i: boxes[i][1])
        bands = []

        while unassigned:
            first = unassigned.pop(0)
            band = [first]
            top, bottom = boxes[first][1], boxes[first][3]

            changed = True
            while changed:
                changed = False
                for i in list(unassigned):
                    if boxes[i][1] <= bottom + self.band_tolerance and boxes[i][3] >= top - self.band_tolerance:
                        band.append(i)
                        unassigned.remove(i)
                        top = min(top, boxes[i][1])
                        bottom = max(bottom, boxes[i][3])
                        changed = True

            if len(band) >= 2:
                bands.append(band)
        return bands

    def _split_band(self, band: List[int], boxes) -> Optional[Tuple[List[int], List[int], float]]:
        """Split a band at its widest horizontal gutter, if wide enough."""
        ordered = sorted(band, key=lambda i: boxes[i][0])

        best_index = None
        best_gap = 0.0
        best_edges = (0.0, 0.0)
        reach = boxes[ordered[0]][2]
        for k in range(1, len(ordered)):
            left_edge = boxes[ordered[k]][0]
            gap = left_edge - reach
            if gap > best_gap:
                best_gap = gap
                best_index = k
                best_edges = (reach, left_edge)
            reach = max(reach, boxes[ordered[k]][2])

        if best_index is None or best_gap <= self.min_gap:
            return None

        gap_x = (best_edges[0] + best_edges[1]) / 2
        return ordered[:best_index], ordered[best_index:], gap_x


def detect_two_column_regions(elements: List[LayoutElement], page_width: float,
                              config: Dict[str, Any] = None) -> List[LayoutElement]:
    """Detect two-column regions with default or given tolerances."""
    return ColumnDetector(config).detect(elements, page_width)
