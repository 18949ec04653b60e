"""
Style Mapper - Maps shaded and underline rectangles onto paragraphs

Paragraph styling is not encoded in text runs: a banner heading is a text run
over a filled rectangle, and an underlined section title is a thin bar drawn
just below the text. This module recovers both.
"""

import logging
from typing import List, Dict, Any, Optional

from ..parser.scene import RectElement
from ..parser.rect_classifier import RectRole, rects_with_role
from ..rebuilder.layout_model import ParagraphGroup
from ..utils.color_utils import is_near_white
from ..utils.geometry import element_bbox, horizontal_overlap

logger = logging.getLogger(__name__)


class StyleMapper:
    """
    Assigns background colors and bottom borders to paragraphs.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize Style Mapper.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.thin_rect_height = self.config.get('thin_rect_height', 5.0)
        self.background_left_tolerance = self.config.get('background_left_tolerance', 20.0)
        self.underline_max_distance = self.config.get('underline_max_distance', 15.0)
        self.underline_min_distance = self.config.get('underline_min_distance', -2.0)
        self.underline_max_page_ratio = self.config.get('underline_max_page_ratio', 0.9)
        self.near_white_threshold = self.config.get('near_white_threshold', 240)

    def apply(self, paragraphs: List[ParagraphGroup], rect_roles: Dict[RectElement, str],
              page_width: float) -> List[ParagraphGroup]:
        """
        Apply background and bottom-border styling in place.

        Args:
            paragraphs: Paragraph groups
            rect_roles: Output of the rect classifier
            page_width: Page width, used to reject full-width bars as underlines

        Returns:
            The same paragraphs
        """
        fills = [r for r in rects_with_role(rect_roles, RectRole.CELL_FILL)
                 if not is_near_white(r.fill_color, self.near_white_threshold)]
        tall_fills = [r for r in fills if abs(r.height) >= self.thin_rect_height]
        thin_fills = [r for r in fills if abs(r.height) < self.thin_rect_height
                      and abs(r.width) <= page_width * self.underline_max_page_ratio]
        separators = rects_with_role(rect_roles, RectRole.SEPARATOR)

        styled = 0
        for paragraph in paragraphs:
            box = paragraph.bbox()
            if box is None:
                continue

            background = self._find_background(box, tall_fills)
            if background is not None:
                paragraph.background_color = background.fill_color

            underline = self._find_underline(box, thin_fills)
            if underline is not None:
                paragraph.bottom_border = {'color': underline.fill_color, 'width': abs(underline.height)}
            else:
                separator = self._find_underline(box, separators)
                if separator is not None:
                    if separator.stroke_color:
                        border = {'color': separator.stroke_color, 'width': separator.line_width}
                    else:
                        border = {'color': separator.fill_color, 'width': abs(separator.height)}
                    paragraph.bottom_border = border

            if paragraph.background_color or paragraph.bottom_border:
                styled += 1

        if styled:
            logger.debug(f"Styled {styled} of {len(paragraphs)} paragraphs from rectangles")
        return paragraphs

    def _find_background(self, box, candidates: List[RectElement]) -> Optional[RectElement]:
        """Smallest tall fill behind the paragraph's vertical center near its left edge."""
        center_y = (box[1] + box[3]) / 2
        best = None
        best_area = None
        for rect in candidates:
            x0, y0, x1, y1 = element_bbox(rect)
            if not (y0 <= center_y <= y1):
                continue
            if abs(x0 - box[0]) > self.background_left_tolerance:
                continue
            area = (x1 - x0) * (y1 - y0)
            if best_area is None or area < best_area:
                best = rect
                best_area = area
        return best

    def _find_underline(self, box, candidates: List[RectElement]) -> Optional[RectElement]:
        """Nearest rect just below the paragraph that overlaps it horizontally."""
        best = None
        best_gap = None
        for rect in candidates:
            rect_box = element_bbox(rect)
            gap = rect_box[1] - box[3]
            if gap < self.underline_min_distance or gap > self.underline_max_distance:
                continue
            if horizontal_overlap(rect_box, box) <= 0:
                continue
            if best_gap is None or abs(gap) < best_gap:
                best = rect
                best_gap = abs(gap)
        return best


def apply_paragraph_styles(paragraphs: List[ParagraphGroup], rect_roles: Dict[RectElement, str],
                           page_width: float, config: Dict[str, Any] = None) -> List[ParagraphGroup]:
    """Apply rect-derived styling with default or given tolerances."""
    return StyleMapper(config).apply(paragraphs, rect_roles, page_width)
