"""
Rect Classifier - Labels every rectangle primitive by its visual role

Roles drive the rest of the pipeline: stroked rectangles become table borders,
fill-only rectangles shade cells or paragraphs, and thin page-spanning bars act
as separators.
"""

import logging
from typing import List, Dict, Any

from .scene import PageScene, RectElement
from .element_extractor import ElementExtractor

logger = logging.getLogger(__name__)


class RectRole:
    """Closed set of rectangle roles."""

    PAGE_BACKGROUND = 'page-background'
    SEPARATOR = 'separator'
    TABLE_BORDER = 'table-border'
    CELL_FILL = 'cell-fill'
    DECORATIVE = 'decorative'

    ALL = (PAGE_BACKGROUND, SEPARATOR, TABLE_BORDER, CELL_FILL, DECORATIVE)


class RectClassifier:
    """
    Classifies rectangles by size, thinness, stroke and fill.

    Rules are checked in order, first match wins:
    1. page-background: area > 90% of the page
    2. separator: thinner than 2 units and spanning > 50% of page width/height
    3. table-border: has a stroke color and a positive line width (fill ignored)
    4. cell-fill: has a fill color and no stroke color
    5. decorative: everything else
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize Rect Classifier.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.background_area_ratio = self.config.get('background_area_ratio', 0.9)
        self.separator_max_thickness = self.config.get('separator_max_thickness', 2.0)
        self.separator_min_span_ratio = self.config.get('separator_min_span_ratio', 0.5)

    def classify(self, scene: PageScene) -> Dict[RectElement, str]:
        """
        Classify every rectangle in the scene.

        Args:
            scene: Page scene

        Returns:
            Mapping from rect (by identity) to its role
        """
        roles = {}
        for rect in ElementExtractor.get_rect_elements(scene):
            roles[rect] = self.classify_rect(rect, scene.width, scene.height)

        if roles:
            counts = {role: 0 for role in RectRole.ALL}
            for role in roles.values():
                counts[role] += 1
            logger.debug(f"Classified {len(roles)} rects: {counts}")

        return roles

    def classify_rect(self, rect: RectElement, page_width: float, page_height: float) -> str:
        """
        Classify a single rectangle.

        Args:
            rect: Rectangle primitive
            page_width: Page width
            page_height: Page height

        Returns:
            One of the RectRole values
        """
        w = abs(rect.width)
        h = abs(rect.height)

        if w * h > page_width * page_height * self.background_area_ratio:
            return RectRole.PAGE_BACKGROUND

        is_thin = h < self.separator_max_thickness or w < self.separator_max_thickness
        spans_page = (w > page_width * self.separator_min_span_ratio or
                      h > page_height * self.separator_min_span_ratio)
        if is_thin and spans_page:
            return RectRole.SEPARATOR

        if rect.stroke_color is not None and (rect.line_width or 0) > 0:
            return RectRole.TABLE_BORDER

        if rect.fill_color is not None and rect.stroke_color is None:
            return RectRole.CELL_FILL

        return RectRole.DECORATIVE


def classify_rectangles(scene: PageScene, config: Dict[str, Any] = None) -> Dict[RectElement, str]:
    """Classify every rectangle in ``scene`` with default or given tolerances."""
    return RectClassifier(config).classify(scene)


def rects_with_role(roles: Dict[RectElement, str], role: str) -> List[RectElement]:
    """Rects carrying ``role``, in scene order."""
    return [rect for rect, r in roles.items() if r == role]
