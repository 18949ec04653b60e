"""
Element Extractor - Helper class for extracting specific types of scene elements
"""

import logging
from typing import List

from .scene import PageScene, TextElement, RectElement, PathElement, ImageElement, FormField

logger = logging.getLogger(__name__)


class ElementExtractor:
    """
    Helper class for extracting and filtering specific element types.
    """

    @staticmethod
    def get_text_elements(scene: PageScene) -> List[TextElement]:
        """Extract only text elements from the scene."""
        return [elem for elem in scene.elements if elem.kind == 'text']

    @staticmethod
    def get_rect_elements(scene: PageScene) -> List[RectElement]:
        """Extract only rectangle elements from the scene."""
        return [elem for elem in scene.elements if elem.kind == 'rect']

    @staticmethod
    def get_path_elements(scene: PageScene) -> List[PathElement]:
        """Extract only vector path elements from the scene."""
        return [elem for elem in scene.elements if elem.kind == 'path']

    @staticmethod
    def get_image_elements(scene: PageScene, genuine_only: bool = False) -> List[ImageElement]:
        """
        Extract image elements from the scene.

        Args:
            scene: Page scene
            genuine_only: Keep only images flagged as genuine content

        Returns:
            List of image elements
        """
        images = [elem for elem in scene.elements if elem.kind == 'image']
        if genuine_only:
            images = [img for img in images if img.is_genuine]
        return images

    @staticmethod
    def get_text_input_fields(fields: List[FormField]) -> List[FormField]:
        """Keep only text-input ('Tx') fields."""
        return [f for f in fields if f.is_text_input]

    @staticmethod
    def filter_by_size(elements: List[TextElement], min_size: float = None,
                       max_size: float = None) -> List[TextElement]:
        """
        Filter text elements by font size.

        Args:
            elements: List of elements to filter
            min_size: Minimum font size
            max_size: Maximum font size

        Returns:
            Filtered list of elements
        """
        filtered = elements

        if min_size is not None:
            filtered = [e for e in filtered if e.font_size >= min_size]

        if max_size is not None:
            filtered = [e for e in filtered if e.font_size <= max_size]

        return filtered
