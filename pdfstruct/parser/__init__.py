"""
Scene Parser Module
Typed page primitives, rectangle roles and table detection.
"""

from .scene import PageScene, TextElement, RectElement, PathElement, ImageElement, FormField
from .element_extractor import ElementExtractor
from .rect_classifier import RectClassifier, RectRole, classify_rectangles
from .table_detector import TableDetector, detect_tables
from .form_table_detector import FormTableDetector, detect_form_tables

__all__ = [
    'PageScene', 'TextElement', 'RectElement', 'PathElement', 'ImageElement', 'FormField',
    'ElementExtractor', 'RectClassifier', 'RectRole', 'classify_rectangles',
    'TableDetector', 'detect_tables', 'FormTableDetector', 'detect_form_tables',
]
