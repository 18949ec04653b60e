"""
pdfstruct - Page structure reconstruction for PDF content

Turns a flat scene of positioned drawing primitives (text runs, rectangles,
vector paths, images and form fields) into a structured page layout of
tables, paragraphs, images and two-column regions.
"""

from .parser.scene import PageScene, TextElement, RectElement, PathElement, ImageElement, FormField
from .rebuilder.layout_model import (
    PageLayout, LayoutElement, DetectedTable, DetectedCell, ParagraphGroup, TwoColumnRegion,
)
from .analyzer.layout_analyzer import LayoutAnalyzer, build_page_layout

__version__ = '1.0.0'

__all__ = [
    'PageScene', 'TextElement', 'RectElement', 'PathElement', 'ImageElement', 'FormField',
    'PageLayout', 'LayoutElement', 'DetectedTable', 'DetectedCell', 'ParagraphGroup',
    'TwoColumnRegion', 'LayoutAnalyzer', 'build_page_layout',
]
