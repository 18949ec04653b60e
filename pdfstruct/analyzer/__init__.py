"""
Layout Analyzer Module
Groups free content into paragraphs, detects column regions and builds the page layout.
"""

from .paragraph_grouper import ParagraphGrouper, group_into_paragraphs
from .column_detector import ColumnDetector, detect_two_column_regions
from .layout_analyzer import LayoutAnalyzer, build_page_layout

__all__ = [
    'ParagraphGrouper', 'group_into_paragraphs', 'ColumnDetector', 'detect_two_column_regions',
    'LayoutAnalyzer', 'build_page_layout',
]
