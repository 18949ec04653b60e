"""
Layout Model Module
Structured page representation produced by the analyzer.
"""

from .layout_model import (
    PageLayout, LayoutElement, DetectedTable, DetectedCell, ParagraphGroup, TwoColumnRegion,
)

__all__ = ['PageLayout', 'LayoutElement', 'DetectedTable', 'DetectedCell', 'ParagraphGroup',
           'TwoColumnRegion']
