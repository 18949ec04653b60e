"""
Style Mapper Module
Maps rectangle styling (shading, underlines) onto paragraphs.
"""

from .style_mapper import StyleMapper, apply_paragraph_styles

__all__ = ['StyleMapper', 'apply_paragraph_styles']
