"""
Utility Module
Geometry and color helpers shared by every stage.
"""

from .geometry import cluster_values, find_containing_cell, UnionFind
from .color_utils import hex_to_rgb, luminance, is_near_white

__all__ = ['cluster_values', 'find_containing_cell', 'UnionFind', 'hex_to_rgb', 'luminance',
           'is_near_white']
