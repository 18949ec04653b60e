"""
Image Generator Module
Rasterizes clusters of vector paths into PNG images.
"""

from .path_rasterizer import PathRasterizer, group_nearby_paths, rasterize_path_group

__all__ = ['PathRasterizer', 'group_nearby_paths', 'rasterize_path_group']
