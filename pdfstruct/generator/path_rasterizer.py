"""
Path Rasterizer - Renders clusters of vector paths to PNG images

Icons, logos and charts often arrive as loose vector paths. Nearby paths are
clustered and each cluster is drawn onto its own Pillow canvas, so the layout
can carry it as a single image.
"""

import io
import logging
import math
from typing import List, Dict, Any, Tuple

from PIL import Image, ImageDraw

from ..parser.scene import PathElement
from ..utils.geometry import group_touching_boxes, union_bbox

logger = logging.getLogger(__name__)

# Transparent margin around the drawing, in page units
PADDING_PT = 2.0
# Device pixels per page unit at scale 1.0
DPI_SCALE = 2.0
MAX_CANVAS_PX = 4096
BEZIER_STEPS = 16


def empty_raster() -> Dict[str, Any]:
    """Result that stands for "no image produced"."""
    return {'data': b'', 'width_pt': 0, 'height_pt': 0}


def group_nearby_paths(paths: List[PathElement], tolerance: float = 25.0) -> List[List[PathElement]]:
    """
    Cluster paths whose bounding boxes overlap or lie within ``tolerance``.

    Paths without any coordinates are dropped.

    Args:
        paths: Vector paths
        tolerance: Gap bridged between neighbouring paths

    Returns:
        Path groups, ordered by each group's first path
    """
    drawable = [p for p in paths if p.bounds() is not None]
    if not drawable:
        return []

    boxes = [p.bounds() for p in drawable]
    return [[drawable[i] for i in group] for group in group_touching_boxes(boxes, tolerance)]


class PathRasterizer:
    """
    Draws path groups with Pillow and encodes them as PNG.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize Path Rasterizer.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.padding = self.config.get('padding', PADDING_PT)
        self.dpi_scale = self.config.get('dpi_scale', DPI_SCALE)
        self.max_canvas_px = self.config.get('max_canvas_px', MAX_CANVAS_PX)
        self.bezier_steps = self.config.get('bezier_steps', BEZIER_STEPS)

    def rasterize(self, paths: List[PathElement], scale: float = 1.0) -> Dict[str, Any]:
        """
        Rasterize a group of paths.

        Args:
            paths: Paths of one group
            scale: Extra scale factor multiplied with the device scale

        Returns:
            Dictionary with PNG 'data' and the image size in page units
            ('width_pt', 'height_pt'); empty data for degenerate or oversized input
        """
        box = union_bbox([b for b in (p.bounds() for p in paths) if b is not None])
        if box is None:
            return empty_raster()

        min_x, min_y, max_x, max_y = box
        width_pt = max_x - min_x + self.padding * 2
        height_pt = max_y - min_y + self.padding * 2

        total_scale = scale * self.dpi_scale
        canvas_width = math.ceil(width_pt * total_scale)
        canvas_height = math.ceil(height_pt * total_scale)

        if (canvas_width <= 0 or canvas_height <= 0 or
                canvas_width > self.max_canvas_px or canvas_height > self.max_canvas_px):
            logger.debug(f"Skipping path group: canvas {canvas_width}x{canvas_height}px out of range")
            return empty_raster()

        def to_device(x: float, y: float) -> Tuple[float, float]:
            return ((x - min_x + self.padding) * total_scale, (y - min_y + self.padding) * total_scale)

        img = Image.new('RGBA', (canvas_width, canvas_height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(img)

        for path in paths:
            subpaths = self._flatten(path)
            # Fill first, then stroke
            if path.fill_color:
                for points, _ in subpaths:
                    if len(points) >= 3:
                        draw.polygon([to_device(*p) for p in points], fill=path.fill_color)
            if path.stroke_color:
                width = max(1, int(round((path.line_width or 1.0) * total_scale)))
                for points, closed in subpaths:
                    device = [to_device(*p) for p in points]
                    if closed and len(device) > 2:
                        device.append(device[0])
                    if len(device) >= 2:
                        draw.line(device, fill=path.stroke_color, width=width, joint='curve')

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return {'data': buffer.getvalue(), 'width_pt': width_pt, 'height_pt': height_pt}

    def _flatten(self, path: PathElement) -> List[Tuple[List[Tuple[float, float]], bool]]:
        """Split a path into polylines (points, closed) with curves flattened."""
        subpaths = []
        points: List[Tuple[float, float]] = []
        closed = False

        for op, args in path.operations:
            if op == 'moveTo':
                if points:
                    subpaths.append((points, closed))
                points = [(args[0], args[1])]
                closed = False
            elif op == 'lineTo':
                points.append((args[0], args[1]))
            elif op == 'curveTo':
                start = points[-1] if points else (args[0], args[1])
                points.extend(self._flatten_curve(start, (args[0], args[1]), (args[2], args[3]),
                                                  (args[4], args[5])))
            elif op == 'closePath':
                closed = True

        if points:
            subpaths.append((points, closed))
        return subpaths

    def _flatten_curve(self, p0, p1, p2, p3) -> List[Tuple[float, float]]:
        """Sample a cubic Bezier (excluding its start point)."""
        samples = []
        for step in range(1, self.bezier_steps + 1):
            t = step / self.bezier_steps
            u = 1 - t
            x = u ** 3 * p0[0] + 3 * u * u * t * p1[0] + 3 * u * t * t * p2[0] + t ** 3 * p3[0]
            y = u ** 3 * p0[1] + 3 * u * u * t * p1[1] + 3 * u * t * t * p2[1] + t ** 3 * p3[1]
            samples.append((x, y))
        return samples


def rasterize_path_group(paths: List[PathElement], scale: float = 1.0) -> Dict[str, Any]:
    """Rasterize one path group with the default device settings."""
    return PathRasterizer().rasterize(paths, scale)
