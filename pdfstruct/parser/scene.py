"""
Page Scene - Typed drawing primitives for a single page

A PageScene is the flat bag of positioned primitives produced by the upstream
content-stream analyzer: text runs, rectangles, vector paths, raster images and
form-input fields. Nothing here carries structural intent; the detectors infer
structure from coordinates alone.

Coordinates use page-space units with a top-left origin.
"""

import base64
import logging
from typing import List, Dict, Any, Optional, Tuple

from ..utils.color_utils import normalize_color

logger = logging.getLogger(__name__)


class TextElement:
    """A run of text with uniform formatting."""

    kind = 'text'

    def __init__(self, text: str, x: float, y: float, width: float, height: float,
                 font_size: float, bold: bool = False, italic: bool = False,
                 font_name: str = '', color: str = '#000000'):
        self.text = text
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.font_size = font_size
        self.bold = bold
        self.italic = italic
        self.font_name = font_name
        self.color = color

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'text': self.text,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'font_size': self.font_size,
            'bold': self.bold,
            'italic': self.italic,
            'font_name': self.font_name,
            'color': self.color,
        }

    def __repr__(self) -> str:
        return f"TextElement({self.text!r}, x={self.x:.1f}, y={self.y:.1f}, size={self.font_size:.1f})"


class RectElement:
    """
    A filled and/or stroked rectangle.

    A rect with neither stroke nor fill never reaches the pipeline.
    """

    kind = 'rect'

    def __init__(self, x: float, y: float, width: float, height: float,
                 fill_color: Optional[str] = None, stroke_color: Optional[str] = None,
                 line_width: float = 1.0):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.fill_color = fill_color
        self.stroke_color = stroke_color
        self.line_width = line_width

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'fill_color': self.fill_color,
            'stroke_color': self.stroke_color,
            'line_width': self.line_width,
        }

    def __repr__(self) -> str:
        return (f"RectElement(x={self.x:.1f}, y={self.y:.1f}, {self.width:.1f}x{self.height:.1f}, "
                f"fill={self.fill_color}, stroke={self.stroke_color})")


class PathElement:
    """
    A vector path built from drawing operations.

    Operations are ``(op, args)`` tuples with ``op`` one of 'moveTo', 'lineTo',
    'curveTo' (six args: two control points and the end point) or 'closePath'.
    Paths only feed image assembly, never structural detection.
    """

    kind = 'path'

    def __init__(self, operations: List[Tuple[str, List[float]]],
                 fill_color: Optional[str] = None, stroke_color: Optional[str] = None,
                 line_width: float = 1.0):
        self.operations = [(op, list(args)) for op, args in operations]
        self.fill_color = fill_color
        self.stroke_color = stroke_color
        self.line_width = line_width

    @property
    def points(self) -> List[Tuple[float, float]]:
        """Every coordinate referenced by the operations, control points included."""
        pts = []
        for op, args in self.operations:
            if op in ('moveTo', 'lineTo'):
                pts.append((args[0], args[1]))
            elif op == 'curveTo':
                pts.extend([(args[0], args[1]), (args[2], args[3]), (args[4], args[5])])
        return pts

    @property
    def is_closed(self) -> bool:
        return any(op == 'closePath' for op, _ in self.operations)

    def bounds(self) -> Optional[Tuple[float, float, float, float]]:
        pts = self.points
        if not pts:
            return None
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        return (min(xs), min(ys), max(xs), max(ys))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'operations': [{'type': op, 'args': args} for op, args in self.operations],
            'fill_color': self.fill_color,
            'stroke_color': self.stroke_color,
            'line_width': self.line_width,
        }

    def __repr__(self) -> str:
        return f"PathElement(ops={len(self.operations)}, fill={self.fill_color}, stroke={self.stroke_color})"


class ImageElement:
    """A raster image placed on the page."""

    kind = 'image'

    def __init__(self, x: float, y: float, width: float, height: float,
                 data: Optional[bytes] = None, mime_type: str = 'image/png',
                 is_genuine: bool = True, intrinsic_width: int = 0, intrinsic_height: int = 0):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.data = data
        self.mime_type = mime_type
        # Only genuine images are placed in the layout; the rest is UI chrome
        self.is_genuine = is_genuine
        self.intrinsic_width = intrinsic_width
        self.intrinsic_height = intrinsic_height

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'mime_type': self.mime_type,
            'is_genuine': self.is_genuine,
            'data_bytes': len(self.data) if self.data else 0,
        }

    def __repr__(self) -> str:
        return f"ImageElement(x={self.x:.1f}, y={self.y:.1f}, {self.width:.1f}x{self.height:.1f})"


class FormField:
    """
    An interactive form widget.

    Field types follow AcroForm naming: 'Tx' (text input), 'Btn'
    (checkbox/radio) and 'Ch' (choice). Only 'Tx' fields take part in
    spatial table inference.
    """

    def __init__(self, x: float, y: float, width: float, height: float,
                 field_type: str = 'Tx', field_name: str = '', field_value: str = '',
                 is_check_box: bool = False, is_radio_button: bool = False,
                 is_checked: bool = False, options: Optional[List[Dict[str, str]]] = None,
                 read_only: bool = False, max_length: int = 0):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.field_type = field_type
        self.field_name = field_name
        self.field_value = field_value
        self.is_check_box = is_check_box
        self.is_radio_button = is_radio_button
        self.is_checked = is_checked
        self.options = options or []
        self.read_only = read_only
        self.max_length = max_length

    @property
    def is_text_input(self) -> bool:
        return self.field_type == 'Tx'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'field_type': self.field_type,
            'field_name': self.field_name,
            'field_value': self.field_value,
            'is_check_box': self.is_check_box,
            'is_radio_button': self.is_radio_button,
            'is_checked': self.is_checked,
            'options': self.options,
            'read_only': self.read_only,
            'max_length': self.max_length,
        }

    def __repr__(self) -> str:
        return f"FormField({self.field_type} {self.field_name!r}, x={self.x:.1f}, y={self.y:.1f})"


class PageScene:
    """
    Immutable input for one page: page size, drawing elements and form fields.
    """

    def __init__(self, width: float, height: float, elements: Optional[List[Any]] = None,
                 form_fields: Optional[List[FormField]] = None):
        self.width = width
        self.height = height
        self.elements = tuple(elements or [])
        self.form_fields = tuple(form_fields or [])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageScene':
        """
        Build a scene from a JSON-compatible dictionary.

        Args:
            data: Dictionary with 'width', 'height', 'elements' and 'form_fields'

        Returns:
            PageScene

        Raises:
            ValueError: If the page size is missing, an element is malformed or its kind is unknown
        """
        try:
            width = float(data['width'])
            height = float(data['height'])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Scene requires numeric 'width' and 'height': {e}") from e

        if width < 0 or height < 0:
            raise ValueError(f"Page size must be non-negative, got {width}x{height}")

        try:
            elements = [_element_from_dict(item) for item in data.get('elements', [])]
            fields = [_field_from_dict(item) for item in data.get('form_fields', [])]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed scene element: {e}") from e

        logger.debug(f"Loaded scene {width:.0f}x{height:.0f}: {len(elements)} elements, "
                     f"{len(fields)} form fields")
        return cls(width, height, elements, fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'width': self.width,
            'height': self.height,
            'elements': [e.to_dict() for e in self.elements],
            'form_fields': [f.to_dict() for f in self.form_fields],
        }

    def __repr__(self) -> str:
        return (f"PageScene({self.width:.0f}x{self.height:.0f}, elements={len(self.elements)}, "
                f"fields={len(self.form_fields)})")


def _element_from_dict(item: Dict[str, Any]):
    if not isinstance(item, dict):
        raise ValueError(f"Scene element must be an object, got {type(item).__name__}")
    kind = item.get('kind')

    if kind == 'text':
        return TextElement(
            text=item.get('text', ''),
            x=item['x'], y=item['y'], width=item['width'], height=item['height'],
            font_size=item.get('font_size', 12.0),
            bold=item.get('bold', False),
            italic=item.get('italic', False),
            font_name=item.get('font_name', ''),
            color=normalize_color(item.get('color')) or '#000000',
        )
    if kind == 'rect':
        return RectElement(
            x=item['x'], y=item['y'], width=item['width'], height=item['height'],
            fill_color=normalize_color(item.get('fill_color')),
            stroke_color=normalize_color(item.get('stroke_color')),
            line_width=_line_width(item),
        )
    if kind == 'path':
        operations = []
        for op in item.get('operations', []):
            if isinstance(op, dict):
                operations.append((op['type'], op.get('args', [])))
            else:
                operations.append((op[0], op[1]))
        return PathElement(
            operations,
            fill_color=normalize_color(item.get('fill_color')),
            stroke_color=normalize_color(item.get('stroke_color')),
            line_width=_line_width(item),
        )
    if kind == 'image':
        raw = item.get('data')
        return ImageElement(
            x=item['x'], y=item['y'], width=item['width'], height=item['height'],
            data=base64.b64decode(raw) if raw else None,
            mime_type=item.get('mime_type', 'image/png'),
            is_genuine=item.get('is_genuine', True),
            intrinsic_width=item.get('intrinsic_width', 0),
            intrinsic_height=item.get('intrinsic_height', 0),
        )

    raise ValueError(f"Unknown scene element kind: {kind!r}")


def _field_from_dict(item: Dict[str, Any]) -> FormField:
    if not isinstance(item, dict):
        raise ValueError(f"Form field must be an object, got {type(item).__name__}")
    return FormField(
        x=item['x'], y=item['y'], width=item['width'], height=item['height'],
        field_type=item.get('field_type', 'Tx'),
        field_name=item.get('field_name', ''),
        field_value=item.get('field_value', ''),
        is_check_box=item.get('is_check_box', False),
        is_radio_button=item.get('is_radio_button', False),
        is_checked=item.get('is_checked', False),
        options=item.get('options'),
        read_only=item.get('read_only', False),
        max_length=item.get('max_length', 0),
    )


def _line_width(item: Dict[str, Any]) -> float:
    # null in JSON means "unspecified", same as an absent key
    value = item.get('line_width')
    return 1.0 if value is None else value
