"""
Layout Analyzer - Builds a structured PageLayout from a PageScene

Pipeline:
1. Classify rectangles by visual role
2. Detect tables from border rects (vector-based grid detection)
3. Detect borderless tables from leftover text-input fields
4. Collect consumed text/field sets from table cells
5. Collect genuine images and rasterize vector path clusters
6. Group remaining (non-table) texts and fields into paragraphs and style them
7. Detect two-column regions and sort everything into reading order
8. Infer page margins, body font size, heading levels and paragraph spacing
"""

import logging
from collections import Counter
from typing import List, Dict, Any, Optional, Callable, Iterator

from ..parser.scene import PageScene, ImageElement
from ..parser.element_extractor import ElementExtractor
from ..parser.rect_classifier import RectClassifier
from ..parser.table_detector import TableDetector
from ..parser.form_table_detector import FormTableDetector
from ..mapper.style_mapper import StyleMapper
from ..generator.path_rasterizer import group_nearby_paths, rasterize_path_group
from ..rebuilder.layout_model import PageLayout, LayoutElement, ParagraphGroup
from ..utils.geometry import element_bbox
from .paragraph_grouper import ParagraphGrouper
from .column_detector import ColumnDetector

logger = logging.getLogger(__name__)

Rasterizer = Callable[..., Dict[str, Any]]


class LayoutAnalyzer:
    """
    Runs every detection stage over one page.

    Stateless between pages: each call to ``analyze`` works on its own scene
    and returns a fresh PageLayout.
    """

    def __init__(self, config: Dict[str, Any] = None, rasterizer: Optional[Rasterizer] = rasterize_path_group):
        """
        Initialize Layout Analyzer.

        Args:
            config: Configuration dictionary with one section per stage
            rasterizer: Callable ``(paths, scale) -> {'data', 'width_pt', 'height_pt'}``;
                None disables vector path rasterization
        """
        self.config = config or {}
        self.rasterizer = rasterizer

        self.rect_classifier = RectClassifier(self.config.get('classifier', {}))
        self.table_detector = TableDetector(self.config.get('table_detector', {}))
        self.form_table_detector = FormTableDetector(self.config.get('form_table_detector', {}))
        self.paragraph_grouper = ParagraphGrouper(self.config.get('paragraph_grouper', {}))
        self.style_mapper = StyleMapper(self.config.get('style_mapper', {}))
        self.column_detector = ColumnDetector(self.config.get('column_detector', {}))

        layout_config = self.config.get('layout', {})
        self.path_group_tolerance = layout_config.get('path_group_tolerance', 25.0)
        self.raster_scale = layout_config.get('raster_scale', 1.0)
        self.min_margin = layout_config.get('min_margin', 36.0)
        self.max_margin = layout_config.get('max_margin', 108.0)
        self.heading_max_lines = layout_config.get('heading_max_lines', 3)
        self.heading1_ratio = layout_config.get('heading1_ratio', 1.5)
        self.heading2_ratio = layout_config.get('heading2_ratio', 1.25)
        self.heading3_ratio = layout_config.get('heading3_ratio', 1.1)
        self.min_paragraph_spacing = layout_config.get('min_paragraph_spacing', 2.0)

    def analyze(self, scene: PageScene) -> PageLayout:
        """
        Analyze a page scene.

        Args:
            scene: Page scene

        Returns:
            PageLayout with elements in reading order
        """
        texts = ElementExtractor.get_text_elements(scene)
        fields = list(scene.form_fields)

        # Step 1-2: rect roles and vector tables
        rect_roles = self.rect_classifier.classify(scene)
        tables = self.table_detector.detect_tables(scene, rect_roles, texts, fields)

        # Step 3: borderless tables from residual text fields
        consumed_texts = {id(t) for table in tables for t in table.all_texts()}
        consumed_fields = {id(f) for table in tables for f in table.all_form_fields()}
        residual_fields = [f for f in fields if id(f) not in consumed_fields]
        residual_inputs = ElementExtractor.get_text_input_fields(residual_fields)
        if len(residual_inputs) >= self.form_table_detector.min_fields:
            residual_texts = [t for t in texts if id(t) not in consumed_texts]
            form_tables = self.form_table_detector.detect_tables(residual_inputs, residual_texts)
            tables.extend(form_tables)

        # Step 4: union of everything placed in a table
        for table in tables:
            consumed_texts.update(id(t) for t in table.all_texts())
            consumed_fields.update(id(f) for f in table.all_form_fields())

        # Step 5: images
        images = ElementExtractor.get_image_elements(scene, genuine_only=True)
        images.extend(self._rasterize_paths(scene))

        # Step 6: paragraphs from free content
        free_texts = [t for t in texts if id(t) not in consumed_texts]
        free_fields = [f for f in fields if id(f) not in consumed_fields]
        paragraphs = self.paragraph_grouper.group(free_texts, free_fields)
        self.style_mapper.apply(paragraphs, rect_roles, scene.width)

        # Step 7: combine, detect regions, reading order
        elements = ([LayoutElement('table', t) for t in tables] +
                    [LayoutElement('paragraph', p) for p in paragraphs] +
                    [LayoutElement('image', img) for img in images])
        elements = self.column_detector.detect(elements, scene.width)
        elements.sort(key=lambda e: e.top)

        # Step 8: page-level inference
        layout = PageLayout(scene.width, scene.height, elements,
                            content_bounds=self.compute_content_bounds(scene))
        layout.body_font_size = self.compute_body_font_size(elements)
        if layout.body_font_size:
            self._assign_heading_levels(elements, layout.body_font_size)
        self._assign_spacing(elements)

        summary = layout.summary()
        logger.info(f"Page layout: {summary['table']} tables, {summary['paragraph']} paragraphs, "
                    f"{summary['image']} images, {summary['two_column']} two-column regions")
        return layout

    def _rasterize_paths(self, scene: PageScene) -> List[ImageElement]:
        """Rasterize each path cluster, in grouping order, skipping failures."""
        if self.rasterizer is None:
            return []

        paths = ElementExtractor.get_path_elements(scene)
        images = []
        for index, group in enumerate(group_nearby_paths(paths, self.path_group_tolerance)):
            try:
                result = self.rasterizer(group, self.raster_scale)
            except Exception as e:
                logger.warning(f"Failed to rasterize path group {index} ({len(group)} paths): {e}")
                continue

            if not result or not result.get('data') or result.get('width_pt', 0) <= 0 \
                    or result.get('height_pt', 0) <= 0:
                continue

            bounds = [p.bounds() for p in group]
            min_x = min(b[0] for b in bounds)
            min_y = min(b[1] for b in bounds)
            images.append(ImageElement(
                x=min_x,
                y=min_y,
                width=result['width_pt'],
                height=result['height_pt'],
                data=result['data'],
                mime_type='image/png',
                is_genuine=True,
            ))

        if images:
            logger.debug(f"Rasterized {len(images)} vector path group(s)")
        return images

    def compute_content_bounds(self, scene: PageScene) -> Optional[Dict[str, float]]:
        """
        Infer page margins from the extent of all text and form fields.

        Returns:
            {'top', 'right', 'bottom', 'left'} clamped to [min_margin, max_margin],
            or None for a page without text or fields
        """
        boxes = [element_bbox(e) for e in ElementExtractor.get_text_elements(scene)]
        boxes.extend(element_bbox(f) for f in scene.form_fields)
        if not boxes:
            return None

        def clamp(value: float) -> float:
            return max(self.min_margin, min(self.max_margin, value))

        return {
            'top': clamp(min(b[1] for b in boxes)),
            'right': clamp(scene.width - max(b[2] for b in boxes)),
            'bottom': clamp(scene.height - max(b[3] for b in boxes)),
            'left': clamp(min(b[0] for b in boxes)),
        }

    def compute_body_font_size(self, elements: List[LayoutElement]) -> Optional[float]:
        """Most frequent first-line font size over all paragraphs, rounded to 0.5."""
        sizes = Counter()
        for paragraph in iter_paragraphs(elements):
            first = paragraph.first_text()
            if first is not None:
                sizes[round(first.font_size * 2) / 2] += 1
        if not sizes:
            return None
        return sizes.most_common(1)[0][0]

    def _assign_heading_levels(self, elements: List[LayoutElement], body_size: float):
        for paragraph in iter_paragraphs(elements):
            if not paragraph.texts:
                continue
            if len({t.y for t in paragraph.texts}) > self.heading_max_lines:
                continue

            avg_size = sum(t.font_size for t in paragraph.texts) / len(paragraph.texts)
            ratio = avg_size / body_size
            if ratio >= self.heading1_ratio:
                paragraph.heading_level = 1
            elif ratio >= self.heading2_ratio:
                paragraph.heading_level = 2
            elif ratio >= self.heading3_ratio and all(t.bold for t in paragraph.texts):
                paragraph.heading_level = 3

    def _assign_spacing(self, elements: List[LayoutElement]):
        """Record vertical gaps between adjacent paragraphs and each paragraph's right edge."""
        for sequence in iter_sequences(elements):
            for element in sequence:
                if element.type == 'paragraph':
                    element.element.right_x = element.right

            for prev, curr in zip(sequence, sequence[1:]):
                if prev.type != 'paragraph' or curr.type != 'paragraph':
                    continue
                gap = curr.top - prev.bottom
                if gap > self.min_paragraph_spacing:
                    prev.element.spacing_after = gap
                    curr.element.spacing_before = gap


def iter_sequences(elements: List[LayoutElement]) -> Iterator[List[LayoutElement]]:
    """The top-level element list followed by every column list nested in a region."""
    yield elements
    for element in elements:
        if element.type == 'two_column':
            yield from iter_sequences(element.element.left_elements)
            yield from iter_sequences(element.element.right_elements)


def iter_paragraphs(elements: List[LayoutElement]) -> Iterator[ParagraphGroup]:
    """Paragraphs in reading order, descending into two-column regions."""
    for element in elements:
        if element.type == 'paragraph':
            yield element.element
        elif element.type == 'two_column':
            yield from iter_paragraphs(element.element.left_elements)
            yield from iter_paragraphs(element.element.right_elements)


def build_page_layout(scene: PageScene, config: Dict[str, Any] = None,
                      rasterizer: Optional[Rasterizer] = rasterize_path_group) -> PageLayout:
    """
    Analyze a PageScene and produce a structured PageLayout.

    Args:
        scene: Page scene
        config: Configuration dictionary with one section per stage
        rasterizer: Path-group rasterization service (None disables it)

    Returns:
        PageLayout
    """
    return LayoutAnalyzer(config, rasterizer).analyze(scene)
