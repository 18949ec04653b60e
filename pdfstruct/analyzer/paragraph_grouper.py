"""
Paragraph Grouper - Groups free text runs and form fields into paragraphs

Works on whatever the table detectors left behind. Text is grouped into
lines by baseline, lines are split at wide horizontal gaps, and lines are
merged into paragraphs unless a large vertical gap or a font-size change
marks a boundary.
"""

import logging
from typing import List, Dict, Any, Optional

from ..parser.scene import TextElement, FormField
from ..rebuilder.layout_model import ParagraphGroup
from ..utils.geometry import element_bbox, element_center

logger = logging.getLogger(__name__)


class TextLine:
    """Text runs sharing a baseline, sorted left to right."""

    def __init__(self, texts: List[TextElement], column_segment: bool = False):
        self.texts = sorted(texts, key=lambda t: t.x)
        # True when the baseline was split at a wide gap into several lines
        self.column_segment = column_segment
        self.y = min(t.y for t in self.texts)
        self.x0 = min(t.x for t in self.texts)
        self.x1 = max(t.x + t.width for t in self.texts)
        self.avg_font_size = sum(t.font_size for t in self.texts) / len(self.texts)

    def __repr__(self) -> str:
        return f"TextLine(y={self.y:.1f}, x={self.x0:.1f}-{self.x1:.1f}, texts={len(self.texts)})"


class ParagraphGrouper:
    """
    Groups text and form fields into ParagraphGroups.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize Paragraph Grouper.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.baseline_tolerance = self.config.get('baseline_tolerance', 3.0)
        self.line_split_gap = self.config.get('line_split_gap', 30.0)
        self.line_height_factor = self.config.get('line_height_factor', 1.2)
        self.paragraph_gap_factor = self.config.get('paragraph_gap_factor', 1.5)
        self.font_change_threshold = self.config.get('font_change_threshold', 0.15)
        self.field_match_distance = self.config.get('field_match_distance', 25.0)
        self.dense_min_items = self.config.get('dense_min_items', 4)
        self.dense_min_fields = self.config.get('dense_min_fields', 2)
        self.row_band_tolerance = self.config.get('row_band_tolerance', 8.0)

    def group(self, texts: List[TextElement], form_fields: List[FormField]) -> List[ParagraphGroup]:
        """
        Group free text and form fields into paragraphs.

        Args:
            texts: Text elements outside every table
            form_fields: Form fields outside every table

        Returns:
            Paragraphs sorted top to bottom
        """
        if not texts:
            paragraphs = [ParagraphGroup(form_fields=[f], x=f.x, y=f.y) for f in form_fields]
            paragraphs.sort(key=lambda p: (p.y, p.x))
            return paragraphs

        lines = self.build_lines(texts)
        paragraphs = self.merge_lines(lines)
        paragraphs.extend(self._attach_fields(paragraphs, form_fields))
        paragraphs = self._split_dense_paragraphs(paragraphs)

        for paragraph in paragraphs:
            paragraph.update_anchor()
        paragraphs.sort(key=lambda p: (p.y, p.x))

        logger.debug(f"Grouped {len(texts)} texts and {len(form_fields)} fields "
                     f"into {len(paragraphs)} paragraphs")
        return paragraphs

    def build_lines(self, texts: List[TextElement]) -> List[TextLine]:
        """
        Group text into lines by baseline, then split lines at wide X gaps.

        Args:
            texts: Text elements in any order

        Returns:
            Lines ordered by (Y, X)
        """
        ordered = sorted(texts, key=lambda t: (t.y, t.x))

        baseline_groups: List[List[TextElement]] = [[ordered[0]]]
        line_y = ordered[0].y
        for text in ordered[1:]:
            if abs(text.y - line_y) <= self.baseline_tolerance:
                baseline_groups[-1].append(text)
            else:
                baseline_groups.append([text])
                line_y = text.y

        lines = []
        for group in baseline_groups:
            group.sort(key=lambda t: t.x)
            segments = [[group[0]]]
            for prev, text in zip(group, group[1:]):
                if text.x - (prev.x + prev.width) > self.line_split_gap:
                    segments.append([])
                segments[-1].append(text)
            lines.extend(TextLine(segment, column_segment=len(segments) > 1) for segment in segments)

        lines.sort(key=lambda l: (l.y, l.x0))
        return lines

    def merge_lines(self, lines: List[TextLine]) -> List[ParagraphGroup]:
        """
        Merge lines into paragraphs.

        A line continues the nearest paragraph above it. Where either side was
        split out of a shared baseline, the paragraph must also lie in the
        same horizontal range, so side-by-side columns build separate
        paragraphs. A new paragraph starts when the gap to the previous line exceeds
        ``paragraph_gap_factor`` times the average font size, or when the
        font size changes by more than ``font_change_threshold``.

        Args:
            lines: Lines ordered by (Y, X)

        Returns:
            Paragraphs with line spacing recorded
        """
        # Each open paragraph is a list of its lines
        open_paragraphs: List[List[TextLine]] = []

        for line in lines:
            target = self._find_paragraph_above(open_paragraphs, line)
            if target is not None and not self._is_paragraph_break(target[-1], line):
                target.append(line)
            else:
                open_paragraphs.append([line])

        paragraphs = []
        for para_lines in open_paragraphs:
            texts = [t for line in para_lines for t in line.texts]
            paragraph = ParagraphGroup(texts=texts, x=min(l.x0 for l in para_lines), y=para_lines[0].y)
            if len(para_lines) > 1:
                deltas = [b.y - a.y for a, b in zip(para_lines, para_lines[1:])]
                paragraph.line_spacing = sum(deltas) / len(deltas)
            paragraphs.append(paragraph)
        return paragraphs

    def _find_paragraph_above(self, open_paragraphs: List[List[TextLine]],
                              line: TextLine) -> Optional[List[TextLine]]:
        best = None
        for para_lines in open_paragraphs:
            last = para_lines[-1]
            if last.y >= line.y:
                continue
            columned = line.column_segment or any(l.column_segment for l in para_lines)
            # Ranges separated by less than a column gutter count as overlapping
            if columned and (last.x0 > line.x1 + self.line_split_gap or line.x0 > last.x1 + self.line_split_gap):
                continue
            if best is None or last.y > best[-1].y:
                best = para_lines
        return best

    def _is_paragraph_break(self, prev: TextLine, line: TextLine) -> bool:
        prev_bottom = prev.y + prev.avg_font_size * self.line_height_factor
        gap = line.y - prev_bottom
        avg_font_size = (prev.avg_font_size + line.avg_font_size) / 2
        if gap > avg_font_size * self.paragraph_gap_factor:
            return True

        if prev.avg_font_size > 0:
            change = abs(line.avg_font_size - prev.avg_font_size) / prev.avg_font_size
            if change > self.font_change_threshold:
                return True
        return False

    def _attach_fields(self, paragraphs: List[ParagraphGroup],
                       form_fields: List[FormField]) -> List[ParagraphGroup]:
        """
        Attach each field to the paragraph of the vertically closest text.

        Returns:
            Singleton paragraphs for orphan fields
        """
        owners = [(text, paragraph) for paragraph in paragraphs for text in paragraph.texts]
        orphans = []

        for field in form_fields:
            field_center = element_center(field)[1]
            best = None
            best_distance = None
            for text, paragraph in owners:
                distance = abs(element_center(text)[1] - field_center)
                if best_distance is None or distance < best_distance:
                    best = paragraph
                    best_distance = distance

            if best is not None and best_distance <= self.field_match_distance:
                best.form_fields.append(field)
            else:
                orphans.append(ParagraphGroup(form_fields=[field], x=field.x, y=field.y))

        if orphans:
            logger.debug(f"{len(orphans)} form field(s) had no nearby text")
        return orphans

    def _split_dense_paragraphs(self, paragraphs: List[ParagraphGroup]) -> List[ParagraphGroup]:
        """Split field-heavy paragraphs into one paragraph per visual row."""
        result = []
        for paragraph in paragraphs:
            items = paragraph.texts + paragraph.form_fields
            if len(items) < self.dense_min_items or len(paragraph.form_fields) < self.dense_min_fields:
                result.append(paragraph)
                continue

            bands: List[List[Any]] = []
            band_center = 0.0
            for item in sorted(items, key=lambda e: element_center(e)[1]):
                center_y = element_center(item)[1]
                if bands and abs(center_y - band_center) <= self.row_band_tolerance:
                    bands[-1].append(item)
                    band_center += (center_y - band_center) / len(bands[-1])
                else:
                    bands.append([item])
                    band_center = center_y

            for band in bands:
                band.sort(key=lambda e: element_bbox(e)[0])
                result.append(ParagraphGroup(
                    texts=[e for e in band if isinstance(e, TextElement)],
                    form_fields=[e for e in band if isinstance(e, FormField)],
                ))
            logger.debug(f"Split dense paragraph of {len(items)} items into {len(bands)} rows")
        return result


def group_into_paragraphs(texts: List[TextElement], form_fields: List[FormField],
                          config: Dict[str, Any] = None) -> List[ParagraphGroup]:
    """Group free text and fields into paragraphs with default or given tolerances."""
    return ParagraphGrouper(config).group(texts, form_fields)
