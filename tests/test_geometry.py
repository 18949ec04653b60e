"""
Tests for geometry and color helpers shared by the detectors.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfstruct.utils.geometry import (
    normalized_bbox, rects_overlap, boxes_touch, cluster_values, collapse_boundaries,
    snap_to_boundary, find_containing_cell, UnionFind, group_touching_boxes,
)
from pdfstruct.utils.color_utils import hex_to_rgb, normalize_color, luminance, is_near_white


class TestBoundingBoxes(unittest.TestCase):
    """Bounding box normalisation and overlap tests."""

    def test_negative_size_is_normalized(self):
        self.assertEqual(normalized_bbox(10, 20, -5, -10), (5, 10, 10, 20))
        self.assertEqual(normalized_bbox(10, 20, 5, 10), (10, 20, 15, 30))

    def test_touching_edges_do_not_overlap(self):
        self.assertFalse(rects_overlap((0, 0, 10, 10), (10, 0, 20, 10)))
        self.assertTrue(rects_overlap((0, 0, 10, 10), (9, 9, 20, 20)))

    def test_boxes_touch_within_tolerance(self):
        self.assertTrue(boxes_touch((0, 0, 10, 10), (18, 0, 28, 10), 8))
        self.assertFalse(boxes_touch((0, 0, 10, 10), (19, 0, 29, 10), 8))


class TestClusterValues(unittest.TestCase):
    """Value clustering used for grid line detection."""

    def test_clusters_use_running_mean(self):
        self.assertEqual(cluster_values([12, 50, 10, 51, 11], 2), [11.0, 50.5])

    def test_empty_input(self):
        self.assertEqual(cluster_values([], 2), [])

    def test_distinct_values_stay_separate(self):
        self.assertEqual(cluster_values([0, 5, 10], 2), [0, 5, 10])

    def test_collapse_removes_gap_boundaries(self):
        bounds = [50, 150, 157, 257, 264, 364]
        self.assertEqual(collapse_boundaries(bounds, 10), [50, 150, 257, 364])

    def test_snap_to_collapsed_boundary(self):
        bounds = [50, 150, 257, 364]
        self.assertEqual(snap_to_boundary(157, bounds, 2), 1)
        self.assertEqual(snap_to_boundary(257, bounds, 2), 2)
        self.assertEqual(snap_to_boundary(255.5, bounds, 2), 2)
        self.assertEqual(snap_to_boundary(364, bounds, 2), 3)
        self.assertEqual(snap_to_boundary(40, bounds, 2), 0)


class TestFindContainingCell(unittest.TestCase):
    """Point-in-grid lookup."""

    def setUp(self):
        self.col_bounds = [50, 150, 257, 364]
        self.row_bounds = [100, 120, 147]

    def test_point_inside_each_cell(self):
        for r in range(len(self.row_bounds) - 1):
            for c in range(len(self.col_bounds) - 1):
                cx = (self.col_bounds[c] + self.col_bounds[c + 1]) / 2
                cy = (self.row_bounds[r] + self.row_bounds[r + 1]) / 2
                self.assertEqual(find_containing_cell(cx, cy, self.col_bounds, self.row_bounds), (r, c))

    def test_point_outside_grid(self):
        self.assertIsNone(find_containing_cell(500, 110, self.col_bounds, self.row_bounds))
        self.assertIsNone(find_containing_cell(100, 50, self.col_bounds, self.row_bounds))

    def test_shared_boundary_resolves_to_earlier_cell(self):
        self.assertEqual(find_containing_cell(150, 110, self.col_bounds, self.row_bounds), (0, 0))

    def test_tolerance_expands_cells(self):
        self.assertEqual(find_containing_cell(48.5, 99, self.col_bounds, self.row_bounds), (0, 0))
        self.assertIsNone(find_containing_cell(47, 110, self.col_bounds, self.row_bounds))


class TestUnionFind(unittest.TestCase):
    """Connected-component grouping."""

    def test_groups_follow_unions(self):
        uf = UnionFind(5)
        uf.union(0, 1)
        uf.union(2, 3)
        uf.union(1, 3)
        self.assertEqual(uf.groups(), [[0, 1, 2, 3], [4]])
        self.assertEqual(uf.find(0), uf.find(3))
        self.assertNotEqual(uf.find(0), uf.find(4))

    def test_group_touching_boxes(self):
        boxes = [(0, 0, 10, 10), (15, 0, 25, 10), (100, 100, 110, 110)]
        self.assertEqual(group_touching_boxes(boxes, 8), [[0, 1], [2]])


class TestColorUtils(unittest.TestCase):
    """Hex color helpers."""

    def test_hex_parsing(self):
        self.assertEqual(hex_to_rgb('#FFF'), (255, 255, 255))
        self.assertEqual(hex_to_rgb('14161A'), (20, 22, 26))
        self.assertIsNone(hex_to_rgb('#12'))
        self.assertIsNone(hex_to_rgb('#GGGGGG'))

    def test_normalize_color(self):
        self.assertEqual(normalize_color('#abcdef'), '#ABCDEF')
        self.assertEqual(normalize_color((1, 0, 0)), '#FF0000')
        self.assertEqual(normalize_color({'r': 0, 'g': 0, 'b': 1}), '#0000FF')
        self.assertIsNone(normalize_color(None))

    def test_luminance_order(self):
        self.assertEqual(luminance('#000000'), 0)
        self.assertGreater(luminance('#FFFFFF'), luminance('#808080'))

    def test_near_white(self):
        self.assertTrue(is_near_white('#F0F0F0'))
        self.assertFalse(is_near_white('#EFEFEF'))
        self.assertFalse(is_near_white(None))


if __name__ == '__main__':
    unittest.main()
