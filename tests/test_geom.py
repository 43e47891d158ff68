"""Test module for avc.geom

The tests are run using pytest.
These tests ensure that all functions and interfaces in src/avc/geom.py
remain working correctly after changes and refactoring.
"""

import dataclasses
import math

import pytest

from avc.geom import AvBox, GeomMath

###############################################################################
# GeomMath Tests
###############################################################################


class TestGeomMath:
    """Test class for GeomMath functionality."""

    def test_transform_point_identity(self):
        """Test point transformation with identity matrix."""
        result = GeomMath.transform_point([1, 0, 0, 1, 0, 0], (10.0, 20.0))

        assert result == (10.0, 20.0)

    def test_transform_point_translation(self):
        """Test point transformation with translation."""
        result = GeomMath.transform_point([1, 0, 0, 1, 5.0, 10.0], (10.0, 20.0))

        assert result == (15.0, 30.0)

    def test_transform_point_complex(self):
        """Test point transformation with scaling, rotation, and translation."""
        # Scale by 2, rotate 90 degrees, translate by (5, 10)
        result = GeomMath.transform_point([0, -2, 2, 0, 5.0, 10.0], (10.0, 20.0))

        # x' = 0*10 + (-2)*20 + 5 = -35
        # y' = 2*10 + 0*20 + 10 = 30
        assert result == (-35.0, 30.0)

    def test_transform_point_wrong_matrix(self):
        """An affine transformation needs exactly six values."""
        with pytest.raises(ValueError):
            GeomMath.transform_point([1, 0, 0, 1], (1.0, 1.0))

    def test_distance_and_lerp(self):
        """Test euclidean distance and linear interpolation."""
        assert GeomMath.distance((0.0, 0.0), (3.0, 4.0)) == 5.0
        assert GeomMath.lerp(0.5, (0.0, 0.0), (2.0, 4.0)) == (1.0, 2.0)
        assert GeomMath.lerp(0.0, (1.0, 1.0), (2.0, 4.0)) == (1.0, 1.0)


###############################################################################
# AvBox Tests
###############################################################################


class TestAvBox:
    """Test class for AvBox functionality."""

    def test_init_normalizes_coordinates(self):
        """Test that swapped coordinates are normalized."""
        box = AvBox(xmin=10, ymin=20, xmax=0, ymax=5)

        assert box.extent == (0.0, 5.0, 10.0, 20.0)
        assert box.width == 10.0
        assert box.height == 15.0
        assert box.area == 150.0
        assert box.centroid == (5.0, 12.5)

    def test_empty_box(self):
        """The empty box contains nothing and has no area."""
        empty = AvBox.empty()

        assert empty.is_empty
        assert empty.area == 0.0
        assert empty.width == 0.0
        assert not empty.contains((0.0, 0.0))
        assert not empty.overlaps(AvBox(-1, -1, 1, 1))
        assert str(empty) == "AvBox(empty)"

    def test_degenerate_box_is_not_empty(self):
        """A point box is a finite box with zero area."""
        box = AvBox(1, 1, 1, 1)

        assert not box.is_empty
        assert box.area == 0.0
        assert box.contains((1.0, 1.0))

    def test_union(self):
        """Test union with boxes and the empty box."""
        box1 = AvBox(0, 0, 1, 1)
        box2 = AvBox(2, -1, 3, 0.5)

        assert box1.union(box2) == AvBox(0, -1, 3, 1)
        assert box1.union(AvBox.empty()) == box1
        assert AvBox.empty().union(box2) == box2

    def test_from_points(self):
        """Test the tightest box around points."""
        box = AvBox.from_points([(1, 2), (-1, 5), (3, 0)])

        assert box == AvBox(-1, 0, 3, 5)
        assert AvBox.from_points([]).is_empty

    def test_intersection(self):
        """Test intersection of overlapping, touching and disjoint boxes."""
        box = AvBox(0, 0, 2, 2)

        assert box.intersection(AvBox(1, 1, 3, 3)) == AvBox(1, 1, 2, 2)
        touching = box.intersection(AvBox(2, 2, 3, 3))
        assert not touching.is_empty
        assert touching.area == 0.0
        assert box.intersection(AvBox(5, 5, 6, 6)).is_empty

    def test_contains_border(self):
        """Points on the border are contained."""
        box = AvBox(0, 0, 1, 1)

        assert box.contains((0.0, 0.5))
        assert box.contains((1.0, 1.0))
        assert not box.contains((1.0001, 0.5))

    def test_overlaps(self):
        """Touching boxes overlap, separated boxes do not."""
        box = AvBox(0, 0, 1, 1)

        assert box.overlaps(AvBox(1, 0, 2, 1))
        assert box.overlaps(AvBox(0.5, 0.5, 0.6, 0.6))
        assert not box.overlaps(AvBox(1.5, 0, 2, 1))

    def test_lower_bound_of_distance(self):
        """Distance to the nearest point of the box, zero inside."""
        box = AvBox(0, 0, 1, 1)

        assert box.lower_bound_of_distance((0.5, 0.5)) == 0.0
        assert box.lower_bound_of_distance((2.0, 0.5)) == 1.0
        assert box.lower_bound_of_distance((4.0, 5.0)) == 5.0

    def test_upper_bound_of_distance(self):
        """Distance to the farthest corner."""
        box = AvBox(0, 0, 1, 1)

        assert box.upper_bound_of_distance((0.5, 0.5)) == pytest.approx(math.sqrt(0.5))
        assert box.upper_bound_of_distance((4.0, 5.0)) == pytest.approx(math.sqrt(41.0))

    def test_distance_bounds_enclose_corner_distances(self):
        """lower bound <= distance of any box corner <= upper bound."""
        box = AvBox(-1, 2, 3, 4)
        point = (5.0, -1.0)
        corners = [(-1, 2), (3, 2), (3, 4), (-1, 4)]

        for corner in corners:
            distance = GeomMath.distance(point, corner)
            assert box.lower_bound_of_distance(point) <= distance <= box.upper_bound_of_distance(point)

    def test_transform_affine_rotation(self):
        """Rotating a box by 90 degrees swaps width and height."""
        box = AvBox(0, 0, 2, 1)

        rotated = box.transform_affine([0, -1, 1, 0, 0, 0])

        assert rotated.width == pytest.approx(1.0)
        assert rotated.height == pytest.approx(2.0)
        assert rotated.extent == pytest.approx((-1.0, 0.0, 0.0, 2.0))

    def test_dict_round_trip(self):
        """to_dict and from_dict preserve finite and empty boxes."""
        box = AvBox(1, 2, 3, 4)

        assert AvBox.from_dict(box.to_dict()) == box
        assert AvBox.from_dict(AvBox.empty().to_dict()).is_empty

    def test_expanded(self):
        """Growing adds the margin on all sides; the empty box stays empty."""
        box = AvBox(1, 2, 3, 2)

        assert box.expanded(0.5).extent == (0.5, 1.5, 3.5, 2.5)
        assert box.expanded(1e-9).overlaps(AvBox(0, 2 + 5e-10, 1, 2 + 5e-10))
        assert not box.overlaps(AvBox(0, 2 + 5e-10, 1, 2 + 5e-10))
        assert AvBox.empty().expanded(1.0).is_empty

    def test_immutable_and_hashable(self):
        """Boxes are values: fields cannot be reassigned and equal boxes hash equally."""
        box = AvBox(1, 2, 3, 4)

        with pytest.raises(dataclasses.FrozenInstanceError):
            box._xmin = 0.0  # pylint: disable=protected-access
        assert box.xmin == 1.0
        assert hash(box) == hash(AvBox(3, 4, 1, 2))
        assert len({box, AvBox(1, 2, 3, 4), AvBox.empty(), AvBox.empty()}) == 2
