"""Test module for the avc.svgpath module.

This module contains unit tests for the avc.svgpath module.

The tests are grouped into test cases, each of which is a function prefixed with "test_".
The tests are run using pytest.
"""

import numpy as np
import pytest

from avc.svgpath import AvSvgPath


def test_format_commands():
    """Test formatting of all supported commands."""
    points = np.array([[0, 0], [1, 0], [2, 0], [2, 1], [3, 1], [3, 2], [2.5, 3]], dtype=np.float64)
    commands = ["M", "L", "Q", "C", "Z"]

    assert AvSvgPath.format_commands(points, commands) == "M0 0 L1 0 Q2 0 2 1 C3 1 3 2 2.5 3 Z"


def test_format_commands_too_few_points():
    """Test that missing points raise a ValueError."""
    points = np.array([[0, 0], [1, 0]], dtype=np.float64)

    with pytest.raises(ValueError, match="C command needs 3 points, got 1"):
        AvSvgPath.format_commands(points, ["M", "C"])


def test_format_commands_too_many_points():
    """Test that unused points raise a ValueError."""
    points = np.array([[0, 0], [1, 0], [2, 0]], dtype=np.float64)

    with pytest.raises(ValueError, match="does not match"):
        AvSvgPath.format_commands(points, ["M", "L"])


def test_parse_absolute_coordinates():
    """Test that absolute coordinates are kept."""
    points, commands = AvSvgPath.parse_commands("M 10 20 L 30 40 Q 50 60 70 80 C 1 2 3 4 5 6 Z")

    assert commands == ["M", "L", "Q", "C", "Z"]
    assert np.array_equal(points, [[10, 20], [30, 40], [50, 60], [70, 80], [1, 2], [3, 4], [5, 6]])


def test_parse_relative_coordinates():
    """Test that relative coordinates are converted into absolute ones."""
    points, commands = AvSvgPath.parse_commands("m 10 20 l 5 5 q 1 0 2 2 c 1 1 2 2 3 3")

    assert commands == ["M", "L", "Q", "C"]
    assert np.array_equal(points, [[10, 20], [15, 25], [16, 25], [17, 27], [18, 28], [19, 29], [20, 30]])


def test_parse_horizontal_and_vertical_lines():
    """Test that H and V become L commands."""
    points, commands = AvSvgPath.parse_commands("M 1 2 H 10 V 20 h -4 v -6")

    assert commands == ["M", "L", "L", "L", "L"]
    assert np.array_equal(points, [[1, 2], [10, 2], [10, 20], [6, 20], [6, 14]])


def test_parse_implicit_repetitions():
    """Test that repeated argument groups are expanded; extra MoveTo pairs are LineTo."""
    points, commands = AvSvgPath.parse_commands("M0 0 1 1 L 2 2 3 3")

    assert commands == ["M", "L", "L", "L"]
    assert np.array_equal(points, [[0, 0], [1, 1], [2, 2], [3, 3]])


def test_parse_close_resets_current_point():
    """Test that relative commands after Z start at the subpath start."""
    points, commands = AvSvgPath.parse_commands("M 5 5 L 10 5 Z l 1 1")

    assert commands == ["M", "L", "Z", "L"]
    assert np.array_equal(points[-1], [6, 6])


def test_parse_compact_numbers():
    """Test numbers without separators and with exponents."""
    points, _ = AvSvgPath.parse_commands("M-1.5-2L1e1,.5")

    assert np.array_equal(points, [[-1.5, -2.0], [10.0, 0.5]])


def test_parse_empty_string():
    """Test that an empty string gives no commands."""
    points, commands = AvSvgPath.parse_commands("")

    assert commands == []
    assert points.shape == (0, 2)


@pytest.mark.parametrize("path_string", ["M 0 0 A 10 20 30 40 50 60 70", "M 0 0 S 1 1 2 2", "M 0 0 T 1 1"])
def test_unsupported_commands(path_string):
    """Test that arcs and smooth curves are rejected."""
    with pytest.raises(ValueError, match="Unsupported SVG command"):
        AvSvgPath.parse_commands(path_string)


def test_wrong_number_of_arguments():
    """Test that incomplete argument groups are rejected."""
    with pytest.raises(ValueError, match="multiple of 4"):
        AvSvgPath.parse_commands("M 0 0 Q 1 1 2")


def test_format_parse_round_trip():
    """Test that formatting the parsed commands restores the string."""
    path_string = "M0 0 L1 0 Q2 0 2 1 C3 1 3 2 2.5 3 Z"

    points, commands = AvSvgPath.parse_commands(path_string)

    assert AvSvgPath.format_commands(points, commands) == path_string
