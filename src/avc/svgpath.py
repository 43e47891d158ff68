"""Handling Paths for SVG"""

from __future__ import annotations

import re
from typing import ClassVar, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from avc.common import AvPathCmds


class AvSvgPath:
    """
    This class provides a collection of static methods converting between SVG path strings
    and the command streams (points + M/L/Q/C/Z commands) of path components.
    Commands (command : number of values : command-character):
        MoveTo:           2: Mm
        LineTo:           2: Ll   1: Hh(x)   1:Vv(y)
        CubicBezier:      6: Cc
        QuadraticBezier:  4: Qq
        ClosePath:        0: Zz
    Smooth curves (Ss, Tt) and arcs (Aa) are not supported.
    """

    # Command letters:
    SVG_CMDS: ClassVar[str] = "MmLlHhVvCcSsQqTtAaZz"
    # Definition of a number:
    SVG_ARGS: ClassVar[str] = r"[-+]?[0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?"
    # Number of points consumed per command
    POINTS_PER_COMMAND: ClassVar[dict] = {"M": 1, "L": 1, "Q": 2, "C": 3, "Z": 0}

    @staticmethod
    def format_commands(points: NDArray[np.float64], commands: Sequence[AvPathCmds]) -> str:
        """
        Build a SVG path string from _points_ and _commands_.

        Args:
            points (NDArray[np.float64]): points of shape (n_points, 2) or (n_points, 3)
            commands (Sequence[AvPathCmds]): commands consuming the points in order

        Returns:
            str: the SVG path string, e.g. "M0 0 L1 0 Q2 0 2 1 Z"

        Raises:
            ValueError: if the number of points does not match the commands
        """
        ret_commands = []
        point_index = 0
        for cmd in commands:
            consumed = AvSvgPath.POINTS_PER_COMMAND[cmd]
            if point_index + consumed > len(points):
                raise ValueError(f"{cmd} command needs {consumed} points, got {len(points) - point_index}")
            args = []
            for point in points[point_index : point_index + consumed]:
                args.append(f"{float(point[0]):g} {float(point[1]):g}")
            ret_commands.append(cmd + " ".join(args))
            point_index += consumed
        if point_index != len(points):
            raise ValueError(f"Number of points ({len(points)}) does not match commands (requires {point_index})")
        return " ".join(ret_commands)

    @staticmethod
    def parse_commands(path_string: str) -> Tuple[NDArray[np.float64], List[AvPathCmds]]:
        """Parse a SVG path string into absolute points and M/L/Q/C/Z commands.

        Relative commands are converted into absolute ones, H/V into L.
        Implicit repetitions (e.g. "L 1 2 3 4") are expanded.

        Args:
            path_string (str): SVG path string input

        Returns:
            Tuple of points (shape: n_points, 2) and commands

        Raises:
            ValueError: on unsupported commands or a wrong number of arguments
        """
        org_commands = re.findall(f"[{AvSvgPath.SVG_CMDS}][^{AvSvgPath.SVG_CMDS}]*", path_string)
        points: List[Tuple[float, float]] = []
        commands: List[AvPathCmds] = []
        # Store the first point of the current subpath and the last (iterating) point (absolute):
        first_point = (0.0, 0.0)
        last_point = (0.0, 0.0)

        for command in org_commands:
            letter = command[0]
            upper = letter.upper()
            relative = letter.islower()
            args = [float(arg) for arg in re.findall(AvSvgPath.SVG_ARGS, command[1:])]

            if upper in "STA":
                raise ValueError(f"Unsupported SVG command '{letter}'")
            if upper == "Z":
                if args:
                    raise ValueError(f"'{letter}' takes no arguments, got {len(args)}")
                commands.append("Z")
                last_point = first_point
                continue

            batch_size = {"M": 2, "L": 2, "H": 1, "V": 1, "Q": 4, "C": 6}[upper]
            if not args or len(args) % batch_size:
                raise ValueError(f"'{letter}' needs a multiple of {batch_size} arguments, got {len(args)}")

            for i in range(0, len(args), batch_size):
                batch = args[i : i + batch_size]
                if upper == "H":
                    batch = [batch[0] + (last_point[0] if relative else 0.0), last_point[1]]
                    cmd = "L"
                elif upper == "V":
                    batch = [last_point[0], batch[0] + (last_point[1] if relative else 0.0)]
                    cmd = "L"
                else:
                    if relative:
                        batch = [value + last_point[j % 2] for j, value in enumerate(batch)]
                    # further pairs of a MoveTo are implicit LineTo commands
                    cmd = "L" if upper == "M" and i > 0 else upper
                new_points = [(batch[j], batch[j + 1]) for j in range(0, len(batch), 2)]
                points.extend(new_points)
                commands.append(cmd)
                last_point = new_points[-1]
                if cmd == "M":
                    first_point = last_point

        return np.asarray(points, dtype=np.float64).reshape(-1, 2), commands
