# arena_server/utils/helpers.py
"""Utility functions and helpers."""

import math
import random
from typing import Optional, Sequence

from arena_server.config.settings import PLAYER_COLORS


def calculate_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Calculate distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def within(value: float, low: float, high: float) -> bool:
    """Check if value lies in the closed range [low, high]."""
    return low <= value <= high


def in_rect(x: float, y: float, width: float, height: float) -> bool:
    """Check if (x, y) lies inside the rectangle [0, width] x [0, height]."""
    return within(x, 0, width) and within(y, 0, height)


def velocity_from_angle(angle: float, speed: float) -> tuple:
    """Velocity vector of the given magnitude pointing along angle (radians)."""
    return speed * math.cos(angle), speed * math.sin(angle)


def random_color(
    palette: Sequence[str] = PLAYER_COLORS, rng: Optional[random.Random] = None
) -> str:
    """Pick a color from the palette."""
    return (rng or random).choice(palette)
