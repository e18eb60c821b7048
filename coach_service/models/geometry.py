"""
POSECOACH+ Coach Service - Angle/Distance Geometry

Pure functions over 2D points. Points may be Keypoints or anything with x/y.
"""

import numpy as np


def _as_array(point) -> np.ndarray:
    return np.array([point.x, point.y], dtype=float)


def angle_between(a, b, c) -> float:
    """
    Calculate angle at vertex b formed by points a-b-c.

    Args:
        a, b, c: points with x/y attributes; b is the vertex

    Returns:
        Angle in degrees (0-180); 0 when either ray has zero length
    """
    ba = _as_array(a) - _as_array(b)
    bc = _as_array(c) - _as_array(b)

    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba == 0 or norm_bc == 0:
        return 0.0

    cosine_angle = np.dot(ba, bc) / (norm_ba * norm_bc)
    cosine_angle = np.clip(cosine_angle, -1.0, 1.0)

    return float(np.degrees(np.arccos(cosine_angle)))


def distance(a, b) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(_as_array(a) - _as_array(b)))
