"""
@file route_sampler.py
@brief Reduce a dense route polyline to a few weather checkpoints

@author RainSafe Project
@date 2026-10-19
@license AGPL-3.0
"""

from typing import List, Sequence

from app.models.route import Coordinate


def sample_route_points(path: Sequence[Coordinate], count: int) -> List[Coordinate]:
    """
    @brief Pick representative waypoints along a path

    @details
    Paths of at most `count` points are returned unchanged. Longer paths are
    strided at floor(len / count) intervals starting from the first point,
    and the final point is always appended when the stride misses it, so the
    destination is always checked. The result may therefore hold up to
    count + 1 points.

    @param path Ordered route coordinates
    @param count Desired number of checkpoints (>= 1)
    @return Sampled coordinates; empty for an empty path
    """
    if not path:
        return []
    if count < 1:
        raise ValueError("count must be >= 1")
    if len(path) <= count:
        return list(path)

    step = len(path) // count
    result = [path[i] for i in range(0, len(path), step)]

    if result[-1] != path[-1]:
        result.append(path[-1])
    return result
