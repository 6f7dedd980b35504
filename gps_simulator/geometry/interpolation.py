"""Distance accumulation and fractional position lookup along a polyline."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from ..models import Coordinate, InterpolatedPosition
from .spherical import haversine_distance, initial_bearing

DistanceArray = NDArray[np.float64]


def segment_lengths(coords: Sequence[Coordinate]) -> DistanceArray:
    """Haversine length of each consecutive segment (``len(coords) - 1`` values)."""

    if len(coords) < 2:
        return np.zeros(0, dtype=np.float64)
    return np.fromiter(
        (haversine_distance(coords[i - 1], coords[i]) for i in range(1, len(coords))),
        dtype=np.float64,
        count=len(coords) - 1,
    )


def cumulative_distances(coords: Sequence[Coordinate]) -> DistanceArray:
    """Running distance at the end of each segment (sequential summation)."""

    return np.cumsum(segment_lengths(coords))


def route_distance(coords: Sequence[Coordinate]) -> float:
    """Total haversine length of the polyline; 0 for fewer than two points."""

    cumulative = cumulative_distances(coords)
    if cumulative.size == 0:
        return 0.0
    return float(cumulative[-1])


def interpolate_position(
    coords: Sequence[Coordinate], fraction: float
) -> Optional[InterpolatedPosition]:
    """Locate the point ``fraction`` of the way along the polyline.

    Lat/lng are interpolated linearly inside the containing segment and the
    bearing is that segment's bearing. Returns ``None`` for fewer than two
    points. ``fraction`` is clamped at both ends: at or below 0 the first
    point with bearing 0, at or above 1 the last point with the final
    segment's bearing.
    """

    if len(coords) < 2:
        return None
    last_index = len(coords) - 2
    if fraction <= 0:
        return InterpolatedPosition(coords[0], 0.0, 0)
    if fraction >= 1:
        return InterpolatedPosition(
            coords[-1], initial_bearing(coords[-2], coords[-1]), last_index
        )

    lengths = segment_lengths(coords)
    cumulative = np.cumsum(lengths)
    target = float(cumulative[-1]) * fraction

    # First segment whose end distance reaches the target.
    index = int(np.searchsorted(cumulative, target, side="left"))
    if index >= len(lengths):
        # Rounding (or a NaN fraction) walked past every segment.
        # TODO: use the final segment's bearing here to match fraction >= 1
        # once downstream consumers no longer rely on the 0 heading.
        return InterpolatedPosition(coords[-1], 0.0, last_index)

    start, end = coords[index], coords[index + 1]
    accumulated = float(cumulative[index - 1]) if index > 0 else 0.0
    length = float(lengths[index])
    local = (target - accumulated) / length if length > 0 else 0.0
    position = Coordinate(
        latitude=start.latitude + (end.latitude - start.latitude) * local,
        longitude=start.longitude + (end.longitude - start.longitude) * local,
    )
    return InterpolatedPosition(position, initial_bearing(start, end), index)
